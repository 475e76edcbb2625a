import ast
import os
import re
from typing import List, Optional

PYTHON_EXTENSIONS = (".py", ".pyi")

# Start of a top-level JS/TS function, class or arrow-function declaration
DECLARATION_PATTERN = re.compile(
    r"^(?:export\s+(?:default\s+)?)?(?:"
    r"(?:async\s+)?function\b"
    r"|(?:abstract\s+)?class\b"
    r"|(?:const|let|var)\s+\w+(?:\s*:[^=]+)?\s*=\s*(?:async\s*)?(?:\([^)]*\)|\w+)\s*(?::[^=]+)?=>"
    r")",
    re.MULTILINE,
)

DIFF_HEADER_PATTERN = re.compile(r"^diff --git ", re.MULTILINE)


def pick_python_units(source: str) -> List[str]:
    """
    Top-level functions and classes of a Python module, decorators included.

    Source that does not parse is returned whole as a single unit.
    """
    try:
        tree = ast.parse(source)
    except SyntaxError:
        return [source.strip()] if source.strip() else []

    lines = source.splitlines()
    units = []
    for node in tree.body:
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            continue
        start = min([node.lineno] + [d.lineno for d in node.decorator_list])
        units.append("\n".join(lines[start - 1 : node.end_lineno]))
    return units


def _skip_string(source: str, index: int) -> int:
    quote = source[index]
    index += 1
    while index < len(source):
        char = source[index]
        if char == "\\":
            index += 2
            continue
        if char == quote:
            return index + 1
        index += 1
    return index


def _find_block_end(source: str, index: int) -> Optional[int]:
    """Index just past the brace that closes the first block opened at or after `index`."""
    depth = 0
    opened = False
    while index < len(source):
        char = source[index]
        if char in "'\"`":
            index = _skip_string(source, index)
            continue
        if source.startswith("//", index):
            newline = source.find("\n", index)
            index = len(source) if newline == -1 else newline
            continue
        if source.startswith("/*", index):
            close = source.find("*/", index + 2)
            index = len(source) if close == -1 else close + 2
            continue
        if char == "{":
            depth += 1
            opened = True
        elif char == "}" and opened:
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    return None


def pick_brace_units(source: str) -> List[str]:
    """Top-level function, class and arrow-function declarations of brace-delimited code (JS/TS)."""
    units = []
    position = 0
    while True:
        match = DECLARATION_PATTERN.search(source, position)
        if not match:
            break
        end = _find_block_end(source, match.end())
        if end is None:
            break
        units.append(source[match.start() : end])
        position = end
    return units


def split_diff(diff: str) -> List[str]:
    """One unit per changed file of a unified diff."""
    if not diff.strip():
        return []
    starts = [m.start() for m in DIFF_HEADER_PATTERN.finditer(diff)]
    if not starts:
        return [diff.strip()]
    bounds = starts + [len(diff)]
    return [diff[a:b].strip() for a, b in zip(bounds, bounds[1:]) if diff[a:b].strip()]


def split_into_units(source: str, file_path: Optional[str] = None) -> List[str]:
    """Split source code into function/class level units, picking the parser from the file extension."""
    extension = os.path.splitext(file_path or "")[1].lower()
    if extension in PYTHON_EXTENSIONS or (not extension and file_path is None):
        return pick_python_units(source)
    return pick_brace_units(source)
