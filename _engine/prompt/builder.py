from typing import Callable, Dict, List, Mapping, Optional

from _data.prompts import COMMIT_PROMPT, REVIEW_PROMPT, TESTS_PROMPT
from _engine.prompt.code_picker import split_diff, split_into_units
from _types.errors import ConfigurationError, InputError
from _types.model import ReadFileResult, TaskKind

TEMPLATES: Dict[TaskKind, str] = {
    TaskKind.REVIEW: REVIEW_PROMPT,
    TaskKind.TEST: TESTS_PROMPT,
    TaskKind.COMMIT: COMMIT_PROMPT,
}

Splitter = Callable[[str, Optional[str]], List[str]]


def _split_commit(source: str, file_path: Optional[str] = None) -> List[str]:
    return split_diff(source)


SPLITTERS: Dict[TaskKind, Splitter] = {
    TaskKind.REVIEW: split_into_units,
    TaskKind.TEST: split_into_units,
    TaskKind.COMMIT: _split_commit,
}


def read_file_content(file_result: Optional[ReadFileResult]) -> str:
    """
    Literal content wins over the path.

    Raises:
        InputError: No content and no readable file path.
    """
    if file_result is None:
        raise InputError("File content or file path is required to generate a prompt")
    if file_result.file_content:
        return file_result.file_content
    if not file_result.file_path:
        raise InputError("File content or file path is required to generate a prompt")
    try:
        with open(file_result.file_path, "r", encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError as e:
        raise InputError(f"Can not read {file_result.file_path}: {e}") from e


def generate_prompt(
    task: TaskKind,
    file_result: Optional[ReadFileResult],
    custom_instructions: str = "",
    templates: Mapping[TaskKind, str] = TEMPLATES,
) -> List[str]:
    """
    Build the prompts for one file: the task prompt, then one prompt per code unit.

    A result of length 1 means there is nothing to send.

    Raises:
        ConfigurationError: `task` has no registered template.
        InputError: Neither file content nor a readable path was given.
    """
    if task not in templates:
        raise ConfigurationError(f"Invalid task kind: {task}")
    file_content = read_file_content(file_result)

    base_prompt = f"{templates[task].strip()}\n{custom_instructions or ''}".rstrip()
    splitter = SPLITTERS.get(task, split_into_units)
    file_path = file_result.file_path if file_result else None
    code_prompts = splitter(file_content, file_path)
    return [base_prompt, *code_prompts]
