import os
from typing import List, Sequence

from _engine.console import console
from _engine.git.command import run_git_command


def has_extension(file_path: str, extensions: Sequence[str]) -> bool:
    return any(file_path.endswith(ext) for ext in extensions)


def get_staged_files(statuses: Sequence[str], extensions: Sequence[str]) -> List[str]:
    """
    Get the staged files whose git status letter is one of `statuses`.

    Args:
        statuses (Sequence[str]): Status letters to keep, e.g. ["R", "M", "A"].
        extensions (Sequence[str]): File extensions to keep, e.g. [".py"].

    Returns:
        List[str]: Paths relative to the repository root, in git order.
                   Returns an empty list on failure or when nothing is staged.
    """
    returncode, stdout, stderr = run_git_command(["git", "diff", "--cached", "--name-status"])
    if returncode != 0:
        console.print("[error]Failed to list staged files.[/error]")
        console.print(f"[dim]Details:[/dim] [dim yellow]{stderr}[/dim yellow]")
        return []

    files = []
    for line in stdout.splitlines():
        parts = line.split("\t")
        if len(parts) < 2:
            continue
        # Renames look like "R100\told\tnew", keep the new path
        status, file_path = parts[0][:1].upper(), parts[-1]
        if status in statuses and has_extension(file_path, extensions):
            files.append(file_path)

    if files:
        console.print(f"[info]Found [bold]{len(files)}[/bold] staged file(s).[/info]")
    else:
        console.print("[warning]No staged files detected.[/warning]")
    return files


def get_staged_diff(file_path: str) -> str:
    """Staged diff of one file, empty when git fails."""
    returncode, stdout, stderr = run_git_command(["git", "diff", "--cached", "--", file_path])
    if returncode != 0:
        console.print(f"[error]Failed to generate diff for [bold]{file_path}[/bold].[/error]")
        console.print(f"[dim]Details:[/dim] [dim yellow]{stderr}[/dim yellow]")
        return ""
    return stdout


def get_dir_files(root: str, extensions: Sequence[str]) -> List[str]:
    """All files below `root` with one of `extensions`, skipping hidden directories."""
    if not os.path.isdir(root):
        console.print(f"[warning]Directory not found: [dim]{root}[/dim][/warning]")
        return []
    files = []
    for dir_path, dir_names, file_names in os.walk(root):
        dir_names[:] = sorted(d for d in dir_names if not d.startswith("."))
        for file_name in sorted(file_names):
            if has_extension(file_name, extensions):
                files.append(os.path.join(dir_path, file_name))
    return files
