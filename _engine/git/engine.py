from typing import List

from _engine.console import console
from _engine.git.files_controller import get_dir_files, get_staged_diff, get_staged_files
from _types.config import UserOptions
from _types.model import ReadFileResult, ReadTypeKind, TaskKind


def read_files(options: UserOptions) -> List[ReadFileResult]:
    """
    Collect the input units of a run.

    Commit summaries always read the staged diff of every staged file.
    Reviews and tests read either the staged files or every file below the
    configured root, depending on `read_type`.
    """
    if options.task == TaskKind.COMMIT:
        # Diffs are not filtered by extension
        staged = get_staged_files(options.read_git_statuses + ["D"], [""])
        results = []
        for file_path in staged:
            diff = get_staged_diff(file_path)
            if diff.strip():
                results.append(ReadFileResult(file_path=file_path, file_content=diff))
        return results

    if options.read_type == ReadTypeKind.GIT:
        file_paths = get_staged_files(options.read_git_statuses, options.read_files_extensions)
    else:
        console.print(f"[info]Reading files from [dim]{options.read_files_root}[/dim][/info]")
        file_paths = get_dir_files(options.read_files_root, options.read_files_extensions)

    return [ReadFileResult(file_path=file_path) for file_path in file_paths]
