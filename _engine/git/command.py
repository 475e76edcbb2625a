import subprocess
from typing import List, Tuple

from _engine.console import console


def run_git_command(command: List[str]) -> Tuple[int, str, str]:
    """
    Runs a git command and returns its return code, stdout, and stderr.

    Args:
        command (List[str]): The git command and its arguments as a list of strings.
                             Example: ["git", "diff", "--cached", "--name-status"]

    Returns:
        Tuple[int, str, str]: The command's return code, stdout and stderr.
                              Returns (1, "", "Exception details") if the command could not run.
    """
    try:
        # errors="replace" keeps binary diffs from aborting the run
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
        return result.returncode, result.stdout.strip(), result.stderr.strip()
    except FileNotFoundError:
        error_msg = "Git command not found. Is Git installed and in your PATH?"
        console.print(f"[error]Error:[/error] {error_msg}")
        return 1, "", error_msg
    except OSError as e:
        error_msg = f"Exception running command {' '.join(command)}: {e}"
        console.print(f"Error: {error_msg}", style="error", markup=False)
        return 1, "", error_msg
