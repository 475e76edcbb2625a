import os
import re
from typing import List, Optional, Sequence, Tuple

import requests

from _data.openai import REVIEW_FILE_NAME
from _engine.console import console
from _types.config import UserOptions

# Content of a fenced code block, language tag line included
CODE_BLOCKS_PATTERN = re.compile(r"```([\s\S]*?)```")
# Opening fence with its language tag
CODE_BLOCK_LANGUAGE_PATTERN = re.compile(r"^\w*\n")

FileReplies = Tuple[str, Sequence[str]]


def extract_code_blocks(text: str) -> List[str]:
    """Bodies of every fenced code block, without the language tag."""
    return [
        CODE_BLOCK_LANGUAGE_PATTERN.sub("", block, count=1).strip("\n")
        for block in CODE_BLOCKS_PATTERN.findall(text)
    ]


def build_test_file_path(source_path: str, test_dir_name: str, suffix: str) -> str:
    """`src/utils/math.py` -> `src/utils/__test__/math.test.py`"""
    directory, file_name = os.path.split(source_path)
    base_name = os.path.splitext(file_name)[0]
    return os.path.join(directory, test_dir_name, f"{base_name}{suffix}")


def write_test_file(options: UserOptions, source_path: str, messages: Sequence[str]) -> Optional[str]:
    """
    Write the generated tests next to the source file.

    Returns:
        Optional[str]: Path of the written file, or None when the replies held
                       no code or the test file already exists.
    """
    blocks = [block for message in messages for block in extract_code_blocks(message)]
    if not blocks:
        console.print(f"[warning]No test code generated for [dim]{source_path}[/dim][/warning]")
        return None

    test_path = build_test_file_path(source_path, options.test_file_dir_name, options.test_file_name_suffix)
    if os.path.exists(test_path):
        console.print(f"[warning]Test file already exists, skipped: [dim]{test_path}[/dim][/warning]")
        return None

    os.makedirs(os.path.dirname(test_path) or ".", exist_ok=True)
    with open(test_path, "w", encoding="utf-8") as f:
        f.write("\n\n\n".join(blocks) + "\n")
    console.print(f"[success]✔ Test file written:[/success] [bold cyan]{test_path}[/bold cyan]")
    return test_path


def build_review_report(results: Sequence[FileReplies]) -> str:
    """Markdown report of every reply that is not a pass."""
    sections = []
    for file_path, messages in results:
        if not messages:
            continue
        body = "\n\n".join(message.strip() for message in messages)
        sections.append(f"## {file_path}\n\n{body}\n")
    return "\n".join(sections)


def write_review_report(
    options: UserOptions,
    results: Sequence[FileReplies],
    file_name: str = REVIEW_FILE_NAME,
) -> Optional[str]:
    """Write the review report file and send it to the webhook when one is configured."""
    report = build_review_report(results)
    if not report:
        return None

    report_path = os.path.join(os.getcwd(), file_name)
    with open(report_path, "w", encoding="utf-8") as f:
        f.write(f"# hookgpt review\n\n{report}")
    console.print(f"[warning]Review report written to [dim]{report_path}[/dim][/warning]")

    if options.review_report_webhook:
        send_review_webhook(options.review_report_webhook, report)
    return report_path


def send_review_webhook(url: str, report: str) -> bool:
    try:
        response = requests.post(url, json={"text": report}, timeout=30)
    except requests.exceptions.RequestException as e:
        console.print(f"Failed to send review report to webhook: {e}", style="error", markup=False)
        return False
    if response.status_code >= 400:
        console.print(f"[error]Webhook answered {response.status_code}[/error]")
        return False
    return True
