# Standard Library Imports
import sys
import argparse
from typing import List, Optional, Tuple

# Third-Party Library Imports
from rich.panel import Panel
from rich.markup import escape

# Internal Module Imports
from _engine.chat import Conversation, HookGPTRunner, create_session, is_review_passed
from _engine.console import TAG, console
from _engine.git import read_files
from _engine.report import write_review_report, write_test_file
from _types.config import UserOptions, load_user_options
from _types.errors import ConfigurationError
from _types.model import ReadFileResult, RunOutcome, TaskKind

FileOutcome = Tuple[ReadFileResult, RunOutcome]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hookgpt",
        description="Review, write tests for, or summarize your staged code with ChatGPT.",
    )
    parser.add_argument(
        "task",
        choices=[kind.value for kind in TaskKind],
        help="What to do with the code: review it, write tests for it, or summarize the staged diff.",
    )
    parser.add_argument("-m", "--model", help="OpenAI model name. Overrides OPENAI_MODEL.", type=str)
    parser.add_argument("--max-tokens", help="Completion length cap. Overrides OPENAI_MAX_TOKENS.", type=int)
    parser.add_argument(
        "--prompt",
        help="Custom instructions appended to the task prompt. Overrides OPENAI_PROMPT.",
        type=str,
    )
    parser.add_argument(
        "--read-type",
        choices=["git", "dir"],
        help="Read staged files (git) or every file below --root (dir). Overrides READ_TYPE.",
    )
    parser.add_argument("--root", help="Directory read in 'dir' mode. Default: 'src'", type=str)
    parser.add_argument("--extensions", help="Comma separated file extensions, e.g. '.py,.ts'", type=str)
    parser.add_argument(
        "--security-regex",
        help="Regex whose matches are replaced before any code is sent. Overrides SECURITY_REGEX.",
        type=str,
    )
    parser.add_argument(
        "--fresh-context",
        action="store_true",
        help="Start a new conversation for every file instead of continuing the previous one.",
    )
    parser.add_argument("--debug", action="store_true", help="Print debug information.")
    return parser


def options_from_args(args: argparse.Namespace) -> UserOptions:
    overrides = {
        "task": args.task,
        "openai_model": args.model,
        "openai_max_tokens": args.max_tokens,
        "custom_instructions": args.prompt,
        "read_type": args.read_type,
        "read_files_root_name": args.root,
        "read_file_extensions": args.extensions,
        "security_regex": args.security_regex,
        "keep_conversation": False if args.fresh_context else None,
        "debug": True if args.debug else None,
    }
    return load_user_options(overrides)


def report_outcomes(options: UserOptions, outcomes: List[FileOutcome]) -> int:
    """Write the task's output and return the process exit code."""
    if options.task == TaskKind.TEST:
        for file_result, outcome in outcomes:
            if outcome.succeeded and file_result.file_path:
                write_test_file(options, file_result.file_path, outcome.messages)
        return 0

    if options.task == TaskKind.COMMIT:
        summary = "\n\n".join(
            message for _, outcome in outcomes if outcome.succeeded for message in outcome.messages
        )
        if summary:
            console.print(Panel(escape(summary), title="[bold green]Commit summary[/bold green]", border_style="green"))
        return 0

    failed_reviews = []
    for file_result, outcome in outcomes:
        if not outcome.succeeded:
            continue
        failed = [m for m in outcome.messages if not is_review_passed(options.task, m)]
        if failed:
            failed_reviews.append((file_result.file_path or "<content>", failed))

    if not failed_reviews:
        console.print(f"[success]{TAG} Your code looks perfect![/success]")
        return 0
    write_review_report(options, failed_reviews)
    console.print(
        f"[error]{TAG} {len(failed_reviews)} file(s) did not pass the review, see the report.[/error]"
    )
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments, read the input files, run every file through ChatGPT
    and write the results. Returns the exit code.
    """
    args = build_parser().parse_args(argv)

    try:
        options = options_from_args(args)
    except ConfigurationError as e:
        console.print(Panel(f"[error]{escape(e.message)}[/error]", title="[bold red]Configuration Error[/bold red]", border_style="red"))
        return 1

    files = read_files(options)
    if not files:
        console.print("[yellow]No files to process. Nothing to send.[/yellow]")
        return 0

    try:
        session = create_session(options)
    except ConfigurationError as e:
        console.print(Panel(f"[error]{escape(e.message)}[/error]", title="[bold red]Configuration Error[/bold red]", border_style="red"))
        return 1

    runner = HookGPTRunner(options, Conversation(session, keep_conversation=options.keep_conversation))

    outcomes: List[FileOutcome] = []
    for file_result in files:
        console.print(f"\n[bold blue]{TAG} {options.task.value}:[/bold blue] [cyan]{file_result.file_path}[/cyan]")
        outcomes.append((file_result, runner.execute(file_result)))

    failed_count = sum(1 for _, outcome in outcomes if not outcome.succeeded)
    if failed_count:
        console.print(f"[error]{TAG} {failed_count} of {len(outcomes)} file(s) could not be processed.[/error]")

    return report_outcomes(options, outcomes)


def cli() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        console.print("\n[bold yellow]✋ Operation cancelled by user.[/bold yellow]")
        sys.exit(0)
    except Exception as e:
        console.print(
            Panel(
                f"[bold red]An unexpected error occurred:[/bold red]\n[yellow]{escape(str(e))}[/yellow]",
                title="[bold red]Fatal Error[/bold red]",
                border_style="red",
            )
        )
        sys.exit(1)


# --- Entry Point ---
if __name__ == "__main__":
    cli()
