import re
import threading
from typing import Callable, List, Optional, Sequence

from rich.markup import escape

from _data.openai import FAILURE_MESSAGE, REVIEW_PASSED_PATTERN
from _engine.chat.conversation import Conversation
from _engine.console import TAG, error_console
from _engine.prompt.builder import generate_prompt
from _types.config import UserOptions
from _types.errors import HookGPTError
from _types.model import ChatMessage, ReadFileResult, RunOutcome, TaskKind
from animation.spinner import ReviewSpinner

PromptBuilder = Callable[[ReadFileResult], Sequence[str]]
SpinnerFactory = Callable[[], ReviewSpinner]


def is_review_passed(task: TaskKind, message: str) -> bool:
    """Only reviews can fail; a passing review answers "Perfect!"."""
    if task != TaskKind.REVIEW:
        return True
    return re.search(REVIEW_PASSED_PATTERN, message, re.IGNORECASE) is not None


class HookGPTRunner:
    """
    Runs one file through the conversation and reports the result.

    Failures of a single file are reported and turned into a failed
    outcome; they never propagate to the caller, so the next file can
    still be processed.
    """

    def __init__(
        self,
        options: UserOptions,
        conversation: Conversation,
        prompt_builder: Optional[PromptBuilder] = None,
        show_progress: bool = True,
        spinner_factory: Optional[SpinnerFactory] = None,
    ) -> None:
        self.options = options
        self.conversation = conversation
        self.prompt_builder = prompt_builder or self._build_prompts
        self.show_progress = show_progress
        self.spinner_factory = spinner_factory or (lambda: ReviewSpinner(enabled=self.show_progress))

    def _build_prompts(self, file_result: ReadFileResult) -> Sequence[str]:
        return generate_prompt(
            self.options.task,
            file_result,
            custom_instructions=self.options.custom_instructions,
        )

    def _print_reply(self, spinner: ReviewSpinner, message: ChatMessage) -> None:
        passed = is_review_passed(self.options.task, message.text)
        spinner.log(message.text, style="success" if passed else "warning")

    def execute(self, file_result: ReadFileResult, cancel: Optional[threading.Event] = None) -> RunOutcome:
        task = self.options.task.value
        spinner = self.spinner_factory()
        spinner.start(f"[info]{TAG} start {task} your code...[/info]")
        try:
            prompts = self.prompt_builder(file_result)
            outcome = self.conversation.process(
                prompts,
                on_progress=spinner.update,
                on_reply=lambda message: self._print_reply(spinner, message),
                cancel=cancel,
            )
            spinner.succeed(f"🎉🎉 {TAG} {task} code successfully! 🎉🎉")
            return outcome
        except HookGPTError as e:
            error_console.print(f"[error]run error:[/error] {type(e).__name__}: {escape(e.message)}", highlight=False)
            spinner.fail(f"🤔🤔 {TAG} {task} your code failed! 🤔🤔")
            return RunOutcome(succeeded=False, messages=[FAILURE_MESSAGE])
        finally:
            spinner.stop()

    def run(self, file_result: ReadFileResult, cancel: Optional[threading.Event] = None) -> List[str]:
        """Reply texts of the file, or the single failure message."""
        return self.execute(file_result, cancel=cancel).messages
