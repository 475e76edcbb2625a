from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.status import Status
from rich.text import Text

from _engine.console import TAG, console as default_console


class ReviewSpinner:
    """
    Progress indicator shown while hookgpt waits for the chat API.

    Wraps `Console.status`. A disabled spinner accepts every call and
    does nothing, so callers never have to branch on it.
    """

    def __init__(
        self,
        text: str = "",
        enabled: bool = True,
        console: Optional[Console] = None,
        spinner: str = "moon",
    ) -> None:
        self.text = text
        self.enabled = enabled
        self.console = console or default_console
        self.spinner = spinner
        self._status: Optional[Status] = None

    @property
    def running(self) -> bool:
        return self._status is not None

    def start(self, text: Optional[str] = None) -> "ReviewSpinner":
        if text is not None:
            self.text = text
        if self.enabled and self._status is None:
            self._status = self.console.status(self.text, spinner=self.spinner)
            self._status.start()
        return self

    def update(self, text: str) -> None:
        """Show partial reply text. Printed verbatim, markup is not interpreted."""
        if self._status is not None:
            self._status.update(Text(text[-self.console.width :] if text else ""))

    def log(self, text: str, style: str = "success") -> None:
        if self.enabled:
            self.console.print(f"[{style}]{TAG} {escape(text)}[/{style}]\n")

    def succeed(self, text: str) -> None:
        self.stop()
        if self.enabled:
            self.console.print(f"[success]✔ {text}[/success]")

    def fail(self, text: str) -> None:
        self.stop()
        if self.enabled:
            self.console.print(f"[error]✖ {text}[/error]")

    def stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None
