from concurrent.futures import CancelledError
from typing import Optional


class HookGPTError(Exception):
    """Base class for every error raised by hookgpt."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(HookGPTError):
    """Missing or invalid option: unknown task kind, no model, no API key."""


class InputError(HookGPTError):
    """Neither file content nor a readable file path was supplied."""


class RemoteError(HookGPTError):
    """Transport or API failure while talking to the chat endpoint."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RequestTimeoutError(RemoteError, TimeoutError):
    """The request did not complete within the fixed time bound."""


class RequestCancelledError(RemoteError, CancelledError):
    """The request was cancelled through its cancellation token."""
