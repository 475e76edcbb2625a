from typing import Any, Dict, List, Optional, Union

import pytest

from _types.config import UserOptions
from _types.model import ChatMessage, ParentContext


class FakeSession:
    """
    Stands in for ChatSession. Each `send` consumes the next scripted reply:
    a string is returned as the reply text, an exception is raised.
    """

    def __init__(self, replies: List[Union[str, BaseException]]) -> None:
        self.replies = list(replies)
        self.calls: List[Dict[str, Any]] = []

    def send(
        self,
        text: str,
        parent: Optional[ParentContext] = None,
        on_progress=None,
        cancel=None,
    ) -> ChatMessage:
        self.calls.append({"text": text, "parent": parent, "on_progress": on_progress})
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if on_progress:
            on_progress(reply)
        return ChatMessage(text=reply, id=f"msg-{len(self.calls)}", conversation_id="conv-1")

    @property
    def sent_texts(self) -> List[str]:
        return [call["text"] for call in self.calls]


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def options() -> UserOptions:
    return UserOptions(openai_key="sk-test", openai_model="gpt-3.5-turbo")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run with no hookgpt environment variables, from an empty directory."""
    for key in [
        "DEBUG",
        "SECURITY_REGEX",
        "OPENAI_API_KEY",
        "OPENAI_SESSION_TOKEN",
        "OPENAI_PROXY_URL",
        "OPENAI_MODEL",
        "OPENAI_MAX_TOKENS",
        "OPENAI_PROMPT",
        "READ_TYPE",
        "READ_GIT_STATUS",
        "READ_FILES_ROOT_NAME",
        "READ_FILE_EXTENSIONS",
        "TEST_FILE_TYPE",
        "TEST_FILE_NAME_EXTENSION",
        "TEST_FILE_DIR_NAME",
        "REVIEW_REPORT_WEBHOOK",
        "KEEP_CONVERSATION",
    ]:
        # setenv first so that values loaded from .env files are undone too
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return tmp_path
