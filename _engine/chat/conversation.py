import threading
from typing import Callable, List, Optional, Sequence, Tuple

from _data.openai import CONTINUE_MESSAGE
from _engine.chat.client import ChatSession, ProgressSink
from _engine.chat.continuation import merge_continuation, needs_continuation
from _types.model import ChatMessage, ParentContext, RunOutcome

ReplySink = Callable[[ChatMessage], None]


def send_chained(
    session: ChatSession,
    prompt: str,
    cursor: ChatMessage,
    on_progress: Optional[ProgressSink] = None,
    cancel: Optional[threading.Event] = None,
) -> ChatMessage:
    """
    Send `prompt` as a reply to `cursor`.

    If the answer ends inside an unterminated code block, ask the model to
    continue exactly once and return the merged reply.
    """
    message = session.send(
        prompt,
        parent=ParentContext.from_message(cursor),
        on_progress=on_progress,
        cancel=cancel,
    )
    if not needs_continuation(message.text):
        return message

    continuation = session.send(
        CONTINUE_MESSAGE,
        parent=ParentContext.from_message(message),
        on_progress=(lambda text: on_progress(message.text + text)) if on_progress else None,
        cancel=cancel,
    )
    return merge_continuation(message, continuation)


def process_unit(
    session: ChatSession,
    prompts: Sequence[str],
    cursor: Optional[ChatMessage] = None,
    on_progress: Optional[ProgressSink] = None,
    on_reply: Optional[ReplySink] = None,
    cancel: Optional[threading.Event] = None,
) -> Tuple[List[str], Optional[ChatMessage]]:
    """
    Send the prompts of one file as a single chained conversation.

    Args:
        session: Chat session used for every request.
        prompts: Task prompt followed by one prompt per code unit.
        cursor: Last reply of a previous file. When given, the task prompt
            is not sent again and the first code unit is chained to it.
        on_progress: Receives partial reply text of chained requests.
        on_reply: Called with every completed (merged) code-unit reply.
        cancel: Cancellation token passed to every request.

    Returns:
        The reply texts in prompt order, and the cursor to continue from.

    Raises:
        RemoteError: Any failed request. Remaining prompts are not sent.
    """
    if not prompts:
        return [], cursor
    task_prompt, *code_prompts = prompts
    if not code_prompts:
        return [], cursor

    if cursor is None:
        # The first message of a thread is sent without progress updates
        cursor = session.send(task_prompt, cancel=cancel)

    messages: List[str] = []
    for prompt in code_prompts:
        cursor = send_chained(session, prompt, cursor, on_progress=on_progress, cancel=cancel)
        messages.append(cursor.text)
        if on_reply:
            on_reply(cursor)
    return messages, cursor


class Conversation:
    """
    Holds the conversation cursor between files of one run.

    With `keep_conversation` the thread started by the first file is
    continued by every following file; otherwise each file starts a fresh
    thread with its own task prompt.
    """

    def __init__(self, session: ChatSession, keep_conversation: bool = True) -> None:
        self.session = session
        self.keep_conversation = keep_conversation
        self.cursor: Optional[ChatMessage] = None

    def reset(self) -> None:
        self.cursor = None

    def process(
        self,
        prompts: Sequence[str],
        on_progress: Optional[ProgressSink] = None,
        on_reply: Optional[ReplySink] = None,
        cancel: Optional[threading.Event] = None,
    ) -> RunOutcome:
        if not self.keep_conversation:
            self.reset()
        messages, cursor = process_unit(
            self.session,
            prompts,
            cursor=self.cursor,
            on_progress=on_progress,
            on_reply=on_reply,
            cancel=cancel,
        )
        self.cursor = cursor
        return RunOutcome(succeeded=True, messages=messages)

    def send_prompts(self, prompts: Sequence[str], cancel: Optional[threading.Event] = None) -> List[str]:
        """Send each prompt as an independent one-shot message."""
        return [self.session.send(prompt, cancel=cancel).text for prompt in prompts]
