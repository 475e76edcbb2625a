import re

from _types.model import ChatMessage

# Opening or closing fence of a markdown code block, with an optional language tag
CODE_FENCE_PATTERN = re.compile(r"```\w*")


def count_code_fences(text: str) -> int:
    return len(CODE_FENCE_PATTERN.findall(text or ""))


def needs_continuation(text: str) -> bool:
    """
    An odd number of fences means a code block was opened and never closed,
    i.e. the reply was cut off by the completion length limit.
    """
    return count_code_fences(text) % 2 == 1


def merge_continuation(previous: ChatMessage, continuation: ChatMessage) -> ChatMessage:
    """
    Append the continuation to the cut-off reply.

    The continuation's identifiers replace the original ones so the next
    request is chained after the continuation.
    """
    return ChatMessage(
        text=f"{previous.text}{continuation.text}",
        id=continuation.id,
        conversation_id=continuation.conversation_id,
    )
