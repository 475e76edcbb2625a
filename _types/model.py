from enum import Enum
from pydantic import BaseModel
from typing import List, Optional


class TaskKind(str, Enum):
    REVIEW = "review"
    TEST = "test"
    COMMIT = "commit"


class ReadTypeKind(str, Enum):
    DIR = "dir"
    GIT = "git"


class ReadFileResult(BaseModel):
    file_path: Optional[str] = None
    file_content: Optional[str] = None


class ChatMessage(BaseModel):
    text: str
    id: str
    conversation_id: Optional[str] = None


class ParentContext(BaseModel):
    conversation_id: Optional[str] = None
    parent_message_id: str

    @classmethod
    def from_message(cls, message: ChatMessage) -> "ParentContext":
        return cls(
            conversation_id=message.conversation_id,
            parent_message_id=message.id,
        )


class RunOutcome(BaseModel):
    succeeded: bool
    messages: List[str] = []
