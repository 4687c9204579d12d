"""
Chat data models.
"""
from enum import Enum
from pydantic import BaseModel
from typing import Optional
import time
import uuid


class Sender(str, Enum):
    USER = 'USER'
    AI = 'AI'
    SYSTEM = 'SYSTEM'


class AnalysisType(str, Enum):
    GENERAL = 'GENERAL'
    UNUSED_CHECK = 'UNUSED_CHECK'
    CODE_REVIEW = 'CODE_REVIEW'
    SECURITY_CHECK = 'SECURITY_CHECK'


class Message(BaseModel):
    id: str
    text: str
    sender: Sender
    timestamp: int
    # True only while a response is pending or streaming
    isThinking: bool = False
    estimatedTime: Optional[str] = None


class ExtractedFile(BaseModel):
    path: str
    content: str


def now_ms() -> int:
    return int(time.time() * 1000)


def new_message(text: str, sender: Sender, is_thinking: bool = False, timestamp: Optional[int] = None) -> Message:
    """Create a message with a fresh id, stamped with the current time."""
    return Message(
        id=str(uuid.uuid4()),
        text=text,
        sender=sender,
        timestamp=timestamp if timestamp is not None else now_ms(),
        isThinking=is_thinking,
    )
