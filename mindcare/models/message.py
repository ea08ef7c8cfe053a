"""Chat message record and conversation keys."""

from datetime import datetime

from pydantic import Field

from mindcare.models.account import UserRole
from mindcare.models.base import Record, utcnow

MESSAGE_PREFIX = "message"
CONVERSATION_SEPARATOR = ":"
MAX_MESSAGE_LENGTH = 4000


class Message(Record):
    """One chat message. Never edited or deleted."""

    id: str
    sender_id: str
    sender_name: str
    sender_type: UserRole
    recipient_id: str
    text: str
    timestamp: datetime = Field(default_factory=utcnow)


def message_key(message_id: str) -> str:
    return f"{MESSAGE_PREFIX}:{message_id}"


def conversation_key_of(a: str, b: str) -> str:
    """Order-independent key for the thread between two users."""
    first, second = sorted((a, b))
    return f"{first}{CONVERSATION_SEPARATOR}{second}"


def conversation_index(conversation_key: str) -> str:
    return f"conversation:{conversation_key}"
