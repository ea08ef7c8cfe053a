"""Chat schemas."""

from pydantic import Field

from mindcare.models.message import MAX_MESSAGE_LENGTH, Message
from mindcare.schemas.base import ApiModel


class SendMessageRequest(ApiModel):
    text: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    recipient_id: str = Field(..., min_length=1, max_length=64)


class MessageResponse(ApiModel):
    message: Message


class MessageListResponse(ApiModel):
    messages: list[Message]
