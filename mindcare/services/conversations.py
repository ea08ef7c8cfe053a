"""Two-party conversations.

Each pair of users shares one thread, keyed by ``conversation_key_of``.
Message ids are appended to the thread's append-only log, so concurrent
senders each get their own sequence slot and history order is append order.
"""

import uuid

from mindcare.core.exceptions import SenderNotFound, ValidationFailure
from mindcare.logging_config import get_logger
from mindcare.models.account import UserRole
from mindcare.models.message import (
    MAX_MESSAGE_LENGTH,
    MESSAGE_PREFIX,
    Message,
    conversation_index,
    conversation_key_of,
    message_key,
)
from mindcare.services.accounts import get_account
from mindcare.store import AppendLog, KeyValueStore, fetch_records

logger = get_logger(__name__)


def clean_text(text: str) -> str:
    """Strip a message body and enforce its length bounds."""
    text = text.strip()
    if not text:
        raise ValidationFailure("Message text cannot be empty")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ValidationFailure(
            f"Message text cannot exceed {MAX_MESSAGE_LENGTH} characters"
        )
    return text


async def append_message(
    store: KeyValueStore,
    sender_id: str,
    recipient_id: str,
    text: str,
) -> Message:
    """Store a message and add it to the pair's thread.

    Raises:
        SenderNotFound: If the sender has no account.
        ValidationFailure: If the text is empty or too long, or the sender
            is messaging themselves.
    """
    text = clean_text(text)
    if sender_id == recipient_id:
        raise ValidationFailure("Cannot send a message to yourself")

    sender = await get_account(store, sender_id)
    if sender is None:
        raise SenderNotFound()

    message = Message(
        id=str(uuid.uuid4()),
        sender_id=sender.id,
        sender_name=sender.name,
        sender_type=UserRole(sender.role),
        recipient_id=recipient_id,
        text=text,
    )
    await store.set(message_key(message.id), message.to_document())

    conversation = conversation_key_of(sender_id, recipient_id)
    seq = await AppendLog(store, conversation_index(conversation)).append(message.id)

    logger.info(
        "Message appended",
        message_id=message.id,
        conversation=conversation,
        seq=seq,
        sender_type=message.sender_type.value,
    )
    return message


async def history(store: KeyValueStore, user_a: str, user_b: str) -> list[Message]:
    """Full thread between two users in append order."""
    conversation = conversation_key_of(user_a, user_b)
    message_ids = await AppendLog(store, conversation_index(conversation)).read()
    return [
        Message.model_validate(document)
        for document in await fetch_records(store, MESSAGE_PREFIX, message_ids)
    ]
