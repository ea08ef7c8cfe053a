"""Chat router.

Clients poll ``GET /chat/messages/{recipient_id}`` for the whole thread;
there is no push channel.
"""

from fastapi import APIRouter, Depends, Path, status

from mindcare.core.auth import CurrentIdentity
from mindcare.schemas.chat import MessageListResponse, MessageResponse, SendMessageRequest
from mindcare.services.conversations import append_message, history
from mindcare.store import KeyValueStore, get_store

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post(
    "/message",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    body: SendMessageRequest,
    identity: CurrentIdentity,
    store: KeyValueStore = Depends(get_store),
) -> MessageResponse:
    """Send a message to another user."""
    message = await append_message(
        store,
        sender_id=identity.user_id,
        recipient_id=body.recipient_id,
        text=body.text,
    )
    return MessageResponse(message=message)


@router.get("/messages/{recipient_id}", response_model=MessageListResponse)
async def list_messages(
    identity: CurrentIdentity,
    recipient_id: str = Path(..., min_length=1, max_length=64),
    store: KeyValueStore = Depends(get_store),
) -> MessageListResponse:
    """Full thread between the caller and ``recipient_id`` in send order."""
    messages = await history(store, identity.user_id, recipient_id)
    return MessageListResponse(messages=messages)
