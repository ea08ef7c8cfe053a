"""Client-side helpers for the MindCare API."""

from mindcare.client.api import ApiError, MindCareClient, MindCareClientError
from mindcare.client.chat_sync import ChatSync, ConversationFeed, HttpConversationFeed

__all__ = [
    "ApiError",
    "ChatSync",
    "ConversationFeed",
    "HttpConversationFeed",
    "MindCareClient",
    "MindCareClientError",
]
