"""Polling chat synchronization for one open conversation.

``ChatSync`` keeps a local copy of a thread fresh by re-fetching the full
history on a fixed interval. Every successful fetch replaces the local list
(last fetch wins). Sent messages are appended locally as soon as the server
returns them; the next poll's replacement already contains them.

The transport sits behind ``ConversationFeed`` so a push-based feed can
replace polling without touching the view code.
"""

import asyncio
from collections.abc import Callable
from typing import Any, Protocol

from mindcare.client.api import MindCareClient
from mindcare.config import settings
from mindcare.logging_config import get_logger
from mindcare.models.message import Message

logger = get_logger(__name__)


class ConversationFeed(Protocol):
    """Source of one conversation's messages."""

    async def fetch_history(self) -> list[Message]:
        """Return the complete thread in display order."""
        ...

    async def send(self, text: str) -> Message:
        """Send a message and return the stored record."""
        ...


class HttpConversationFeed:
    """Feed backed by the REST chat endpoints."""

    def __init__(self, client: MindCareClient, recipient_id: str):
        self.client = client
        self.recipient_id = recipient_id

    async def fetch_history(self) -> list[Message]:
        return await self.client.get_messages(self.recipient_id)

    async def send(self, text: str) -> Message:
        return await self.client.send_message(text, self.recipient_id)


class ChatSync:
    """Polling loop bound to one chat view.

    Usage:
        async with ChatSync(feed, on_update=render) as chat:
            await chat.wait_loaded()
            await chat.send("Hello")
    """

    def __init__(
        self,
        feed: ConversationFeed,
        poll_interval: float | None = None,
        on_update: Callable[[list[Message]], None] | None = None,
    ):
        self.feed = feed
        self.poll_interval = (
            poll_interval
            if poll_interval is not None
            else settings.chat_poll_interval_seconds
        )
        self.on_update = on_update
        self.messages: list[Message] = []
        self.loading = True
        self._loaded = asyncio.Event()
        self._fetch_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def __aenter__(self) -> "ChatSync":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    def start(self) -> None:
        """Begin polling. The first fetch runs right away."""
        if self.active:
            return
        self._task = asyncio.create_task(self._poll())

    async def stop(self) -> None:
        """Cancel polling. No fetch is issued after this returns."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def wait_loaded(self) -> None:
        """Wait until the first fetch has finished, successfully or not."""
        await self._loaded.wait()

    async def _poll(self) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(self.poll_interval)

    async def refresh(self) -> list[Message]:
        """Fetch the thread now and replace the local list.

        A failed fetch keeps the current list; polling carries on.
        """
        async with self._fetch_lock:
            try:
                fetched = await self.feed.fetch_history()
            except Exception:
                logger.exception("Chat history fetch failed")
                return self.messages
            finally:
                self.loading = False
                self._loaded.set()

            self.messages = list(fetched)
            self._publish()
            return self.messages

    async def send(self, text: str) -> Message:
        """Send a message and show it locally without waiting for a poll.

        Failures propagate so the view can tell the user.
        """
        message = await self.feed.send(text)
        self.messages = [*self.messages, message]
        self._publish()
        return message

    def _publish(self) -> None:
        """Hand the current list to ``on_update``.

        A failing callback is logged and never stops polling or sending.
        """
        if self.on_update is None:
            return
        try:
            self.on_update(list(self.messages))
        except Exception:
            logger.exception("Chat update callback failed")
