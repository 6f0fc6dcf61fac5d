"""Chat panel for one ticket: fixed-interval polling plus a typing indicator.

There are no cursors or sequence numbers. Every poll refetches the full
message list and replaces what the panel holds, so a missed cycle is caught
up on the next one.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from helpdesk.client.api import HelpdeskClient
from helpdesk.client.errors import ApiError
from helpdesk.client.typing_indicator import SimulatedTypingIndicator, TypingIndicator
from helpdesk.config import get_settings
from helpdesk.schemas.chat import MessageOut
from helpdesk.schemas.user import UserOut

logger = logging.getLogger(__name__)

NewMessageCallback = Callable[[MessageOut], None]


class ChatPanel:
    def __init__(
        self,
        client: HelpdeskClient,
        ticket_id: str,
        viewer: UserOut,
        *,
        on_new_message: Optional[NewMessageCallback] = None,
        typing: Optional[TypingIndicator] = None,
        poll_interval: Optional[float] = None,
        typing_interval: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self.client = client
        self.ticket_id = ticket_id
        self.viewer = viewer
        self.messages: list[MessageOut] = []
        self.typing = typing or SimulatedTypingIndicator()
        self._on_new_message = on_new_message
        self._poll_interval = poll_interval or settings.chat_poll_interval
        self._typing_interval = typing_interval or settings.typing_poll_interval
        self._tasks: list[asyncio.Task] = []

    @property
    def is_open(self) -> bool:
        return bool(self._tasks)

    @property
    def is_typing(self) -> bool:
        return self.typing.is_typing

    async def poll_once(self) -> bool:
        """Refetch messages. Returns True when a new message from someone else arrived."""
        try:
            fetched = await self.client.get_messages(self.ticket_id)
        except ApiError as e:
            # Keep what we have; the next cycle retries
            logger.warning("Chat poll for ticket %s failed: %s", self.ticket_id, e)
            return False
        previous = self.messages
        incoming = (
            len(fetched) > len(previous)
            and len(previous) > 0
            and fetched[-1].senderId != self.viewer.id
        )
        if incoming:
            if self._on_new_message:
                self._on_new_message(fetched[-1])
            self.typing.clear()
        self.messages = fetched
        return incoming

    async def send(self, text: str) -> Optional[MessageOut]:
        """Send from the viewer, then resync. Blank input is ignored.

        Raises ApiError only when the message itself was not stored.
        """
        if not text.strip():
            return None
        message = await self.client.send_message(self.ticket_id, self.viewer.id, self.viewer.fullName, text)
        try:
            self.messages = await self.client.get_messages(self.ticket_id)
        except ApiError as e:
            # Already stored server-side; the next poll picks it up
            logger.warning("Resync after send on ticket %s failed: %s", self.ticket_id, e)
        return message

    async def input_changed(self) -> None:
        await self.typing.announce(self.client, self.ticket_id, self.viewer.id, self.viewer.fullName)

    async def _every(self, interval: float, fn: Callable[[], Awaitable[object]]) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await fn()
            except Exception:
                logger.exception("Chat timer for ticket %s failed", self.ticket_id)

    async def open(self) -> None:
        if self.is_open:
            return
        await self.poll_once()
        self._tasks = [
            asyncio.create_task(self._every(self._poll_interval, self.poll_once)),
            asyncio.create_task(
                self._every(
                    self._typing_interval,
                    lambda: self.typing.tick(self.client, self.ticket_id, self.viewer.id),
                )
            ),
        ]

    async def close(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self.typing.aclose()
