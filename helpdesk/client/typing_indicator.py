"""Typing indicators for the chat panel. Any TypingIndicator implementation can be swapped in."""
import asyncio
import logging
import random
from abc import ABC, abstractmethod
from typing import Optional

from helpdesk.client.api import HelpdeskClient
from helpdesk.client.errors import ApiError

logger = logging.getLogger(__name__)


class TypingIndicator(ABC):
    """Holds the "someone is typing" flag shown under the chat messages."""

    def __init__(self) -> None:
        self.is_typing = False

    @abstractmethod
    async def tick(self, client: HelpdeskClient, ticket_id: str, viewer_id: str) -> None:
        """Called on the typing interval; updates is_typing."""
        ...

    async def announce(self, client: HelpdeskClient, ticket_id: str, viewer_id: str, viewer_name: str) -> None:
        """Called while the viewer types. Default: nothing to tell anyone."""

    def clear(self) -> None:
        self.is_typing = False

    async def aclose(self) -> None:
        self.clear()


class SimulatedTypingIndicator(TypingIndicator):
    """Cosmetic: after the viewer's own message, pretend the other side is typing now and then."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        probability: float = 0.4,
        min_duration: float = 2.0,
        max_duration: float = 4.0,
    ) -> None:
        super().__init__()
        self._rng = rng or random.Random()
        self._probability = probability
        self._min_duration = min_duration
        self._max_duration = max_duration
        self._clear_task: Optional[asyncio.Task] = None

    async def tick(self, client: HelpdeskClient, ticket_id: str, viewer_id: str) -> None:
        try:
            messages = await client.get_messages(ticket_id)
        except ApiError as e:
            logger.debug("Typing tick skipped: %s", e)
            return
        if not messages or messages[-1].senderId != viewer_id:
            return
        if self._rng.random() < self._probability:
            self.is_typing = True
            self._schedule_clear(self._rng.uniform(self._min_duration, self._max_duration))

    def _schedule_clear(self, delay: float) -> None:
        self._cancel_clear()
        self._clear_task = asyncio.create_task(self._clear_later(delay))

    async def _clear_later(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self.is_typing = False

    def _cancel_clear(self) -> None:
        if self._clear_task and not self._clear_task.done():
            self._clear_task.cancel()
        self._clear_task = None

    def clear(self) -> None:
        self._cancel_clear()
        super().clear()


class PresenceTypingIndicator(TypingIndicator):
    """Reads the server's typing presence (Redis-backed) instead of guessing."""

    async def tick(self, client: HelpdeskClient, ticket_id: str, viewer_id: str) -> None:
        try:
            typists = await client.get_typing(ticket_id, exclude=viewer_id)
        except ApiError as e:
            logger.debug("Presence tick skipped: %s", e)
            return
        self.is_typing = bool(typists)

    async def announce(self, client: HelpdeskClient, ticket_id: str, viewer_id: str, viewer_name: str) -> None:
        try:
            await client.mark_typing(ticket_id, viewer_id, viewer_name)
        except ApiError as e:
            logger.debug("Typing announce failed: %s", e)
