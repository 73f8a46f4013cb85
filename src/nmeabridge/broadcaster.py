"""Fan-out of decoded records to push-channel subscribers."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from nmeabridge._constants import SUBSCRIBER_QUEUE_SIZE
from nmeabridge.models._base import NmeaBaseModel

_logger = logging.getLogger(__name__)


class Subscriber:
    """One live push connection and its bounded outbound queue.

    :meth:`offer` never waits; :meth:`run` drains the queue into *send* on
    the subscriber's own task, so a slow client only ever delays itself.
    """

    def __init__(
        self,
        send: Callable[[str], Awaitable[Any]],
        *,
        name: str = "",
        queue_size: int = SUBSCRIBER_QUEUE_SIZE,
    ) -> None:
        self._send = send
        self.name = name
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._closed = False
        self.skipped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, message: str) -> bool:
        """Queue *message*; ``False`` (and counted as skipped) if full or closed."""
        if self._closed:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self.skipped += 1
            return False
        return True

    async def run(self) -> None:
        """Forward queued messages until closed or the send fails."""
        while not self._closed:
            message = await self._queue.get()
            try:
                await self._send(message)
            except (ConnectionError, RuntimeError) as exc:
                # aiohttp raises ConnectionResetError / RuntimeError on a closing socket.
                _logger.debug("Push to %s failed, stopping writer: %s", self.name, exc)
                self.close()

    def close(self) -> None:
        self._closed = True


class Broadcaster:
    """The set of live subscribers and best-effort delivery to all of them.

    Subscribers are added and discarded by their own connection lifecycle;
    the broadcaster never checks liveness itself.
    """

    def __init__(self) -> None:
        self._subscribers: set[Subscriber] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def __len__(self) -> int:
        return len(self._subscribers)

    def add(self, subscriber: Subscriber) -> None:
        self._subscribers.add(subscriber)
        _logger.info("Push client %s connected (%d total)", subscriber.name, len(self._subscribers))

    def discard(self, subscriber: Subscriber) -> None:
        if subscriber not in self._subscribers:
            return
        self._subscribers.discard(subscriber)
        subscriber.close()
        _logger.info("Push client %s disconnected (%d remaining)", subscriber.name, len(self._subscribers))

    def publish(self, record: NmeaBaseModel, raw: str | None = None) -> int:
        """Send *record* (with its source sentence) to every subscriber.

        Returns the number of subscribers that accepted it.
        """
        if not self._subscribers:
            return 0
        return self.publish_message(record.to_message(raw))

    def publish_message(self, message: dict[str, Any]) -> int:
        if not self._subscribers:
            return 0
        text = json.dumps(message, separators=(",", ":"))
        delivered = 0
        for subscriber in list(self._subscribers):
            if subscriber.offer(text):
                delivered += 1
        return delivered

    def close_all(self) -> None:
        """Stop every writer and empty the set (used on shutdown)."""
        for subscriber in list(self._subscribers):
            self.discard(subscriber)
