"""In-process publish/subscribe of row changes over WebSockets.

Subscribers pick a table and, optionally, a single row id. Services publish
after they commit; delivery happens on the server event loop whether the
publisher runs there or in a worker thread.
"""

import asyncio
import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from fastapi import WebSocket

from campus_queue.models import ChangeAction
from campus_queue.models.base import utcnow

logger = logging.getLogger(__name__)

FEED_TABLES = frozenset({"staff", "queues", "queue_entries"})


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    action: ChangeAction
    row_id: str
    record: dict[str, Any]
    occurred_at: datetime = field(default_factory=utcnow)

    def as_message(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "action": self.action.value,
            "row_id": self.row_id,
            "record": self.record,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class Subscription:
    table: str
    row_id: str | None = None

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        return self.row_id is None or self.row_id == event.row_id


class ChangeFeedManager:
    def __init__(self):
        self._subscribers: dict[int, tuple[WebSocket, Subscription]] = {}
        self._lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None

    def bind_loop(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    @property
    def is_bound(self) -> bool:
        return self._loop is not None and not self._loop.is_closed()

    async def connect(self, websocket: WebSocket, subscription: Subscription) -> None:
        await websocket.accept()
        if not self.is_bound:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError:
                self._loop = None
        async with self._lock:
            self._subscribers[id(websocket)] = (websocket, subscription)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._subscribers.pop(id(websocket), None)
        try:
            await websocket.close()
        except RuntimeError:
            pass

    async def broadcast(self, event: ChangeEvent) -> int:
        async with self._lock:
            targets = [ws for ws, sub in self._subscribers.values() if sub.matches(event)]
        delivered = 0
        message = event.as_message()
        for websocket in targets:
            try:
                await websocket.send_json(message)
                delivered += 1
            except RuntimeError:
                await self.disconnect(websocket)
        return delivered

    def publish(self, event: ChangeEvent) -> Future[int] | None:
        """Schedule delivery of ``event`` from synchronous code."""

        if not self._subscribers or not self.is_bound:
            return None
        return asyncio.run_coroutine_threadsafe(self.broadcast(event), self._loop)

    def subscriber_count(self) -> int:
        return len(self._subscribers)


change_feed = ChangeFeedManager()


def publish_change(table: str, action: ChangeAction, row_id: Any, record: dict[str, Any]) -> None:
    try:
        change_feed.publish(ChangeEvent(table=table, action=action, row_id=str(row_id), record=record))
    except RuntimeError:
        # The bound loop stopped between the check and the schedule.
        logger.warning("change_feed_publish_dropped table=%s row_id=%s", table, row_id)
