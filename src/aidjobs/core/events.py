from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator
from typing import Any


class EventBus:
    """Fan-out of status messages to every open stream of one owner."""

    def __init__(self) -> None:
        self._queues: dict[str, list[asyncio.Queue[dict[str, Any]]]] = defaultdict(list)
        self._lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None

    async def publish(self, owner_id: str, event: dict[str, Any]) -> None:
        async with self._lock:
            for queue in list(self._queues.get(owner_id, [])):
                await queue.put(event)

    async def subscribe(self, owner_id: str) -> AsyncIterator[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._loop = asyncio.get_running_loop()
        async with self._lock:
            self._queues[owner_id].append(queue)

        try:
            while True:
                event = await queue.get()
                yield event
        finally:
            async with self._lock:
                if queue in self._queues.get(owner_id, []):
                    self._queues[owner_id].remove(queue)
                if not self._queues.get(owner_id):
                    self._queues.pop(owner_id, None)

    def subscriber_count(self, owner_id: str) -> int:
        return len(self._queues.get(owner_id, []))

    def publish_from_sync(self, owner_id: str, event: dict[str, Any]) -> None:
        """Publish from synchronous code, e.g. a handler running in a worker thread."""
        if not self.subscriber_count(owner_id) or self._loop is None or self._loop.is_closed():
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            running.create_task(self.publish(owner_id, event))
        else:
            asyncio.run_coroutine_threadsafe(self.publish(owner_id, event), self._loop)
