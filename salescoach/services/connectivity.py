"""Online/offline signal consumed by the orchestrator and queue drainer."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

logger = logging.getLogger(__name__)

OnlineListener = Callable[[], Awaitable[None]]


class ConnectivityMonitor:
    """Boolean observable; listeners fire on each offline -> online transition."""

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._listeners: list[OnlineListener] = []
        self._tasks: set[asyncio.Task] = set()

    @property
    def is_online(self) -> bool:
        return self._online

    def on_online(self, listener: OnlineListener) -> None:
        self._listeners.append(listener)

    def set_online(self, online: bool) -> None:
        """Update the state, scheduling listeners when connectivity returns."""

        previous = self._online
        self._online = online
        if previous == online:
            return
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        if not online:
            return
        for listener in list(self._listeners):
            task = asyncio.get_running_loop().create_task(listener())
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Connectivity listener crashed", exc_info=exc)

    async def wait_listeners(self) -> None:
        """Await listener tasks scheduled by previous transitions."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def probe(self, url: str, *, timeout: float = 5.0) -> bool:
        """Check reachability of ``url`` and update the state accordingly."""

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                await client.head(url)
        except httpx.RequestError as exc:
            logger.debug("Connectivity probe failed: %s", exc)
            self.set_online(False)
            return False
        # Any HTTP answer, even an error status, counts as online.
        self.set_online(True)
        return True

    async def probe_forever(
        self,
        url: str,
        *,
        interval: float,
        timeout: float = 5.0,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        sleeper = sleep or asyncio.sleep
        while True:
            await self.probe(url, timeout=timeout)
            await sleeper(interval)


__all__ = ["ConnectivityMonitor", "OnlineListener"]
