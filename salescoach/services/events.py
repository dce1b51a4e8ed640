"""Per-session event sink for pipeline progress and change notifications.

Observers register callbacks instead of filling global slots, so two
sessions in one process never see each other's traffic.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, Optional

logger = logging.getLogger("salescoach.pipeline")

DebugListener = Callable[[str], None]
ChangeListener = Callable[[str], None]

_DEFAULT_HISTORY = 200


class PipelineEvents:
    """Fan-out of debug lines and "recordings changed" notifications."""

    def __init__(self, history_size: int = _DEFAULT_HISTORY) -> None:
        self._debug_listeners: list[DebugListener] = []
        self._change_listeners: list[ChangeListener] = []
        self._history: Deque[tuple[datetime, str]] = deque(maxlen=history_size)

    def subscribe_debug(self, listener: DebugListener) -> Callable[[], None]:
        """Register a debug listener; returns a callable that unregisters it."""

        self._debug_listeners.append(listener)
        return lambda: self._discard(self._debug_listeners, listener)

    def subscribe_changes(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a listener called with the owner id whose recordings changed."""

        self._change_listeners.append(listener)
        return lambda: self._discard(self._change_listeners, listener)

    @staticmethod
    def _discard(listeners: list, listener: Callable) -> None:
        if listener in listeners:
            listeners.remove(listener)

    def debug(self, message: str) -> None:
        logger.info(message)
        self._history.append((datetime.now(timezone.utc), message))
        for listener in list(self._debug_listeners):
            try:
                listener(message)
            except Exception:  # noqa: BLE001 - observers must not break the pipeline
                logger.exception("Debug listener failed")

    def recordings_changed(self, owner_id: str) -> None:
        for listener in list(self._change_listeners):
            try:
                listener(owner_id)
            except Exception:  # noqa: BLE001 - observers must not break the pipeline
                logger.exception("Change listener failed owner=%s", owner_id)

    def recent(self, limit: Optional[int] = None) -> list[tuple[datetime, str]]:
        entries = list(self._history)
        if limit is not None:
            entries = entries[-limit:]
        return entries


__all__ = ["PipelineEvents", "DebugListener", "ChangeListener"]
