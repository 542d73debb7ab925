# src/services/progress_channel.py

"""Broadcast channel for human-readable pipeline progress events.

One publisher (the pipeline run) pushes :class:`ProgressEvent` objects;
any number of subscribers drain their own unbounded queue.  Publishing
never awaits, so a slow or abandoned subscriber cannot stall the run.
"""

import asyncio
import logging
import re
from collections.abc import AsyncIterator
from dataclasses import dataclass

logger = logging.getLogger("crate_scout.progress")

_PERCENT_RE = re.compile(r"Progress: (\d+)%")
_ETA_RE = re.compile(r"ETA: (\d+)s")


@dataclass(frozen=True)
class ProgressEvent:
    """A single milestone: percentage complete plus a status message."""

    percent: int
    message: str
    eta_seconds: int | None = None

    def __str__(self) -> str:
        if self.eta_seconds is not None:
            return (
                f"Progress: {self.percent}% | "
                f"ETA: {self.eta_seconds}s | {self.message}"
            )
        return f"Progress: {self.percent}% | {self.message}"


def parse_progress(text: str) -> tuple[int | None, int | None]:
    """Extract ``(percent, eta_seconds)`` from a progress line."""
    percent_match = _PERCENT_RE.search(text)
    eta_match = _ETA_RE.search(text)
    percent = int(percent_match.group(1)) if percent_match else None
    eta = int(eta_match.group(1)) if eta_match else None
    return percent, eta


class Subscription:
    """Async iterator over the events published after subscribing."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[ProgressEvent | None] = asyncio.Queue()

    def _deliver(self, event: ProgressEvent | None) -> None:
        self._queue.put_nowait(event)

    def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        return self

    async def __anext__(self) -> ProgressEvent:
        event = await self._queue.get()
        if event is None:
            raise StopAsyncIteration
        return event


class ProgressChannel:
    """Single-writer, multi-reader progress broadcast for one run."""

    def __init__(self) -> None:
        self._subscribers: list[Subscription] = []
        self._percent = 0
        self._closed = False

    @property
    def percent(self) -> int:
        """Highest percentage published so far."""
        return self._percent

    def subscribe(self) -> Subscription:
        """Register a new reader; it sees events published from now on."""
        subscription = Subscription()
        if self._closed:
            subscription._deliver(None)
        else:
            self._subscribers.append(subscription)
        return subscription

    def publish(
        self,
        percent: float,
        message: str,
        eta_seconds: int | None = None,
    ) -> ProgressEvent:
        """Broadcast an event.

        The percentage is clamped to 0-100 and never moves backwards
        within a run, even when concurrent stages report out of order.
        """
        clamped = max(self._percent, min(100, max(0, round(percent))))
        self._percent = clamped
        event = ProgressEvent(clamped, message, eta_seconds)
        logger.debug("%s", event)
        if self._closed:
            return event
        for subscription in self._subscribers:
            subscription._deliver(event)
        return event

    def advance(self, message: str) -> ProgressEvent:
        """Broadcast a message at the current percentage."""
        return self.publish(self._percent, message)

    def close(self) -> None:
        """End every subscription; later publishes only update state."""
        if self._closed:
            return
        self._closed = True
        for subscription in self._subscribers:
            subscription._deliver(None)
        self._subscribers.clear()
