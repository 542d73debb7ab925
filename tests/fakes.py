# tests/fakes.py

"""In-memory stand-ins for curl_cffi sessions and responses."""

import inspect
import json
from collections.abc import Callable
from typing import Any

from src.models.rate_budget import (
    LIMIT_HEADER,
    REMAINING_HEADER,
    USED_HEADER,
)


class FakeResponse:
    """Minimal response exposing the attributes the code reads."""

    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        text: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        self.headers = headers or {}

    def json(self) -> Any:
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


def budget_headers(remaining: int, limit: int = 60) -> dict[str, str]:
    """Discogs rate-limit headers for the given remaining budget."""
    return {
        LIMIT_HEADER: str(limit),
        USED_HEADER: str(max(limit - remaining, 0)),
        REMAINING_HEADER: str(remaining),
    }


class FakeSession:
    """Async session routing every GET through *handler*.

    The handler receives the URL and returns a response, an exception
    instance to raise, or an awaitable resolving to either.
    """

    def __init__(self, handler: Callable[[str], Any]) -> None:
        self.handler = handler
        self.calls: list[str] = []

    async def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        self.calls.append(url)
        result = self.handler(url)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, BaseException):
            raise result
        return result

    def count(self, fragment: str) -> int:
        """Number of calls whose URL contains *fragment*."""
        return sum(1 for url in self.calls if fragment in url)


def sequence_handler(*results: Any) -> Callable[[str], Any]:
    """Handler returning *results* in order, repeating the last one."""
    remaining = list(results)

    def handler(url: str) -> Any:
        if len(remaining) > 1:
            return remaining.pop(0)
        return remaining[0]

    return handler
