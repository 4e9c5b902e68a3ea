"""Debounce search keystrokes before they reach the store."""

import asyncio
from collections.abc import Callable

DEFAULT_DELAY_SEC = 0.3


class SearchDebouncer:
    """
    Apply only the last search term once `delay` seconds pass without a new one.

    Each push cancels the pending timer and starts a new one. Must be used from
    within a running event loop.
    """

    def __init__(self, apply: Callable[[str], None], delay: float = DEFAULT_DELAY_SEC) -> None:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self._apply = apply
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._pending: str | None = None

    @property
    def pending(self) -> str | None:
        return self._pending

    def push(self, term: str) -> None:
        self.cancel()
        self._pending = term
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._pending = None

    def flush(self) -> None:
        """Apply a pending term now (e.g. on Enter)."""
        if self._pending is not None:
            term = self._pending
            self.cancel()
            self._apply(term)

    def _fire(self) -> None:
        term = self._pending
        self._handle = None
        self._pending = None
        if term is not None:
            self._apply(term)
