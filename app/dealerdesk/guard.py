from __future__ import annotations

import time
from collections.abc import Callable

from app.dealerdesk.constants import DEFAULT_DUPLICATE_GUARD_WINDOW_SECONDS


class DuplicateGuard:
    """
    Suppresses accidental re-submission of one logical form within a window.

    Holds a single (key, timestamp) slot; a new key overwrites it. Create one
    instance per form surface. Advisory only: this is not an idempotency key
    and gives nothing across clients or sessions.
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_DUPLICATE_GUARD_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self._clock = clock
        self._last: tuple[str, float] | None = None

    def should_suppress(self, key: str) -> bool:
        if self._last is None:
            return False
        last_key, last_time = self._last
        return last_key == key and (self._clock() - last_time) < self.window_seconds

    def record_attempt(self, key: str) -> None:
        self._last = (key, self._clock())

    def is_duplicate(self, key: str) -> bool:
        """Check and record in one step; a non-duplicate becomes the new slot."""
        if self.should_suppress(key):
            return True
        self.record_attempt(key)
        return False

    def reset(self) -> None:
        self._last = None

    @staticmethod
    def make_key(*values: object) -> str:
        return "|".join(str(v) for v in values if v).lower()
