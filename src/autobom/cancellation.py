"""Cancellation token with an optional deadline for provider calls."""
from __future__ import annotations

import threading
import time
from typing import Callable, Optional


class CancelToken:
    """Shared flag the UI sets to abort an in-flight generation."""

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._event = threading.Event()
        self._clock = clock
        self.deadline: Optional[float] = None
        if timeout_seconds is not None:
            self.deadline = clock() + max(0.0, timeout_seconds)

    def ensure_deadline(self, timeout_seconds: float) -> None:
        if self.deadline is None:
            self.deadline = self._clock() + max(0.0, timeout_seconds)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and self._clock() >= self.deadline

    def remaining(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self._clock())


__all__ = ["CancelToken"]
