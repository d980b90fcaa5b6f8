from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    Core logic depends on this interface rather than calling real time directly.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class FrameSource(Protocol):
    """Frame clock collaborator.

    Holds at most one subscription. The subscriber is called once per
    displayed frame until ``cancel_advance()``.
    """

    def request_advance(self, callback: Callable[[], None]) -> None: ...
    def cancel_advance(self) -> None: ...


class ManualFrameSource:
    """Frame source driven by explicit ``pump()`` calls.

    The pygame loop pumps once per frame; tests pump as many frames as they need.
    """

    def __init__(self) -> None:
        self._callback: Callable[[], None] | None = None

    @property
    def active(self) -> bool:
        return self._callback is not None

    def request_advance(self, callback: Callable[[], None]) -> None:
        # Replaces any previous subscription.
        self._callback = callback

    def cancel_advance(self) -> None:
        self._callback = None

    def pump(self, frames: int = 1) -> int:
        """Fire up to ``frames`` frames. Returns how many reached a subscriber."""

        fired = 0
        for _ in range(max(0, int(frames))):
            callback = self._callback
            if callback is None:
                break
            callback()
            fired += 1
        return fired
