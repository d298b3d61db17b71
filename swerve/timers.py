from __future__ import annotations

from typing import Callable, Optional

from .constants import MAX_TIME_SCALE, REFERENCE_FRAME_MS


class FrameClock:
    """Turns raw frame timestamps (ms) into a bounded simulation step."""

    def __init__(self) -> None:
        self.last: Optional[float] = None
        self.now_ms = 0.0

    def advance(self, timestamp_ms: float) -> tuple[float, float]:
        if self.last is None:
            self.last = timestamp_ms
        delta = max(0.0, timestamp_ms - self.last)
        self.last = timestamp_ms
        return delta, min(delta / REFERENCE_FRAME_MS, MAX_TIME_SCALE)

    def hold(self, timestamp_ms: float) -> None:
        # paused frames keep the baseline so resuming never jumps
        self.last = timestamp_ms

    def step(self, delta_ms: float) -> None:
        self.now_ms += delta_ms

    def now(self) -> float:
        return self.now_ms / 1000.0


class PausableCountdown:
    def __init__(self, now_fn: Callable[[], float]) -> None:
        self._now = now_fn
        self.remaining = 0.0
        self.running = False
        self._t0 = 0.0

    def set(self, seconds: float) -> None:
        self.remaining = max(0.0, float(seconds))
        self.running = False
        self._t0 = 0.0

    def start(self, seconds: float) -> None:
        self.set(seconds)
        self.resume()

    def resume(self) -> None:
        if not self.running and self.remaining > 0.0:
            self._t0 = self._now()
            self.running = True

    def get(self) -> float:
        if not self.running:
            return self.remaining
        return max(0.0, self.remaining - (self._now() - self._t0))

    def expired(self) -> bool:
        return self.get() <= 0.0

    def reset(self) -> None:
        self.remaining = 0.0
        self.running = False
        self._t0 = 0.0


__all__ = ["FrameClock", "PausableCountdown"]
