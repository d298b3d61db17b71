"""Outbound notifications from the simulation.

Everything here is one-way: the simulation publishes, collaborators listen.
Events are queued while a tick runs and delivered by ``EventBus.flush`` once
the tick is complete, so a listener never observes a half-applied frame.
"""
from __future__ import annotations

from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Protocol, Tuple

from .constants import FLOATING_TEXT_CAPACITY, FLOATING_TEXT_TTL_MS
from .models import FloatingText


class EventKind(str, Enum):
    SCORE = "score"
    GAME_OVER = "game_over"
    LIFE_GAINED = "life_gained"
    LIFE_LOST = "life_lost"
    LEVEL_CHANGED = "level_changed"
    LANES_CHANGED = "lanes_changed"
    RULE_CHANGED = "rule_changed"
    EFFECT_CHANGED = "effect_changed"
    WARP_PHASE_CHANGED = "warp_phase_changed"
    FLOATING_TEXT = "floating_text"
    COUNTDOWN = "countdown"
    SURGE = "surge"
    TUTORIAL = "tutorial"
    INTRO = "intro"
    HAPTIC = "haptic"


_Handler = Callable[[EventKind, Dict[str, Any]], None]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: Dict[Optional[EventKind], List[_Handler]] = {}
        self._queue: List[Tuple[EventKind, Dict[str, Any]]] = []

    def subscribe(self, handler: _Handler, kind: Optional[EventKind] = None) -> None:
        """Register ``handler`` for ``kind``; ``None`` listens to everything."""
        self._subscribers.setdefault(kind, []).append(handler)

    def publish(self, kind: EventKind, /, **data: Any) -> None:
        self._queue.append((kind, data))

    def flush(self) -> None:
        batch = self._queue
        self._queue = []
        for kind, data in batch:
            for handler in self._subscribers.get(kind, []):
                handler(kind, data)
            for handler in self._subscribers.get(None, []):
                handler(kind, data)


class FloatingTextQueue:
    """Bounded queue of short-lived on-screen texts; oldest drops first."""

    def __init__(self, capacity: int = FLOATING_TEXT_CAPACITY, ttl_ms: float = FLOATING_TEXT_TTL_MS) -> None:
        self.ttl_ms = ttl_ms
        self._items: Deque[FloatingText] = deque(maxlen=capacity)

    def push(self, lane: int, y: float, text: str, style: str, now_ms: float) -> FloatingText:
        ft = FloatingText(lane, y, text, style, expires_at=now_ms + self.ttl_ms)
        self._items.append(ft)
        return ft

    def expire(self, now_ms: float) -> None:
        while self._items and self._items[0].expires_at <= now_ms:
            self._items.popleft()

    def clear(self) -> None:
        self._items.clear()

    def __iter__(self):
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)


class AudioSink(Protocol):
    def play(self, name: str) -> None: ...
    def set_reverse_mode(self, on: bool) -> None: ...
    def set_warp_transition(self, on: bool) -> None: ...
    def set_rule_theme(self, is_word: bool) -> None: ...


class NullAudio:
    def play(self, name: str) -> None:
        pass

    def set_reverse_mode(self, on: bool) -> None:
        pass

    def set_warp_transition(self, on: bool) -> None:
        pass

    def set_rule_theme(self, is_word: bool) -> None:
        pass


__all__ = ["EventKind", "EventBus", "FloatingTextQueue", "AudioSink", "NullAudio"]
