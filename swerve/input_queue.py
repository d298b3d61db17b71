from __future__ import annotations

from collections import deque
from typing import Deque, List

LANE_COMMANDS = ("LANE_0", "LANE_1", "LANE_2", "LANE_3")


def lane_index(name: str) -> int:
    """``"LANE_2"`` -> 2; anything else -> -1."""
    if name in LANE_COMMANDS:
        return LANE_COMMANDS.index(name)
    return -1


class InputQueue:
    """Lane commands pushed from keyboard and GPIO callbacks, drained once per frame."""

    def __init__(self) -> None:
        self._q: Deque[str] = deque()

    def push(self, name: str) -> None:
        self._q.append(name)

    def pop_all(self) -> list[str]:
        out: List[str] = list(self._q)
        self._q.clear()
        return out

    def __len__(self) -> int:
        return len(self._q)


__all__ = ["InputQueue", "LANE_COMMANDS", "lane_index"]
