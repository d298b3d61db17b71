from __future__ import annotations

import logging
from typing import Iterator, List, Optional

from .constants import MAX_LANES, POOL_HEADROOM, POOL_SIZE
from .models import LaneItem, Row

logger = logging.getLogger(__name__)


class ObstaclePool:
    """Fixed set of pre-allocated rows. Never grows, never frees items."""

    def __init__(self, capacity: int = POOL_SIZE, max_lanes: int = MAX_LANES) -> None:
        if capacity < 1:
            raise ValueError("pool capacity must be positive")
        if max_lanes < 1:
            raise ValueError("max_lanes must be positive")
        self.capacity = capacity
        self.max_lanes = max_lanes
        self.rows: List[Row] = [
            Row(id=-i - 1, items=[LaneItem() for _ in range(max_lanes)])
            for i in range(capacity)
        ]

    def acquire(self) -> Optional[Row]:
        for row in self.rows:
            if not row.active:
                return row
        logger.debug("pool exhausted (%d rows active)", self.capacity)
        return None

    def release(self, row: Row) -> None:
        row.active = False

    def release_all(self) -> None:
        for row in self.rows:
            row.active = False

    def active_rows(self) -> Iterator[Row]:
        return (row for row in self.rows if row.active)

    def active_count(self) -> int:
        return sum(1 for row in self.rows if row.active)

    def __len__(self) -> int:
        return self.capacity


def min_pool_size(set_size: int) -> int:
    """Smallest pool that can hold a whole warp set while it is replayed."""
    return set_size + POOL_HEADROOM


__all__ = ["ObstaclePool", "min_pool_size"]
