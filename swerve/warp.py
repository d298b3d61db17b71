from __future__ import annotations

import logging
from typing import Callable, Iterable

from .constants import WARP_PREP_MS
from .models import Row, RowKind, WarpPhase
from .timers import PausableCountdown

logger = logging.getLogger(__name__)


class WarpManager:
    """NONE -> RUN_1 -> PREP_REVERSE -> RUN_2 -> NONE.

    RUN_1 plays the current set forward while rows are kept alive past the
    bottom edge. PREP_REVERSE waits ``WARP_PREP_MS`` with spawning stopped.
    RUN_2 replays the kept rows upwards at half speed.
    """

    def __init__(self, now_fn: Callable[[], float]) -> None:
        self.phase = WarpPhase.NONE
        self._prep = PausableCountdown(now_fn)

    @property
    def active(self) -> bool:
        return self.phase is not WarpPhase.NONE

    @property
    def reversing(self) -> bool:
        return self.phase is WarpPhase.RUN_2

    @property
    def retains_rows(self) -> bool:
        return self.phase in (WarpPhase.RUN_1, WarpPhase.PREP_REVERSE)

    @property
    def direction(self) -> int:
        return -1 if self.reversing else 1

    def enter(self) -> bool:
        if self.active:
            return False
        self.phase = WarpPhase.RUN_1
        logger.debug("warp: RUN_1")
        return True

    def on_set_complete(self, row: Row) -> bool:
        if self.phase is not WarpPhase.RUN_1:
            return False
        if row.kind is not RowKind.STANDARD or not row.completes_set:
            return False
        self.phase = WarpPhase.PREP_REVERSE
        self._prep.start(WARP_PREP_MS / 1000.0)
        logger.debug("warp: PREP_REVERSE")
        return True

    def update(self, rows: Iterable[Row]) -> bool:
        """Flip to RUN_2 once the prep delay ran out; rows are re-armed."""
        if self.phase is not WarpPhase.PREP_REVERSE or not self._prep.expired():
            return False
        self._prep.reset()
        self.phase = WarpPhase.RUN_2
        for row in rows:
            if not row.active:
                continue
            row.passed = False
            for item in row.items:
                item.is_hit = False
        logger.debug("warp: RUN_2")
        return True

    def ends_on(self, row: Row) -> bool:
        return self.reversing and row.set_index == 1

    def finish(self) -> None:
        self.phase = WarpPhase.NONE
        self._prep.reset()
        logger.debug("warp: NONE")


__all__ = ["WarpManager"]
