from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Callable

from .constants import (
    BASE_LANES,
    LANE_COUNTDOWN_SEC,
    LANE_TOGGLE_EVERY_LEVELS,
    LEVEL_ANNOUNCE_MS,
    MAX_LANES,
)
from .models import LanePhase
from .timers import PausableCountdown

logger = logging.getLogger(__name__)


class LaneAction(Enum):
    NONE = auto()
    ANNOUNCE = auto()
    CONTRACT = auto()
    BEGIN_EXPANSION = auto()
    CLEAR_FOR_EXPANSION = auto()
    COUNTDOWN_TICK = auto()
    EXPAND = auto()


class LaneTransition:
    """Level-up policy for the lane count.

    STABLE -> ANNOUNCING -> WARNING -> STABLE for an expansion to four lanes;
    contractions and plain level-ups resolve on the spot. Each method returns
    the action the caller has to carry out on the pool and the event bus.
    """

    def __init__(self, now_fn: Callable[[], float], *, locked: bool = False) -> None:
        self.phase = LanePhase.STABLE
        self.locked = locked
        self.stage_level = 1
        self.target_level = 1
        self.countdown = 0
        self._timer = PausableCountdown(now_fn)

    @property
    def blocks_spawning(self) -> bool:
        return self.phase is not LanePhase.STABLE

    @property
    def freezes_motion(self) -> bool:
        return self.phase is LanePhase.WARNING

    def request(self, level: int) -> LaneAction:
        if self.phase is not LanePhase.STABLE or level <= self.stage_level:
            return LaneAction.NONE
        if self.locked:
            self.stage_level = level
            return LaneAction.ANNOUNCE
        if level % LANE_TOGGLE_EVERY_LEVELS == 0:
            self.phase = LanePhase.ANNOUNCING
            self.target_level = level
            self._timer.start(LEVEL_ANNOUNCE_MS / 1000.0)
            logger.info("level %d: lane expansion announced", level)
            return LaneAction.BEGIN_EXPANSION
        if self.stage_level % LANE_TOGGLE_EVERY_LEVELS == 0:
            self.stage_level = level
            logger.info("level %d: back to %d lanes", level, BASE_LANES)
            return LaneAction.CONTRACT
        self.stage_level = level
        return LaneAction.ANNOUNCE

    def update(self) -> LaneAction:
        if self.phase is LanePhase.STABLE or not self._timer.expired():
            return LaneAction.NONE
        if self.phase is LanePhase.ANNOUNCING:
            self.phase = LanePhase.WARNING
            self.countdown = LANE_COUNTDOWN_SEC
            self._timer.start(1.0)
            return LaneAction.CLEAR_FOR_EXPANSION
        self.countdown -= 1
        if self.countdown > 0:
            self._timer.start(1.0)
            return LaneAction.COUNTDOWN_TICK
        self._timer.reset()
        self.phase = LanePhase.STABLE
        self.stage_level = self.target_level
        logger.info("level %d: %d lanes", self.stage_level, MAX_LANES)
        return LaneAction.EXPAND


__all__ = ["LaneAction", "LaneTransition"]
