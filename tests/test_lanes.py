"""Tests for the lane-count policy on level-up."""
from __future__ import annotations

from typing import List

import pytest

from swerve.lanes import LaneAction, LaneTransition
from swerve.models import LanePhase


@pytest.fixture
def clock() -> List[float]:
    return [0.0]


@pytest.fixture
def lanes(clock: List[float]) -> LaneTransition:
    return LaneTransition(lambda: clock[0])


def test_plain_level_up_announces(lanes: LaneTransition) -> None:
    assert lanes.request(2) is LaneAction.ANNOUNCE
    assert lanes.stage_level == 2
    assert lanes.phase is LanePhase.STABLE


def test_same_level_is_ignored(lanes: LaneTransition) -> None:
    lanes.request(2)
    assert lanes.request(2) is LaneAction.NONE
    assert lanes.request(1) is LaneAction.NONE


def test_expansion_sequence(lanes: LaneTransition, clock: List[float]) -> None:
    lanes.request(2)
    assert lanes.request(3) is LaneAction.BEGIN_EXPANSION
    assert lanes.phase is LanePhase.ANNOUNCING
    assert lanes.blocks_spawning and not lanes.freezes_motion
    assert lanes.request(4) is LaneAction.NONE

    clock[0] = 0.5
    assert lanes.update() is LaneAction.NONE

    clock[0] = 1.0
    assert lanes.update() is LaneAction.CLEAR_FOR_EXPANSION
    assert lanes.phase is LanePhase.WARNING
    assert lanes.freezes_motion
    assert lanes.countdown == 3

    seen = []
    for t in (2.0, 3.0, 4.0):
        clock[0] = t
        seen.append((lanes.update(), lanes.countdown))
    assert seen == [
        (LaneAction.COUNTDOWN_TICK, 2),
        (LaneAction.COUNTDOWN_TICK, 1),
        (LaneAction.EXPAND, 0),
    ]
    assert lanes.phase is LanePhase.STABLE
    assert lanes.stage_level == 3


def test_contracts_after_four_lane_stage(lanes: LaneTransition, clock: List[float]) -> None:
    lanes.stage_level = 3
    assert lanes.request(4) is LaneAction.CONTRACT
    assert lanes.request(5) is LaneAction.ANNOUNCE
    assert lanes.request(6) is LaneAction.BEGIN_EXPANSION


def test_skipped_levels_still_toggle(lanes: LaneTransition) -> None:
    assert lanes.request(6) is LaneAction.BEGIN_EXPANSION


def test_locked_never_changes_lanes(clock: List[float]) -> None:
    locked = LaneTransition(lambda: clock[0], locked=True)
    for level in range(2, 10):
        assert locked.request(level) is LaneAction.ANNOUNCE
    assert locked.phase is LanePhase.STABLE
    assert locked.update() is LaneAction.NONE
