from __future__ import annotations

from swerve.input_queue import InputQueue, lane_index


def test_pop_all_drains_in_order() -> None:
    iq = InputQueue()
    iq.push("LANE_2")
    iq.push("LEFT")
    assert len(iq) == 2
    assert iq.pop_all() == ["LANE_2", "LEFT"]
    assert iq.pop_all() == []


def test_lane_index() -> None:
    assert lane_index("LANE_0") == 0
    assert lane_index("LANE_3") == 3
    assert lane_index("LEFT") == -1
