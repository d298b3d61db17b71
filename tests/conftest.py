"""Shared fixtures for the simulation tests."""
from __future__ import annotations

import os
import tempfile

# Keep the import-time config load away from the package directory.
os.environ.setdefault(
    "SWERVE_CONFIG",
    os.path.join(tempfile.mkdtemp(prefix="swerve-tests-"), "config.json"),
)

import random
from typing import Callable, Iterable, List, Optional

import pytest

from swerve.constants import OBSTACLES_PER_SET
from swerve.enums import PowerUpKind
from swerve.hydrate import reset_crate_row, reset_standard_row
from swerve.models import Row, Rule
from swerve.settings import GameSettings, PracticeConfig
from swerve.simulation import Simulation

FRAME_MS = 16.67


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def make_sim() -> Callable[..., Simulation]:
    """Factory for simulations; ``quiet=True`` keeps the spawner idle."""

    def _make(
        *,
        seed: int = 7,
        lives: int = 0,
        practice: Optional[PracticeConfig] = None,
        quiet: bool = True,
    ) -> Simulation:
        sim = Simulation(
            settings=GameSettings(starting_lives=lives),
            practice=practice,
            rng=random.Random(seed),
        )
        if quiet:
            sim.spawner.state.accumulator = -1e9
        return sim

    return _make


@pytest.fixture
def place_row() -> Callable[..., Row]:
    """Acquire a pool slot and hydrate it directly at height ``y``."""

    def _place(
        sim: Simulation,
        y: float,
        *,
        set_index: int = 1,
        set_size: int = OBSTACLES_PER_SET,
        rule: Optional[Rule] = None,
        crate: bool = False,
        disabled: Iterable[PowerUpKind] = (),
    ) -> Row:
        row = sim.pool.acquire()
        assert row is not None
        st = sim.spawner.state
        row_id = st.next_row_id
        st.next_row_id += 1
        rule = rule or sim.rules.current
        lanes = sim.progression.lanes
        if crate:
            reset_crate_row(row, row_id, rule, lanes, sim.rng, disabled)
        else:
            reset_standard_row(row, row_id, rule, set_index, set_size, lanes, sim.rng)
        row.y = y
        return row

    return _place


@pytest.fixture
def recorder() -> Callable[[Simulation], List]:
    """Subscribe to every event of ``sim``; returns the live list of (kind, data)."""

    def _record(sim: Simulation) -> List:
        seen: List = []
        sim.bus.subscribe(lambda kind, data: seen.append((kind, data)))
        return seen

    return _record

