from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .constants import (
    CRATE_GAP_FACTOR,
    GUIDED_SETS,
    INITIAL_SPAWN_ACCUMULATOR,
    MAX_OBSTACLE_DISTANCE,
    MIN_OBSTACLE_DISTANCE,
    OBJECTIVE_GAP_BASE,
    OBJECTIVE_GAP_FACTOR,
    OBJECTIVE_WIDE_EVERY,
    OBSTACLES_PER_SET,
    SET_END_GAP_FACTOR,
    SPAWN_Y,
    TUTORIAL_CRATE_GAP,
    TUTORIAL_RESUME_LEAD,
)
from .enums import PowerUpKind
from .hydrate import reset_crate_row, reset_standard_row
from .models import OBJECTIVE_PENDING, Row, RowKind, SpawnState, WarpPhase

if TYPE_CHECKING:
    from .simulation import Simulation  # pragma: no cover

logger = logging.getLogger(__name__)


class Spawner:
    """Feeds the pool with the spawn sequence.

    A set is ``OBSTACLES_PER_SET`` standard rows sharing one rule. After the
    last row of a set the next spawn is an objective: a crate row that carries
    the rule of the following set (or, when practice skips crates, the first
    row of the new set directly). ``state.count`` walks 0..set_size and holds
    ``OBJECTIVE_PENDING`` between a crate and the next set.
    """

    def __init__(self, sim: "Simulation", state: Optional[SpawnState] = None) -> None:
        self.sim = sim
        self.set_size = OBSTACLES_PER_SET
        self.state = state or SpawnState()
        self.state.accumulator = INITIAL_SPAWN_ACCUMULATOR
        self.state.next_gap = self.random_gap()

    def random_gap(self) -> float:
        return self.sim.rng.random() * (MAX_OBSTACLE_DISTANCE - MIN_OBSTACLE_DISTANCE) + MIN_OBSTACLE_DISTANCE

    def prime(self, count: Optional[int] = None) -> None:
        """Make the next spawn due immediately, optionally rewinding the sequence."""
        self.state.accumulator = INITIAL_SPAWN_ACCUMULATOR
        if count is not None:
            self.state.count = count

    def resume_after_countdown(self) -> None:
        self.state.accumulator = self.state.next_gap + TUTORIAL_RESUME_LEAD
        self.state.count = OBJECTIVE_PENDING

    def advance(self, distance: float) -> None:
        self.state.accumulator += distance

    @property
    def due(self) -> bool:
        return self.state.accumulator > SPAWN_Y + self.state.next_gap

    def blocked(self) -> bool:
        sim = self.sim
        if sim.lanes.blocks_spawning or sim.tutorial_countdown_running:
            return True
        return sim.warp.phase in (WarpPhase.PREP_REVERSE, WarpPhase.RUN_2)

    def _next_id(self) -> int:
        row_id = self.state.next_row_id
        self.state.next_row_id += 1
        return row_id

    def _transition_gap(self) -> float:
        return self.state.accumulator - SPAWN_Y

    def update(self, effective_speed: float) -> Optional[Row]:
        if self.blocked() or not self.due:
            return None
        row = self.sim.pool.acquire()
        if row is None:
            return None

        sim = self.sim
        st = self.state
        practice = sim.practice
        lanes = sim.progression.lanes
        rng = sim.rng
        gap = self.random_gap()

        if practice.single_crate is not None and not st.tutorial_crate_spawned:
            reset_crate_row(row, self._next_id(), sim.rules.current, lanes, rng, sim.disabled_power_ups())
            st.count = OBJECTIVE_PENDING
            st.tutorial_crate_spawned = True
            gap = TUTORIAL_CRATE_GAP
        elif st.count == self.set_size:
            st.objectives += 1
            rule = sim.rules.roll(practice.forced_rule_type())
            if practice.skips_crates:
                st.count = 1
                reset_standard_row(
                    row, self._next_id(), rule, 1, self.set_size, lanes, rng,
                    transition_gap=self._transition_gap(),
                )
                gap += effective_speed * SET_END_GAP_FACTOR
            else:
                st.count = OBJECTIVE_PENDING
                reset_crate_row(row, self._next_id(), rule, lanes, rng, sim.disabled_power_ups())
                gap += effective_speed * CRATE_GAP_FACTOR
        elif st.count == OBJECTIVE_PENDING:
            st.count = 1
            reset_standard_row(
                row, self._next_id(), sim.rules.current, 1, self.set_size, lanes, rng,
                transition_gap=self._transition_gap(),
            )
            if practice.is_active and st.tutorial_crate_spawned:
                st.guided_spawned += 1
        else:
            st.count += 1
            reset_standard_row(row, self._next_id(), sim.rules.current, st.count, self.set_size, lanes, rng)
            if st.count == self.set_size:
                if (st.objectives + 1) % OBJECTIVE_WIDE_EVERY == 0:
                    gap = OBJECTIVE_GAP_BASE + sim.progression.speed * OBJECTIVE_GAP_FACTOR
                else:
                    gap += effective_speed * SET_END_GAP_FACTOR

        row.is_guided = self._guided(row)
        st.accumulator = SPAWN_Y
        st.next_gap = gap
        logger.debug(
            "spawn row %d kind=%s set=%d/%d rule=%s",
            row.id, row.kind.name, row.set_index, row.set_size,
            row.rule.type.value if row.rule else None,
        )
        return row

    def _guided(self, row: Row) -> bool:
        sim = self.sim
        st = self.state
        if not sim.practice.is_active or not st.tutorial_crate_spawned or row.kind is not RowKind.STANDARD:
            return False
        if sim.practice.single_crate is PowerUpKind.WARP:
            return sim.warp.active and st.warp_sets_completed < 1
        return st.guided_spawned <= GUIDED_SETS


__all__ = ["Spawner"]
