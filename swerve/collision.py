from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .constants import (
    HAPTIC_GAME_OVER_MS,
    HITBOX_THRESHOLD,
    PLAYER_Y_POS,
    POINTS_PER_LIFE,
    WARP_BONUS_POINTS,
)
from .enums import PowerUpKind
from .events import EventKind
from .models import LaneItem, Row, RowKind

if TYPE_CHECKING:
    from .simulation import Simulation  # pragma: no cover

logger = logging.getLogger(__name__)


class CollisionResolver:
    """Checks every active, unpassed row against the rider.

    Rows inside ``PLAYER_Y_POS +- HITBOX_THRESHOLD`` interact with the item in
    the player's lane; rows beyond the window (in the direction of travel)
    are marked passed. This is the only place a run can end.
    """

    def __init__(self, sim: "Simulation") -> None:
        self.sim = sim

    def resolve(self) -> None:
        sim = self.sim
        reverse = sim.warp.reversing
        for row in list(sim.pool.active_rows()):
            if not row.active or row.passed:
                continue
            if abs(row.y - PLAYER_Y_POS) < HITBOX_THRESHOLD:
                lane = sim.player_lane
                if lane >= len(row.items):
                    continue
                item = row.items[lane]
                if item.is_empty:
                    continue
                if row.kind is RowKind.CRATE:
                    self._pickup(row, item)
                elif item.is_correct:
                    self._score(row, item, reverse)
                elif not self._miss(row, reverse):
                    return
            elif self._beyond_window(row, reverse):
                row.passed = True
                if not reverse and row.completes_set:
                    sim.complete_set(row)

    @staticmethod
    def _beyond_window(row: Row, reverse: bool) -> bool:
        if reverse:
            return row.y < PLAYER_Y_POS - HITBOX_THRESHOLD
        return row.y > PLAYER_Y_POS + HITBOX_THRESHOLD

    # ---- outcomes ----

    def _pickup(self, row: Row, item: LaneItem) -> None:
        sim = self.sim
        kind = item.effect or PowerUpKind.NONE
        item.is_hit = True
        row.passed = True
        if kind is PowerUpKind.NONE:
            return

        if sim.practice.single_crate is not None and not sim.tutorial_seen:
            sim.begin_tutorial(kind)

        effect = sim.effects.pickup(kind, sim.displayed_rule.type, sim.disabled_power_ups())
        sim.audio.play(effect.pickup_sound)
        sim.add_floating_text(sim.player_lane, PLAYER_Y_POS, effect.pickup_text, effect.pickup_style)
        if effect.lingers:
            sim.bus.publish(
                EventKind.EFFECT_CHANGED,
                effect=sim.effects.active,
                wild_pair=sim.effects.wild_pair,
            )
        effect.on_pickup(sim)
        logger.debug("crate %s picked up in lane %d", kind.value, sim.player_lane)

    def _score(self, row: Row, item: LaneItem, reverse: bool) -> None:
        sim = self.sim
        prog = sim.progression
        item.is_hit = True
        row.passed = True

        points = WARP_BONUS_POINTS if reverse else sim.effects.points()
        old = prog.score
        prog.score += points
        sim.bus.publish(EventKind.SCORE, score=prog.score, points=points)
        sim.audio.play("point")
        sim.add_floating_text(sim.player_lane, PLAYER_Y_POS + HITBOX_THRESHOLD, f"+{points}", "score")

        if prog.score // POINTS_PER_LIFE > old // POINTS_PER_LIFE:
            prog.lives += 1
            sim.bus.publish(EventKind.LIFE_GAINED, lives=prog.lives)
            sim.audio.play("lifeUp")
            logger.info("extra life at %d points (%d lives)", prog.score, prog.lives)

        self._after_resolve(row, reverse)

    def _miss(self, row: Row, reverse: bool) -> bool:
        """Wrong pick. Returns False when it ended the run."""
        sim = self.sim
        prog = sim.progression
        if prog.lives > 0:
            prog.lives -= 1
            row.passed = True
            sim.bus.publish(EventKind.LIFE_LOST, lives=prog.lives)
            sim.audio.play("life")
            sim.add_floating_text(sim.player_lane, PLAYER_Y_POS + HITBOX_THRESHOLD, "SAVED!", "saved")
            self._after_resolve(row, reverse)
            return True

        sim.over = True
        sim.audio.play("wrong")
        if sim.settings.haptics:
            sim.bus.publish(EventKind.HAPTIC, ms=HAPTIC_GAME_OVER_MS)
        sim.bus.publish(EventKind.GAME_OVER, final_score=prog.score, elapsed_ms=prog.elapsed_ms)
        logger.info("game over: score=%d level=%d elapsed=%.0fms", prog.score, prog.level, prog.elapsed_ms)
        return False

    def _after_resolve(self, row: Row, reverse: bool) -> None:
        sim = self.sim
        if not reverse and row.completes_set:
            sim.complete_set(row)
        if reverse and sim.warp.ends_on(row):
            sim.end_warp()


__all__ = ["CollisionResolver"]
