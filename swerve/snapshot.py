from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

from .constants import GPS_LOOKAHEAD_MAX_Y, HITBOX_THRESHOLD, PLAYER_Y_POS, RULE_LOOKAHEAD_MIN_Y
from .enums import ColorType, PowerUpKind
from .models import FloatingText, LanePhase, Row, RowKind, Rule, SlotKind, WarpPhase

if TYPE_CHECKING:
    from .simulation import Simulation  # pragma: no cover

HIDDEN_RULE_TEXT = "???"


@dataclass(frozen=True)
class ItemView:
    lane: int
    kind: SlotKind
    display_color: ColorType
    word_text: ColorType
    text: str
    is_correct: bool
    is_hit: bool
    effect: Optional[PowerUpKind]
    blocked: bool = False


@dataclass(frozen=True)
class RowView:
    id: int
    y: float
    kind: RowKind
    set_index: int
    set_size: int
    passed: bool
    ghost: bool
    is_guided: bool
    transition_gap: float
    rule: Optional[Rule]
    items: Tuple[ItemView, ...]


@dataclass(frozen=True)
class Snapshot:
    score: int
    level: int
    lives: int
    lanes: int
    speed: float
    completed_sets: int
    elapsed_ms: float
    player_lane: int
    rows: Tuple[RowView, ...]
    rule: Rule
    rule_text: str
    rule_hidden: bool
    set_progress: int
    set_size: int
    effect: PowerUpKind
    wild_pair: Tuple[PowerUpKind, ...]
    warp_phase: WarpPhase
    lane_phase: LanePhase
    countdown_text: Optional[str]
    gps_lane: int
    guided_lane: int
    floating_texts: Tuple[FloatingText, ...]
    paused: bool
    awaiting_tutorial: Optional[PowerUpKind]
    game_over: bool

    def has_effect(self, kind: PowerUpKind) -> bool:
        return self.effect is kind or (self.effect is PowerUpKind.WILD and kind in self.wild_pair)


# ---- lookups shared with the front-end ----

def _nearest_correct_lane(rows, predicate) -> int:
    target: Optional[Row] = None
    for row in rows:
        if predicate(row) and (target is None or row.y > target.y):
            target = row
    return target.correct_lane() if target is not None else -1


def gps_lane(sim: "Simulation") -> int:
    """Correct lane of the closest upcoming standard row, or -1."""
    if not sim.effects.is_active(PowerUpKind.GPS):
        return -1
    return _nearest_correct_lane(
        sim.pool.active_rows(),
        lambda r: (
            not r.passed and r.kind is RowKind.STANDARD
            and RULE_LOOKAHEAD_MIN_Y < r.y < GPS_LOOKAHEAD_MAX_Y
        ),
    )


def guided_lane(sim: "Simulation") -> int:
    if sim.practice.single_crate is PowerUpKind.WARP and not sim.warp.active:
        return -1
    return _nearest_correct_lane(
        sim.pool.active_rows(),
        lambda r: not r.passed and r.is_guided and r.y < PLAYER_Y_POS + HITBOX_THRESHOLD,
    )


def countdown_text(sim: "Simulation") -> Optional[str]:
    if sim.lanes.phase is LanePhase.WARNING:
        return str(sim.lanes.countdown)
    if sim.tutorial_countdown_running:
        return str(max(1, math.ceil(sim.tutorial_countdown_left())))
    return None


def _item_view(sim: "Simulation", row: Row, lane: int, lanes: int) -> ItemView:
    item = row.items[lane]
    text = item.word_text.value
    if item.kind is SlotKind.STIMULUS and sim.effects.is_active(PowerUpKind.GLITCH) and item.glitch_text:
        text = item.glitch_text
    blocked = (
        item.kind is SlotKind.STIMULUS
        and sim.effects.is_active(PowerUpKind.BLOCKER)
        and (row.id + lane) % lanes == 0
    )
    return ItemView(
        lane=lane,
        kind=item.kind,
        display_color=item.display_color,
        word_text=item.word_text,
        text=text,
        is_correct=item.is_correct,
        is_hit=item.is_hit,
        effect=item.effect,
        blocked=blocked,
    )


def _row_view(sim: "Simulation", row: Row) -> RowView:
    lanes = sim.progression.lanes
    return RowView(
        id=row.id,
        y=row.y,
        kind=row.kind,
        set_index=row.set_index,
        set_size=row.set_size,
        passed=row.passed,
        ghost=sim.warp.reversing and row.kind is RowKind.STANDARD,
        is_guided=row.is_guided,
        transition_gap=row.transition_gap,
        rule=row.rule,
        items=tuple(_item_view(sim, row, i, lanes) for i in range(min(lanes, len(row.items)))),
    )


def rule_text(sim: "Simulation") -> str:
    """What the HUD shows for the displayed rule."""
    if sim.warp.reversing:
        return HIDDEN_RULE_TEXT
    if sim.effects.is_active(PowerUpKind.ALIAS) and sim.effects.alias_word:
        return sim.effects.alias_word
    return sim.displayed_rule.target_color.value


def build_snapshot(sim: "Simulation") -> Snapshot:
    prog = sim.progression
    rule = sim.displayed_rule

    upcoming = sim.upcoming_row()
    return Snapshot(
        score=prog.score,
        level=prog.level,
        lives=prog.lives,
        lanes=prog.lanes,
        speed=prog.speed,
        completed_sets=prog.completed_sets,
        elapsed_ms=prog.elapsed_ms,
        player_lane=sim.player_lane,
        rows=tuple(_row_view(sim, r) for r in sim.pool.active_rows()),
        rule=rule,
        rule_text=rule_text(sim),
        rule_hidden=sim.warp.reversing,
        set_progress=upcoming.set_index - 1 if upcoming else 0,
        set_size=upcoming.set_size if upcoming else sim.spawner.set_size,
        effect=sim.effects.active,
        wild_pair=tuple(sim.effects.wild_pair),
        warp_phase=sim.warp.phase,
        lane_phase=sim.lanes.phase,
        countdown_text=countdown_text(sim),
        gps_lane=gps_lane(sim),
        guided_lane=guided_lane(sim),
        floating_texts=tuple(sim.floating_texts),
        paused=sim.paused,
        awaiting_tutorial=sim.tutorial,
        game_over=sim.over,
    )


__all__ = [
    "ItemView",
    "RowView",
    "Snapshot",
    "HIDDEN_RULE_TEXT",
    "gps_lane",
    "guided_lane",
    "countdown_text",
    "rule_text",
    "build_snapshot",
]
