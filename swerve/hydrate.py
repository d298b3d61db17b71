from __future__ import annotations

import math
import random
from typing import Iterable, List, Optional, Sequence

from .constants import (
    CORRECT_MISMATCH_PROB,
    DECOY_PROB,
    GLITCH_SUB_PROB,
    GLITCH_SUBSTITUTIONS,
    SPAWN_Y,
)
from .enums import ALL_COLORS, ColorType, PowerUpKind, RuleType
from .models import LaneItem, Row, RowKind, Rule

# Offered on every crate row
COMMON_CRATES = [
    PowerUpKind.SPEED,
    PowerUpKind.DRUNK,
    PowerUpKind.FOG,
    PowerUpKind.DYSLEXIA,
    PowerUpKind.GPS,
    PowerUpKind.BLOCKER,
    PowerUpKind.WILD,
    PowerUpKind.WARP,
]
WORD_ONLY_CRATES = [PowerUpKind.GLITCH]
COLOR_ONLY_CRATES = [PowerUpKind.BLEACH, PowerUpKind.ALIAS]


# ---- glitch text ----

def seeded_random(seed: float) -> float:
    x = math.sin(seed) * 10000
    return x - math.floor(x)


def glitch_text(text: str, seed: int) -> str:
    """Drop one or two inner characters and leet-substitute the rest.

    Same text and seed always give the same result.
    """
    chars = list(text)
    n = len(chars)
    if n > 3:
        omit = 2 if seeded_random(seed) > 0.5 else 1
        start = int(seeded_random(seed + 1) * (n - 2)) + 1
        del chars[start:start + min(omit, len(chars) - start - 1)]
    out = []
    for i, ch in enumerate(chars):
        sub = GLITCH_SUBSTITUTIONS.get(ch)
        if sub and seeded_random(seed + i + 10) < GLITCH_SUB_PROB:
            out.append(sub)
        else:
            out.append(ch)
    return "".join(out)


def lane_seed(row_id: int, lane: int) -> int:
    return row_id + lane * 10


# ---- candidate pools ----

def crate_candidates(rule_type: RuleType, disabled: Iterable[PowerUpKind] = ()) -> List[PowerUpKind]:
    pool = list(COMMON_CRATES)
    if rule_type is RuleType.MATCH_WORD:
        pool += WORD_ONLY_CRATES
    else:
        pool += COLOR_ONLY_CRATES
    blocked = set(disabled)
    return [k for k in pool if k not in blocked]


def _pick_other(rng: random.Random, exclude: ColorType) -> ColorType:
    return rng.choice([c for c in ALL_COLORS if c is not exclude])


# ---- hydration ----

def _hydrate_item(
    item: LaneItem,
    correct: bool,
    rule: Rule,
    rng: random.Random,
    seed: Optional[int],
) -> None:
    target = rule.target_color
    if correct:
        if rule.type is RuleType.MATCH_COLOR:
            display = target
            word = _pick_other(rng, display) if rng.random() < CORRECT_MISMATCH_PROB else display
        else:
            word = target
            display = _pick_other(rng, word) if rng.random() < CORRECT_MISMATCH_PROB else word
    else:
        if rule.type is RuleType.MATCH_COLOR:
            display = _pick_other(rng, target)
            word = target if rng.random() < DECOY_PROB else rng.choice(ALL_COLORS)
        else:
            word = _pick_other(rng, target)
            display = target if rng.random() < DECOY_PROB else rng.choice(ALL_COLORS)

    glitched = glitch_text(word.value, seed) if seed is not None else None
    item.set_stimulus(display, word, correct=correct, glitch_text=glitched)


def hydrate_standard_row(
    items: Sequence[LaneItem],
    rule: Rule,
    lane_count: int,
    rng: random.Random,
    row_id: Optional[int] = None,
) -> int:
    """Fill ``items`` in place for ``rule``; returns the correct lane."""
    lane_count = max(1, min(lane_count, len(items)))
    correct_lane = rng.randrange(lane_count)
    for i, item in enumerate(items):
        if i >= lane_count:
            item.clear()
            continue
        seed = lane_seed(row_id, i) if row_id is not None else None
        _hydrate_item(item, i == correct_lane, rule, rng, seed)
    return correct_lane


def hydrate_crate_row(
    items: Sequence[LaneItem],
    rule: Rule,
    lane_count: int,
    rng: random.Random,
    disabled: Iterable[PowerUpKind] = (),
) -> int:
    """Fill ``items`` with shuffled power-ups; returns the reward-gap lane."""
    lane_count = max(1, min(lane_count, len(items)))
    empty_lane = rng.randrange(lane_count)

    pool = crate_candidates(rule.type, disabled)
    # Fisher-Yates
    for i in range(len(pool) - 1, 0, -1):
        j = rng.randrange(i + 1)
        pool[i], pool[j] = pool[j], pool[i]
    chosen = pool[:max(0, lane_count - 1)]

    idx = 0
    for i, item in enumerate(items):
        if i >= lane_count or i == empty_lane or idx >= len(chosen):
            item.clear()
            continue
        item.set_crate(chosen[idx])
        idx += 1
    return empty_lane


def reset_standard_row(
    row: Row,
    row_id: int,
    rule: Rule,
    set_index: int,
    set_size: int,
    lane_count: int,
    rng: random.Random,
    transition_gap: float = 0.0,
) -> None:
    row.id = row_id
    row.rule = rule
    row.set_index = set_index
    row.set_size = set_size
    row.transition_gap = transition_gap
    row.passed = False
    row.y = SPAWN_Y
    row.kind = RowKind.STANDARD
    row.is_guided = False
    row.active = True
    hydrate_standard_row(row.items, rule, lane_count, rng, row_id)


def reset_crate_row(
    row: Row,
    row_id: int,
    rule: Rule,
    lane_count: int,
    rng: random.Random,
    disabled: Iterable[PowerUpKind] = (),
) -> None:
    row.id = row_id
    row.rule = rule
    row.set_index = 0
    row.set_size = 0
    row.transition_gap = 0.0
    row.passed = False
    row.y = SPAWN_Y
    row.kind = RowKind.CRATE
    row.is_guided = False
    row.active = True
    hydrate_crate_row(row.items, rule, lane_count, rng, disabled)


__all__ = [
    "COMMON_CRATES",
    "WORD_ONLY_CRATES",
    "COLOR_ONLY_CRATES",
    "seeded_random",
    "glitch_text",
    "lane_seed",
    "crate_candidates",
    "hydrate_standard_row",
    "hydrate_crate_row",
    "reset_standard_row",
    "reset_crate_row",
]
