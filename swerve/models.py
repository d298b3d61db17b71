from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from .constants import INITIAL_SPEED, POINTS_PER_LEVEL, SPAWN_Y
from .enums import ColorType, PowerUpKind, RuleType


class Scene(Enum):
    MENU = auto()
    GAME = auto()
    OVER = auto()


class RowKind(Enum):
    STANDARD = auto()
    CRATE = auto()


class SlotKind(Enum):
    EMPTY = auto()
    STIMULUS = auto()
    CRATE = auto()


class WarpPhase(Enum):
    NONE = auto()
    RUN_1 = auto()
    PREP_REVERSE = auto()
    RUN_2 = auto()


class LanePhase(Enum):
    STABLE = auto()
    ANNOUNCING = auto()
    WARNING = auto()


@dataclass(frozen=True)
class Rule:
    type: RuleType
    target_color: ColorType

    @property
    def is_word(self) -> bool:
        return self.type is RuleType.MATCH_WORD


@dataclass
class LaneItem:
    """One lane of a row.

    ``kind`` is the tag: EMPTY slots carry nothing, STIMULUS slots carry a
    colour/word pair, CRATE slots carry an effect. Use the mutators so the
    tag and the payload never disagree.
    """

    kind: SlotKind = SlotKind.EMPTY
    display_color: ColorType = ColorType.BLACK
    word_text: ColorType = ColorType.BLACK
    is_correct: bool = False
    is_hit: bool = False
    effect: Optional[PowerUpKind] = None
    glitch_text: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.kind is SlotKind.EMPTY

    def clear(self) -> None:
        self.kind = SlotKind.EMPTY
        self.display_color = ColorType.BLACK
        self.word_text = ColorType.BLACK
        self.is_correct = False
        self.is_hit = False
        self.effect = None
        self.glitch_text = None

    def set_stimulus(
        self,
        display_color: ColorType,
        word_text: ColorType,
        *,
        correct: bool,
        glitch_text: Optional[str] = None,
    ) -> None:
        self.kind = SlotKind.STIMULUS
        self.display_color = display_color
        self.word_text = word_text
        self.is_correct = correct
        self.is_hit = False
        self.effect = None
        self.glitch_text = glitch_text

    def set_crate(self, effect: PowerUpKind) -> None:
        self.kind = SlotKind.CRATE
        self.display_color = ColorType.GRAY
        self.word_text = ColorType.GRAY
        self.is_correct = True
        self.is_hit = False
        self.effect = effect
        self.glitch_text = None


@dataclass
class Row:
    id: int
    items: List[LaneItem]
    y: float = SPAWN_Y
    active: bool = False
    passed: bool = False
    rule: Optional[Rule] = None
    set_index: int = 0
    set_size: int = 0
    kind: RowKind = RowKind.STANDARD
    is_guided: bool = False
    transition_gap: float = 0.0

    @property
    def completes_set(self) -> bool:
        return self.kind is RowKind.STANDARD and self.set_size > 0 and self.set_index == self.set_size

    def correct_lane(self) -> int:
        for i, item in enumerate(self.items):
            if item.is_correct and not item.is_empty:
                return i
        return -1


@dataclass
class Progression:
    score: int = 0
    lives: int = 0
    lanes: int = 3
    speed: float = INITIAL_SPEED
    completed_sets: int = 0
    elapsed_ms: float = 0.0

    @property
    def level(self) -> int:
        return self.score // POINTS_PER_LEVEL + 1


@dataclass(frozen=True)
class FloatingText:
    lane: int
    y: float
    text: str
    style: str
    expires_at: float = 0.0


@dataclass
class SpawnState:
    count: int = 0
    objectives: int = 0
    accumulator: float = 0.0
    next_gap: float = 0.0
    tutorial_crate_spawned: bool = False
    guided_spawned: int = 0
    guided_completed: int = 0
    warp_sets_completed: int = 0
    next_row_id: int = 1


OBJECTIVE_PENDING = 99

__all__ = [
    "Scene", "RowKind", "SlotKind", "WarpPhase", "LanePhase",
    "Rule", "LaneItem", "Row", "Progression", "FloatingText", "SpawnState",
    "OBJECTIVE_PENDING",
]
