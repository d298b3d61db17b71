from __future__ import annotations

from abc import ABC
from typing import Dict, Iterable, List, Optional, TYPE_CHECKING

from .constants import SPEED_EFFECT_MULT
from .enums import PowerUpKind, RuleType

if TYPE_CHECKING:
    from .simulation import Simulation  # pragma: no cover


class BaseEffect(ABC):
    kind: PowerUpKind = PowerUpKind.NONE
    label: str = ""
    score: int = 1
    rule_type: Optional[RuleType] = None
    wild_eligible: bool = True
    lingers: bool = True
    speed_multiplier: float = 1.0
    inverts_lanes: bool = False
    pickup_sound: str = "crate"
    pickup_style: str = "crate"

    @property
    def pickup_text(self) -> str:
        return self.label

    def offered_for(self, rule_type: RuleType) -> bool:
        return self.rule_type is None or self.rule_type is rule_type

    def on_pickup(self, sim: "Simulation") -> None:
        pass


class NoEffect(BaseEffect):
    kind = PowerUpKind.NONE
    wild_eligible = False
    lingers = False


class SpeedEffect(BaseEffect):
    kind = PowerUpKind.SPEED
    label = "SPEED"
    score = 2
    speed_multiplier = SPEED_EFFECT_MULT


class DrunkEffect(BaseEffect):
    kind = PowerUpKind.DRUNK
    label = "DRUNK"
    score = 2


class FogEffect(BaseEffect):
    kind = PowerUpKind.FOG
    label = "STORM"
    score = 3


class MirrorEffect(BaseEffect):
    kind = PowerUpKind.DYSLEXIA
    label = "MIRROR"
    score = 3
    inverts_lanes = True


class GpsEffect(BaseEffect):
    kind = PowerUpKind.GPS
    label = "GPS"
    score = 1


class BlockerEffect(BaseEffect):
    kind = PowerUpKind.BLOCKER
    label = "BLOCK"
    score = 2


class WildEffect(BaseEffect):
    kind = PowerUpKind.WILD
    label = "WILD"
    score = 0
    wild_eligible = False
    pickup_sound = "wild"
    pickup_style = "wild"

    @property
    def pickup_text(self) -> str:
        return "WILD MODE!"

    def on_pickup(self, sim: "Simulation") -> None:
        if PowerUpKind.ALIAS in sim.effects.wild_pair:
            sim.start_alias_respin()


class WarpEffect(BaseEffect):
    kind = PowerUpKind.WARP
    label = "WARP"
    score = 1
    wild_eligible = False
    lingers = False
    pickup_style = "warp"

    @property
    def pickup_text(self) -> str:
        return "WARP INITIATED"

    def on_pickup(self, sim: "Simulation") -> None:
        sim.enter_warp()


class GlitchEffect(BaseEffect):
    kind = PowerUpKind.GLITCH
    label = "GLITCH"
    score = 3
    rule_type = RuleType.MATCH_WORD


class BleachEffect(BaseEffect):
    kind = PowerUpKind.BLEACH
    label = "BLEACH"
    score = 3
    rule_type = RuleType.MATCH_COLOR


class AliasEffect(BaseEffect):
    kind = PowerUpKind.ALIAS
    label = "ALIAS"
    score = 3
    rule_type = RuleType.MATCH_COLOR

    def on_pickup(self, sim: "Simulation") -> None:
        sim.start_alias_respin()


class _EffectRegistry:
    def __init__(self) -> None:
        self._effects: Dict[PowerUpKind, BaseEffect] = {}

    def register(self, effect: BaseEffect) -> None:
        self._effects[effect.kind] = effect

    def get(self, kind: PowerUpKind) -> BaseEffect:
        return self._effects[kind]

    def kinds(self) -> List[PowerUpKind]:
        return list(self._effects.keys())

    def items(self) -> List[tuple[PowerUpKind, BaseEffect]]:
        return list(self._effects.items())


EFFECTS = _EffectRegistry()
for _effect in (
    NoEffect(), SpeedEffect(), DrunkEffect(), FogEffect(), MirrorEffect(),
    GpsEffect(), BlockerEffect(), WildEffect(), WarpEffect(),
    GlitchEffect(), BleachEffect(), AliasEffect(),
):
    EFFECTS.register(_effect)


def points_for(kind: PowerUpKind) -> int:
    return EFFECTS.get(kind).score or 1


def wild_pool(rule_type: RuleType, disabled: Iterable[PowerUpKind] = ()) -> List[PowerUpKind]:
    blocked = set(disabled)
    return [
        kind for kind, eff in EFFECTS.items()
        if eff.wild_eligible and eff.offered_for(rule_type) and kind not in blocked
    ]


def all_power_ups() -> List[PowerUpKind]:
    return [k for k in EFFECTS.kinds() if k is not PowerUpKind.NONE]


__all__ = [
    "BaseEffect",
    "NoEffect",
    "SpeedEffect",
    "DrunkEffect",
    "FogEffect",
    "MirrorEffect",
    "GpsEffect",
    "BlockerEffect",
    "WildEffect",
    "WarpEffect",
    "GlitchEffect",
    "BleachEffect",
    "AliasEffect",
    "EFFECTS",
    "points_for",
    "wild_pool",
    "all_power_ups",
]
