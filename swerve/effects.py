from __future__ import annotations

import logging
import random
from typing import Callable, Iterable, List, Optional, Tuple

from .constants import ALIAS_SPIN_STEP_MS, COLOR_ALIASES
from .enums import PowerUpKind, RuleType
from .models import Rule
from .mods import EFFECTS, BaseEffect, points_for, wild_pool
from .rules import generate_rule
from .timers import PausableCountdown

logger = logging.getLogger(__name__)

RESPIN_STEPS = 3


class EffectManager:
    """Active power-up, the WILD pair, and the ALIAS rule respin.

    The respin shows two throw-away colour rules, ``ALIAS_SPIN_STEP_MS``
    apart, then commits a third one. ``update`` hands the committed rule back
    to the caller, which owns the rows that must be re-hydrated.
    """

    def __init__(self, rng: random.Random, now_fn: Callable[[], float]) -> None:
        self.rng = rng
        self.active: PowerUpKind = PowerUpKind.NONE
        self.wild_pair: Tuple[PowerUpKind, ...] = ()
        self.alias_word = ""
        self.spin_rule: Optional[Rule] = None
        self._spin_base: Optional[Rule] = None
        self._spin_step = 0
        self._spin_timer = PausableCountdown(now_fn)

    # ---- queries ----

    def is_active(self, kind: PowerUpKind) -> bool:
        if self.active is kind:
            return True
        return self.active is PowerUpKind.WILD and kind in self.wild_pair

    def active_effects(self) -> List[BaseEffect]:
        if self.active is PowerUpKind.NONE:
            return []
        return [EFFECTS.get(self.active)] + [EFFECTS.get(k) for k in self.wild_pair]

    def points(self) -> int:
        if self.active is PowerUpKind.WILD and self.wild_pair:
            return sum(points_for(k) for k in self.wild_pair)
        return points_for(self.active)

    def speed_multiplier(self) -> float:
        mult = 1.0
        for eff in self.active_effects():
            mult = max(mult, eff.speed_multiplier)
        return mult

    def inverts_lanes(self) -> bool:
        return any(eff.inverts_lanes for eff in self.active_effects())

    @property
    def spinning(self) -> bool:
        return self._spin_step > 0

    # ---- transitions ----

    def pickup(
        self,
        kind: PowerUpKind,
        rule_type: RuleType,
        disabled: Iterable[PowerUpKind] = (),
    ) -> BaseEffect:
        effect = EFFECTS.get(kind)
        if not effect.lingers:
            return effect
        if kind is PowerUpKind.WILD:
            pool = wild_pool(rule_type, disabled)
            if len(pool) < 2:
                pool = wild_pool(rule_type)
            self.wild_pair = tuple(self.rng.sample(pool, 2))
        else:
            self.wild_pair = ()
        self.active = kind
        logger.debug("effect %s active (pair=%s)", kind.value, [k.value for k in self.wild_pair])
        return effect

    def clear(self) -> bool:
        changed = self.active is not PowerUpKind.NONE
        self.active = PowerUpKind.NONE
        self.wild_pair = ()
        self.alias_word = ""
        self.cancel_respin()
        return changed

    def pick_alias_word(self, rule: Rule) -> str:
        words = COLOR_ALIASES.get(rule.target_color.value)
        if words:
            self.alias_word = self.rng.choice(words)
        return self.alias_word

    # ---- respin sub-sequence ----

    def start_respin(self, base: Rule) -> None:
        self._spin_base = Rule(RuleType.MATCH_COLOR, base.target_color)
        self._spin_step = 1
        self._show_spin_rule()
        self._spin_timer.start(ALIAS_SPIN_STEP_MS / 1000.0)

    def cancel_respin(self) -> None:
        self._spin_step = 0
        self._spin_base = None
        self.spin_rule = None
        self._spin_timer.reset()

    def _show_spin_rule(self) -> None:
        self.spin_rule = generate_rule(self._spin_base, RuleType.MATCH_COLOR, self.rng)
        self.pick_alias_word(self.spin_rule)

    def update(self) -> Optional[Rule]:
        """Advance the respin; returns the final rule on the commit step."""
        if not self.spinning or not self._spin_timer.expired():
            return None
        self._spin_step += 1
        if self._spin_step < RESPIN_STEPS:
            self._show_spin_rule()
            self._spin_timer.start(ALIAS_SPIN_STEP_MS / 1000.0)
            return None
        final = generate_rule(self._spin_base, RuleType.MATCH_COLOR, self.rng)
        self.cancel_respin()
        self.pick_alias_word(final)
        return final


__all__ = ["EffectManager", "RESPIN_STEPS"]
