from __future__ import annotations

import random
from typing import List, Optional

from .enums import ALL_COLORS, RuleType
from .models import Rule


def generate_rule(
    previous: Optional[Rule] = None,
    forced_type: Optional[RuleType] = None,
    rng: Optional[random.Random] = None,
) -> Rule:
    """Random rule that never equals ``previous`` in both type and colour."""
    rng = rng or random
    while True:
        if forced_type is not None:
            rtype = forced_type
        else:
            rtype = RuleType.MATCH_COLOR if rng.random() > 0.5 else RuleType.MATCH_WORD
        rule = Rule(rtype, rng.choice(ALL_COLORS))
        if previous is None or rule.type is not previous.type or rule.target_color is not previous.target_color:
            return rule


class RuleManager:
    def __init__(self, rng: random.Random, initial_type: Optional[RuleType] = None) -> None:
        self.rng = rng
        self.current: Rule = generate_rule(None, initial_type, rng)
        self.history: List[RuleType] = [self.current.type]

    def forced_type_for_next(self) -> Optional[RuleType]:
        if len(self.history) >= 2 and self.history[-1] is self.history[-2]:
            return self.history[-1].opposite()
        return None

    def roll(self, forced_type: Optional[RuleType] = None, *, record: bool = True) -> Rule:
        if forced_type is None:
            forced_type = self.forced_type_for_next()
        self.current = generate_rule(self.current, forced_type, self.rng)
        if record:
            self.history.append(self.current.type)
            if len(self.history) > 2:
                self.history.pop(0)
        return self.current

    def replace(self, rule: Rule) -> None:
        self.current = rule


__all__ = ["generate_rule", "RuleManager"]
