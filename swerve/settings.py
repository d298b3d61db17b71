# swerve/settings.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .enums import PowerUpKind, PracticeMode, RuleType
from .mods import all_power_ups


@dataclass
class GameSettings:
    haptics: bool = True
    visual_fx: bool = True
    crate_toggles: Dict[PowerUpKind, bool] = field(default_factory=dict)
    starting_lives: int = 0

    def disabled_power_ups(self) -> List[PowerUpKind]:
        return [k for k, enabled in self.crate_toggles.items() if not enabled]


@dataclass
class PracticeConfig:
    mode: PracticeMode = PracticeMode.NONE
    selected_crate: Optional[PowerUpKind] = None

    @property
    def is_active(self) -> bool:
        return self.mode is not PracticeMode.NONE

    @property
    def single_crate(self) -> Optional[PowerUpKind]:
        if self.mode is PracticeMode.SINGLE_CRATE:
            return self.selected_crate
        return None

    @property
    def skips_crates(self) -> bool:
        return self.mode in (PracticeMode.COLOR_ONLY, PracticeMode.WORD_ONLY)

    def forced_rule_type(self) -> Optional[RuleType]:
        """Rule type every generated rule must use, if practice pins one."""
        if self.mode is PracticeMode.COLOR_ONLY:
            return RuleType.MATCH_COLOR
        if self.mode is PracticeMode.WORD_ONLY:
            return RuleType.MATCH_WORD
        crate = self.single_crate
        if crate is PowerUpKind.GLITCH:
            return RuleType.MATCH_WORD
        if crate in (PowerUpKind.BLEACH, PowerUpKind.ALIAS):
            return RuleType.MATCH_COLOR
        return None

    def disabled_power_ups(self) -> Optional[List[PowerUpKind]]:
        crate = self.single_crate
        if crate is None:
            return None
        return [k for k in all_power_ups() if k is not crate]


# ------------- snapshot (runtime) -------------

def make_runtime_settings(CFG: Dict[str, Any]) -> GameSettings:
    """Build the runtime settings object from the loaded config."""
    s = CFG.get("settings", {}) or {}
    crates = CFG.get("crates", {}) or {}
    toggles = {}
    for kind in all_power_ups():
        toggles[kind] = bool(crates.get(kind.value, True))
    settings = GameSettings(
        haptics=bool(s.get("haptics", True)),
        visual_fx=bool(s.get("visual_fx", True)),
        crate_toggles=toggles,
        starting_lives=int(CFG.get("lives", 0)),
    )
    clamp_settings(settings)
    return settings


def make_practice_config(CFG: Dict[str, Any]) -> PracticeConfig:
    p = CFG.get("practice", {}) or {}
    try:
        mode = PracticeMode(p.get("mode", "NONE"))
    except ValueError:
        mode = PracticeMode.NONE
    crate: Optional[PowerUpKind] = None
    if p.get("crate"):
        try:
            crate = PowerUpKind(p["crate"])
        except ValueError:
            crate = None
    if mode is PracticeMode.SINGLE_CRATE and crate in (None, PowerUpKind.NONE):
        mode = PracticeMode.NONE
    return PracticeConfig(mode=mode, selected_crate=crate)


# ------------- clamp -------------

def clamp_settings(s: GameSettings) -> None:
    """Keep ranges in line with _sanitize_cfg() in swerve/config.py."""
    s.starting_lives = max(0, min(9, int(s.starting_lives)))
    for kind in all_power_ups():
        s.crate_toggles.setdefault(kind, True)


__all__ = [
    "GameSettings",
    "PracticeConfig",
    "make_runtime_settings",
    "make_practice_config",
    "clamp_settings",
]
