from enum import Enum

class RuleType(str, Enum):
    MATCH_COLOR = "MATCH_COLOR"
    MATCH_WORD  = "MATCH_WORD"

    def opposite(self) -> "RuleType":
        return RuleType.MATCH_WORD if self is RuleType.MATCH_COLOR else RuleType.MATCH_COLOR


class ColorType(str, Enum):
    RED    = "RED"
    BLUE   = "BLUE"
    GREEN  = "GREEN"
    YELLOW = "YELLOW"
    PURPLE = "PURPLE"
    ORANGE = "ORANGE"
    PINK   = "PINK"
    WHITE  = "WHITE"
    BLACK  = "BLACK"
    GRAY   = "GRAY"


class PowerUpKind(str, Enum):
    NONE     = "NONE"
    SPEED    = "SPEED"
    DRUNK    = "DRUNK"
    FOG      = "FOG"
    DYSLEXIA = "DYSLEXIA"
    GPS      = "GPS"
    BLOCKER  = "BLOCKER"
    WILD     = "WILD"
    WARP     = "WARP"
    GLITCH   = "GLITCH"
    BLEACH   = "BLEACH"
    ALIAS    = "ALIAS"


class PracticeMode(str, Enum):
    NONE         = "NONE"
    COLOR_ONLY   = "COLOR_ONLY"
    WORD_ONLY    = "WORD_ONLY"
    FOUR_LANES   = "FOUR_LANES"
    SINGLE_CRATE = "SINGLE_CRATE"


ALL_COLORS = [
    ColorType.RED, ColorType.BLUE, ColorType.GREEN, ColorType.YELLOW,
    ColorType.PURPLE, ColorType.ORANGE, ColorType.PINK, ColorType.WHITE,
]
