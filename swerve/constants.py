from __future__ import annotations

from pathlib import Path

from .config import CFG, POOL_HEADROOM

PKG_DIR = Path(__file__).resolve().parent


# --- Track geometry (percent of play-field height) -------------------------
SPAWN_Y = -20.0
DESPAWN_Y_FORWARD = 120.0
DESPAWN_Y_REVERSE = -30.0
PLAYER_Y_POS = 80.0
HITBOX_THRESHOLD = 5.0
RULE_LOOKAHEAD_MIN_Y = -20.0
RULE_LOOKAHEAD_MAX_Y = 85.0
GPS_LOOKAHEAD_MAX_Y = 90.0
INITIAL_SPAWN_ACCUMULATOR = 100.0

# --- Lanes & pool ----------------------------------------------------------
MAX_LANES = 4
BASE_LANES = 3
STARTING_LANES = int(CFG["sim"]["starting_lanes"])
POOL_SIZE = int(CFG["sim"]["pool_size"])

# --- Tempo -----------------------------------------------------------------
INITIAL_SPEED = float(CFG["sim"]["initial_speed"])
MAX_SPEED = float(CFG["sim"]["max_speed"])
MIN_OBSTACLE_DISTANCE = 35.0
MAX_OBSTACLE_DISTANCE = 50.0
REFERENCE_FRAME_MS = 16.67
MAX_TIME_SCALE = 4.0
SPEED_EFFECT_MULT = 1.5
WARP_REVERSE_MULT = 0.5
SURGE_EVERY_SETS = 3
SURGE_STEP = 0.15
SET_END_GAP_FACTOR = 60.0        # extra gap after the last row of a set
CRATE_GAP_FACTOR = 30.0          # extra gap after a crate row
OBJECTIVE_GAP_BASE = 120.0       # every third objective gets a wide breather
OBJECTIVE_GAP_FACTOR = 100.0
OBJECTIVE_WIDE_EVERY = 3
TUTORIAL_CRATE_GAP = 150.0
TUTORIAL_RESUME_LEAD = 200.0      # spawn due right after the post-tutorial countdown

# --- Sets & progression ------------------------------------------------------
OBSTACLES_PER_SET = int(CFG["sim"]["set_size"])
POINTS_PER_LEVEL = 50
POINTS_PER_LIFE = 50
LANE_TOGGLE_EVERY_LEVELS = 3
STARTING_LIVES = int(CFG.get("lives", 0))
WARP_BONUS_POINTS = 6
GUIDED_SETS = 3

# --- Timed phases (ms of simulation time) ------------------------------------
LEVEL_ANNOUNCE_MS = 1000
LANE_COUNTDOWN_SEC = 3
WARP_PREP_MS = 1000
ALIAS_SPIN_STEP_MS = 150
TUTORIAL_COUNTDOWN_MS = 3000
FLOATING_TEXT_TTL_MS = 1000
FLOATING_TEXT_CAPACITY = 16

# --- Glitch text -------------------------------------------------------------
GLITCH_SUBSTITUTIONS = {
    "A": "4", "B": "8", "E": "3", "G": "6", "I": "1",
    "O": "0", "S": "5", "T": "7", "Z": "2",
}
GLITCH_SUB_PROB = 0.6

# --- Stroop generation -------------------------------------------------------
CORRECT_MISMATCH_PROB = 0.7
DECOY_PROB = 0.5

# --- Haptics (ms) ------------------------------------------------------------
HAPTIC_PAUSE_MS = 50
HAPTIC_LEVEL_MS = 200
HAPTIC_GAME_OVER_MS = 800

# --- Palette -----------------------------------------------------------------
BG = (8, 10, 12)
INK = (235, 235, 235)
ACCENT = (255, 210, 90)

COLOR_RGB = {
    "RED":    (239, 68, 68),
    "BLUE":   (59, 130, 246),
    "GREEN":  (34, 197, 94),
    "YELLOW": (250, 204, 21),
    "PURPLE": (168, 85, 247),
    "ORANGE": (249, 115, 22),
    "PINK":   (236, 72, 153),
    "WHITE":  (241, 245, 249),
    "BLACK":  (15, 23, 42),
    "GRAY":   (100, 116, 139),
}

COLOR_ALIASES = {
    "RED":    ["CRIMSON", "SCARLET", "RUBY", "CHERRY"],
    "BLUE":   ["NAVY", "AZURE", "COBALT", "SAPPHIRE"],
    "GREEN":  ["LIME", "EMERALD", "JADE", "OLIVE"],
    "YELLOW": ["LEMON", "GOLD", "CANARY", "AMBER"],
    "PURPLE": ["VIOLET", "LILAC", "PLUM", "GRAPE"],
    "ORANGE": ["TANGERINE", "APRICOT", "CORAL", "PEACH"],
    "PINK":   ["ROSE", "FUCHSIA", "BLUSH", "SALMON"],
    "WHITE":  ["SNOW", "IVORY", "PEARL", "CHALK"],
}

# Track tint per rule type
TRACK_THEMES = {
    "MATCH_COLOR": {"bg": (14, 18, 34), "lane": (59, 130, 246)},
    "MATCH_WORD":  {"bg": (30, 14, 30), "lane": (236, 72, 153)},
}
WARP_TINT = (112, 26, 117)
GHOST_COLOR = (217, 70, 239)
GPS_COLOR = (45, 212, 191)
GUIDE_COLOR = (250, 204, 21)
BLOCKER_COLOR = (251, 191, 36)

FLOAT_STYLE_COLORS = {
    "score":   INK,
    "saved":   INK,
    "crate":   (34, 211, 238),
    "wild":    INK,
    "warp":    (232, 121, 249),
    "surge":   (34, 211, 238),
}

# --- Window / HUD --------------------------------------------------------------
FPS = int(CFG.get("display", {}).get("fps", 60))
WINDOWED_DEFAULT_SIZE = tuple(CFG.get("display", {}).get("windowed_size", (540, 960)))
FONT_PATH = str(PKG_DIR / "assets" / "font" / "Orbitron-VariableFont_wght.ttf")
FONT_SIZE_SMALL = 18
FONT_SIZE_MID = 26
FONT_SIZE_BIG = 64
HUD_HEIGHT_FACTOR = 0.11
ITEM_RADIUS_FACTOR = 0.36        # of lane width
RIDER_WIDTH_FACTOR = 0.42        # of lane width
