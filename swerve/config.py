# swerve/config.py
from __future__ import annotations
import json, logging, os
from typing import Dict, Any

from pathlib import Path
PKG_DIR = Path(__file__).resolve().parent

logger = logging.getLogger(__name__)

def _abs(path: str) -> str:
    # absolute paths are kept as given
    p = Path(path)
    return str(p) if p.is_absolute() else str((PKG_DIR / p).resolve())

PACKAGE_DIR = os.path.dirname(__file__)
CONFIG_PATH = os.environ.get("SWERVE_CONFIG") or os.path.join(PACKAGE_DIR, "config.json")

POWER_UP_KEYS = (
    "SPEED", "DRUNK", "FOG", "DYSLEXIA", "GPS", "BLOCKER",
    "WILD", "WARP", "GLITCH", "BLEACH", "ALIAS",
)

PRACTICE_MODES = ("NONE", "COLOR_ONLY", "WORD_ONLY", "FOUR_LANES", "SINGLE_CRATE")

# rows a warp keeps alive on top of its own set
POOL_HEADROOM = 7

DEFAULT_CFG: Dict[str, Any] = {
    "pins": {"LANE_0": 17, "LANE_1": 27, "LANE_2": 22, "LANE_3": 23},
    "display": {"fullscreen": False, "fps": 60, "windowed_size": [540, 960]},
    "sim": {
        "initial_speed": 0.35,
        "max_speed": 0.9,
        "set_size": 5,
        "pool_size": 12,
        "starting_lanes": 3,
    },
    "lives": 0,
    "highscore": 0,
    "settings": {"haptics": True, "visual_fx": True},
    "crates": {k: True for k in POWER_UP_KEYS},
    "practice": {"mode": "NONE", "crate": None},
    "audio": {
        "music": "assets/music.ogg",
        "music_volume": 0.5,
        "sfx_volume": 0.8,
        "sfx": {
            "point": "assets/sfx/point.wav",
            "wrong": "assets/sfx/wrong.wav",
            "life": "assets/sfx/life.wav",
            "lifeUp": "assets/sfx/life_up.wav",
            "levelUp": "assets/sfx/level_up.wav",
            "objective": "assets/sfx/objective.wav",
            "crate": "assets/sfx/crate.wav",
            "wild": "assets/sfx/wild.wav",
            "spin": "assets/sfx/spin.wav",
        },
    },
}

def _deepcopy(obj):
    return json.loads(json.dumps(obj))

def _merge(dst: dict, src: dict) -> dict:
    for k, v in src.items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            _merge(dst[k], v)
        else:
            dst[k] = v
    return dst

def _sanitize_cfg(cfg: dict) -> dict:
    s = cfg["sim"]
    s["initial_speed"] = float(max(0.05, min(5.0, s["initial_speed"])))
    s["max_speed"]     = float(max(s["initial_speed"], min(10.0, s["max_speed"])))
    s["set_size"]      = int(max(1, min(20, s["set_size"])))
    s["pool_size"]     = int(max(s["set_size"] + POOL_HEADROOM, min(64, s["pool_size"])))
    s["starting_lanes"] = 4 if int(s.get("starting_lanes", 3)) >= 4 else 3
    a = cfg.setdefault("audio", {})
    a["music_volume"] = float(max(0.0, min(1.0, a.get("music_volume", 0.5))))
    a["sfx_volume"]   = float(max(0.0, min(1.0, a.get("sfx_volume",   0.8))))
    cfg["lives"] = int(max(0, min(9, cfg["lives"])))
    cfg["highscore"] = int(max(0, cfg.get("highscore", 0)))
    if "fps" in cfg["display"]:
        cfg["display"]["fps"] = int(max(30, min(240, cfg["display"]["fps"])))
    ws = cfg["display"].get("windowed_size", [540, 960])
    if isinstance(ws, (list, tuple)) and len(ws) == 2 and all(isinstance(x, (int, float)) for x in ws):
        w, h = max(200, min(10000, int(ws[0]))), max(200, min(10000, int(ws[1])))
        cfg["display"]["windowed_size"] = [w, h]
    else:
        cfg["display"]["windowed_size"] = [540, 960]

    st = cfg.setdefault("settings", {})
    st["haptics"] = bool(st.get("haptics", True))
    st["visual_fx"] = bool(st.get("visual_fx", True))

    crates = cfg.setdefault("crates", {})
    for key in list(crates.keys()):
        if key not in POWER_UP_KEYS:
            del crates[key]
    for key in POWER_UP_KEYS:
        crates[key] = bool(crates.get(key, True))

    p = cfg.setdefault("practice", {})
    if p.get("mode") not in PRACTICE_MODES:
        p["mode"] = "NONE"
    if p.get("crate") not in POWER_UP_KEYS:
        p["crate"] = None

    a["sfx"] = {k: _abs(v) for k, v in (a.get("sfx") or {}).items() if isinstance(v, str)}
    if isinstance(a.get("music"), str):
        a["music"] = _abs(a["music"])
    cfg["config_path"] = str(Path(CONFIG_PATH).resolve())
    return cfg

def save_config(partial_cfg: dict) -> None:
    try:
        with open(CONFIG_PATH, "r", encoding="utf-8") as f:
            base = json.load(f)
        if not isinstance(base, dict): base = {}
    except (OSError, ValueError):
        base = {}
    merged = _merge(base, partial_cfg)
    merged.pop("config_path", None)
    try:
        with open(CONFIG_PATH, "w", encoding="utf-8") as f:
            json.dump(merged, f, ensure_ascii=False, indent=2)
    except OSError as exc:
        logger.warning("could not write %s: %s", CONFIG_PATH, exc)

def load_config() -> dict:
    cfg = _deepcopy(DEFAULT_CFG)
    try:
        with open(CONFIG_PATH, "r", encoding="utf-8") as f:
            user = json.load(f)
        if isinstance(user, dict):
            _merge(cfg, user)
    except FileNotFoundError:
        save_config(cfg)
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
    return _sanitize_cfg(cfg)

def persist_windowed_size(width: int, height: int) -> None:
    size = [int(width), int(height)]
    CFG.setdefault("display", {})["windowed_size"] = size
    save_config({"display": {"windowed_size": size}})

CFG = load_config()
