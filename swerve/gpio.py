from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Dict, TYPE_CHECKING

from .config import CFG
from .input_queue import LANE_COMMANDS

if TYPE_CHECKING:
    from .input_queue import InputQueue

logger = logging.getLogger(__name__)

GPIO_AVAILABLE = True
IS_WINDOWS = sys.platform.startswith("win")
try:
    from gpiozero import Button  # type: ignore
except ImportError:  # pragma: no cover - gpiozero is optional
    GPIO_AVAILABLE = False
    Button = None  # type: ignore


@dataclass
class Pins:
    LANE_0: int
    LANE_1: int
    LANE_2: int
    LANE_3: int


PINS = Pins(**CFG["pins"])

GPIO_PULL_UP = True
GPIO_BOUNCE_TIME = 0.05


def init_gpio(iq: "InputQueue") -> Dict[str, "Button"]:
    """One arcade button per lane; each press queues the matching lane command."""
    if IS_WINDOWS or not GPIO_AVAILABLE or Button is None:
        logger.debug("GPIO buttons disabled")
        return {}
    buttons = {
        name: Button(getattr(PINS, name), pull_up=GPIO_PULL_UP, bounce_time=GPIO_BOUNCE_TIME)
        for name in LANE_COMMANDS
    }
    for name, btn in buttons.items():
        btn.when_pressed = (lambda n=name: iq.push(n))
    logger.info("GPIO lane buttons on pins %s", [getattr(PINS, n) for n in LANE_COMMANDS])
    return buttons


__all__ = [
    "GPIO_AVAILABLE",
    "IS_WINDOWS",
    "Pins",
    "PINS",
    "GPIO_PULL_UP",
    "GPIO_BOUNCE_TIME",
    "init_gpio",
]
