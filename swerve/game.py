from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import pygame

from .audio import PygameAudio
from .config import CFG, persist_windowed_size, save_config
from .constants import WINDOWED_DEFAULT_SIZE
from .enums import PowerUpKind, PracticeMode
from .events import EventKind
from .input_queue import InputQueue, lane_index
from .mods import EFFECTS, all_power_ups
from .models import Scene
from .renderer import Renderer
from .settings import PracticeConfig, make_practice_config, make_runtime_settings
from .simulation import Simulation
from .snapshot import Snapshot

logger = logging.getLogger(__name__)

MIN_WINDOW_SIZE = (360, 640)
INTRO_MESSAGE_MS = 4000


class Game:

    # ---- Core lifecycle wiring ----

    def __init__(self, screen: pygame.Surface) -> None:
        self.screen = screen
        self.cfg = CFG
        self.scene: Scene = Scene.MENU
        self.clock = pygame.time.Clock()

        # --- Window state ---
        self.last_windowed_size = tuple(CFG.get("display", {}).get("windowed_size", WINDOWED_DEFAULT_SIZE))

        # --- Runtime settings ---
        self.settings = make_runtime_settings(CFG)
        self.practice: PracticeConfig = make_practice_config(CFG)

        self.audio = PygameAudio(CFG)
        self.renderer = Renderer(self.screen, visual_fx=self.settings.visual_fx)

        # --- Run state ---
        self.sim: Optional[Simulation] = None
        self.snapshot: Optional[Snapshot] = None
        self.highscore = int(CFG.get("highscore", 0))
        self.final_score = 0
        self.final_elapsed_ms = 0.0
        self.intro_message: Optional[str] = None
        self.intro_until = 0

        self.key_to_lane = {
            pygame.K_1: "LANE_0",
            pygame.K_2: "LANE_1",
            pygame.K_3: "LANE_2",
            pygame.K_4: "LANE_3",
        }

    def start_game(self) -> None:
        self.sim = Simulation(self.settings, self.practice, audio=self.audio)
        self.sim.bus.subscribe(self._on_game_over, EventKind.GAME_OVER)
        self.sim.bus.subscribe(self._on_intro, EventKind.INTRO)
        self.sim.bus.subscribe(self._on_haptic, EventKind.HAPTIC)
        self.snapshot = self.sim.snapshot()
        self.scene = Scene.GAME
        self.intro_message = None
        self.audio.start_music()

    def end_game(self, final_score: int, elapsed_ms: float) -> None:
        self.scene = Scene.OVER
        self.final_score = int(final_score)
        self.final_elapsed_ms = float(elapsed_ms)
        if self.final_score > self.highscore:
            self.highscore = self.final_score
            CFG["highscore"] = self.highscore
            save_config({"highscore": self.highscore})
        self.audio.stop_music()

    # ---- Simulation events ----

    def _on_game_over(self, kind: EventKind, data: Dict[str, Any]) -> None:
        self.end_game(data["final_score"], data["elapsed_ms"])

    def _on_intro(self, kind: EventKind, data: Dict[str, Any]) -> None:
        self.intro_message = data.get("message")
        self.intro_until = pygame.time.get_ticks() + INTRO_MESSAGE_MS

    def _on_haptic(self, kind: EventKind, data: Dict[str, Any]) -> None:
        # no vibration motor on the cabinet; keep the cue visible in debug logs
        logger.debug("haptic %dms", data.get("ms", 0))

    # ---- Window handling ----

    def _set_windowed_size(self, width: int, height: int) -> None:
        width = max(MIN_WINDOW_SIZE[0], int(width))
        height = max(MIN_WINDOW_SIZE[1], int(height))
        if self.screen.get_size() == (width, height):
            return
        self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
        self.last_windowed_size = (width, height)
        persist_windowed_size(width, height)
        self._rebind_screen()

    def _set_display_mode(self, fullscreen: bool) -> None:
        if fullscreen:
            self.screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
            self._rebind_screen()
        else:
            w, h = self.last_windowed_size
            self.screen = pygame.display.set_mode((int(w), int(h)), pygame.RESIZABLE)
            self._rebind_screen()
        pygame.display.set_caption("Swerve")

    def _rebind_screen(self) -> None:
        self.renderer.screen = self.screen
        self.renderer.recompute_layout()

    def handle_resize(self, width: int, height: int) -> None:
        if bool(CFG.get("display", {}).get("fullscreen", False)):
            return
        self._set_windowed_size(width, height)

    # ---- Menu ----

    def practice_label(self) -> str:
        if self.practice.mode is PracticeMode.SINGLE_CRATE and self.practice.selected_crate:
            return f"{EFFECTS.get(self.practice.selected_crate).label} CRATE"
        return self.practice.mode.value.replace("_", " ")

    def _cycle_practice(self, delta: int) -> None:
        modes = list(PracticeMode)
        idx = (modes.index(self.practice.mode) + delta) % len(modes)
        mode = modes[idx]
        crate = self.practice.selected_crate
        if mode is PracticeMode.SINGLE_CRATE and crate in (None, PowerUpKind.NONE):
            crate = all_power_ups()[0]
        self.practice = PracticeConfig(mode=mode, selected_crate=crate)
        self._persist_practice()

    def _cycle_crate(self, delta: int) -> None:
        if self.practice.mode is not PracticeMode.SINGLE_CRATE:
            return
        kinds = all_power_ups()
        cur = self.practice.selected_crate
        idx = kinds.index(cur) if cur in kinds else 0
        self.practice.selected_crate = kinds[(idx + delta) % len(kinds)]
        self._persist_practice()

    def _persist_practice(self) -> None:
        crate = self.practice.selected_crate.value if self.practice.selected_crate else None
        CFG["practice"] = {"mode": self.practice.mode.value, "crate": crate}
        save_config({"practice": CFG["practice"]})

    # ---- Input ----

    def handle_event(self, event: pygame.event.Event, iq: InputQueue) -> None:
        if event.type == pygame.VIDEORESIZE:
            self.handle_resize(event.w, event.h)
            return
        if event.type != pygame.KEYDOWN:
            return

        if self.scene is Scene.MENU:
            if event.key == pygame.K_RETURN:
                self.start_game()
            elif event.key in (pygame.K_LEFT, pygame.K_RIGHT):
                self._cycle_practice(-1 if event.key == pygame.K_LEFT else +1)
            elif event.key in (pygame.K_UP, pygame.K_DOWN):
                self._cycle_crate(-1 if event.key == pygame.K_UP else +1)
            return

        if self.scene is Scene.OVER:
            if event.key == pygame.K_SPACE:
                self.start_game()
            elif event.key == pygame.K_ESCAPE:
                self.scene = Scene.MENU
            return

        sim = self.sim
        if sim is None:
            return
        if event.key == pygame.K_ESCAPE:
            if sim.paused:
                sim.resume()
                self.audio.resume_music()
            else:
                sim.pause()
                self.audio.pause_music()
            return
        if event.key == pygame.K_t:
            sim.dismiss_tutorial()
            return
        if event.key in (pygame.K_LEFT, pygame.K_a):
            iq.push("LEFT")
        elif event.key in (pygame.K_RIGHT, pygame.K_d):
            iq.push("RIGHT")
        elif event.key in self.key_to_lane:
            iq.push(self.key_to_lane[event.key])

    def _apply_command(self, name: str) -> None:
        sim = self.sim
        idx = lane_index(name)
        if idx >= 0:
            sim.set_player_lane(idx)
        elif name == "LEFT":
            sim.shift_player_lane(-1)
        elif name == "RIGHT":
            sim.shift_player_lane(+1)

    # ---- Frame ----

    def update(self, iq: InputQueue) -> None:
        commands = iq.pop_all()
        if self.scene is not Scene.GAME or self.sim is None:
            return
        for name in commands:
            self._apply_command(name)
        self.snapshot = self.sim.tick(pygame.time.get_ticks())
        if self.intro_message and pygame.time.get_ticks() >= self.intro_until:
            self.intro_message = None

    def draw(self) -> None:
        r = self.renderer
        if self.scene is Scene.MENU:
            r.draw_menu(practice_label=self.practice_label(), best=self.highscore)
        elif self.scene is Scene.OVER:
            r.draw_game_over(score=self.final_score, elapsed_ms=self.final_elapsed_ms, best=self.highscore)
        elif self.snapshot is not None:
            r.draw(self.snapshot)
            if self.intro_message:
                r.draw_text(self.intro_message, (r.w // 2, int(r.h * 0.2)), color=(250, 204, 21))
        pygame.display.flip()

    def window_size(self) -> Tuple[int, int]:
        return self.screen.get_size()


__all__ = ["Game"]
