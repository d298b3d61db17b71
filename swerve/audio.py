from __future__ import annotations

import logging
import os
from typing import Dict, Optional

import pygame

from .config import CFG

logger = logging.getLogger(__name__)

# Playback rate is not adjustable per channel in pygame, so the warp and rule
# themes are expressed through the music volume.
REVERSE_MUSIC_FACTOR = 0.55
WARP_TRANSITION_FACTOR = 0.3
WORD_THEME_FACTOR = 0.85


class MusicController:
    def __init__(self, *, volume: float = 0.6) -> None:
        self.current_path: Optional[str] = None
        self.volume = max(0.0, min(1.0, float(volume)))

    def set_volume(self, value: float) -> None:
        self.volume = max(0.0, min(1.0, float(value)))
        if pygame.mixer.get_init():
            pygame.mixer.music.set_volume(self.volume)

    def fade_to(self, path: Optional[str], *, ms: int = 600, loop: int = -1) -> None:
        if not path or not os.path.exists(path) or not pygame.mixer.get_init():
            return
        try:
            pygame.mixer.music.fadeout(max(0, int(ms)))
            pygame.mixer.music.load(path)
            pygame.mixer.music.set_volume(self.volume)
            pygame.mixer.music.play(loop, fade_ms=max(0, int(ms)))
            self.current_path = path
        except pygame.error as exc:
            logger.warning("could not play %s: %s", path, exc)

    def stop(self, ms: int = 400) -> None:
        if pygame.mixer.get_init():
            pygame.mixer.music.fadeout(max(0, int(ms)))
        self.current_path = None


class PygameAudio:
    """``AudioSink`` backed by pygame.mixer; missing files are skipped."""

    def __init__(self, cfg: Optional[dict] = None) -> None:
        cfg = cfg or CFG
        audio = cfg.get("audio", {})
        self.base_volume = float(audio.get("music_volume", 0.5))
        self.sfx_volume = float(audio.get("sfx_volume", 0.8))
        self.music_path: Optional[str] = audio.get("music")
        self.sfx: Dict[str, pygame.mixer.Sound] = {}
        self.enabled = self._init_mixer()
        self.music = MusicController(volume=self.base_volume)
        self._reverse = False
        self._transition = False
        self._word_theme = False
        if self.enabled:
            self._preload(audio.get("sfx", {}) or {})

    def _init_mixer(self) -> bool:
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init()
            pygame.mixer.set_num_channels(16)
        except pygame.error as exc:
            logger.warning("audio disabled: %s", exc)
            return False
        return True

    def _preload(self, files: Dict[str, str]) -> None:
        for key, path in files.items():
            if not os.path.exists(path):
                logger.debug("sfx %s missing at %s", key, path)
                continue
            try:
                snd = pygame.mixer.Sound(path)
            except pygame.error as exc:
                logger.warning("could not load sfx %s: %s", path, exc)
                continue
            snd.set_volume(self.sfx_volume)
            self.sfx[key] = snd

    # ---- AudioSink ----

    def play(self, name: str) -> None:
        snd = self.sfx.get(name)
        if snd is not None:
            snd.play()

    def set_reverse_mode(self, on: bool) -> None:
        self._reverse = bool(on)
        self._apply_music_volume()

    def set_warp_transition(self, on: bool) -> None:
        self._transition = bool(on)
        self._apply_music_volume()

    def set_rule_theme(self, is_word: bool) -> None:
        self._word_theme = bool(is_word)
        self._apply_music_volume()

    # ---- music ----

    def start_music(self) -> None:
        if self.enabled:
            self.music.fade_to(self.music_path)
            self._apply_music_volume()

    def stop_music(self) -> None:
        if self.enabled:
            self.music.stop()

    def pause_music(self) -> None:
        if self.enabled:
            pygame.mixer.music.pause()

    def resume_music(self) -> None:
        if self.enabled:
            pygame.mixer.music.unpause()

    def _apply_music_volume(self) -> None:
        if not self.enabled:
            return
        v = self.base_volume
        if self._word_theme:
            v *= WORD_THEME_FACTOR
        if self._reverse:
            v *= REVERSE_MUSIC_FACTOR
        if self._transition:
            v *= WARP_TRANSITION_FACTOR
        self.music.set_volume(v)


__all__ = ["MusicController", "PygameAudio"]
