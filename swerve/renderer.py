from __future__ import annotations

import os
import random
from typing import Dict, Optional, Tuple

import pygame

from .constants import (
    ACCENT,
    BG,
    BLOCKER_COLOR,
    COLOR_RGB,
    FLOAT_STYLE_COLORS,
    FONT_PATH,
    FONT_SIZE_BIG,
    FONT_SIZE_MID,
    FONT_SIZE_SMALL,
    GHOST_COLOR,
    GPS_COLOR,
    GUIDE_COLOR,
    HUD_HEIGHT_FACTOR,
    INK,
    ITEM_RADIUS_FACTOR,
    PLAYER_Y_POS,
    RIDER_WIDTH_FACTOR,
    TRACK_THEMES,
    WARP_TINT,
)
from .enums import ColorType, PowerUpKind
from .models import LanePhase, RowKind, SlotKind, WarpPhase
from .mods import EFFECTS
from .snapshot import ItemView, RowView, Snapshot

LIGHT_COLORS = (ColorType.WHITE, ColorType.YELLOW)
DRUNK_SWAY_PX = 10
FOG_ALPHA = 150
TRANSITION_ALPHA = 40


class Renderer:
    """Draws a ``Snapshot``. Holds fonts and layout only, never game state."""

    def __init__(self, screen: pygame.Surface, *, visual_fx: bool = True) -> None:
        self.screen = screen
        self.visual_fx = visual_fx
        self._font_cache: Dict[Tuple[int, bool], pygame.font.Font] = {}
        self._sysfont_fallback = "arial"
        self.recompute_layout()

    # ---- layout & fonts ----

    def recompute_layout(self) -> None:
        self.w, self.h = self.screen.get_size()
        self.hud_h = int(self.h * HUD_HEIGHT_FACTOR)
        self.track = pygame.Rect(0, self.hud_h, self.w, self.h - self.hud_h)
        self.ui_scale = max(0.6, min(2.2, min(self.w / 540, self.h / 960)))
        self._font_cache.clear()
        self.font = self._font(FONT_SIZE_SMALL)
        self.mid = self._font(FONT_SIZE_MID)
        self.big = self._font(FONT_SIZE_BIG)

    def px(self, v: float) -> int:
        return max(1, int(round(v * self.ui_scale)))

    def _load_font_file(self, size: int, *, bold: bool = False) -> pygame.font.Font:
        if FONT_PATH and os.path.exists(FONT_PATH):
            f = pygame.font.Font(FONT_PATH, size)
            f.set_bold(bold)
            return f
        return pygame.font.SysFont(self._sysfont_fallback, size, bold=bold)

    def _font(self, px: int, *, bold: bool = False) -> pygame.font.Font:
        size = max(8, int(round(px * self.ui_scale)))
        key = (size, bool(bold))
        f = self._font_cache.get(key)
        if f is None:
            f = self._load_font_file(size, bold=bold)
            self._font_cache[key] = f
        return f

    def lane_width(self, lanes: int) -> float:
        return self.w / max(1, lanes)

    def lane_center_x(self, lane: int, lanes: int) -> int:
        return int((lane + 0.5) * self.lane_width(lanes))

    def y_to_px(self, y: float) -> int:
        return int(self.track.top + y / 100.0 * self.track.height)

    # ---- primitives ----

    def _draw_round_rect(self, rect: pygame.Rect, fill, border=None, border_w=1, radius=12) -> None:
        rr = pygame.Surface((rect.width, rect.height), pygame.SRCALPHA)
        pygame.draw.rect(rr, fill, rr.get_rect(), border_radius=radius)
        if border is not None and border_w > 0:
            pygame.draw.rect(rr, border, rr.get_rect(), width=border_w, border_radius=radius)
        self.screen.blit(rr, rect.topleft)

    def draw_text(self, text: str, center: Tuple[int, int], *, font: Optional[pygame.font.Font] = None,
                  color=INK, shadow: bool = True, flip: bool = False) -> pygame.Rect:
        font = font or self.font
        base = font.render(text, True, color)
        if flip:
            base = pygame.transform.flip(base, True, False)
        rect = base.get_rect(center=center)
        if shadow and self.visual_fx:
            sh = font.render(text, True, (0, 0, 0))
            if flip:
                sh = pygame.transform.flip(sh, True, False)
            self.screen.blit(sh, rect.move(2, 2))
        self.screen.blit(base, rect)
        return rect

    # ---- frame ----

    def draw(self, snap: Snapshot) -> None:
        theme = TRACK_THEMES[snap.rule.type.value]
        bg = WARP_TINT if snap.warp_phase is WarpPhase.RUN_2 else theme["bg"]
        self.screen.fill(BG)
        pygame.draw.rect(self.screen, bg, self.track)
        self._draw_lanes(snap, theme["lane"])
        for row in snap.rows:
            if row.transition_gap > 0 and not row.ghost:
                self._draw_transition_zone(row, theme["lane"])
        for row in snap.rows:
            self._draw_row(snap, row)
        self._draw_rider(snap)
        if self.visual_fx and snap.has_effect(PowerUpKind.FOG):
            self._draw_fog()
        self._draw_floating_texts(snap)
        self._draw_hud(snap)
        self._draw_overlays(snap)

    def _draw_lanes(self, snap: Snapshot, lane_color) -> None:
        lw = self.lane_width(snap.lanes)
        for i in range(1, snap.lanes):
            x = int(i * lw)
            pygame.draw.line(self.screen, lane_color, (x, self.track.top), (x, self.track.bottom), 1)
        hit_y = self.y_to_px(PLAYER_Y_POS)
        pygame.draw.line(self.screen, (60, 70, 90), (0, hit_y), (self.w, hit_y), 1)

    def _draw_transition_zone(self, row: RowView, color) -> None:
        """Band trailing the first row of a new set, covering the gap before it."""
        top = max(self.track.top, self.y_to_px(row.y))
        bottom = min(self.track.bottom, self.y_to_px(row.y + row.transition_gap))
        if bottom <= top:
            return
        band = pygame.Surface((self.w, bottom - top), pygame.SRCALPHA)
        band.fill((*color[:3], TRANSITION_ALPHA))
        self.screen.blit(band, (0, top))

    def _row_offset(self, snap: Snapshot, row: RowView) -> int:
        if not snap.has_effect(PowerUpKind.DRUNK):
            return 0
        return int(DRUNK_SWAY_PX * self.ui_scale * (1 if row.id % 2 else -1) * ((row.y % 20) / 10 - 1))

    def _draw_row(self, snap: Snapshot, row: RowView) -> None:
        cy = self.y_to_px(row.y)
        dx = self._row_offset(snap, row)
        radius = int(self.lane_width(snap.lanes) * ITEM_RADIUS_FACTOR)
        for item in row.items:
            cx = self.lane_center_x(item.lane, snap.lanes) + dx
            if item.kind is SlotKind.CRATE:
                self._draw_crate(item, cx, cy, radius)
            elif item.kind is SlotKind.STIMULUS:
                if row.ghost:
                    self._draw_ghost(snap, item, cx, cy, radius)
                else:
                    self._draw_stimulus(snap, row, item, cx, cy, radius)

    def _draw_stimulus(self, snap: Snapshot, row: RowView, item: ItemView, cx: int, cy: int, r: int) -> None:
        fill = COLOR_RGB[item.display_color.value]
        if snap.has_effect(PowerUpKind.BLEACH):
            fill = tuple(int(c + (255 - c) * 0.65) for c in fill)
        border = (15, 23, 42)
        if row.is_guided and item.lane == snap.guided_lane and item.is_correct:
            border = GUIDE_COLOR
        elif snap.gps_lane == item.lane and item.is_correct:
            border = GPS_COLOR
        pygame.draw.circle(self.screen, fill, (cx, cy), r)
        pygame.draw.circle(self.screen, border, (cx, cy), r, width=max(2, self.px(4)))
        if item.is_hit:
            pygame.draw.circle(self.screen, INK, (cx, cy), r + self.px(6), width=2)
        ink = (15, 23, 42) if item.display_color in LIGHT_COLORS else INK
        self.draw_text(item.text, (cx, cy), color=ink, flip=snap.has_effect(PowerUpKind.DYSLEXIA))
        if item.blocked:
            rect = pygame.Rect(0, 0, int(r * 2.2), int(r * 1.9))
            rect.center = (cx, cy)
            self._draw_round_rect(rect, BLOCKER_COLOR, border=(0, 0, 0), border_w=self.px(4), radius=self.px(8))

    def _draw_ghost(self, snap: Snapshot, item: ItemView, cx: int, cy: int, r: int) -> None:
        target = snap.guided_lane == item.lane and item.is_correct
        alpha = 230 if target else 110
        surf = pygame.Surface((r * 2 + 4, r * 2 + 4), pygame.SRCALPHA)
        pygame.draw.circle(surf, (*GHOST_COLOR, alpha), (r + 2, r + 2), r, width=max(2, self.px(4)))
        self.screen.blit(surf, (cx - r - 2, cy - r - 2))

    def _draw_crate(self, item: ItemView, cx: int, cy: int, r: int) -> None:
        rect = pygame.Rect(0, 0, int(r * 1.8), int(r * 1.8))
        rect.center = (cx, cy)
        border = INK if item.is_hit else ACCENT
        self._draw_round_rect(rect, (30, 41, 59, 220), border=border, border_w=self.px(3), radius=self.px(10))
        label = EFFECTS.get(item.effect).label if item.effect else "?"
        self.draw_text(label, (cx, cy), font=self.font, color=ACCENT)

    def _draw_rider(self, snap: Snapshot) -> None:
        lw = self.lane_width(snap.lanes)
        w = int(lw * RIDER_WIDTH_FACTOR)
        h = int(w * 0.6)
        cx = self.lane_center_x(snap.player_lane, snap.lanes)
        cy = self.y_to_px(PLAYER_Y_POS) + self.px(40)
        rect = pygame.Rect(0, 0, w, h)
        rect.center = (cx, cy)
        color = GHOST_COLOR if snap.warp_phase is WarpPhase.RUN_2 else ACCENT
        self._draw_round_rect(rect, color, border=INK, border_w=2, radius=self.px(8))

    def _draw_fog(self) -> None:
        fog = pygame.Surface(self.track.size, pygame.SRCALPHA)
        fog.fill((100, 116, 139, FOG_ALPHA))
        if random.random() < 0.01:
            fog.fill((255, 255, 255, 200))
        self.screen.blit(fog, self.track.topleft)

    def _draw_floating_texts(self, snap: Snapshot) -> None:
        for ft in snap.floating_texts:
            color = FLOAT_STYLE_COLORS.get(ft.style, INK)
            pos = (self.lane_center_x(ft.lane, snap.lanes), self.y_to_px(ft.y) - self.px(30))
            self.draw_text(ft.text, pos, font=self.mid, color=color, flip=snap.has_effect(PowerUpKind.DYSLEXIA))

    def _draw_hud(self, snap: Snapshot) -> None:
        hud = pygame.Rect(0, 0, self.w, self.hud_h)
        pygame.draw.rect(self.screen, BG, hud)
        pad = self.px(16)
        self.draw_text(f"SCORE {snap.score}", (self.w // 6 + pad // 2, self.hud_h // 3))
        self.draw_text(f"LV {snap.level}", (self.w // 6 + pad // 2, 2 * self.hud_h // 3), color=ACCENT)
        self.draw_text(f"LIVES {snap.lives}", (5 * self.w // 6 - pad // 2, self.hud_h // 3))
        if snap.effect is not PowerUpKind.NONE:
            names = [EFFECTS.get(k).label for k in snap.wild_pair] or [EFFECTS.get(snap.effect).label]
            self.draw_text(" + ".join(names), (5 * self.w // 6 - pad // 2, 2 * self.hud_h // 3), color=GPS_COLOR)

        kind = "WORD" if snap.rule.is_word else "COLOR"
        self.draw_text(f"MATCH {kind}", (self.w // 2, self.hud_h // 4), font=self.font, color=(148, 163, 184))
        if snap.rule_hidden or snap.has_effect(PowerUpKind.ALIAS):
            ink = INK
        else:
            ink = COLOR_RGB[snap.rule.target_color.value]
        self.draw_text(snap.rule_text, (self.w // 2, self.hud_h // 2 + self.px(6)), font=self.mid, color=ink)
        dots = " ".join("o" if i < snap.set_progress else "." for i in range(snap.set_size))
        self.draw_text(dots, (self.w // 2, self.hud_h - self.px(12)), font=self.font, shadow=False)

    def _draw_banner(self, title: str, subtitle: Optional[str] = None, color=INK) -> None:
        band = pygame.Rect(0, 0, self.w, self.px(140))
        band.center = (self.w // 2, self.h // 2)
        self._draw_round_rect(band, (15, 23, 42, 210), radius=0)
        self.draw_text(title, (self.w // 2, band.centery - (self.px(20) if subtitle else 0)), font=self.big, color=color)
        if subtitle:
            self.draw_text(subtitle, (self.w // 2, band.centery + self.px(40)), font=self.font)

    def _draw_overlays(self, snap: Snapshot) -> None:
        if snap.lane_phase is LanePhase.WARNING and snap.countdown_text:
            self._draw_banner(snap.countdown_text, "WARNING: 4 LANES AHEAD", color=GUIDE_COLOR)
        elif snap.countdown_text:
            self._draw_banner(snap.countdown_text)
        elif snap.warp_phase is WarpPhase.PREP_REVERSE:
            self._draw_banner("WARP", "rewinding...", color=GHOST_COLOR)
        if snap.awaiting_tutorial is not None:
            eff = EFFECTS.get(snap.awaiting_tutorial)
            self._draw_banner(eff.label, "press T to continue", color=ACCENT)
        elif snap.paused:
            self._draw_banner("PAUSED", "Esc to resume")

    def draw_menu(self, *, practice_label: str, best: int) -> None:
        self.screen.fill(BG)
        self.draw_text("SWERVE", (self.w // 2, self.h // 3), font=self.big, color=ACCENT)
        self.draw_text(f"Practice: {practice_label}", (self.w // 2, self.h // 2), font=self.mid)
        if best:
            self.draw_text(f"Best: {best}", (self.w // 2, self.h // 2 + self.px(50)))
        self.draw_text("ENTER to start", (self.w // 2, 2 * self.h // 3), color=GUIDE_COLOR)

    def draw_game_over(self, *, score: int, elapsed_ms: float, best: int) -> None:
        self.screen.fill(BG)
        self.draw_text("GAME OVER", (self.w // 2, self.h // 3), font=self.big, color=(239, 68, 68))
        self.draw_text(f"Score {score}", (self.w // 2, self.h // 2), font=self.mid)
        self.draw_text(f"Time {elapsed_ms / 1000.0:.1f}s", (self.w // 2, self.h // 2 + self.px(40)))
        self.draw_text(f"Best {best}", (self.w // 2, self.h // 2 + self.px(80)), color=ACCENT)
        self.draw_text("SPACE to play again", (self.w // 2, 2 * self.h // 3 + self.px(40)), color=GUIDE_COLOR)


__all__ = ["Renderer"]
