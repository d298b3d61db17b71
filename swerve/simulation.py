from __future__ import annotations

import logging
import math
import random
from typing import List, Optional

from .collision import CollisionResolver
from .constants import (
    BASE_LANES,
    DESPAWN_Y_FORWARD,
    DESPAWN_Y_REVERSE,
    GUIDED_SETS,
    HAPTIC_LEVEL_MS,
    HAPTIC_PAUSE_MS,
    INITIAL_SPEED,
    MAX_LANES,
    MAX_SPEED,
    OBSTACLES_PER_SET,
    POOL_SIZE,
    RULE_LOOKAHEAD_MAX_Y,
    RULE_LOOKAHEAD_MIN_Y,
    STARTING_LANES,
    STARTING_LIVES,
    SURGE_EVERY_SETS,
    SURGE_STEP,
    TUTORIAL_COUNTDOWN_MS,
    WARP_REVERSE_MULT,
)
from .effects import EffectManager
from .enums import PowerUpKind, PracticeMode
from .events import AudioSink, EventBus, EventKind, FloatingTextQueue, NullAudio
from .hydrate import hydrate_standard_row
from .lanes import LaneAction, LaneTransition
from .mods import EFFECTS
from .models import Progression, Row, RowKind, Rule, WarpPhase
from .pool import ObstaclePool, min_pool_size
from .rules import RuleManager
from .settings import GameSettings, PracticeConfig, clamp_settings
from .snapshot import Snapshot, build_snapshot, rule_text
from .spawner import Spawner
from .timers import FrameClock, PausableCountdown
from .warp import WarpManager

logger = logging.getLogger(__name__)

GUIDANCE_ENDED_MESSAGE = "GUIDANCE ENDED: You're on your own!"


class Simulation:
    """One run of the game.

    Owns the pool, the rule/effect/warp/lane state machines and the score.
    The host calls ``tick(timestamp_ms)`` once per frame and reads the
    returned ``Snapshot``; everything else it learns through ``bus``.
    Timed phases run on simulation time, so pausing stops them too.
    """

    def __init__(
        self,
        settings: Optional[GameSettings] = None,
        practice: Optional[PracticeConfig] = None,
        rng: Optional[random.Random] = None,
        audio: Optional[AudioSink] = None,
        *,
        pool_size: int = POOL_SIZE,
    ) -> None:
        self.settings = settings or GameSettings(starting_lives=STARTING_LIVES)
        clamp_settings(self.settings)
        self.practice = practice or PracticeConfig()
        self.rng = rng or random.Random()
        self.audio: AudioSink = audio or NullAudio()

        self.clock = FrameClock()
        now = self.clock.now
        self.bus = EventBus()
        self.floating_texts = FloatingTextQueue()
        if pool_size < min_pool_size(OBSTACLES_PER_SET):
            raise ValueError(
                f"pool_size {pool_size} cannot hold a warp set of {OBSTACLES_PER_SET} rows "
                f"(need at least {min_pool_size(OBSTACLES_PER_SET)})"
            )
        self.pool = ObstaclePool(pool_size)
        self.rules = RuleManager(self.rng, self.practice.forced_rule_type())
        self.effects = EffectManager(self.rng, now)
        self.warp = WarpManager(now)
        four_lanes = self.practice.mode is PracticeMode.FOUR_LANES
        self.lanes = LaneTransition(now, locked=four_lanes)
        self.progression = Progression(
            lives=self.settings.starting_lives,
            lanes=MAX_LANES if four_lanes else STARTING_LANES,
            speed=INITIAL_SPEED,
        )
        self.spawner = Spawner(self)
        self.collision = CollisionResolver(self)

        self.player_lane = min(1, self.progression.lanes - 1)
        self.displayed_rule: Rule = self.rules.current
        self.paused = False
        self.over = False
        self.tutorial: Optional[PowerUpKind] = None
        self.tutorial_seen = False
        self._tutorial_timer = PausableCountdown(now)
        self._countdown_shown: Optional[int] = None

        self.audio.set_rule_theme(self.displayed_rule.is_word)
        self.bus.publish(EventKind.LEVEL_CHANGED, level=self.progression.level, lanes=self.progression.lanes)
        crate = self.practice.single_crate
        if crate is not None:
            self.bus.publish(EventKind.INTRO, message=f"PRACTICE: {EFFECTS.get(crate).label} CRATE")
        logger.info(
            "run started: lanes=%d lives=%d practice=%s",
            self.progression.lanes, self.progression.lives, self.practice.mode.value,
        )

    # ---- queries ----

    @property
    def accepts_input(self) -> bool:
        return not (self.paused or self.over or self.tutorial is not None or self.lanes.freezes_motion)

    @property
    def tutorial_countdown_running(self) -> bool:
        return self._tutorial_timer.running

    def tutorial_countdown_left(self) -> float:
        return self._tutorial_timer.get()

    def effective_speed(self) -> float:
        speed = self.progression.speed * self.effects.speed_multiplier()
        if self.warp.reversing:
            speed *= WARP_REVERSE_MULT
        return speed

    def disabled_power_ups(self) -> List[PowerUpKind]:
        forced = self.practice.disabled_power_ups()
        if forced is not None:
            return forced
        return self.settings.disabled_power_ups()

    def upcoming_row(self) -> Optional[Row]:
        """Nearest active, unpassed standard row in the rule look-ahead band."""
        best: Optional[Row] = None
        for row in self.pool.active_rows():
            if row.passed or row.kind is not RowKind.STANDARD:
                continue
            if not (RULE_LOOKAHEAD_MIN_Y < row.y < RULE_LOOKAHEAD_MAX_Y):
                continue
            if best is None or row.y > best.y:
                best = row
        return best

    def snapshot(self) -> Snapshot:
        return build_snapshot(self)

    # ---- commands ----

    def set_player_lane(self, index: int) -> int:
        if not self.accepts_input:
            return self.player_lane
        lanes = self.progression.lanes
        lane = max(0, min(int(index), lanes - 1))
        if self.effects.inverts_lanes():
            lane = lanes - 1 - lane
        self.player_lane = lane
        return lane

    def shift_player_lane(self, step: int) -> int:
        if not self.accepts_input:
            return self.player_lane
        self.player_lane = max(0, min(self.player_lane + step, self.progression.lanes - 1))
        return self.player_lane

    def pause(self) -> None:
        if self.paused or self.over:
            return
        self.paused = True
        self._haptic(HAPTIC_PAUSE_MS)

    def resume(self) -> None:
        if not self.paused:
            return
        self.paused = False
        self._haptic(HAPTIC_PAUSE_MS)

    def dismiss_tutorial(self) -> bool:
        if self.tutorial is None:
            return False
        logger.debug("tutorial for %s dismissed", self.tutorial.value)
        self.tutorial = None
        self._countdown_shown = None
        self._tutorial_timer.start(TUTORIAL_COUNTDOWN_MS / 1000.0)
        return True

    # ---- frame ----

    def tick(self, timestamp_ms: float) -> Snapshot:
        if self.over or self.paused or self.tutorial is not None:
            self.clock.hold(timestamp_ms)
            self.bus.flush()
            return build_snapshot(self)

        delta, time_scale = self.clock.advance(timestamp_ms)
        self.clock.step(delta)
        self.progression.elapsed_ms += delta

        self._update_timers()
        if not self.lanes.freezes_motion:
            speed = self.effective_speed()
            self._advance_rows(speed * time_scale)
            if not self.warp.reversing:
                self.spawner.advance(speed * time_scale)
            self.spawner.update(speed)
            self._update_displayed_rule()
            self.collision.resolve()
            if self.warp.reversing and self.pool.active_count() == 0:
                logger.debug("warp: no rows left to rewind")
                self.end_warp()

        self.bus.flush()
        return build_snapshot(self)

    def _update_timers(self) -> None:
        if self.warp.update(self.pool.active_rows()):
            self.audio.set_warp_transition(False)
            self.audio.set_reverse_mode(True)
            self.audio.play("spin")
            self.bus.publish(EventKind.WARP_PHASE_CHANGED, phase=WarpPhase.RUN_2)
        self._apply_lane_action(self.lanes.update())
        final = self.effects.update()
        if final is not None:
            self._commit_respin(final)
        self._update_tutorial_countdown()
        self.floating_texts.expire(self.clock.now_ms)

    def _advance_rows(self, distance: float) -> None:
        reverse = self.warp.reversing
        retain = self.warp.retains_rows
        step = distance * self.warp.direction
        for row in self.pool.active_rows():
            row.y += step
            if retain:
                continue
            if (reverse and row.y <= DESPAWN_Y_REVERSE) or (not reverse and row.y >= DESPAWN_Y_FORWARD):
                self.pool.release(row)

    def _update_displayed_rule(self) -> None:
        target = self.effects.spin_rule
        if target is None:
            row = self.upcoming_row()
            target = row.rule if row is not None and row.rule is not None else self.rules.current
        if target == self.displayed_rule:
            return
        self.displayed_rule = target
        if self.effects.spin_rule is None and self.effects.is_active(PowerUpKind.ALIAS):
            self.effects.pick_alias_word(target)
        self.bus.publish(EventKind.RULE_CHANGED, rule=target, text=rule_text(self))
        self.audio.play("objective")
        self.audio.set_rule_theme(target.is_word)

    def _update_tutorial_countdown(self) -> None:
        timer = self._tutorial_timer
        if not timer.running:
            return
        if not timer.expired():
            sec = math.ceil(timer.get())
            if sec != self._countdown_shown:
                self._countdown_shown = sec
                self.bus.publish(EventKind.COUNTDOWN, count=sec)
            return
        timer.reset()
        self._countdown_shown = None
        self.bus.publish(EventKind.COUNTDOWN, count=0)
        self.spawner.resume_after_countdown()

    # ---- hooks used by the resolver and the effects ----

    def add_floating_text(self, lane: int, y: float, text: str, style: str) -> None:
        self.floating_texts.push(lane, y, text, style, self.clock.now_ms)
        self.bus.publish(EventKind.FLOATING_TEXT, lane=lane, y=y, text=text, style=style)

    def begin_tutorial(self, kind: PowerUpKind) -> None:
        self.tutorial = kind
        self.tutorial_seen = True
        self.bus.publish(EventKind.TUTORIAL, kind=kind)
        logger.debug("tutorial for %s", kind.value)

    def enter_warp(self) -> None:
        if self.warp.enter():
            self.bus.publish(EventKind.WARP_PHASE_CHANGED, phase=WarpPhase.RUN_1)
            logger.info("warp entered at score %d", self.progression.score)

    def end_warp(self) -> None:
        self.warp.finish()
        self.pool.release_all()
        self.spawner.prime()
        self.audio.set_reverse_mode(False)
        if self.practice.single_crate is PowerUpKind.WARP:
            self.spawner.state.warp_sets_completed += 1
        self.bus.publish(EventKind.WARP_PHASE_CHANGED, phase=WarpPhase.NONE)
        logger.info("warp finished at score %d", self.progression.score)

    def start_alias_respin(self) -> None:
        self.effects.start_respin(self.displayed_rule)
        self.audio.play("spin")

    def _commit_respin(self, rule: Rule) -> None:
        self.rules.replace(rule)
        lanes = self.progression.lanes
        for row in self.pool.active_rows():
            if row.passed or row.kind is not RowKind.STANDARD:
                continue
            row.rule = rule
            hydrate_standard_row(row.items, rule, lanes, self.rng, row.id)

    def complete_set(self, row: Row) -> None:
        """Bookkeeping once the last row of a set is resolved or passed."""
        prog = self.progression

        if self.warp.on_set_complete(row):
            self.audio.set_warp_transition(True)
            self.bus.publish(EventKind.WARP_PHASE_CHANGED, phase=WarpPhase.PREP_REVERSE)

        if not self.warp.active:
            self._apply_lane_action(self.lanes.request(prog.level))

        self.floating_texts.clear()
        prog.completed_sets += 1
        if prog.completed_sets % SURGE_EVERY_SETS == 0:
            prog.speed = min(MAX_SPEED, INITIAL_SPEED * (1 + SURGE_STEP * prog.level))
            self.add_floating_text(1, 60.0, "VELOCITY SURGE", "surge")
            self.bus.publish(EventKind.SURGE, speed=prog.speed)
            self.audio.play("objective")
            logger.debug("velocity surge: speed=%.3f", prog.speed)

        st = self.spawner.state
        if (
            self.practice.is_active
            and self.practice.single_crate is not PowerUpKind.WARP
            and st.tutorial_crate_spawned
            and row.is_guided
        ):
            st.guided_completed += 1
            if st.guided_completed == GUIDED_SETS:
                self.bus.publish(EventKind.INTRO, message=GUIDANCE_ENDED_MESSAGE)

        if self.effects.clear():
            self.bus.publish(EventKind.EFFECT_CHANGED, effect=PowerUpKind.NONE, wild_pair=())

    # ---- lane / level policy ----

    def _apply_lane_action(self, action: LaneAction) -> None:
        if action is LaneAction.NONE:
            return
        prog = self.progression

        if action is LaneAction.CLEAR_FOR_EXPANSION:
            self._clear_track()
            self._haptic(HAPTIC_LEVEL_MS)
            self.bus.publish(EventKind.COUNTDOWN, count=self.lanes.countdown)
            self.audio.play("objective")
            return
        if action is LaneAction.COUNTDOWN_TICK:
            self.bus.publish(EventKind.COUNTDOWN, count=self.lanes.countdown)
            self.audio.play("objective")
            return
        if action is LaneAction.EXPAND:
            prog.lanes = MAX_LANES
            self.bus.publish(EventKind.COUNTDOWN, count=0)
            self.bus.publish(EventKind.LANES_CHANGED, lanes=prog.lanes)
            return

        if action is LaneAction.CONTRACT:
            prog.lanes = BASE_LANES
            self.player_lane = min(self.player_lane, prog.lanes - 1)
            self._clear_track()
            self.bus.publish(EventKind.LANES_CHANGED, lanes=prog.lanes)
        self.bus.publish(EventKind.LEVEL_CHANGED, level=prog.level, lanes=prog.lanes)
        self.audio.play("levelUp")
        if action is not LaneAction.BEGIN_EXPANSION:
            self._haptic(HAPTIC_LEVEL_MS)

    def _clear_track(self) -> None:
        self.pool.release_all()
        self.spawner.prime(OBSTACLES_PER_SET)

    def _haptic(self, ms: int) -> None:
        if self.settings.haptics:
            self.bus.publish(EventKind.HAPTIC, ms=ms)


__all__ = ["Simulation"]
