"""Tests for Simulation.tick: scoring, lives, sets, warp, lanes and pausing."""
from __future__ import annotations

import random
from typing import List

import pytest

from swerve.constants import COLOR_ALIASES, HITBOX_THRESHOLD, OBSTACLES_PER_SET, PLAYER_Y_POS
from swerve.enums import PowerUpKind, PracticeMode, RuleType
from swerve.events import EventKind
from swerve.mods import EFFECTS, all_power_ups
from swerve.models import LanePhase, Row, RowKind, WarpPhase
from swerve.pool import min_pool_size
from swerve.settings import GameSettings, PracticeConfig
from swerve.simulation import GUIDANCE_ENDED_MESSAGE, Simulation

FRAME_MS = 16.67


def of_kind(events: List, kind: EventKind) -> List[dict]:
    return [data for k, data in events if k is kind]


def wrong_lane(row: Row, lanes: int) -> int:
    return next(i for i in range(lanes) if not row.items[i].is_correct)


def lane_with(row: Row, kind: PowerUpKind) -> int:
    return next(i for i, item in enumerate(row.items) if item.effect is kind)


def steer_for_warp(sim: Simulation) -> None:
    """Face the next row in the direction of travel: correct lane, or WARP on crates."""
    if sim.warp.reversing:
        ahead = [r for r in sim.pool.active_rows() if not r.passed and r.y >= PLAYER_Y_POS - HITBOX_THRESHOLD]
        row = min(ahead, key=lambda r: r.y, default=None)
    else:
        ahead = [r for r in sim.pool.active_rows() if not r.passed and r.y <= PLAYER_Y_POS + HITBOX_THRESHOLD]
        row = max(ahead, key=lambda r: r.y, default=None)
    if row is None:
        return
    if row.kind is RowKind.CRATE:
        lanes = range(sim.progression.lanes)
        sim.set_player_lane(next((i for i in lanes if row.items[i].effect is PowerUpKind.WARP), sim.player_lane))
    else:
        sim.set_player_lane(row.correct_lane())


class TestStart:
    def test_initial_state(self, make_sim) -> None:
        sim = make_sim()
        snap = sim.snapshot()
        assert (snap.score, snap.level, snap.lives, snap.lanes) == (0, 1, 0, 3)
        assert snap.player_lane == 1
        assert snap.speed == pytest.approx(0.35)
        assert snap.rule == sim.rules.current
        assert not snap.game_over

    def test_initial_rule_type_varies_between_runs(self) -> None:
        types = {Simulation(rng=random.Random(seed)).rules.current.type for seed in range(30)}
        assert types == {RuleType.MATCH_COLOR, RuleType.MATCH_WORD}

    def test_level_announced_on_first_flush(self, make_sim, recorder) -> None:
        sim = make_sim()
        events = recorder(sim)
        sim.tick(0.0)
        assert of_kind(events, EventKind.LEVEL_CHANGED) == [{"level": 1, "lanes": 3}]

    def test_first_spawn_is_immediate(self, make_sim) -> None:
        sim = make_sim(quiet=False)
        sim.tick(0.0)
        assert sim.pool.active_count() == 1

    def test_four_lane_practice(self, make_sim) -> None:
        sim = make_sim(practice=PracticeConfig(PracticeMode.FOUR_LANES))
        assert sim.progression.lanes == 4
        assert sim.lanes.locked


class TestScoring:
    def test_wrong_hit_without_lives_ends_run(self, make_sim, place_row, recorder) -> None:
        sim = make_sim()
        events = recorder(sim)
        row = place_row(sim, PLAYER_Y_POS)
        sim.player_lane = wrong_lane(row, 3)

        snap = sim.tick(0.0)

        assert snap.game_over and sim.over
        assert of_kind(events, EventKind.GAME_OVER) == [{"final_score": 0, "elapsed_ms": 0.0}]
        assert of_kind(events, EventKind.HAPTIC) == [{"ms": 800}]

        sim.tick(500.0)
        assert sim.progression.elapsed_ms == 0.0
        assert len(of_kind(events, EventKind.GAME_OVER)) == 1

    def test_wrong_hit_with_life_is_saved(self, make_sim, place_row, recorder) -> None:
        sim = make_sim(lives=1)
        events = recorder(sim)
        row = place_row(sim, PLAYER_Y_POS)
        sim.player_lane = wrong_lane(row, 3)
        sim.tick(0.0)
        assert not sim.over
        assert sim.progression.lives == 0
        assert row.passed
        assert of_kind(events, EventKind.LIFE_LOST) == [{"lives": 0}]
        assert [ft.text for ft in sim.floating_texts] == ["SAVED!"]

    def test_correct_hit_scores(self, make_sim, place_row, recorder) -> None:
        sim = make_sim()
        events = recorder(sim)
        row = place_row(sim, PLAYER_Y_POS)
        sim.player_lane = row.correct_lane()
        sim.tick(0.0)
        assert sim.progression.score == 1
        assert row.passed and row.items[row.correct_lane()].is_hit
        assert of_kind(events, EventKind.SCORE) == [{"score": 1, "points": 1}]

    def test_fifty_points_grants_one_life(self, make_sim, place_row, recorder) -> None:
        sim = make_sim()
        events = recorder(sim)
        sim.progression.score = 49
        row = place_row(sim, PLAYER_Y_POS)
        sim.player_lane = row.correct_lane()
        sim.tick(0.0)
        assert sim.progression.score == 50
        assert sim.progression.lives == 1
        assert sim.progression.level == 2

        row = place_row(sim, PLAYER_Y_POS)
        sim.player_lane = row.correct_lane()
        sim.tick(FRAME_MS)
        assert sim.progression.score == 51
        assert sim.progression.lives == 1
        assert of_kind(events, EventKind.LIFE_GAINED) == [{"lives": 1}]

    def test_row_outside_window_is_untouched(self, make_sim, place_row) -> None:
        sim = make_sim()
        row = place_row(sim, 60.0)
        sim.player_lane = wrong_lane(row, 3)
        sim.tick(0.0)
        assert not sim.over and not row.passed

    def test_row_beyond_window_is_passed(self, make_sim, place_row) -> None:
        sim = make_sim()
        row = place_row(sim, PLAYER_Y_POS + 6)
        sim.tick(0.0)
        assert row.passed
        assert sim.progression.score == 0
        assert not sim.over

    def test_rows_despawn_past_bottom(self, make_sim, place_row) -> None:
        sim = make_sim()
        row = place_row(sim, 119.9)
        row.passed = True
        sim.tick(0.0)
        sim.tick(FRAME_MS)
        assert not row.active


class TestCrates:
    def test_pickup_sets_effect_and_scoring(self, make_sim, place_row, recorder) -> None:
        sim = make_sim()
        events = recorder(sim)
        keep = {PowerUpKind.SPEED, PowerUpKind.DRUNK}
        crate = place_row(sim, PLAYER_Y_POS, crate=True, disabled=[k for k in all_power_ups() if k not in keep])
        sim.player_lane = lane_with(crate, PowerUpKind.SPEED)
        sim.tick(0.0)

        assert sim.effects.active is PowerUpKind.SPEED
        assert sim.effective_speed() == pytest.approx(0.35 * 1.5)
        assert of_kind(events, EventKind.EFFECT_CHANGED) == [{"effect": PowerUpKind.SPEED, "wild_pair": ()}]
        assert sim.progression.score == 0

        row = place_row(sim, PLAYER_Y_POS)
        sim.player_lane = row.correct_lane()
        sim.tick(FRAME_MS)
        assert sim.progression.score == 2

    def test_empty_crate_lane_does_nothing(self, make_sim, place_row) -> None:
        sim = make_sim()
        crate = place_row(sim, PLAYER_Y_POS, crate=True)
        sim.player_lane = next(i for i in range(3) if crate.items[i].is_empty)
        sim.tick(0.0)
        assert sim.effects.active is PowerUpKind.NONE
        assert not crate.passed
        crate.y = PLAYER_Y_POS + 5.5
        sim.tick(FRAME_MS)
        assert crate.passed
        assert not sim.over

    def test_set_completion_clears_effect(self, make_sim, place_row) -> None:
        sim = make_sim()
        sim.effects.pickup(PowerUpKind.FOG, RuleType.MATCH_COLOR)
        row = place_row(sim, PLAYER_Y_POS, set_index=5)
        sim.player_lane = row.correct_lane()
        sim.tick(0.0)
        assert sim.progression.score == 3
        assert sim.progression.completed_sets == 1
        assert sim.effects.active is PowerUpKind.NONE

    def test_dyslexia_mirrors_lane_choice(self, make_sim) -> None:
        sim = make_sim()
        sim.effects.pickup(PowerUpKind.DYSLEXIA, RuleType.MATCH_COLOR)
        assert sim.set_player_lane(0) == 2
        assert sim.set_player_lane(2) == 0

    def test_alias_respin_rehydrates_upcoming_rows(self, make_sim, place_row) -> None:
        sim = make_sim()
        base = sim.rules.current
        ahead = place_row(sim, 30.0)
        behind = place_row(sim, 90.0)
        behind.passed = True

        sim.effects.pickup(PowerUpKind.ALIAS, RuleType.MATCH_COLOR)
        sim.start_alias_respin()
        sim.tick(0.0)
        assert sim.displayed_rule == sim.effects.spin_rule
        sim.tick(200.0)
        assert sim.effects.spinning
        sim.tick(400.0)

        final = sim.rules.current
        assert not sim.effects.spinning
        assert final.type is RuleType.MATCH_COLOR
        assert final.target_color is not base.target_color
        assert ahead.rule == final
        assert ahead.items[ahead.correct_lane()].display_color is final.target_color
        assert behind.rule == base
        assert sim.displayed_rule == final
        assert sim.snapshot().rule_text in COLOR_ALIASES[final.target_color.value]

    def test_wild_with_alias_starts_respin(self, make_sim) -> None:
        sim = make_sim()
        sim.effects.active = PowerUpKind.WILD
        sim.effects.wild_pair = (PowerUpKind.ALIAS, PowerUpKind.FOG)
        EFFECTS.get(PowerUpKind.WILD).on_pickup(sim)
        assert sim.effects.spinning
        assert sim.effects.is_active(PowerUpKind.ALIAS)


class TestSets:
    def test_third_set_surges_speed(self, make_sim, place_row, recorder) -> None:
        sim = make_sim()
        events = recorder(sim)
        sim.progression.score = 60
        sim.progression.completed_sets = 2
        row = place_row(sim, PLAYER_Y_POS, set_index=5)
        sim.player_lane = row.correct_lane()
        sim.tick(0.0)

        assert sim.progression.completed_sets == 3
        assert sim.progression.speed == pytest.approx(0.35 * (1 + 0.15 * 2))
        assert of_kind(events, EventKind.SURGE) == [{"speed": pytest.approx(0.455)}]
        assert [ft.text for ft in sim.floating_texts] == ["VELOCITY SURGE"]

    def test_surge_is_capped(self, make_sim, place_row) -> None:
        sim = make_sim()
        sim.progression.score = 1000
        sim.progression.completed_sets = 2
        sim.complete_set(place_row(sim, 50.0, set_index=5))
        assert sim.progression.speed == pytest.approx(0.9)

    def test_speed_never_resets_between_surges(self, make_sim, place_row) -> None:
        sim = make_sim()
        sim.progression.score = 100
        sim.progression.completed_sets = 2
        sim.complete_set(place_row(sim, 50.0, set_index=5))
        surged = sim.progression.speed
        sim.complete_set(place_row(sim, 50.0, set_index=5))
        assert sim.progression.speed == surged

    def test_missed_final_row_still_completes_set(self, make_sim, place_row) -> None:
        sim = make_sim()
        place_row(sim, PLAYER_Y_POS + 6, set_index=5)
        sim.tick(0.0)
        assert sim.progression.completed_sets == 1


class TestLanes:
    def test_expansion_at_level_three(self, make_sim, place_row, recorder) -> None:
        sim = make_sim()
        events = recorder(sim)
        sim.progression.score = 99
        row = place_row(sim, PLAYER_Y_POS, set_index=5)
        sim.player_lane = row.correct_lane()
        sim.tick(0.0)
        assert sim.progression.level == 3
        assert sim.lanes.phase is LanePhase.ANNOUNCING

        sim.tick(1000.0)
        assert sim.lanes.phase is LanePhase.WARNING
        assert sim.pool.active_count() == 0
        assert sim.snapshot().countdown_text == "3"
        assert sim.set_player_lane(0) == sim.player_lane == row.correct_lane()

        for t in (2000.0, 3000.0, 4000.0):
            sim.tick(t)

        assert sim.progression.lanes == 4
        assert sim.lanes.phase is LanePhase.STABLE
        assert [d["count"] for d in of_kind(events, EventKind.COUNTDOWN)] == [3, 2, 1, 0]
        assert of_kind(events, EventKind.LANES_CHANGED) == [{"lanes": 4}]
        spawned = list(sim.pool.active_rows())
        assert len(spawned) == 1 and spawned[0].kind is RowKind.CRATE

    def test_contraction_clamps_player(self, make_sim, place_row, recorder) -> None:
        sim = make_sim()
        events = recorder(sim)
        sim.lanes.stage_level = 3
        sim.progression.lanes = 4
        sim.progression.score = 150
        sim.player_lane = 3
        row = place_row(sim, 50.0, set_index=5)
        sim.complete_set(row)
        sim.tick(0.0)
        assert sim.progression.lanes == 3
        assert sim.player_lane == 2
        assert of_kind(events, EventKind.LANES_CHANGED) == [{"lanes": 3}]

    def test_four_lane_practice_keeps_lanes(self, make_sim, place_row) -> None:
        sim = make_sim(practice=PracticeConfig(PracticeMode.FOUR_LANES))
        sim.progression.score = 100
        sim.complete_set(place_row(sim, 50.0, set_index=5))
        assert sim.progression.lanes == 4
        assert sim.lanes.phase is LanePhase.STABLE
        assert sim.lanes.stage_level == 3

    def test_lane_clamping(self, make_sim) -> None:
        sim = make_sim()
        assert sim.set_player_lane(7) == 2
        assert sim.set_player_lane(-3) == 0
        assert sim.shift_player_lane(-1) == 0
        assert sim.shift_player_lane(+5) == 2


class TestWarp:
    def test_round_trip(self, make_sim, place_row, recorder) -> None:
        sim = make_sim()
        events = recorder(sim)
        first = place_row(sim, 100.0, set_index=1)
        first.passed = True
        first.items[first.correct_lane()].is_hit = True
        last = place_row(sim, PLAYER_Y_POS, set_index=5)

        sim.enter_warp()
        sim.player_lane = last.correct_lane()
        sim.tick(0.0)
        assert sim.warp.phase is WarpPhase.PREP_REVERSE
        assert sim.progression.score == 1
        assert first.active and last.active

        sim.tick(1000.0)
        assert sim.warp.phase is WarpPhase.RUN_2
        assert not any(item.is_hit for item in first.items)
        assert not first.passed
        assert sim.progression.score == 7
        snap = sim.snapshot()
        assert snap.rule_hidden and snap.rule_text == "???"
        assert all(r.ghost for r in snap.rows)

        y_before = first.y
        sim.player_lane = first.correct_lane()
        t = 1000.0
        for _ in range(60):
            t += 1000.0
            sim.tick(t)
            if sim.warp.phase is WarpPhase.NONE:
                break
            assert first.y < y_before
            y_before = first.y

        assert sim.warp.phase is WarpPhase.NONE
        assert sim.progression.score == 13
        assert sim.pool.active_count() == 0
        phases = [d["phase"] for d in of_kind(events, EventKind.WARP_PHASE_CHANGED)]
        assert phases == [WarpPhase.RUN_1, WarpPhase.PREP_REVERSE, WarpPhase.RUN_2, WarpPhase.NONE]

    def test_no_spawns_while_rewinding(self, make_sim, place_row) -> None:
        sim = make_sim()
        place_row(sim, 50.0, set_index=3)
        sim.warp.phase = WarpPhase.RUN_2
        sim.spawner.state.accumulator = 1e6
        sim.tick(0.0)
        sim.tick(FRAME_MS)
        assert sim.pool.active_count() == 1

    def test_empty_rewind_finishes(self, make_sim) -> None:
        sim = make_sim()
        sim.warp.phase = WarpPhase.RUN_2
        sim.tick(0.0)
        assert sim.warp.phase is WarpPhase.NONE

    def test_pool_too_small_for_a_warp_set_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            Simulation(rng=random.Random(3), pool_size=min_pool_size(OBSTACLES_PER_SET) - 1)

    def test_warp_completes_with_smallest_pool(self, recorder) -> None:
        toggles = {kind: kind is PowerUpKind.WARP for kind in all_power_ups()}
        sim = Simulation(
            settings=GameSettings(starting_lives=9, crate_toggles=toggles),
            rng=random.Random(3),
            pool_size=min_pool_size(OBSTACLES_PER_SET),
        )
        events = recorder(sim)
        t = 0.0
        for _ in range(6000):
            steer_for_warp(sim)
            sim.tick(t)
            t += FRAME_MS
            if sim.over:
                break
        phases = [d["phase"] for d in of_kind(events, EventKind.WARP_PHASE_CHANGED)]
        assert phases[:4] == [WarpPhase.RUN_1, WarpPhase.PREP_REVERSE, WarpPhase.RUN_2, WarpPhase.NONE]


class TestPause:
    def test_pause_has_no_catch_up(self, make_sim, place_row) -> None:
        sim = make_sim()
        row = place_row(sim, 10.0)
        sim.tick(0.0)
        sim.tick(FRAME_MS)
        assert row.y == pytest.approx(10.35)

        sim.pause()
        for t in (2000.0, 5000.0, 9000.0):
            assert sim.tick(t).paused
        assert row.y == pytest.approx(10.35)
        sim.resume()
        sim.tick(9000.0 + FRAME_MS)

        assert row.y == pytest.approx(10.7)
        assert sim.progression.elapsed_ms == pytest.approx(2 * FRAME_MS)

    def test_pause_ignores_lane_input(self, make_sim) -> None:
        sim = make_sim()
        sim.pause()
        assert sim.set_player_lane(0) == 1

    def test_pause_haptics(self, recorder) -> None:
        sim = Simulation(settings=GameSettings(haptics=True), rng=random.Random(1))
        events = recorder(sim)
        sim.pause()
        sim.resume()
        sim.tick(0.0)
        assert of_kind(events, EventKind.HAPTIC) == [{"ms": 50}, {"ms": 50}]

    def test_no_haptics_when_disabled(self, recorder) -> None:
        sim = Simulation(settings=GameSettings(haptics=False), rng=random.Random(1))
        events = recorder(sim)
        sim.pause()
        sim.tick(0.0)
        assert of_kind(events, EventKind.HAPTIC) == []


class TestPractice:
    def test_single_crate_tutorial_flow(self, make_sim, recorder) -> None:
        practice = PracticeConfig(PracticeMode.SINGLE_CRATE, PowerUpKind.SPEED)
        sim = make_sim(quiet=False, practice=practice)
        events = recorder(sim)
        sim.tick(0.0)
        crate = next(sim.pool.active_rows())
        assert crate.kind is RowKind.CRATE
        assert of_kind(events, EventKind.INTRO) == [{"message": "PRACTICE: SPEED CRATE"}]

        crate.y = PLAYER_Y_POS
        sim.player_lane = lane_with(crate, PowerUpKind.SPEED)
        sim.tick(FRAME_MS)
        assert sim.tutorial is PowerUpKind.SPEED
        assert sim.snapshot().awaiting_tutorial is PowerUpKind.SPEED
        assert of_kind(events, EventKind.TUTORIAL) == [{"kind": PowerUpKind.SPEED}]

        elapsed = sim.progression.elapsed_ms
        sim.tick(1000.0)
        assert sim.progression.elapsed_ms == elapsed

        assert sim.dismiss_tutorial()
        t = 1000.0 + FRAME_MS
        sim.tick(t)
        assert sim.spawner.blocked()
        for _ in range(3):
            t += 1000.0
            sim.tick(t)

        assert [d["count"] for d in of_kind(events, EventKind.COUNTDOWN)] == [3, 2, 1, 0]
        newest = max(sim.pool.active_rows(), key=lambda r: r.id)
        assert newest.kind is RowKind.STANDARD
        assert newest.set_index == 1
        assert newest.is_guided
        assert sim.snapshot().guided_lane == newest.correct_lane()

    def test_guidance_ended_message(self, make_sim, place_row, recorder) -> None:
        sim = make_sim(practice=PracticeConfig(PracticeMode.SINGLE_CRATE, PowerUpKind.FOG))
        events = recorder(sim)
        sim.spawner.state.tutorial_crate_spawned = True
        for _ in range(3):
            row = place_row(sim, 50.0, set_index=5)
            row.is_guided = True
            sim.complete_set(row)
            sim.pool.release(row)
        sim.tick(0.0)
        assert of_kind(events, EventKind.INTRO)[-1] == {"message": GUIDANCE_ENDED_MESSAGE}

    def test_color_only_autopilot(self, make_sim) -> None:
        sim = make_sim(quiet=False, lives=0, practice=PracticeConfig(PracticeMode.COLOR_ONLY))
        t = 0.0
        for _ in range(3000):
            row = sim.upcoming_row()
            if row is not None:
                sim.set_player_lane(row.correct_lane())
            sim.tick(t)
            t += FRAME_MS
            for active in sim.pool.active_rows():
                assert active.kind is RowKind.STANDARD
                assert active.rule.type is RuleType.MATCH_COLOR
        assert not sim.over
        assert sim.progression.completed_sets >= 2


class TestInvariants:
    def test_random_play(self) -> None:
        rng = random.Random(99)
        sim = Simulation(settings=GameSettings(starting_lives=9), rng=random.Random(5))
        capacity = len(sim.pool)
        last_score = 0
        t = 0.0
        for _ in range(4000):
            if rng.random() < 0.1:
                sim.set_player_lane(rng.randrange(4))
            snap = sim.tick(t)
            t += FRAME_MS
            assert sim.pool.active_count() <= capacity
            assert len(snap.rows) == sim.pool.active_count()
            assert snap.level == snap.score // 50 + 1
            assert snap.score >= last_score
            assert snap.lives >= 0
            assert 0 <= snap.player_lane < snap.lanes
            last_score = snap.score
            if snap.game_over:
                break
            if snap.awaiting_tutorial is not None:
                sim.dismiss_tutorial()
