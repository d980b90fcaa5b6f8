from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from orbit_reflex.clock import ManualFrameSource
from orbit_reflex.hit_zone import ZoneConfig
from orbit_reflex.persistence import HIGH_SCORE_KEY, MemoryHighScoreStore
from orbit_reflex.progression import ProgressionPolicy
from orbit_reflex.reflex_core import (
    Phase,
    ReflexGame,
    ReflexGameConfig,
    build_reflex_game,
    format_run_summary,
)


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


@dataclass
class RecordingStore:
    stored: int = 0
    writes: list[tuple[str, int]] = field(default_factory=list)

    def load_high_score(self, key: str) -> int:
        return self.stored

    def save_high_score(self, key: str, value: int) -> None:
        self.writes.append((key, value))
        self.stored = value


class ExplodingStore:
    def load_high_score(self, key: str) -> int:
        raise OSError("storage unavailable")

    def save_high_score(self, key: str, value: int) -> None:
        raise OSError("storage unavailable")


def _game(
    *,
    store: object | None = None,
    config: ReflexGameConfig | None = None,
) -> tuple[ReflexGame, ManualFrameSource, FakeClock]:
    clock = FakeClock()
    frames = ManualFrameSource()
    game = build_reflex_game(
        clock=clock,
        store=store if store is not None else MemoryHighScoreStore(),
        frames=frames,
        config=config,
    )
    return game, frames, clock


def _ticks_to_zone(game: ReflexGame) -> int:
    """Tick until the marker is inside the zone; return tick count."""
    n = 0
    while not game.zone.contains(game.entity.angle_deg):
        game.tick()
        n += 1
        assert n < 10_000
    return n


def test_initial_state_is_idle_with_loaded_high_score() -> None:
    game, frames, _ = _game(store=MemoryHighScoreStore({HIGH_SCORE_KEY: 9}))
    assert game.phase is Phase.IDLE
    assert game.entity is None
    assert game.score == 0
    assert game.high_score == 9
    assert frames.active is False
    assert game.run_summary() is None


def test_start_creates_entity_and_subscribes() -> None:
    game, frames, _ = _game()
    game.start()
    assert game.phase is Phase.RUNNING
    assert game.entity is not None
    assert game.entity.angle_deg == 180.0
    assert game.speed == 1.0
    assert frames.active is True


def test_ten_ticks_from_bottom_at_unit_speed() -> None:
    game, frames, _ = _game()
    game.start()
    assert frames.pump(10) == 10
    assert game.entity.angle_deg == pytest.approx(190.0)
    assert game.phase is Phase.RUNNING


def test_hit_keeps_running_and_progresses() -> None:
    game, _, _ = _game()
    game.start()
    _ticks_to_zone(game)

    assert game.action() is True
    assert game.phase is Phase.RUNNING
    assert game.score == 1
    assert game.speed == pytest.approx(1.1)


def test_speed_change_applies_from_next_tick() -> None:
    game, _, _ = _game()
    game.start()
    _ticks_to_zone(game)
    before = game.entity.angle_deg
    game.action()
    # Action itself does not move the marker.
    assert game.entity.angle_deg == before
    game.tick()
    assert game.entity.angular_speed == pytest.approx(1.1)
    assert game.entity.angle_deg == pytest.approx((before + 1.1) % 360.0)


def test_miss_ends_run_and_stops_frame_delivery() -> None:
    game, frames, _ = _game()
    game.start()
    frames.pump(3)

    assert game.action() is False
    assert game.phase is Phase.ENDED
    assert game.score == 0
    assert game.speed == 1.0
    assert game.entity is None
    assert frames.active is False

    # Clock keeps firing: nothing observable changes.
    before = game.snapshot()
    assert frames.pump(50) == 0
    game.tick()
    assert game.snapshot() == before
    assert game.snapshot().angle_deg == pytest.approx(183.0)


def test_invalid_transitions_are_ignored() -> None:
    game, frames, _ = _game()
    game.tick()
    assert game.action() is False
    assert game.phase is Phase.IDLE

    game.start()
    frames.pump(5)
    entity = game.entity
    game.start()  # already running
    assert game.entity is entity
    assert game.entity.angle_deg == pytest.approx(185.0)

    game.action()  # miss
    assert game.action() is False
    assert game.phase is Phase.ENDED


def test_restart_resets_run_but_keeps_high_score() -> None:
    store = RecordingStore()
    game, frames, _ = _game(store=store)
    game.start()
    _ticks_to_zone(game)
    game.action()
    game.action()
    frames.pump(200)
    game.action()
    assert game.phase is Phase.ENDED
    assert game.high_score == 2
    assert store.writes == [(HIGH_SCORE_KEY, 1), (HIGH_SCORE_KEY, 2)]

    game.start()
    assert game.phase is Phase.RUNNING
    assert game.score == 0
    assert game.speed == 1.0
    assert game.entity.angle_deg == 180.0
    assert game.entity.entity_id == 2
    assert game.high_score == 2
    assert game.events() == []


def test_high_score_written_once_per_new_best() -> None:
    store = RecordingStore(stored=2)
    game, _, _ = _game(store=store)
    game.start()
    _ticks_to_zone(game)

    game.action()
    game.action()
    assert store.writes == []  # 1 and 2 do not beat 2

    game.action()
    assert store.writes == [(HIGH_SCORE_KEY, 3)]
    assert game.high_score == 3


def test_score_at_or_below_best_never_writes() -> None:
    store = RecordingStore(stored=5)
    game, frames, _ = _game(store=store)
    game.start()
    _ticks_to_zone(game)
    game.action()
    frames.pump(200)
    game.action()
    assert game.phase is Phase.ENDED
    assert store.writes == []
    assert game.high_score == 5
    assert game.snapshot().new_high_score is False


def test_storage_failures_never_reach_gameplay() -> None:
    game, _, _ = _game(store=ExplodingStore())
    assert game.high_score == 0
    game.start()
    _ticks_to_zone(game)
    assert game.action() is True
    assert game.high_score == 1
    assert game.phase is Phase.RUNNING


def test_snapshot_reports_zone_and_new_high_score() -> None:
    game, frames, _ = _game()
    assert game.snapshot().angle_deg is None

    game.start()
    snap = game.snapshot()
    assert snap.phase is Phase.RUNNING
    assert snap.in_zone is False
    _ticks_to_zone(game)
    assert game.snapshot().in_zone is True

    game.action()
    frames.pump(200)
    game.action()
    snap = game.snapshot()
    assert snap.phase is Phase.ENDED
    assert snap.score == 1
    assert snap.high_score == 1
    assert snap.new_high_score is True
    assert snap.in_zone is False


def test_events_and_summary_use_injected_clock() -> None:
    game, frames, clock = _game()
    clock.advance(100.0)
    game.start()
    n = _ticks_to_zone(game)
    clock.advance(2.5)
    game.action()
    frames.pump(200)
    clock.advance(1.0)
    game.action()

    events = game.events()
    assert [e.in_zone for e in events] == [True, False]
    assert [e.index for e in events] == [0, 1]
    assert events[0].score_after == 1
    assert events[0].at_s == pytest.approx(102.5)
    assert events[1].at_s == pytest.approx(103.5)

    summary = game.run_summary()
    assert summary is not None
    assert summary.score == 1
    assert summary.final_speed == pytest.approx(1.1)
    assert summary.ticks == n + 200
    assert summary.actions == 2
    assert summary.duration_s == pytest.approx(3.5)
    assert summary.new_high_score is True

    clock.advance(10.0)
    assert game.run_summary().duration_s == pytest.approx(3.5)


def test_game_over_results_text() -> None:
    game, frames, clock = _game()
    game.start()
    _ticks_to_zone(game)
    clock.advance(2.5)
    game.action()
    frames.pump(200)
    clock.advance(1.0)
    game.action()

    assert format_run_summary(game.run_summary()) == "Presses: 2  |  Time: 3.5s  |  Top speed: 1.1x"


def test_close_cancels_frames_and_ends_active_run() -> None:
    game, frames, _ = _game()
    game.start()
    frames.pump(2)
    game.close()
    assert frames.active is False
    assert game.phase is Phase.ENDED
    assert frames.pump(10) == 0

    game.close()  # idempotent
    assert game.phase is Phase.ENDED


def test_custom_zone_and_speed_cap() -> None:
    config = ReflexGameConfig(
        zone=ZoneConfig(center_deg=180.0, width_deg=360.0),
        progression=ProgressionPolicy(initial_speed=2.0, speed_increment=1.0, max_speed=3.5),
    )
    game, frames, _ = _game(config=config)
    game.start()
    for _ in range(4):
        frames.pump(7)
        assert game.action() is True
    assert game.score == 4
    assert game.speed == pytest.approx(3.5)


def test_default_config_matches_reference_constants() -> None:
    game: ReflexGame = ReflexGame(
        clock=FakeClock(),
        store=MemoryHighScoreStore(),
        frames=ManualFrameSource(),
    )
    cfg = game.config
    assert cfg.zone.center_deg == 0.0
    assert cfg.zone.width_deg == 30.0
    assert cfg.zone.orbit_radius == 120.0
    assert cfg.zone.entity_radius == 16.0
    assert cfg.core_radius == 60.0
    assert cfg.initial_angle_deg == 180.0
    assert cfg.progression.initial_speed == 1.0
    assert cfg.progression.speed_increment == 0.1
    assert cfg.progression.max_speed is None
    assert cfg.high_score_key == "circle-reflex-high-score"
