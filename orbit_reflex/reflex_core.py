from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from .clock import Clock, FrameSource
from .hit_zone import ZoneConfig
from .motion import MovingEntity, advance, normalize_degrees
from .persistence import HIGH_SCORE_KEY, HighScoreStore
from .progression import ProgressionPolicy, on_hit

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    ENDED = "ended"


@dataclass(frozen=True, slots=True)
class ReflexGameConfig:
    zone: ZoneConfig = field(default_factory=ZoneConfig)
    progression: ProgressionPolicy = field(default_factory=ProgressionPolicy)
    initial_angle_deg: float = 180.0  # bottom of the orbit
    core_radius: float = 60.0  # rendering only
    high_score_key: str = HIGH_SCORE_KEY


@dataclass(frozen=True, slots=True)
class ActionEvent:
    index: int
    angle_deg: float
    in_zone: bool
    score_after: int
    speed_after: float
    at_s: float


@dataclass(frozen=True, slots=True)
class RunSummary:
    score: int
    final_speed: float
    ticks: int
    actions: int
    duration_s: float
    new_high_score: bool


def format_run_summary(summary: RunSummary) -> str:
    """One-line results text for the game-over screen."""

    return (
        f"Presses: {summary.actions}  |  Time: {summary.duration_s:.1f}s  |  "
        f"Top speed: {summary.final_speed:.1f}x"
    )


@dataclass(frozen=True, slots=True)
class RunSnapshot:
    """View model for the UI (pure data)."""

    phase: Phase
    score: int
    speed: float
    high_score: int
    angle_deg: float | None  # last known marker angle; None before the first run
    in_zone: bool
    new_high_score: bool


class ReflexGame:
    """Orbit reflex state machine: idle -> running -> ended -> running -> ...

    - Frames arrive through the injected FrameSource; the game subscribes on
      start() and cancels on a miss or close().
    - Time (event stamps, run duration) is entirely via injected Clock.
    - Invalid calls for the current phase are ignored.
    """

    def __init__(
        self,
        *,
        clock: Clock,
        store: HighScoreStore,
        frames: FrameSource,
        config: ReflexGameConfig | None = None,
    ) -> None:
        self._cfg = config or ReflexGameConfig()
        self._clock = clock
        self._store = store
        self._frames = frames

        self._phase = Phase.IDLE
        self._entity: MovingEntity | None = None
        self._score = 0
        self._speed = self._cfg.progression.initial_speed
        self._high_score = self._load_high_score()

        self._next_entity_id = 1
        self._last_angle_deg: float | None = None
        self._runs = 0
        self._ticks = 0
        self._events: list[ActionEvent] = []
        self._started_at_s: float | None = None
        self._ended_at_s: float | None = None
        self._beat_high_score = False

    @property
    def config(self) -> ReflexGameConfig:
        return self._cfg

    @property
    def zone(self) -> ZoneConfig:
        return self._cfg.zone

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def entity(self) -> MovingEntity | None:
        return self._entity

    @property
    def score(self) -> int:
        return self._score

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def high_score(self) -> int:
        return self._high_score

    def events(self) -> list[ActionEvent]:
        return list(self._events)

    def start(self) -> None:
        if self._phase is Phase.RUNNING:
            return

        self._score = 0
        self._speed = self._cfg.progression.initial_speed
        self._entity = MovingEntity(
            entity_id=self._next_entity_id,
            angle_deg=normalize_degrees(self._cfg.initial_angle_deg),
            angular_speed=self._speed,
        )
        self._next_entity_id += 1
        self._last_angle_deg = self._entity.angle_deg
        self._runs += 1
        self._ticks = 0
        self._events = []
        self._started_at_s = self._clock.now()
        self._ended_at_s = None
        self._beat_high_score = False

        self._phase = Phase.RUNNING
        self._frames.request_advance(self.tick)
        logger.debug("run %d started (high score %d)", self._runs, self._high_score)

    def tick(self) -> None:
        if self._phase is not Phase.RUNNING or self._entity is None:
            return
        # Speed changes apply from the next tick on.
        current = MovingEntity(
            entity_id=self._entity.entity_id,
            angle_deg=self._entity.angle_deg,
            angular_speed=self._speed,
        )
        self._entity = advance(current)
        self._last_angle_deg = self._entity.angle_deg
        self._ticks += 1

    def action(self) -> bool:
        """Register a player action. Returns True on a hit."""

        if self._phase is not Phase.RUNNING or self._entity is None:
            return False

        angle = self._entity.angle_deg
        hit = self._cfg.zone.contains(angle)

        if hit:
            outcome = on_hit(
                self._score,
                self._speed,
                high_score=self._high_score,
                policy=self._cfg.progression,
            )
            self._score = outcome.score
            self._speed = outcome.speed
            if outcome.high_score_updated:
                self._high_score = outcome.score
                self._beat_high_score = True
                self._save_high_score(outcome.score)
        else:
            self._end_run()

        self._events.append(
            ActionEvent(
                index=len(self._events),
                angle_deg=angle,
                in_zone=hit,
                score_after=self._score,
                speed_after=self._speed,
                at_s=self._clock.now(),
            )
        )
        return hit

    def close(self) -> None:
        """Tear down: stop frame delivery and end any active run."""

        self._frames.cancel_advance()
        if self._phase is Phase.RUNNING:
            self._end_run()

    def run_summary(self) -> RunSummary | None:
        if self._started_at_s is None:
            return None
        end_s = self._clock.now() if self._ended_at_s is None else self._ended_at_s
        return RunSummary(
            score=self._score,
            final_speed=self._speed,
            ticks=self._ticks,
            actions=len(self._events),
            duration_s=max(0.0, end_s - self._started_at_s),
            new_high_score=self._beat_high_score,
        )

    def snapshot(self) -> RunSnapshot:
        angle = self._last_angle_deg
        return RunSnapshot(
            phase=self._phase,
            score=self._score,
            speed=self._speed,
            high_score=self._high_score,
            angle_deg=angle,
            in_zone=self._phase is Phase.RUNNING and angle is not None and self._cfg.zone.contains(angle),
            new_high_score=self._phase is Phase.ENDED and self._beat_high_score,
        )

    def _end_run(self) -> None:
        self._frames.cancel_advance()
        self._phase = Phase.ENDED
        self._entity = None
        self._ended_at_s = self._clock.now()
        logger.debug("run %d ended: score=%d speed=%.2f", self._runs, self._score, self._speed)

    def _load_high_score(self) -> int:
        try:
            return max(0, int(self._store.load_high_score(self._cfg.high_score_key)))
        except Exception:
            logger.warning("High score load failed; starting from 0", exc_info=True)
            return 0

    def _save_high_score(self, value: int) -> None:
        try:
            self._store.save_high_score(self._cfg.high_score_key, value)
        except Exception:
            logger.warning("High score write discarded", exc_info=True)


def build_reflex_game(
    *,
    clock: Clock,
    store: HighScoreStore,
    frames: FrameSource,
    config: ReflexGameConfig | None = None,
) -> ReflexGame:
    return ReflexGame(clock=clock, store=store, frames=frames, config=config)
