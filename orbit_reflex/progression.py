from __future__ import annotations

import math
from dataclasses import dataclass

INITIAL_SPEED = 1.0  # degrees per frame
SPEED_INCREMENT = 0.1


@dataclass(frozen=True, slots=True)
class ProgressionPolicy:
    """Linear speed-up per hit. ``max_speed=None`` means uncapped."""

    initial_speed: float = INITIAL_SPEED
    speed_increment: float = SPEED_INCREMENT
    max_speed: float | None = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.initial_speed) or self.initial_speed <= 0:
            raise ValueError("initial_speed must be > 0")
        if not math.isfinite(self.speed_increment) or self.speed_increment <= 0:
            raise ValueError("speed_increment must be > 0")
        if self.max_speed is not None and not (self.max_speed >= self.initial_speed):
            raise ValueError("max_speed must be >= initial_speed")

    def next_speed(self, speed: float) -> float:
        out = float(speed) + self.speed_increment
        if self.max_speed is not None and out > self.max_speed:
            return max(float(speed), float(self.max_speed))
        return out


@dataclass(frozen=True, slots=True)
class HitOutcome:
    score: int
    speed: float
    high_score_updated: bool


def on_hit(
    score: int,
    speed: float,
    *,
    high_score: int,
    policy: ProgressionPolicy | None = None,
) -> HitOutcome:
    p = policy or ProgressionPolicy()
    new_score = int(score) + 1
    return HitOutcome(
        score=new_score,
        speed=p.next_speed(speed),
        high_score_updated=new_score > int(high_score),
    )
