"""Pygame UI shell for Orbit Reflex.

A marker orbits the core; press while it is inside the green zone. Each hit
speeds it up, a miss ends the run.

Deterministic timing/scoring/state lives in orbit_reflex/* (core modules).
This module only maps input to the core and draws its snapshot.
"""

from __future__ import annotations

import math
import os
from collections.abc import Callable
from typing import Protocol

import pygame

from .clock import ManualFrameSource, RealClock
from .hit_zone import ZoneConfig
from .motion import orbit_position
from .persistence import HighScoreStore, JsonHighScoreStore
from .progression import ProgressionPolicy
from .reflex_core import (
    Phase,
    ReflexGame,
    ReflexGameConfig,
    RunSnapshot,
    build_reflex_game,
    format_run_summary,
)

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60

MAX_SPEED_ENV = "ORBIT_REFLEX_MAX_SPEED"

BG = (8, 10, 26)
TEXT_MAIN = (238, 245, 255)
TEXT_MUTED = (150, 160, 190)
CORE_COLOR = (124, 92, 255)
ACCENT_COLOR = (255, 196, 64)
MARKER_COLOR = (232, 236, 248)
ZONE_COLOR = (52, 211, 120)
ZONE_FILL = (22, 78, 56)
ORBIT_COLOR = (70, 78, 110)
DANGER_COLOR = (240, 82, 82)

ZONE_BAND_PX = 10

_START_KEYS = (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def update(self) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


class App:
    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._screen: Screen | None = None
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    def show(self, screen: Screen) -> None:
        self._screen = screen

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if self._screen is not None:
            self._screen.handle_event(event)

    def update(self) -> None:
        if self._screen is not None:
            self._screen.update()

    def render(self) -> None:
        if self._screen is not None:
            self._screen.render(self._surface)


class ReflexScreen:
    def __init__(self, app: App, *, game: ReflexGame, frames: ManualFrameSource) -> None:
        self._app = app
        self._game = game
        self._frames = frames
        self._title_font = pygame.font.Font(None, 84)
        self._big_font = pygame.font.Font(None, 64)
        self._font = pygame.font.Font(None, 32)
        self._hint_font = pygame.font.Font(None, 22)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                self._app.quit()
                return
            self._press(restart_ok=event.key in _START_KEYS)
            return

        if event.type == pygame.MOUSEBUTTONDOWN:
            self._press(restart_ok=True)
            return

        if event.type == pygame.JOYBUTTONDOWN:
            # Common mapping: 0 = select.
            self._press(restart_ok=event.button == 0)

    def _press(self, *, restart_ok: bool) -> None:
        if self._game.phase is Phase.RUNNING:
            self._game.action()
        elif restart_ok:
            self._game.start()

    def update(self) -> None:
        # At most one tick per frame, after this frame's input.
        self._frames.pump(1)

    def render(self, surface: pygame.Surface) -> None:
        surface.fill(BG)
        snap = self._game.snapshot()
        if snap.phase is Phase.IDLE:
            self._render_start(surface, snap)
        elif snap.phase is Phase.RUNNING:
            self._render_field(surface, snap)
        else:
            self._render_game_over(surface, snap)

    def _render_start(self, surface: pygame.Surface, snap: RunSnapshot) -> None:
        w, h = surface.get_size()
        cx = w // 2
        title = self._title_font.render("Reflex", True, CORE_COLOR)
        surface.blit(title, title.get_rect(center=(cx, h // 2 - 110)))
        sub = self._font.render("Press when the marker enters the target zone", True, TEXT_MUTED)
        surface.blit(sub, sub.get_rect(center=(cx, h // 2 - 50)))
        label = self._hint_font.render("High Score", True, TEXT_MUTED)
        surface.blit(label, label.get_rect(center=(cx, h // 2 + 10)))
        value = self._big_font.render(str(snap.high_score), True, ACCENT_COLOR)
        surface.blit(value, value.get_rect(center=(cx, h // 2 + 50)))
        self._render_footer(surface, "Enter/Space/Click: Start  |  Esc: Quit")

    def _render_game_over(self, surface: pygame.Surface, snap: RunSnapshot) -> None:
        w, h = surface.get_size()
        cx = w // 2
        title = self._big_font.render("Game Over", True, DANGER_COLOR)
        surface.blit(title, title.get_rect(center=(cx, h // 2 - 130)))
        label = self._hint_font.render("Final Score", True, TEXT_MUTED)
        surface.blit(label, label.get_rect(center=(cx, h // 2 - 75)))
        score = self._big_font.render(str(snap.score), True, CORE_COLOR)
        surface.blit(score, score.get_rect(center=(cx, h // 2 - 35)))
        if snap.new_high_score:
            flag = self._font.render("New High Score!", True, ACCENT_COLOR)
            surface.blit(flag, flag.get_rect(center=(cx, h // 2 + 10)))
        label = self._hint_font.render("High Score", True, TEXT_MUTED)
        surface.blit(label, label.get_rect(center=(cx, h // 2 + 50)))
        best = self._font.render(str(snap.high_score), True, ACCENT_COLOR)
        surface.blit(best, best.get_rect(center=(cx, h // 2 + 80)))
        summary = self._game.run_summary()
        if summary is not None:
            stats = self._hint_font.render(format_run_summary(summary), True, TEXT_MUTED)
            surface.blit(stats, stats.get_rect(center=(cx, h // 2 + 120)))
        self._render_footer(surface, "Enter/Space/Click: Play Again  |  Esc: Quit")

    def _render_field(self, surface: pygame.Surface, snap: RunSnapshot) -> None:
        w, h = surface.get_size()
        center = (w // 2, h // 2)
        zone = self._game.zone

        _draw_dashed_orbit(surface, center, zone.orbit_radius)
        _draw_zone_band(surface, center, zone)
        pygame.draw.circle(surface, CORE_COLOR, center, int(self._game.config.core_radius))

        if snap.angle_deg is not None:
            dx, dy = orbit_position(snap.angle_deg, zone.orbit_radius)
            pos = (int(round(center[0] + dx)), int(round(center[1] + dy)))
            if snap.in_zone:
                pygame.draw.circle(surface, ZONE_FILL, pos, int(zone.entity_radius) + 6)
            color = ZONE_COLOR if snap.in_zone else MARKER_COLOR
            pygame.draw.circle(surface, color, pos, int(zone.entity_radius))

        score = self._big_font.render(str(snap.score), True, CORE_COLOR)
        surface.blit(score, score.get_rect(center=(w // 2, 48)))

        hint = self._font.render("Press when the marker glows green", True, TEXT_MUTED)
        surface.blit(hint, hint.get_rect(center=(w // 2, h - 58)))
        speed = self._hint_font.render(f"Speed: {snap.speed:.1f}x", True, TEXT_MUTED)
        surface.blit(speed, speed.get_rect(center=(w // 2, h - 30)))

    def _render_footer(self, surface: pygame.Surface, text: str) -> None:
        w, h = surface.get_size()
        foot = self._hint_font.render(text, True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(w // 2, h - 16)))


def _draw_dashed_orbit(surface: pygame.Surface, center: tuple[int, int], radius: float) -> None:
    step = 6
    for start in range(0, 360, step * 2):
        a = orbit_position(start, radius)
        b = orbit_position(start + step, radius)
        pygame.draw.line(
            surface,
            ORBIT_COLOR,
            (center[0] + a[0], center[1] + a[1]),
            (center[0] + b[0], center[1] + b[1]),
            2,
        )


def _draw_zone_band(surface: pygame.Surface, center: tuple[int, int], zone: ZoneConfig) -> None:
    start, end = zone.arc()
    segments = max(2, int(math.ceil(zone.width_deg / 3.0)))
    inner_r = zone.orbit_radius - ZONE_BAND_PX
    outer_r = zone.orbit_radius + ZONE_BAND_PX

    angles = [start + (end - start) * i / segments for i in range(segments + 1)]
    outer = [orbit_position(a, outer_r) for a in angles]
    inner = [orbit_position(a, inner_r) for a in reversed(angles)]
    points = [(center[0] + x, center[1] + y) for (x, y) in outer + inner]
    pygame.draw.polygon(surface, ZONE_FILL, points)
    pygame.draw.polygon(surface, ZONE_COLOR, points, 2)


def max_speed_from_env() -> float | None:
    raw = os.environ.get(MAX_SPEED_ENV, "").strip()
    if raw == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def config_from_env() -> ReflexGameConfig:
    base = ProgressionPolicy()
    cap = max_speed_from_env()
    if cap is not None and cap < base.initial_speed:
        cap = None
    return ReflexGameConfig(progression=ProgressionPolicy(max_speed=cap))


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    store: HighScoreStore | None = None,
    config: ReflexGameConfig | None = None,
) -> int:
    pygame.init()

    pygame.display.set_caption("Orbit Reflex")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)
    clock = pygame.time.Clock()

    app = App(surface=surface)
    frames = ManualFrameSource()
    game = build_reflex_game(
        clock=RealClock(),
        store=store if store is not None else JsonHighScoreStore(JsonHighScoreStore.default_path()),
        frames=frames,
        config=config if config is not None else config_from_env(),
    )
    app.show(ReflexScreen(app, game=game, frames=frames))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.update()
            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        game.close()
        pygame.quit()

    return 0
