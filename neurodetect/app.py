"""Pygame UI shell for the NeuroDetect waiting-room game.

The shell only renders engine snapshots, forwards clicks and exports the
result record. Timing/scoring/RNG/state lives in neurodetect/reaction_attention.py.
"""

from __future__ import annotations

import logging
import os
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .clock import RealClock
from .cognitive_core import Phase, TrialType
from .reaction_attention import (
    ReactionAttentionConfig,
    ReactionAttentionEngine,
    ReactionAttentionSnapshot,
    build_reaction_attention_test,
)

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "NEURODETECT_LOG_LEVEL"

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60
NOTICE_MS = 1200

BG = (11, 16, 32)
CARD_BG = (24, 29, 45)
BORDER = (66, 72, 92)
TEXT_MAIN = (233, 238, 251)
TEXT_MUTED = (170, 178, 200)
WAIT_BG = (30, 35, 52)
GO_BG = (16, 112, 86)
NOGO_BG = (42, 72, 140)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    action: Callable[[], None]


class App:
    def __init__(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        self._surface = surface
        self._font = font
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def font(self) -> pygame.font.Font:
        return self._font

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # Never pop the last/root screen; root handles its own quit/back behavior.
        if len(self._screens) > 1:
            self._screens.pop()

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


class MenuScreen:
    def __init__(self, app: App, title: str, items: list[MenuItem], *, is_root: bool = False) -> None:
        self._app = app
        self._title = title
        self._items = items
        self._selected = 0
        self._is_root = is_root
        self._title_font = pygame.font.Font(None, 42)
        self._item_font = pygame.font.Font(None, 32)
        self._hint_font = pygame.font.Font(None, 22)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in (pygame.K_UP, pygame.K_w):
            self._move(-1)
        elif event.key in (pygame.K_DOWN, pygame.K_s):
            self._move(1)
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            self._activate()
        elif event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._back()

    def _move(self, delta: int) -> None:
        if not self._items:
            return
        self._selected = (self._selected + delta) % len(self._items)

    def _activate(self) -> None:
        if not self._items:
            return
        self._items[self._selected].action()

    def _back(self) -> None:
        if self._is_root:
            self._app.quit()
        else:
            self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        w, _ = surface.get_size()
        surface.fill(BG)

        title = self._title_font.render(self._title, True, TEXT_MAIN)
        surface.blit(title, title.get_rect(midtop=(w // 2, 40)))

        y = 130
        for idx, item in enumerate(self._items):
            row = pygame.Rect(w // 2 - 180, y, 360, 44)
            selected = idx == self._selected
            pygame.draw.rect(surface, TEXT_MAIN if selected else CARD_BG, row, border_radius=10)
            pygame.draw.rect(surface, BORDER, row, 1, border_radius=10)
            color = BG if selected else TEXT_MAIN
            text = self._item_font.render(item.label, True, color)
            surface.blit(text, text.get_rect(center=row.center))
            y += 56

        footer = "Up/Down: Move  |  Enter/Space: Select  |  Esc: Back"
        foot = self._hint_font.render(footer, True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(w // 2, surface.get_height() - 16)))


class ReactionAttentionScreen:
    """Waiting-room Go/No-Go game: click on GREEN, hold off on BLUE."""

    def __init__(self, app: App, *, engine_factory: Callable[[], ReactionAttentionEngine]) -> None:
        self._app = app
        self._engine = engine_factory()
        self._play_rect: pygame.Rect | None = None

        # Shell-only transient notice (clipboard feedback); never fed back to the engine.
        self._notice = ""
        self._notice_until_ms = 0

        self._small_font = pygame.font.Font(None, 24)
        self._tiny_font = pygame.font.Font(None, 18)
        self._stat_font = pygame.font.Font(None, 30)
        self._big_font = pygame.font.Font(None, 64)

    @property
    def engine(self) -> ReactionAttentionEngine:
        return self._engine

    def handle_event(self, event: pygame.event.Event) -> None:
        # Resolve any transition already due so a late click cannot land on a stale phase.
        self._engine.update()
        phase = self._engine.phase

        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self._play_rect is None or self._play_rect.collidepoint(event.pos):
                self._engine.register_click()
            return

        if event.type != pygame.KEYDOWN:
            return

        if event.key == pygame.K_SPACE:
            self._engine.register_click()
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            if phase in (Phase.IDLE, Phase.FINISHED):
                self._engine.start()
        elif event.key == pygame.K_r:
            if phase is not Phase.IDLE:
                self._engine.reset()
        elif event.key == pygame.K_c:
            if phase is Phase.FINISHED:
                self._copy_results()
        elif event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._engine.reset()
            self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        self._engine.update()
        snap = self._engine.snapshot()

        w, h = surface.get_size()
        surface.fill(BG)

        card = pygame.Rect(24, 16, w - 48, h - 32)
        pygame.draw.rect(surface, CARD_BG, card, border_radius=16)
        pygame.draw.rect(surface, BORDER, card, 1, border_radius=16)

        title = self._app.font.render("NeuroDetect - Waiting Room Game", True, TEXT_MAIN)
        surface.blit(title, (card.x + 18, card.y + 14))
        subtitle = self._tiny_font.render("Reaction Time + Attention", True, TEXT_MUTED)
        surface.blit(subtitle, (card.x + 18, card.y + 44))

        badge = self._small_font.render(snap.phase.value.upper(), True, TEXT_MAIN)
        badge_rect = badge.get_rect(topright=(card.right - 24, card.y + 20)).inflate(16, 8)
        pygame.draw.rect(surface, BORDER, badge_rect, 1, border_radius=12)
        surface.blit(badge, badge.get_rect(center=badge_rect.center))

        self._render_stats(surface, snap, top=card.y + 68, left=card.x + 18, width=card.w - 36)

        if snap.phase is Phase.FINISHED:
            self._render_results(surface, top=card.y + 140, left=card.x + 18, width=card.w - 36)
            self._play_rect = None
        else:
            play = pygame.Rect(card.x + 18, card.y + 140, card.w - 36, card.h - 230)
            self._play_rect = play
            self._render_play_area(surface, snap, play)

        message = snap.message
        if self._notice and pygame.time.get_ticks() < self._notice_until_ms:
            message = self._notice
        if message:
            msg = self._small_font.render(message, True, TEXT_MAIN)
            surface.blit(msg, (card.x + 18, card.bottom - 78))

        hint = self._tiny_font.render(self._input_hint(snap.phase), True, TEXT_MUTED)
        surface.blit(hint, (card.x + 18, card.bottom - 34))

    def _render_stats(
        self,
        surface: pygame.Surface,
        snap: ReactionAttentionSnapshot,
        *,
        top: int,
        left: int,
        width: int,
    ) -> None:
        shown_round = snap.total_rounds if snap.phase is Phase.FINISHED else snap.current_round
        resolved = snap.hits + snap.misses
        cells = [
            ("Round", f"{shown_round}/{snap.total_rounds}"),
            ("Avg RT", f"{snap.avg_reaction_time_ms} ms" if snap.avg_reaction_time_ms else "-"),
            ("Accuracy", f"{int(round(snap.accuracy_rate * 100))}%" if resolved else "-"),
            ("False Clicks", str(snap.false_clicks)),
        ]
        gap = 10
        cell_w = (width - gap * (len(cells) - 1)) // len(cells)
        for idx, (label, value) in enumerate(cells):
            rect = pygame.Rect(left + idx * (cell_w + gap), top, cell_w, 60)
            pygame.draw.rect(surface, WAIT_BG, rect, border_radius=12)
            pygame.draw.rect(surface, BORDER, rect, 1, border_radius=12)
            lab = self._tiny_font.render(label, True, TEXT_MUTED)
            surface.blit(lab, (rect.x + 12, rect.y + 10))
            val = self._stat_font.render(value, True, TEXT_MAIN)
            surface.blit(val, (rect.x + 12, rect.y + 28))

    def _render_play_area(
        self,
        surface: pygame.Surface,
        snap: ReactionAttentionSnapshot,
        rect: pygame.Rect,
    ) -> None:
        fill = WAIT_BG
        label = {
            Phase.IDLE: "Press Enter to start",
            Phase.COUNTDOWN: "Get ready...",
            Phase.WAITING: "WAIT",
        }.get(snap.phase, "")
        if snap.phase is Phase.STIMULUS:
            if snap.trial_type is TrialType.NOGO:
                fill, label = NOGO_BG, "BLUE"
            else:
                fill, label = GO_BG, "GREEN"

        pygame.draw.rect(surface, fill, rect, border_radius=14)
        pygame.draw.rect(surface, BORDER, rect, 1, border_radius=14)
        text = self._big_font.render(label, True, TEXT_MAIN)
        surface.blit(text, text.get_rect(center=rect.center))

    def _render_results(self, surface: pygame.Surface, *, top: int, left: int, width: int) -> None:
        lines = self._engine.result().to_json(indent=2).split("\n")
        box = pygame.Rect(left, top, width, min(len(lines), 15) * 18 + 36)
        pygame.draw.rect(surface, (8, 10, 20), box, border_radius=12)
        pygame.draw.rect(surface, BORDER, box, 1, border_radius=12)
        head = self._tiny_font.render("Result JSON", True, TEXT_MUTED)
        surface.blit(head, (box.x + 12, box.y + 8))
        y = box.y + 28
        for line in lines[:15]:
            txt = self._tiny_font.render(line, True, TEXT_MAIN)
            surface.blit(txt, (box.x + 12, y))
            y += 18

    @staticmethod
    def _input_hint(phase: Phase) -> str:
        if phase is Phase.IDLE:
            return "Enter: Start  |  Esc: Back"
        if phase is Phase.FINISHED:
            return "Enter: Play again  |  C: Copy results (JSON)  |  Esc: Back"
        return "Click / Space on GREEN only  |  R: Reset  |  Esc: Back"

    def _copy_results(self) -> None:
        text = self._engine.result().to_json(indent=2)
        try:
            if not pygame.scrap.get_init():
                pygame.scrap.init()
            pygame.scrap.put_text(text)
        except pygame.error as exc:
            logger.warning("clipboard export failed: %s", exc)
            self._set_notice("Copy failed. Please select and copy manually.")
            return
        self._set_notice("Results copied to clipboard.")

    def _set_notice(self, text: str) -> None:
        self._notice = text
        self._notice_until_ms = pygame.time.get_ticks() + NOTICE_MS


def setup_logging() -> None:
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    logger.debug("Logging initialized: level=%s", logging.getLevelName(level))


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    config: ReactionAttentionConfig | None = None,
) -> int:
    setup_logging()
    pygame.init()

    pygame.display.set_caption("NeuroDetect Waiting Room")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    font = pygame.font.Font(None, 36)
    clock = pygame.time.Clock()

    app = App(surface=surface, font=font)
    real_clock = RealClock()

    def open_reaction_attention() -> None:
        seed = _new_seed()
        logger.info("opening reaction + attention test (seed=%d)", seed)
        app.push(
            ReactionAttentionScreen(
                app,
                engine_factory=lambda: build_reaction_attention_test(clock=real_clock, seed=seed, config=config),
            )
        )

    main_items = [
        MenuItem("Reaction + Attention", open_reaction_attention),
        MenuItem("Quit", app.quit),
    ]
    app.push(MenuScreen(app, "Main Menu", main_items, is_root=True))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        pygame.quit()

    return 0
