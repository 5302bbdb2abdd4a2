"""Pygame UI shell for the arithmetic quiz.

Screens:
- Main menu (Start Quiz / Settings / Quit)
- Settings (question count, option count, time limit, difficulty)
- Quiz (question, numbered options, countdown, results page)

Deterministic question generation, timing, scoring and state live in
arith_quiz/* (core modules); this module only renders and forwards input.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .clock import Clock, RealClock
from .quiz_core import OptionSet, Question, format_clock
from .session import NullListener, Phase, QuizSession
from .settings import (
    MAX_OPTIONS,
    MAX_QUESTIONS,
    MAX_TIME_LIMIT_MINUTES,
    Difficulty,
    Settings,
    SettingsStore,
)
from .stats import Stats, format_report

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60

BG = (3, 9, 78)
PANEL_BG = (8, 18, 104)
HEADER_BG = (18, 30, 118)
BORDER = (226, 236, 255)
TEXT_MAIN = (238, 245, 255)
TEXT_MUTED = (186, 200, 224)
ACTIVE_BG = (244, 248, 255)
ACTIVE_TEXT = (14, 26, 74)
CORRECT_BG = (46, 204, 113)
WRONG_BG = (231, 76, 60)


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


def _draw_frame(surface: pygame.Surface, title: str, tag: str, font: pygame.font.Font, tag_font: pygame.font.Font) -> pygame.Rect:
    """Draw the shared panel + header chrome and return the content rect."""

    w, h = surface.get_size()
    surface.fill(BG)

    frame_margin = max(10, min(26, w // 34))
    frame = pygame.Rect(
        frame_margin,
        frame_margin,
        max(260, w - frame_margin * 2),
        max(220, h - frame_margin * 2),
    )
    pygame.draw.rect(surface, PANEL_BG, frame)
    pygame.draw.rect(surface, BORDER, frame, 2)

    header_h = max(34, min(52, h // 8))
    header = pygame.Rect(frame.x + 2, frame.y + 2, frame.w - 4, header_h)
    pygame.draw.rect(surface, HEADER_BG, header)
    pygame.draw.line(surface, BORDER, (header.x, header.bottom), (header.right, header.bottom), 1)

    tag_surf = tag_font.render(tag, True, TEXT_MUTED)
    surface.blit(tag_surf, (header.x + 12, header.y + (header.h - tag_surf.get_height()) // 2))
    title_surf = font.render(title, True, TEXT_MAIN)
    surface.blit(title_surf, title_surf.get_rect(center=(frame.centerx, header.centery)))

    return pygame.Rect(frame.x + 12, header.bottom + 12, frame.w - 24, frame.bottom - header.bottom - 24)


def _draw_rows(
    surface: pygame.Surface,
    rect: pygame.Rect,
    labels: list[str],
    selected: int,
    font: pygame.font.Font,
) -> None:
    item_count = max(1, len(labels))
    gap = max(4, min(10, rect.h // max(10, item_count * 3)))
    row_h = max(30, min(44, (rect.h - gap * (item_count + 1)) // item_count))
    total_h = row_h * item_count + gap * (item_count - 1)
    y = rect.y + max(8, (rect.h - total_h) // 2)

    for idx, label in enumerate(labels):
        row = pygame.Rect(rect.x + 12, y, rect.w - 24, row_h)
        is_selected = idx == selected
        if is_selected:
            pygame.draw.rect(surface, ACTIVE_BG, row)
            pygame.draw.rect(surface, (120, 142, 196), row, 2)
        else:
            pygame.draw.rect(surface, (9, 20, 106), row)
            pygame.draw.rect(surface, (62, 84, 152), row, 1)
        text = font.render(label, True, ACTIVE_TEXT if is_selected else TEXT_MAIN)
        surface.blit(text, (row.x + 10, row.y + (row.h - text.get_height()) // 2))
        y += row_h + gap


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
            if self._items:
                self._items[self._selected].action()
        elif event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            if self._is_root:
                self._app.quit()
            else:
                self._app.pop()

    def _move(self, delta: int) -> None:
        if not self._items:
            return
        self._selected = (self._selected + delta) % len(self._items)

    def render(self, surface: pygame.Surface) -> None:
        content = _draw_frame(surface, self._title, "MENU", self._title_font, self._hint_font)
        _draw_rows(surface, content, [item.label for item in self._items], self._selected, self._item_font)

        foot = self._hint_font.render("Enter/Space: Select  |  Esc/Backspace: Back", True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(content.centerx, content.bottom + 10)))


class SettingsScreen:
    """Edit quiz settings.  Save writes them; Cancel restores the defaults."""

    _FIELDS = ("num_questions", "num_options", "time_limit_minutes", "difficulty")

    def __init__(self, app: App, *, store: SettingsStore) -> None:
        self._app = app
        self._store = store
        self._draft = store.load().to_dict()
        self._selected = 0
        self._title_font = pygame.font.Font(None, 42)
        self._item_font = pygame.font.Font(None, 32)
        self._hint_font = pygame.font.Font(None, 22)

    def _labels(self) -> list[str]:
        d = self._draft
        return [
            f"Questions: {d['num_questions']}",
            f"Options per question: {d['num_options']}",
            f"Time limit: {d['time_limit_minutes']:g} min",
            f"Difficulty: {d['difficulty']}",
            "Save",
            "Cancel",
        ]

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        count = len(self._FIELDS) + 2
        if event.key in (pygame.K_UP, pygame.K_w):
            self._selected = (self._selected - 1) % count
        elif event.key in (pygame.K_DOWN, pygame.K_s):
            self._selected = (self._selected + 1) % count
        elif event.key in (pygame.K_LEFT, pygame.K_a):
            self._adjust(-1)
        elif event.key in (pygame.K_RIGHT, pygame.K_d):
            self._adjust(1)
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            if self._selected == len(self._FIELDS):
                self._store.save(Settings(**_draft_values(self._draft)))
                self._app.pop()
            elif self._selected == len(self._FIELDS) + 1:
                self._store.reset()
                self._app.pop()
        elif event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._app.pop()

    def _adjust(self, direction: int) -> None:
        if self._selected >= len(self._FIELDS):
            return
        name = self._FIELDS[self._selected]
        d = self._draft
        if name == "num_questions":
            d[name] = max(1, min(MAX_QUESTIONS, int(d[name]) + direction))
        elif name == "num_options":
            d[name] = max(2, min(MAX_OPTIONS, int(d[name]) + direction))
        elif name == "time_limit_minutes":
            d[name] = max(0.5, min(MAX_TIME_LIMIT_MINUTES, float(d[name]) + 0.5 * direction))
        else:
            levels = [lvl.value for lvl in Difficulty]
            d[name] = levels[(levels.index(d[name]) + direction) % len(levels)]

    def render(self, surface: pygame.Surface) -> None:
        content = _draw_frame(surface, "Settings", "SETUP", self._title_font, self._hint_font)
        _draw_rows(surface, content, self._labels(), self._selected, self._item_font)

        foot = self._hint_font.render("Up/Down: Select  |  Left/Right: Change  |  Enter: Save/Cancel", True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(content.centerx, content.bottom + 10)))


def _draft_values(draft: dict[str, object]) -> dict[str, object]:
    values = dict(draft)
    values["difficulty"] = Difficulty(str(values["difficulty"]))
    return values


class QuizScreen(NullListener):
    """Presents one quiz session; listens to the session for state changes."""

    def __init__(self, app: App, *, settings: Settings, clock: Clock, seed: int) -> None:
        self._app = app
        self._settings = settings

        self._title_font = pygame.font.Font(None, 42)
        self._prompt_font = pygame.font.Font(None, 112)
        self._option_font = pygame.font.Font(None, 48)
        self._small_font = pygame.font.Font(None, 28)
        self._hint_font = pygame.font.Font(None, 22)

        self._option_hitboxes: list[pygame.Rect] = []
        self._timer_text = format_clock(settings.time_limit_s)
        self._report: list[str] = []

        self._session = QuizSession(clock=clock, seed=seed, listeners=[self])
        self._session.start(settings)

    @property
    def session(self) -> QuizSession:
        return self._session

    # -- QuizListener ---------------------------------------------------------
    def on_question_ready(self, question: Question, options: OptionSet) -> None:
        self._option_hitboxes = []

    def on_time_update(self, remaining_s: float) -> None:
        self._timer_text = format_clock(remaining_s)

    def on_session_ended(self, stats: Stats) -> None:
        self._report = format_report(stats)

    # -- Input ---------------------------------------------------------------
    def handle_event(self, event: pygame.event.Event) -> None:
        phase = self._session.phase
        if event.type == pygame.KEYDOWN:
            # Emergency exit from any state.
            if event.key == pygame.K_ESCAPE and (event.mod & pygame.KMOD_SHIFT):
                self._app.pop()
                return
            if phase is Phase.ENDED:
                if event.key == pygame.K_r:
                    self._session.start(self._settings)
                    self._report = []
                elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_ESCAPE, pygame.K_BACKSPACE):
                    self._app.pop()
                return
            index = _option_index_for_key(event)
            if index is not None:
                self._session.submit_option(index)
            return

        if event.type == pygame.MOUSEBUTTONDOWN and getattr(event, "button", 0) == 1:
            pos = getattr(event, "pos", None)
            if pos is None:
                return
            for idx, rect in enumerate(self._option_hitboxes):
                if rect.collidepoint(pos):
                    self._session.submit_option(idx)
                    return

    # -- Rendering -----------------------------------------------------------
    def render(self, surface: pygame.Surface) -> None:
        self._session.update()
        snap = self._session.snapshot()

        if snap.phase is Phase.ENDED:
            content = _draw_frame(surface, "Results", "QUIZ", self._title_font, self._hint_font)
            y = content.y + 40
            for line in self._report:
                text = self._option_font.render(line, True, TEXT_MAIN)
                surface.blit(text, text.get_rect(midtop=(content.centerx, y)))
                y += text.get_height() + 18
            foot = self._hint_font.render("R: Retry  |  Enter/Esc: Back to menu", True, TEXT_MUTED)
            surface.blit(foot, foot.get_rect(midbottom=(content.centerx, content.bottom + 10)))
            return

        title = f"Question {snap.question_number}/{snap.num_questions}"
        content = _draw_frame(surface, title, "QUIZ", self._title_font, self._hint_font)

        timer = self._small_font.render(self._timer_text, True, TEXT_MAIN)
        surface.blit(timer, timer.get_rect(topright=(content.right, content.y)))
        score = self._small_font.render(f"Score: {snap.score}", True, TEXT_MUTED)
        surface.blit(score, (content.x, content.y))

        prompt = self._prompt_font.render(snap.prompt, True, TEXT_MAIN)
        surface.blit(prompt, prompt.get_rect(center=(content.centerx, content.y + content.h // 3)))

        self._option_hitboxes = []
        count = max(1, len(snap.options))
        cols = min(count, 5)
        rows = (count + cols - 1) // cols
        gap = 12
        box_w = (content.w - gap * (cols + 1)) // cols
        box_h = 56
        top = content.y + content.h * 2 // 3 - (rows * (box_h + gap)) // 2

        for idx, value in enumerate(snap.options):
            r, c = divmod(idx, cols)
            rect = pygame.Rect(content.x + gap + c * (box_w + gap), top + r * (box_h + gap), box_w, box_h)
            self._option_hitboxes.append(rect)

            fill = (9, 20, 106)
            if snap.revealed_answer is not None:
                if value == snap.revealed_answer:
                    fill = CORRECT_BG
                elif value == snap.picked:
                    fill = WRONG_BG
            pygame.draw.rect(surface, fill, rect)
            pygame.draw.rect(surface, (62, 84, 152), rect, 1)

            key_label = "0" if idx == 9 else str(idx + 1)
            key = self._hint_font.render(key_label, True, TEXT_MUTED)
            surface.blit(key, (rect.x + 6, rect.y + 4))
            text = self._option_font.render(str(value), True, TEXT_MAIN)
            surface.blit(text, text.get_rect(center=rect.center))

        foot = self._hint_font.render("1-9/0 or click: Answer  |  Shift+Esc: Quit quiz", True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(content.centerx, content.bottom + 10)))


def _option_index_for_key(event: pygame.event.Event) -> int | None:
    unicode = getattr(event, "unicode", "") or ""
    if len(unicode) == 1 and unicode.isdigit():
        digit = int(unicode)
        return 9 if digit == 0 else digit - 1
    if pygame.K_1 <= event.key <= pygame.K_9:
        return int(event.key - pygame.K_1)
    if event.key == pygame.K_0:
        return 9
    return None


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    store: SettingsStore | None = None,
) -> int:
    pygame.init()

    pygame.display.set_caption("Arithmetic Quiz")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    font = pygame.font.Font(None, 36)
    clock = pygame.time.Clock()

    app = App(surface=surface, font=font)
    settings_store = store if store is not None else SettingsStore(SettingsStore.default_path())
    real_clock = RealClock()

    def open_quiz() -> None:
        app.push(QuizScreen(app, settings=settings_store.load(), clock=real_clock, seed=_new_seed()))

    def open_settings() -> None:
        app.push(SettingsScreen(app, store=settings_store))

    main_items = [
        MenuItem("Start Quiz", open_quiz),
        MenuItem("Settings", open_settings),
        MenuItem("Quit", app.quit),
    ]
    app.push(MenuScreen(app, "Arithmetic Quiz", main_items, is_root=True))

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
