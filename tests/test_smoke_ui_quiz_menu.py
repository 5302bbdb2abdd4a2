from __future__ import annotations

import os
from pathlib import Path


def _key(key: int, unicode: str = ""):
    import pygame

    return pygame.event.Event(pygame.KEYDOWN, {"key": key, "unicode": unicode, "mod": 0})


def test_ui_smoke_start_quiz_and_answer(tmp_path: Path) -> None:
    # Headless SDL for CI.
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

    import pygame

    from arith_quiz.app import run
    from arith_quiz.settings import SettingsStore

    def inject(frame: int) -> None:
        # Main Menu -> Start Quiz -> answer with option 1 -> answer with option 2
        if frame == 1:
            pygame.event.post(_key(pygame.K_RETURN))
        elif frame == 3:
            pygame.event.post(_key(pygame.K_1, "1"))
        elif frame == 6:
            pygame.event.post(_key(pygame.K_2, "2"))

    store = SettingsStore(tmp_path / "settings.json")
    assert run(max_frames=12, event_injector=inject, store=store) == 0


def test_ui_smoke_settings_save_and_cancel(tmp_path: Path) -> None:
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

    import pygame

    from arith_quiz.app import run
    from arith_quiz.settings import DEFAULT_SETTINGS, SettingsStore

    store = SettingsStore(tmp_path / "settings.json")

    def inject(frame: int) -> None:
        # Main Menu -> Settings -> +1 question -> down to Save -> Enter
        script = {
            1: pygame.K_DOWN,
            2: pygame.K_RETURN,
            3: pygame.K_RIGHT,
            4: pygame.K_DOWN,
            5: pygame.K_DOWN,
            6: pygame.K_DOWN,
            7: pygame.K_DOWN,
            8: pygame.K_RETURN,
        }
        if frame in script:
            pygame.event.post(_key(script[frame]))

    assert run(max_frames=12, event_injector=inject, store=store) == 0
    assert store.load().num_questions == DEFAULT_SETTINGS.num_questions + 1

    def inject_cancel(frame: int) -> None:
        # Main Menu -> Settings -> up to Cancel (wraps) -> Enter
        script = {1: pygame.K_DOWN, 2: pygame.K_RETURN, 3: pygame.K_UP, 4: pygame.K_RETURN}
        if frame in script:
            pygame.event.post(_key(script[frame]))

    assert run(max_frames=8, event_injector=inject_cancel, store=store) == 0
    assert store.load() == DEFAULT_SETTINGS
