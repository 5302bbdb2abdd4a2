"""Quiz settings: validation, defaults and the on-disk settings file.

A :class:`Settings` value is immutable and is handed to
``QuizSession.start()`` explicitly.  :func:`normalize_settings` is the single
validation point: each field that is missing or unusable falls back to its
default on its own, so one bad field never discards the others.
"""

from __future__ import annotations

import json
import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from .quiz_core import InvalidSettings

logger = logging.getLogger(__name__)

SETTINGS_PATH_ENV = "ARITH_QUIZ_SETTINGS_PATH"

MAX_QUESTIONS = 500
MAX_OPTIONS = 10
MAX_TIME_LIMIT_MINUTES = 180.0


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


@dataclass(frozen=True, slots=True)
class Settings:
    num_questions: int = 10
    num_options: int = 4
    time_limit_minutes: float = 1.0
    difficulty: Difficulty = Difficulty.MEDIUM

    @property
    def time_limit_s(self) -> float:
        # Rounded so fractional minutes like 2/60 land on whole ticks.
        return round(float(self.time_limit_minutes) * 60.0, 6)

    def to_dict(self) -> dict[str, Any]:
        return {
            "num_questions": int(self.num_questions),
            "num_options": int(self.num_options),
            "time_limit_minutes": float(self.time_limit_minutes),
            "difficulty": self.difficulty.value,
        }


DEFAULT_SETTINGS = Settings()


def _as_int(field: str, value: object, lo: int, hi: int) -> int:
    if isinstance(value, bool) or value is None:
        raise InvalidSettings(field, value, "not a number")
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidSettings(field, value, "not a whole number")
        out = int(value)
    else:
        try:
            out = int(str(value).strip())
        except ValueError:
            raise InvalidSettings(field, value, "not a number") from None
    if not (lo <= out <= hi):
        raise InvalidSettings(field, value, f"must be in [{lo}, {hi}]")
    return out


def _as_minutes(field: str, value: object) -> float:
    if isinstance(value, bool) or value is None:
        raise InvalidSettings(field, value, "not a number")
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidSettings(field, value, "not a number") from None
    if not math.isfinite(out) or out <= 0.0 or out > MAX_TIME_LIMIT_MINUTES:
        raise InvalidSettings(field, value, f"must be in (0, {MAX_TIME_LIMIT_MINUTES:g}]")
    return out


def _as_difficulty(field: str, value: object) -> Difficulty:
    if isinstance(value, Difficulty):
        return value
    text = str(value).strip().lower() if value is not None else ""
    for d in Difficulty:
        if d.value.lower() == text:
            return d
    raise InvalidSettings(field, value, "must be one of Easy, Medium, Hard")


def normalize_settings(raw: Settings | Mapping[str, object] | None) -> Settings:
    """Return validated settings, substituting defaults field by field."""

    if raw is None:
        return DEFAULT_SETTINGS
    data: Mapping[str, object] = raw.to_dict() if isinstance(raw, Settings) else raw

    d = DEFAULT_SETTINGS
    checks = (
        ("num_questions", lambda v: _as_int("num_questions", v, 1, MAX_QUESTIONS), d.num_questions),
        ("num_options", lambda v: _as_int("num_options", v, 2, MAX_OPTIONS), d.num_options),
        ("time_limit_minutes", lambda v: _as_minutes("time_limit_minutes", v), d.time_limit_minutes),
        ("difficulty", lambda v: _as_difficulty("difficulty", v), d.difficulty),
    )

    values: dict[str, Any] = {}
    for name, coerce, default in checks:
        if name not in data:
            values[name] = default
            continue
        try:
            values[name] = coerce(data[name])
        except InvalidSettings as exc:
            logger.warning("%s; using default %r", exc, default)
            values[name] = default

    return Settings(**values)


class SettingsStore:
    """JSON-backed settings file.

    The file is optional: a missing or unreadable file yields the defaults.
    """

    _version = 1

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @classmethod
    def default_path(cls) -> Path:
        explicit = os.environ.get(SETTINGS_PATH_ENV)
        if explicit:
            return Path(explicit).expanduser()
        return Path.home() / ".arith_quiz_settings.json"

    def load(self) -> Settings:
        if not self._path.exists():
            return DEFAULT_SETTINGS
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("could not read settings from %s: %s", self._path, exc)
            return DEFAULT_SETTINGS
        if not isinstance(payload, dict):
            logger.warning("ignoring settings file %s: not a JSON object", self._path)
            return DEFAULT_SETTINGS

        raw = payload.get("settings", payload)
        if not isinstance(raw, dict):
            return DEFAULT_SETTINGS
        settings = normalize_settings(raw)
        logger.info("loaded settings from %s", self._path)
        return settings

    def save(self, settings: Settings) -> Settings:
        settings = normalize_settings(settings)
        payload = {"version": self._version, "settings": settings.to_dict()}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            logger.warning("could not save settings to %s: %s", self._path, exc)
        else:
            logger.info("saved settings to %s", self._path)
        return settings

    def reset(self) -> Settings:
        return self.save(DEFAULT_SETTINGS)
