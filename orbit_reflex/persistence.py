from __future__ import annotations

import json
import logging
import math
import os
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

HIGH_SCORE_KEY = "circle-reflex-high-score"
HIGH_SCORE_STORE_ENV = "ORBIT_REFLEX_HIGH_SCORE_PATH"


class HighScoreStore(Protocol):
    """Best-score key-value storage.

    Implementations never raise: unreadable or malformed values load as 0 and
    failed writes are discarded.
    """

    def load_high_score(self, key: str) -> int: ...
    def save_high_score(self, key: str, value: int) -> None: ...


def _as_score(raw: object) -> int:
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return max(0, raw)
    if isinstance(raw, float):
        return max(0, int(raw)) if math.isfinite(raw) else 0
    if isinstance(raw, str):
        try:
            return max(0, int(raw.strip()))
        except ValueError:
            return 0
    return 0


class MemoryHighScoreStore:
    """In-process store for tests and headless runs."""

    def __init__(self, initial: dict[str, object] | None = None) -> None:
        self._values: dict[str, object] = dict(initial or {})

    def load_high_score(self, key: str) -> int:
        return _as_score(self._values.get(key))

    def save_high_score(self, key: str, value: int) -> None:
        self._values[key] = int(value)


class JsonHighScoreStore:
    """Flat ``{key: score}`` JSON file. Writes go through a temp file + replace."""

    _version = 1

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @classmethod
    def default_path(cls) -> Path:
        explicit = os.environ.get(HIGH_SCORE_STORE_ENV)
        if explicit:
            return Path(explicit).expanduser()
        return Path.home() / ".orbit_reflex_high_scores.json"

    def _read(self) -> dict[str, object]:
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except Exception:
            logger.warning("Ignoring unreadable high score file %s", self._path)
            return {}
        if not isinstance(payload, dict):
            return {}
        scores = payload.get("scores")
        if not isinstance(scores, dict):
            return {}
        return scores

    def load_high_score(self, key: str) -> int:
        return _as_score(self._read().get(key))

    def save_high_score(self, key: str, value: int) -> None:
        scores = self._read()
        scores[key] = int(value)
        payload = {"version": self._version, "scores": scores}
        tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except Exception:
            logger.warning("Discarding high score write to %s", self._path, exc_info=True)
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                pass
