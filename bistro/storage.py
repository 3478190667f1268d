"""Solo save file.

Only the economy survives a restart; stations, orders and the clock are
rebuilt when a day starts.  Storage problems never propagate: they are logged
and the game behaves as if there were no save.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from config import INITIAL_MONEY, INITIAL_TARGET, MAX_HYGIENE, SAVE_FILE
from bistro.entities import GameMode, GameState

logger = logging.getLogger(__name__)


@dataclass
class SaveData:
    money: int = INITIAL_MONEY
    hygiene: float = MAX_HYGIENE
    score: int = 0
    day: int = 1
    daily_target: int = INITIAL_TARGET

    @classmethod
    def from_state(cls, state: GameState) -> "SaveData":
        return cls(
            money=state.money,
            hygiene=state.hygiene,
            score=state.score,
            day=state.day,
            daily_target=state.daily_target,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "money": self.money,
            "hygiene": self.hygiene,
            "score": self.score,
            "day": self.day,
            "dailyTarget": self.daily_target,
            "gameMode": GameMode.SOLO.value,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SaveData":
        # GameState.from_dict already coerces and clamps every field we keep.
        state = GameState.from_dict(raw)
        return cls.from_state(state)


class SaveStore:
    def __init__(self, path: Path = SAVE_FILE) -> None:
        self.path = Path(path)

    def save(self, data: SaveData) -> bool:
        try:
            self.path.write_text(json.dumps(data.to_dict(), indent=2))
        except OSError as exc:
            logger.warning("Failed to save game to %s: %s", self.path, exc)
            return False
        logger.debug("Saved day %d to %s", data.day, self.path)
        return True

    def load(self) -> Optional[SaveData]:
        if not self.path.exists():
            return None
        try:
            raw = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to load save %s: %s", self.path, exc)
            return None
        if not isinstance(raw, dict):
            logger.warning("Ignoring save %s: not a JSON object", self.path)
            return None
        return SaveData.from_dict(raw)

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to clear save %s: %s", self.path, exc)

    def has_save(self) -> bool:
        return self.load() is not None


class MemorySaveStore(SaveStore):
    """Keeps the save in memory; used by client sessions and tests."""

    def __init__(self) -> None:
        super().__init__(Path("<memory>"))
        self._raw: Optional[Dict[str, Any]] = None

    def save(self, data: SaveData) -> bool:
        self._raw = data.to_dict()
        return True

    def load(self) -> Optional[SaveData]:
        if self._raw is None:
            return None
        return SaveData.from_dict(self._raw)

    def clear(self) -> None:
        self._raw = None
