"""Core dataclasses for the Pixel Bistro simulation.

``to_dict`` / ``from_dict`` produce the camelCase form used both on the wire
(``SYNC_STATE`` snapshots) and in the save file.  ``from_dict`` never raises on
bad input: numbers are coerced and clamped, unknown enum values fall back to
defaults, and entries referencing unknown recipes are dropped or reset.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from config import (
    DAY_DURATION_SECONDS,
    INGREDIENT_KEYS,
    INITIAL_MONEY,
    INITIAL_TARGET,
    MAX_HYGIENE,
    MAX_PATIENCE,
    STATION_COUNT,
)
from recipe_catalog import RECIPES

E = TypeVar("E", bound=Enum)


class StationState(str, Enum):
    EMPTY = "empty"
    PREPPING = "prepping"
    COOKING = "cooking"
    READY = "ready"
    BURNED = "burned"


class OrderStatus(str, Enum):
    WAITING = "waiting"
    SERVED = "served"
    EXPIRED = "expired"


class GamePhase(str, Enum):
    MENU = "MENU"
    PRE_DAY = "PRE_DAY"
    SERVICE = "SERVICE"
    EOD_REPORT = "EOD_REPORT"
    GAME_OVER = "GAME_OVER"


class GameMode(str, Enum):
    SOLO = "SOLO"
    HOST = "HOST"
    CLIENT = "CLIENT"


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def _coerce_enum(enum_cls: Type[E], value: Any, default: E) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _as_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if result == result else default


@dataclass
class Order:
    """A customer waiting for one dish."""

    id: str
    recipe_id: str
    created_at: int = 0
    patience: float = MAX_PATIENCE
    status: OrderStatus = OrderStatus.WAITING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "recipeId": self.recipe_id,
            "createdAt": self.created_at,
            "patience": self.patience,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> Optional["Order"]:
        recipe_id = raw.get("recipeId")
        if not isinstance(recipe_id, str) or recipe_id not in RECIPES:
            return None
        return cls(
            id=str(raw.get("id", "")),
            recipe_id=recipe_id,
            created_at=_as_int(raw.get("createdAt"), 0),
            patience=clamp(_as_float(raw.get("patience"), MAX_PATIENCE), 0.0, MAX_PATIENCE),
            status=_coerce_enum(OrderStatus, raw.get("status"), OrderStatus.WAITING),
        )


@dataclass
class Station:
    """A cooking slot.  ``ready_elapsed_ms`` only matters for the overcook timer."""

    id: int
    state: StationState = StationState.EMPTY
    current_recipe_id: Optional[str] = None
    prep_sequence: List[str] = field(default_factory=list)
    cook_progress: float = 0.0
    ready_elapsed_ms: int = 0

    def clear(self) -> None:
        self.state = StationState.EMPTY
        self.current_recipe_id = None
        self.prep_sequence = []
        self.cook_progress = 0.0
        self.ready_elapsed_ms = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "state": self.state.value,
            "currentRecipeId": self.current_recipe_id,
            "prepSequence": list(self.prep_sequence),
            "cookProgress": self.cook_progress,
            "readyElapsedMs": self.ready_elapsed_ms,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], station_id: int) -> "Station":
        station = cls(id=station_id)
        state = _coerce_enum(StationState, raw.get("state"), StationState.EMPTY)
        recipe_id = raw.get("currentRecipeId")
        needs_recipe = state in (StationState.PREPPING, StationState.COOKING, StationState.READY)
        if needs_recipe and (not isinstance(recipe_id, str) or recipe_id not in RECIPES):
            return station

        raw_sequence = raw.get("prepSequence", [])
        if not isinstance(raw_sequence, list):
            raw_sequence = []
        station.state = state
        station.current_recipe_id = recipe_id if needs_recipe else None
        station.prep_sequence = [key for key in raw_sequence if key in INGREDIENT_KEYS]
        station.cook_progress = clamp(_as_float(raw.get("cookProgress"), 0.0), 0.0, 100.0)
        station.ready_elapsed_ms = max(0, _as_int(raw.get("readyElapsedMs"), 0))
        return station


def new_stations() -> List[Station]:
    return [Station(id=i) for i in range(STATION_COUNT)]


@dataclass
class GameState:
    """Economy, hygiene, clock and phase.  Owned by the authoritative side."""

    money: int = INITIAL_MONEY
    hygiene: float = MAX_HYGIENE
    score: int = 0
    day: int = 1
    daily_target: int = INITIAL_TARGET
    time_remaining: int = DAY_DURATION_SECONDS
    phase: GamePhase = GamePhase.MENU
    game_mode: GameMode = GameMode.SOLO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "money": self.money,
            "hygiene": self.hygiene,
            "score": self.score,
            "day": self.day,
            "dailyTarget": self.daily_target,
            "timeRemaining": self.time_remaining,
            "phase": self.phase.value,
            "gameMode": self.game_mode.value,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "GameState":
        return cls(
            money=max(0, _as_int(raw.get("money"), INITIAL_MONEY)),
            hygiene=clamp(_as_float(raw.get("hygiene"), MAX_HYGIENE), 0.0, MAX_HYGIENE),
            score=max(0, _as_int(raw.get("score"), 0)),
            day=max(1, _as_int(raw.get("day"), 1)),
            daily_target=max(0, _as_int(raw.get("dailyTarget"), INITIAL_TARGET)),
            time_remaining=int(clamp(_as_int(raw.get("timeRemaining"), DAY_DURATION_SECONDS), 0, DAY_DURATION_SECONDS)),
            phase=_coerce_enum(GamePhase, raw.get("phase"), GamePhase.MENU),
            game_mode=_coerce_enum(GameMode, raw.get("gameMode"), GameMode.SOLO),
        )
