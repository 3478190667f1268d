"""Discrete player actions and their wire form."""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

from config import HOST_PLAYER, PLAYERS


class ActionType(str, Enum):
    START_DAY = "START_DAY"
    NEXT_DAY_CONFIRM = "NEXT_DAY_CONFIRM"
    CLICK_STATION = "CLICK_STATION"
    SELECT_RECIPE = "SELECT_RECIPE"
    KEY_PRESS = "KEY_PRESS"
    SERVE = "SERVE"
    CLEAN = "CLEAN"


@dataclass(frozen=True)
class Action:
    """One player input.  Only the fields relevant to ``type`` are set."""

    type: ActionType
    station_id: Optional[int] = None
    recipe_id: Optional[str] = None
    key: Optional[str] = None
    player: str = HOST_PLAYER

    @classmethod
    def start_day(cls) -> "Action":
        return cls(ActionType.START_DAY)

    @classmethod
    def next_day(cls) -> "Action":
        return cls(ActionType.NEXT_DAY_CONFIRM)

    @classmethod
    def click_station(cls, station_id: int) -> "Action":
        return cls(ActionType.CLICK_STATION, station_id=station_id)

    @classmethod
    def select_recipe(cls, recipe_id: str) -> "Action":
        return cls(ActionType.SELECT_RECIPE, recipe_id=recipe_id)

    @classmethod
    def key_press(cls, key: str) -> "Action":
        return cls(ActionType.KEY_PRESS, key=key)

    @classmethod
    def serve(cls, station_id: int) -> "Action":
        return cls(ActionType.SERVE, station_id=station_id)

    @classmethod
    def clean(cls) -> "Action":
        return cls(ActionType.CLEAN)

    def as_player(self, player: str) -> "Action":
        return replace(self, player=player)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.value}
        if self.station_id is not None:
            data["stationId"] = self.station_id
        if self.recipe_id is not None:
            data["recipeId"] = self.recipe_id
        if self.key is not None:
            data["key"] = self.key
        return data

    @classmethod
    def from_dict(cls, raw: Any, player: str = HOST_PLAYER) -> Optional["Action"]:
        """Parse a wire action; ``None`` for anything malformed.

        The player is never read from the payload: whoever receives the
        message decides who sent it.
        """
        if not isinstance(raw, dict):
            return None
        try:
            action_type = ActionType(raw.get("type"))
        except ValueError:
            return None
        if player not in PLAYERS:
            return None

        station_id = raw.get("stationId")
        recipe_id = raw.get("recipeId")
        key = raw.get("key")
        if action_type in (ActionType.CLICK_STATION, ActionType.SERVE):
            if isinstance(station_id, bool) or not isinstance(station_id, int):
                return None
            return cls(action_type, station_id=station_id, player=player)
        if action_type == ActionType.SELECT_RECIPE:
            if not isinstance(recipe_id, str):
                return None
            return cls(action_type, recipe_id=recipe_id, player=player)
        if action_type == ActionType.KEY_PRESS:
            if not isinstance(key, str) or len(key) != 1:
                return None
            return cls(action_type, key=key, player=player)
        return cls(action_type, player=player)
