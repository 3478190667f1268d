"""Pixel Bistro game package.

Public API:
    from bistro import KitchenSim, Action, ActionType, GamePhase, GameMode
"""
from bistro.actions import Action, ActionType
from bistro.entities import GameMode, GamePhase, GameState, Order, Station, StationState
from bistro.simulation import KitchenSim

__all__ = [
    "Action",
    "ActionType",
    "GameMode",
    "GamePhase",
    "GameState",
    "KitchenSim",
    "Order",
    "Station",
    "StationState",
]
