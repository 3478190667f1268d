"""Money, score and hygiene rules.

Pure helpers; the simulation decides when to call them.
"""
from __future__ import annotations

import math

from config import (
    MAX_HYGIENE,
    TARGET_DAY_SCALING,
    TARGET_INCREASE_PER_DAY,
    TIP_TIERS,
)
from bistro.entities import GameState, clamp


def calculate_tip(patience_remaining: float, base_price: int) -> int:
    """Tip earned for serving an order with the given patience left."""
    for threshold, fraction in TIP_TIERS:
        if patience_remaining > threshold:
            return math.floor(base_price * fraction)
    return 0


def next_daily_target(current_target: int, day: int) -> int:
    return current_target + TARGET_INCREASE_PER_DAY + day * TARGET_DAY_SCALING


def credit(state: GameState, money: int, score: int = 0) -> None:
    state.money += money
    state.score += score


def penalize(state: GameState, money: int = 0, hygiene: float = 0.0) -> None:
    state.money = max(0, state.money - money)
    state.hygiene = clamp(state.hygiene - hygiene, 0.0, MAX_HYGIENE)


def restore_hygiene(state: GameState, amount: float) -> None:
    state.hygiene = clamp(state.hygiene + amount, 0.0, MAX_HYGIENE)


def met_daily_target(state: GameState) -> bool:
    return state.money >= state.daily_target
