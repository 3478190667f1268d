"""Centralised configuration constants for Pixel Bistro."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

# ---------------------------------------------------------------------------
# File paths
# ---------------------------------------------------------------------------
SAVE_FILE: Path = Path("bistro_save.json")
RECIPES_FILE: Path = Path("data/recipes.json")

# ---------------------------------------------------------------------------
# Ingredients (key → display name).  Keys are what the player types.
# ---------------------------------------------------------------------------
INGREDIENTS: dict[str, str] = {
    "P": "Bread",
    "C": "Meat",
    "Q": "Cheese",
    "A": "Lettuce",
    "T": "Tomato",
    "M": "Pasta",
    "O": "Egg",
}
INGREDIENT_KEYS: tuple[str, ...] = tuple(INGREDIENTS)

# ---------------------------------------------------------------------------
# Kitchen layout
# ---------------------------------------------------------------------------
STATION_COUNT: int = 3
HOST_PLAYER: str = "host"
GUEST_PLAYER: str = "guest"
PLAYERS: tuple[str, ...] = (HOST_PLAYER, GUEST_PLAYER)

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------
TICK_RATE_MS: int = 100               # one simulation step
SECOND_MS: int = 1000
DAY_DURATION_SECONDS: int = 90        # 1 min 30 s per day

# ---------------------------------------------------------------------------
# Economy
# ---------------------------------------------------------------------------
INITIAL_MONEY: int = 0
INITIAL_TARGET: int = 100             # cash goal for day 1
TARGET_INCREASE_PER_DAY: int = 120
TARGET_DAY_SCALING: int = 20          # extra target per day already played
SERVE_SCORE_BASE: int = 10            # score per served order, before tip

# (patience strictly above, fraction of price)
TIP_TIERS: tuple[tuple[float, float], ...] = (
    (50.0, 0.25),
    (20.0, 0.10),
)

# ---------------------------------------------------------------------------
# Hygiene
# ---------------------------------------------------------------------------
MAX_HYGIENE: float = 100.0
HYGIENE_DECAY_RATE: float = 0.3
HYGIENE_DECAY_PER_TICK: float = HYGIENE_DECAY_RATE * 0.1
CLEAN_HYGIENE_GAIN: float = 20.0
NEW_DAY_HYGIENE_BONUS: float = 20.0

# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
MAX_PATIENCE: float = 100.0
PATIENCE_DECAY_PER_TICK: float = 0.6
ORDER_SPAWN_CHANCE: float = 0.008     # probability per tick
MAX_ACTIVE_ORDERS: int = 3

# ---------------------------------------------------------------------------
# Penalties
# ---------------------------------------------------------------------------
EXPIRED_ORDER_MONEY_PENALTY: int = 5
EXPIRED_ORDER_HYGIENE_PENALTY: float = 5.0
WRONG_SERVE_MONEY_PENALTY: int = 5
WRONG_SERVE_HYGIENE_PENALTY: float = 5.0
BURNED_CLEAR_HYGIENE_PENALTY: float = 10.0

# Milliseconds a dish may sit ready before it burns.  None keeps dishes
# ready indefinitely.
BURN_AFTER_READY_MS: Optional[int] = None

# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------
EVENT_LOG_SIZE: int = 12
