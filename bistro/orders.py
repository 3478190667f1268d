"""Customer order generation."""
from __future__ import annotations

import random
import string
from typing import Collection

from config import MAX_PATIENCE
from bistro.entities import Order, OrderStatus
from recipe_catalog import RECIPES

ORDER_ID_ALPHABET = string.ascii_lowercase + string.digits
ORDER_ID_LENGTH = 9


class OrderGenerator:
    """Draws orders from the catalog using the simulation's RNG.

    Ids come from the same RNG, so a seeded simulation replays identically.
    They only need to be unique among the orders still in play, which the
    caller passes as ``taken``.
    """

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng

    def _fresh_id(self, taken: Collection[str]) -> str:
        while True:
            order_id = "".join(self.rng.choices(ORDER_ID_ALPHABET, k=ORDER_ID_LENGTH))
            if order_id not in taken:
                return order_id

    def generate(self, now_ms: int, taken: Collection[str] = ()) -> Order:
        recipe_id = self.rng.choice(list(RECIPES))
        return Order(
            id=self._fresh_id(taken),
            recipe_id=recipe_id,
            created_at=now_ms,
            patience=MAX_PATIENCE,
            status=OrderStatus.WAITING,
        )
