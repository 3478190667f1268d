from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from config import INGREDIENT_KEYS, RECIPES_FILE

RECIPE_ID_RE = re.compile(r"^[a-z][a-z0-9_]*$")
MAX_INGREDIENTS = 8


@dataclass(frozen=True)
class Recipe:
    key: str
    display_name: str
    ingredients: tuple[str, ...]
    prep_time_ms: int
    price: int


DEFAULT_RECIPES: Dict[str, Recipe] = {
    "hamburguer": Recipe(
        key="hamburguer",
        display_name="X-Burguer Classico",
        ingredients=("P", "C", "Q", "P"),
        prep_time_ms=3000,
        price=25,
    ),
    "salada": Recipe(
        key="salada",
        display_name="Salada Fresca",
        ingredients=("A", "T", "Q"),
        prep_time_ms=1000,
        price=15,
    ),
    "carbonara": Recipe(
        key="carbonara",
        display_name="Carbonara",
        ingredients=("M", "O", "C", "Q"),
        prep_time_ms=5000,
        price=40,
    ),
    "bauru": Recipe(
        key="bauru",
        display_name="Bauru",
        ingredients=("P", "Q", "T", "P"),
        prep_time_ms=2500,
        price=20,
    ),
}


def _coerce_int(value: Any, *, minimum: int | None = None) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        result = value
    elif isinstance(value, float) and value.is_integer():
        result = int(value)
    else:
        return None

    if minimum is not None and result < minimum:
        return None
    return result


def _coerce_ingredients(value: Any) -> tuple[str, ...] | None:
    if not isinstance(value, list) or not value or len(value) > MAX_INGREDIENTS:
        return None
    if not all(isinstance(key, str) for key in value):
        return None
    keys = tuple(key.strip().upper() for key in value)
    if not all(key in INGREDIENT_KEYS for key in keys):
        return None
    return keys


def _parse_recipe_entry(key: str, entry: Dict[str, Any]) -> Recipe | None:
    if not RECIPE_ID_RE.fullmatch(key):
        return None

    display_name = entry.get("display_name")
    ingredients = _coerce_ingredients(entry.get("ingredients"))
    prep_time_ms = _coerce_int(entry.get("prep_time_ms"), minimum=1)
    price = _coerce_int(entry.get("price"), minimum=0)

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if ingredients is None or prep_time_ms is None or price is None:
        return None

    return Recipe(
        key=key,
        display_name=display_name.strip(),
        ingredients=ingredients,
        prep_time_ms=prep_time_ms,
        price=price,
    )


def _ordered_catalog(recipes: Iterable[Recipe]) -> Dict[str, Recipe]:
    return {recipe.key: recipe for recipe in recipes}


def load_recipe_catalog(path: Path = RECIPES_FILE) -> Dict[str, Recipe]:
    """Load the recipe catalog, falling back to the built-in menu.

    Entries in the file that fail validation are skipped; a missing,
    unreadable or fully invalid file yields the defaults.
    """
    if not path.exists():
        return _ordered_catalog(DEFAULT_RECIPES.values())

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return _ordered_catalog(DEFAULT_RECIPES.values())

    if not isinstance(raw, dict):
        return _ordered_catalog(DEFAULT_RECIPES.values())

    recipes: Dict[str, Recipe] = {}
    for key, entry in raw.items():
        if not isinstance(key, str) or not isinstance(entry, dict):
            continue
        recipe = _parse_recipe_entry(key, entry)
        if recipe is None:
            continue
        recipes[key] = recipe

    if not recipes:
        return _ordered_catalog(DEFAULT_RECIPES.values())

    return _ordered_catalog(recipes.values())


RECIPES: Dict[str, Recipe] = load_recipe_catalog(RECIPES_FILE)


def get_recipe(recipe_id: Optional[str]) -> Recipe | None:
    if recipe_id is None:
        return None
    return RECIPES.get(recipe_id)
