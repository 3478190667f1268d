import json
import tempfile
import unittest
from pathlib import Path

from config import INGREDIENT_KEYS
from recipe_catalog import DEFAULT_RECIPES, RECIPES, get_recipe, load_recipe_catalog


class RecipeCatalogTests(unittest.TestCase):
    def _load(self, payload) -> dict:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "recipes.json"
            path.write_text(payload if isinstance(payload, str) else json.dumps(payload))
            return load_recipe_catalog(path)

    def test_loads_defaults_when_file_missing(self):
        catalog = load_recipe_catalog(Path("does_not_exist.json"))
        self.assertEqual(set(catalog), {"hamburguer", "salada", "carbonara", "bauru"})
        self.assertEqual(("P", "C", "Q", "P"), catalog["hamburguer"].ingredients)
        self.assertEqual(25, catalog["hamburguer"].price)
        self.assertEqual(1000, catalog["salada"].prep_time_ms)

    def test_default_catalog_integrity(self):
        for key, recipe in DEFAULT_RECIPES.items():
            self.assertEqual(key, recipe.key)
            self.assertGreaterEqual(len(recipe.ingredients), 1)
            self.assertTrue(all(k in INGREDIENT_KEYS for k in recipe.ingredients), key)
            self.assertGreater(recipe.prep_time_ms, 0)
            self.assertGreaterEqual(recipe.price, 0)

    def test_filters_invalid_entries(self):
        catalog = self._load(
            {
                "valid": {"display_name": "Valid", "ingredients": ["p", "Q"], "prep_time_ms": 1200, "price": 9},
                "free_sample": {"display_name": "Free", "ingredients": ["A"], "prep_time_ms": 500, "price": 0},
                "unknown_key": {"display_name": "Bad", "ingredients": ["Z"], "prep_time_ms": 1000, "price": 5},
                "no_steps": {"display_name": "Bad", "ingredients": [], "prep_time_ms": 1000, "price": 5},
                "negative": {"display_name": "Bad", "ingredients": ["A"], "prep_time_ms": 1000, "price": -1},
                "instant": {"display_name": "Bad", "ingredients": ["A"], "prep_time_ms": 0, "price": 5},
                "bool_price": {"display_name": "Bad", "ingredients": ["A"], "prep_time_ms": 1000, "price": True},
                "Bad-Key": {"display_name": "Bad", "ingredients": ["A"], "prep_time_ms": 1000, "price": 5},
                "nameless": {"display_name": "  ", "ingredients": ["A"], "prep_time_ms": 1000, "price": 5},
            }
        )

        self.assertEqual({"valid", "free_sample"}, set(catalog))
        self.assertEqual(("P", "Q"), catalog["valid"].ingredients)

    def test_duplicate_ingredients_are_allowed(self):
        catalog = self._load(
            {"double": {"display_name": "Double", "ingredients": ["P", "P", "P"], "prep_time_ms": 100, "price": 3}}
        )
        self.assertEqual(("P", "P", "P"), catalog["double"].ingredients)

    def test_broken_files_fall_back_to_defaults(self):
        self.assertEqual(set(DEFAULT_RECIPES), set(self._load("{not json")))
        self.assertEqual(set(DEFAULT_RECIPES), set(self._load([1, 2, 3])))
        self.assertEqual(
            set(DEFAULT_RECIPES),
            set(self._load({"bad": {"display_name": "", "ingredients": [], "prep_time_ms": 0, "price": -1}})),
        )

    def test_integral_floats_are_accepted(self):
        catalog = self._load(
            {"soup": {"display_name": "Soup", "ingredients": ["T"], "prep_time_ms": 800.0, "price": 7.0}}
        )
        self.assertEqual(800, catalog["soup"].prep_time_ms)
        self.assertEqual(7, catalog["soup"].price)

    def test_get_recipe(self):
        first = next(iter(RECIPES))
        self.assertIs(RECIPES[first], get_recipe(first))
        self.assertIsNone(get_recipe("pizza_de_pedra"))
        self.assertIsNone(get_recipe(None))
