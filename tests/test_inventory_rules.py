import unittest
from dataclasses import dataclass

from restaurantos.services.inventory import (
    consume_unit,
    default_is_critical,
    is_drink_category,
    missing_critical,
)


@dataclass
class Stock:
    name: str
    quantity: float
    is_critical: bool = True


class DrinkCategoryTests(unittest.TestCase):
    def test_drink_keywords_match_case_insensitively(self):
        for category in ("Beverage", "Cocktail", "Hot Drinks", "Craft BEER", "Red Wine", "Green Tea"):
            with self.subTest(category=category):
                self.assertTrue(is_drink_category(category))

    def test_food_and_missing_categories(self):
        for category in ("Main Course", "Desserts", "Salads", "", None):
            with self.subTest(category=category):
                self.assertFalse(is_drink_category(category))


class CriticalStockTests(unittest.TestCase):
    def test_garnish_and_ice_are_not_critical(self):
        self.assertFalse(default_is_critical("Ice"))
        self.assertFalse(default_is_critical("Limes"))
        self.assertTrue(default_is_critical("Gin"))
        self.assertTrue(default_is_critical("Tonic Water"))

    def test_missing_critical_ignores_unknown_and_non_critical(self):
        stock = {
            "Gin": Stock("Gin", 0),
            "Tonic Water": Stock("Tonic Water", 3),
            "Ice": Stock("Ice", 0, is_critical=False),
        }
        required = ["Gin", "Tonic Water", "Ice", "Cucumber"]
        self.assertEqual(missing_critical(required, stock), ["Gin"])

    def test_nothing_required(self):
        self.assertEqual(missing_critical([], {}), [])
        self.assertEqual(missing_critical(None, {}), [])


class ConsumeUnitTests(unittest.TestCase):
    def test_critical_stock_only_while_it_lasts(self):
        self.assertEqual(consume_unit(4, True), 3)
        self.assertEqual(consume_unit(1, True), 0)
        self.assertIsNone(consume_unit(0, True))

    def test_non_critical_stock_floors_at_zero(self):
        self.assertEqual(consume_unit(2, False), 1)
        self.assertEqual(consume_unit(0.5, False), 0.0)
        self.assertEqual(consume_unit(0, False), 0.0)


if __name__ == "__main__":
    unittest.main()
