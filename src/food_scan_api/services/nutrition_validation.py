"""
Plausibility bounds and validation for model-estimated nutrition.

Vision models regularly return impossible values (negative sugar, a 3000 kcal
apple, calories that do not match the macros). Every nutrient record that
leaves the pipeline goes through validate_nutrition(), which clamps each
field into category bounds and reconciles calories against the 4-4-9 macro
estimate.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from food_scan_api.models.food_scan import NutritionRecord
from food_scan_api.utils.numbers import clamp, round_half_up, to_number

# Calories may differ from the macro estimate by this fraction before the
# macro estimate wins.
CALORIE_TOLERANCE = 0.25


@dataclass(frozen=True)
class NutrientBounds:
    """Per-serving upper bounds for one food category."""

    calories: int
    carbs_g: float
    sugar_g: float
    fat_g: float
    protein_g: float
    fiber_g: float
    sodium_mg: int


# Ordered: the first keyword contained in the category wins.
CATEGORY_BOUNDS: tuple[tuple[tuple[str, ...], NutrientBounds], ...] = (
    (("beverage", "drink"), NutrientBounds(350, 75, 75, 10, 25, 15, 1500)),
    (("fruit",), NutrientBounds(250, 65, 55, 5, 6, 15, 300)),
    (("snack", "dessert"), NutrientBounds(800, 120, 80, 60, 25, 20, 1800)),
    (("vegetable",), NutrientBounds(200, 40, 20, 15, 15, 20, 1200)),
    (("dairy",), NutrientBounds(600, 60, 55, 40, 40, 5, 1800)),
    (("protein",), NutrientBounds(900, 50, 20, 60, 100, 10, 2200)),
    (("grain",), NutrientBounds(900, 160, 35, 30, 40, 30, 2200)),
)

DEFAULT_BOUNDS = NutrientBounds(1000, 160, 120, 80, 100, 30, 3000)

# Accepted input keys per field; model output and lookup records use either.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "calories": ("calories", "kcal", "energy_kcal"),
    "protein_g": ("protein_g", "protein"),
    "carbs_g": ("carbs_g", "carbs", "carbohydrates"),
    "fat_g": ("fat_g", "fat"),
    "fiber_g": ("fiber_g", "fiber"),
    "sugar_g": ("sugar_g", "sugar", "sugars"),
    "sodium_mg": ("sodium_mg", "sodium"),
}


def bounds_for(category: str | None) -> NutrientBounds:
    """
    Look up the bounds for a category by case-insensitive substring match.

    Unknown or empty categories get the wide default bounds.
    """
    text = (category or "").lower()
    for keywords, bounds in CATEGORY_BOUNDS:
        if any(keyword in text for keyword in keywords):
            return bounds
    return DEFAULT_BOUNDS


def derived_calories(carbs_g: float, protein_g: float, fat_g: float) -> int:
    """Energy estimate from macros (4 kcal/g carbs and protein, 9 kcal/g fat)."""
    return int(round_half_up(carbs_g * 4 + protein_g * 4 + fat_g * 9))


def _read(nutrition: Mapping[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        if key in nutrition and nutrition[key] is not None:
            return nutrition[key]
    return None


def validate_nutrition(
    nutrition: Mapping[str, Any] | NutritionRecord | None,
    category: str | None,
) -> NutritionRecord:
    """
    Clamp a partial nutrient record into category bounds.

    Args:
        nutrition: Raw values (any subset of fields, untrusted types)
        category: Food category used to select bounds

    Returns:
        A complete NutritionRecord. Applying this twice yields the same
        record as applying it once.
    """
    if isinstance(nutrition, NutritionRecord):
        nutrition = nutrition.model_dump()
    nutrition = nutrition or {}
    bounds = bounds_for(category)

    def grams(field: str) -> float:
        value = round_half_up(to_number(_read(nutrition, field)), 1)
        return clamp(value, 0, getattr(bounds, field))

    protein = grams("protein_g")
    carbs = grams("carbs_g")
    fat = grams("fat_g")
    calories = int(clamp(round_half_up(to_number(_read(nutrition, "calories"))), 0, bounds.calories))
    sodium = int(clamp(round_half_up(to_number(_read(nutrition, "sodium_mg"))), 0, bounds.sodium_mg))

    derived = derived_calories(carbs, protein, fat)
    if calories == 0 and (carbs > 0 or protein > 0 or fat > 0):
        calories = int(clamp(derived, 0, bounds.calories))

    if calories > 0 and derived > 0:
        if abs(calories - derived) / calories > CALORIE_TOLERANCE:
            calories = int(clamp(derived, 0, bounds.calories))

    return NutritionRecord(
        calories=calories,
        protein_g=protein,
        carbs_g=carbs,
        fat_g=fat,
        fiber_g=grams("fiber_g"),
        sugar_g=grams("sugar_g"),
        sodium_mg=sodium,
    )
