"""
Nutrition Lookup Service - Facade pattern for food-composition databases.

Provides the abstraction layer for packaged-product lookup with OpenFoodFacts
as provider.
"""

from .base import (
    CompositionProduct,
    NutrientsPer100,
    NutritionLookupError,
    NutritionLookupService,
)
from .factory import get_nutrition_lookup_service
from .openfoodfacts_provider import OpenFoodFactsLookup, nutriments_to_per100

__all__ = [
    "CompositionProduct",
    "NutrientsPer100",
    "NutritionLookupError",
    "NutritionLookupService",
    "OpenFoodFactsLookup",
    "get_nutrition_lookup_service",
    "nutriments_to_per100",
]
