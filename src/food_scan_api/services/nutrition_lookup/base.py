"""
Base classes and models for nutrition lookup service.

Defines the abstract interface that food-composition database providers
implement, plus the per-100 nutrient model used to scale database values to
an item's serving.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from food_scan_api.models.food_scan import NutritionRecord
from food_scan_api.utils.numbers import round_half_up, to_number


class NutrientsPer100(BaseModel):
    """Nutrients per 100 g (solids) or per 100 ml (liquids)."""

    calories: float = Field(0, ge=0, description="Energy in kcal")
    protein_g: float = Field(0, ge=0)
    carbs_g: float = Field(0, ge=0)
    fat_g: float = Field(0, ge=0)
    fiber_g: float = Field(0, ge=0)
    sugar_g: float = Field(0, ge=0)
    sodium_mg: float = Field(0, ge=0)

    @staticmethod
    def serving_factor(mass_g: float | None, volume_ml: float | None) -> float:
        """Multiplier from per-100 values to one serving (1 when size unknown)."""
        if mass_g:
            return mass_g / 100
        if volume_ml:
            return volume_ml / 100
        return 1.0

    def scale_to_serving(
        self,
        mass_g: float | None = None,
        volume_ml: float | None = None,
    ) -> NutritionRecord:
        """
        Scale per-100 nutrients to a serving.

        Mass wins over volume. Calories and sodium are rounded to integers,
        grams to one decimal.
        """
        factor = self.serving_factor(mass_g, volume_ml)

        def grams(value: float) -> float:
            return max(0.0, round_half_up(value * factor, 1))

        return NutritionRecord(
            calories=max(0, int(round_half_up(self.calories * factor))),
            protein_g=grams(self.protein_g),
            carbs_g=grams(self.carbs_g),
            fat_g=grams(self.fat_g),
            fiber_g=grams(self.fiber_g),
            sugar_g=grams(self.sugar_g),
            sodium_mg=max(0, int(round_half_up(self.sodium_mg * factor))),
        )

    @classmethod
    def from_values(cls, **values: Any) -> "NutrientsPer100":
        """Build from untrusted numbers, mapping negatives and junk to 0."""
        return cls(**{key: max(0.0, to_number(value)) for key, value in values.items()})


class CompositionProduct(BaseModel):
    """A product record from a food-composition database."""

    code: str | None = Field(None, description="Barcode / database ID")
    product_name: str | None = None
    brands: str | None = None
    categories: str | None = Field(None, description="Free-text category list")
    nutrients: NutrientsPer100 | None = Field(
        None, description="Per-100 nutrients, None when the record has none"
    )
    provider: str = Field(..., description="Provider that returned this record")

    @property
    def has_nutrients(self) -> bool:
        return self.nutrients is not None


class NutritionLookupError(Exception):
    """Error during nutrition lookup."""

    def __init__(
        self,
        message: str,
        error_code: str = "LOOKUP_ERROR",
        provider: str = "unknown",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.provider = provider
        self.details = details or {}


class NutritionLookupService(ABC):
    """
    Abstract base class for food-composition lookup services.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider."""
        ...

    @abstractmethod
    async def get_by_barcode(self, barcode: str) -> CompositionProduct | None:
        """
        Look up a product by barcode.

        Returns:
            The product, or None if the barcode is unknown

        Raises:
            NutritionLookupError: If the lookup itself fails
        """
        ...

    @abstractmethod
    async def search_by_name(self, query: str) -> CompositionProduct | None:
        """
        Search products by free text.

        Returns:
            The best product (records with nutrients preferred), or None

        Raises:
            NutritionLookupError: If the lookup itself fails
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available."""
        return True
