"""
Packaged item enrichment.

Vision models read the front of a pack well (brand, flavor) but have no
reliable nutrition for it. For packaged items the model returned empty or
was unsure about, nutrition is filled from a food-composition database and,
when the database has nothing, from a small table of hand-made profiles.
"""

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from food_scan_api.models.food_scan import FoodItem
from food_scan_api.services.nutrition_lookup.base import (
    CompositionProduct,
    NutrientsPer100,
    NutritionLookupError,
    NutritionLookupService,
)
from food_scan_api.services.nutrition_validation import validate_nutrition
from food_scan_api.services.serving_size import DEFAULT_SERVING

logger = logging.getLogger(__name__)

# Items at or above this confidence with non-empty nutrition are left alone
ENRICH_BELOW_CONFIDENCE = 60

# Confidence floor after a successful database match
DATABASE_MATCH_CONFIDENCE = 80

DEFAULT_BEVERAGE_ML = 330
LARGE_BOTTLE_ML = 500

DRINK_RE = re.compile(r"beverage|drink|soda|soft", re.IGNORECASE)
LARGE_BOTTLE_RE = re.compile(r"500|0\.5\s?l|500\s?ml", re.IGNORECASE)

SODA_BRAND_RE = re.compile(r"fanta|coca|sprite|pepsi|cola|coke", re.IGNORECASE)
DIET_MARKER_RE = re.compile(r"zero|diet|sin az[uú]car|sugar[\s-]?free|light", re.IGNORECASE)
NOT_REGULAR_RE = re.compile(r"zero|diet|light", re.IGNORECASE)


# =============================================================================
# Heuristic profiles
# =============================================================================


@dataclass(frozen=True)
class HeuristicProfile:
    """A fixed per-100 profile for a recognizable product family."""

    name: str
    matches: Callable[[str], bool]
    per100: NutrientsPer100
    confidence_floor: int
    note: str
    source_label: str


# Evaluated in order; the first matching row is applied.
HEURISTIC_PROFILES: tuple[HeuristicProfile, ...] = (
    HeuristicProfile(
        name="diet_soda",
        matches=lambda text: bool(DIET_MARKER_RE.search(text) and SODA_BRAND_RE.search(text)),
        per100=NutrientsPer100(calories=1, carbs_g=0.1, sodium_mg=10),
        confidence_floor=60,
        note="Estimated via zero-soda heuristic",
        source_label="Heuristic: zero/diet soda profile",
    ),
    HeuristicProfile(
        name="regular_soda",
        matches=lambda text: bool(SODA_BRAND_RE.search(text) and not NOT_REGULAR_RE.search(text)),
        per100=NutrientsPer100(calories=42, carbs_g=10.6, sugar_g=10.6, sodium_mg=2),
        confidence_floor=70,
        note="Estimated via regular soda heuristic",
        source_label="Heuristic: regular soda profile",
    ),
)


def match_heuristic(item: FoodItem) -> HeuristicProfile | None:
    """Find the first heuristic profile matching the item's brand and name."""
    text = f"{item.brand or ''} {item.food_name or ''}".lower()
    return next((profile for profile in HEURISTIC_PROFILES if profile.matches(text)), None)


def is_drink_category(category: str | None) -> bool:
    return bool(DRINK_RE.search(category or ""))


def _volume_text(volume_ml: float) -> str:
    return f"{volume_ml:g} ml"


# =============================================================================
# Enricher
# =============================================================================


class CompositionEnricher:
    """
    Fills nutrition for packaged items the vision model could not size up.

    Usage:
        enricher = CompositionEnricher(lookup)
        await enricher.enrich(analysis.items, barcode=..., text_hint=...)
    """

    def __init__(self, lookup: NutritionLookupService | None):
        """
        Args:
            lookup: Food-composition database client (None disables lookups)
        """
        self.lookup = lookup

    @staticmethod
    def needs_enrichment(item: FoodItem) -> bool:
        """Packaged items with empty nutrition or confidence below 60."""
        if not item.is_packaged:
            return False
        return item.nutrition.is_empty or item.confidence < ENRICH_BELOW_CONFIDENCE

    async def enrich(
        self,
        items: Sequence[FoodItem],
        *,
        barcode: str | None = None,
        text_hint: str | None = None,
    ) -> None:
        """
        Enrich items in place, one at a time.

        Lookup failures are logged and never raised; an item with no
        database match and no heuristic keeps its validated estimate.
        """
        barcode_cache: dict[str, CompositionProduct | None] = {}

        for item in items:
            if not self.needs_enrichment(item):
                continue

            product = await self._find_product(item, barcode, text_hint, barcode_cache)
            if product is not None and product.has_nutrients:
                self.apply_product(item, product)
                logger.info(f"Enriched '{item.food_name}' from {product.provider}")
                continue

            profile = match_heuristic(item)
            if profile is not None:
                self.apply_heuristic(item, profile)
                logger.info(f"Enriched '{item.food_name}' via {profile.name} heuristic")
            else:
                logger.debug(f"No enrichment available for '{item.food_name}'")

    async def _find_product(
        self,
        item: FoodItem,
        barcode: str | None,
        text_hint: str | None,
        barcode_cache: dict[str, CompositionProduct | None],
    ) -> CompositionProduct | None:
        """Barcode lookup first, then a name search."""
        if self.lookup is None:
            return None

        product = None
        if barcode:
            if barcode not in barcode_cache:
                barcode_cache[barcode] = await self._safe_lookup(self.lookup.get_by_barcode, barcode)
            product = barcode_cache[barcode]

        if product is None:
            query = " ".join(part for part in (text_hint, item.food_name, item.brand) if part).strip()
            if query:
                product = await self._safe_lookup(self.lookup.search_by_name, query)

        return product

    async def _safe_lookup(self, call, argument: str) -> CompositionProduct | None:
        try:
            return await call(argument)
        except NutritionLookupError as e:
            logger.warning(f"Nutrition lookup failed for '{argument}': {e.message}")
            return None

    def apply_product(self, item: FoodItem, product: CompositionProduct) -> None:
        """Scale a database record to the item's serving and merge it."""
        if item.units.volume_ml is None and is_drink_category(item.category):
            label = (item.source_label or "").lower()
            item.units.volume_ml = float(
                LARGE_BOTTLE_ML if LARGE_BOTTLE_RE.search(label) else DEFAULT_BEVERAGE_ML
            )
            if item.serving_description in ("", DEFAULT_SERVING):
                item.serving_description = _volume_text(item.units.volume_ml)

        if "beverage" not in item.category.lower() and is_drink_category(product.categories):
            item.category = "beverage"

        scaled = product.nutrients.scale_to_serving(item.units.mass_g, item.units.volume_ml)
        merged = {**item.nutrition.model_dump(), **scaled.model_dump()}
        item.nutrition = validate_nutrition(merged, item.category)

        if not item.source_label:
            item.source_label = (
                f"OpenFoodFacts: {product.brands or ''} {product.product_name or ''}".strip()
            )
        item.brand = item.brand or product.brands
        item.food_name = item.food_name or product.product_name or "Packaged product"
        item.confidence = max(item.confidence, DATABASE_MATCH_CONFIDENCE)

    def apply_heuristic(self, item: FoodItem, profile: HeuristicProfile) -> None:
        """Apply a fixed per-100 profile, sized to the item (330 ml default)."""
        if item.units.volume_ml is None:
            item.units.volume_ml = float(DEFAULT_BEVERAGE_ML)
        if item.serving_description in ("", DEFAULT_SERVING):
            item.serving_description = _volume_text(item.units.volume_ml)

        item.category = "beverage"

        scaled = profile.per100.scale_to_serving(item.units.mass_g, item.units.volume_ml)
        item.nutrition = validate_nutrition(scaled, "beverage")
        item.confidence = max(profile.confidence_floor, item.confidence)
        item.notes = " | ".join(part for part in (item.notes, profile.note) if part)
        item.source_label = item.source_label or profile.source_label
