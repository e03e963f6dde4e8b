"""
OpenFoodFacts provider for nutrition lookup.

Uses the public OpenFoodFacts API to find packaged products by barcode or
by name and convert their per-100 nutriments.
API Documentation: https://openfoodfacts.github.io/openfoodfacts-server/api/
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .base import (
    CompositionProduct,
    NutrientsPer100,
    NutritionLookupError,
    NutritionLookupService,
)

logger = logging.getLogger(__name__)

KJ_PER_KCAL = 4.184

SEARCH_PAGE_SIZE = 5

# Our field -> OpenFoodFacts nutriment key stem
NUTRIMENT_KEYS = {
    "protein_g": "proteins",
    "carbs_g": "carbohydrates",
    "sugar_g": "sugars",
    "fat_g": "fat",
    "fiber_g": "fiber",
}


def _text(value: Any) -> str | None:
    """Non-empty string fields only; OpenFoodFacts sometimes sends numbers or lists."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def _per100(nutriments: dict[str, Any], stem: str) -> Any:
    """Value per 100 g, falling back to per 100 ml."""
    value = nutriments.get(f"{stem}_100g")
    if value is None:
        value = nutriments.get(f"{stem}_100ml")
    return value


def nutriments_to_per100(nutriments: dict[str, Any]) -> NutrientsPer100:
    """
    Convert an OpenFoodFacts nutriments dict to NutrientsPer100.

    Energy comes from kcal when present, else kJ / 4.184. Sodium is
    reported in grams and converted to milligrams.
    """
    per100 = NutrientsPer100.from_values(
        calories=_per100(nutriments, "energy-kcal"),
        sodium_mg=_per100(nutriments, "sodium"),
        **{field: _per100(nutriments, stem) for field, stem in NUTRIMENT_KEYS.items()},
    )
    if not per100.calories:
        kilojoules = NutrientsPer100.from_values(calories=_per100(nutriments, "energy")).calories
        per100.calories = kilojoules / KJ_PER_KCAL if kilojoules else 0.0
    per100.sodium_mg = per100.sodium_mg * 1000
    return per100


class OpenFoodFactsLookup(NutritionLookupService):
    """
    Nutrition lookup using the OpenFoodFacts API.
    """

    def __init__(
        self,
        base_url: str = "https://world.openfoodfacts.org",
        country: str = "en",
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize OpenFoodFacts provider.

        Args:
            base_url: API base URL
            country: Country/locale filter for name searches
            timeout: Request timeout in seconds
            client: Optional preconfigured HTTP client
        """
        self.base_url = base_url.rstrip("/")
        self.country = country
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def provider_name(self) -> str:
        return "openfoodfacts"

    async def get_by_barcode(self, barcode: str) -> CompositionProduct | None:
        """Fetch a product by barcode."""
        url = f"{self.base_url}/api/v2/product/{barcode.strip()}.json"

        logger.info(f"Looking up barcode in OpenFoodFacts: {barcode}")

        data = await self._get_json(url)
        if data is None:
            return None

        product = data.get("product")
        if not isinstance(product, dict):
            logger.info(f"Barcode not found in OpenFoodFacts: {barcode}")
            return None

        return self._to_product(product)

    async def search_by_name(self, query: str) -> CompositionProduct | None:
        """
        Search products by name within one country.

        Prefers the first result that carries nutriments over the literal
        first match.
        """
        params = {
            "search_terms": query,
            "search_simple": "1",
            "action": "process",
            "json": "1",
            "countries": self.country,
            "page_size": str(SEARCH_PAGE_SIZE),
        }

        logger.info(f"Searching OpenFoodFacts for: {query}")

        data = await self._get_json(f"{self.base_url}/cgi/search.pl", params=params)
        if data is None:
            return None

        products = [p for p in data.get("products") or [] if isinstance(p, dict)]
        if not products:
            logger.info(f"No OpenFoodFacts results for: {query}")
            return None

        best = next((p for p in products if p.get("nutriments")), products[0])
        return self._to_product(best)

    async def _get_json(
        self,
        url: str,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any] | None:
        """GET a JSON document; None for non-2xx replies."""
        try:
            response = await self._client.get(url, params=params)
        except httpx.RequestError as e:
            logger.error(f"OpenFoodFacts request failed: {e}")
            raise NutritionLookupError(
                message=f"Failed to connect to OpenFoodFacts: {e}",
                error_code="CONNECTION_ERROR",
                provider=self.provider_name,
            ) from e

        if response.status_code != 200:
            logger.warning(f"OpenFoodFacts returned {response.status_code} for {url}")
            return None

        try:
            data = response.json()
        except ValueError as e:
            raise NutritionLookupError(
                message=f"Invalid JSON from OpenFoodFacts: {e}",
                error_code="INVALID_RESPONSE",
                provider=self.provider_name,
            ) from e
        return data if isinstance(data, dict) else None

    def _to_product(self, product: dict[str, Any]) -> CompositionProduct:
        nutriments = product.get("nutriments")
        try:
            return CompositionProduct(
                code=str(product["code"]) if product.get("code") else None,
                product_name=_text(product.get("product_name")),
                brands=_text(product.get("brands")),
                categories=_text(product.get("categories")),
                nutrients=nutriments_to_per100(nutriments) if isinstance(nutriments, dict) and nutriments else None,
                provider=self.provider_name,
            )
        except ValidationError as e:
            raise NutritionLookupError(
                message=f"Malformed OpenFoodFacts product: {e}",
                error_code="INVALID_RESPONSE",
                provider=self.provider_name,
            ) from e

    async def health_check(self) -> bool:
        """Check if OpenFoodFacts is reachable."""
        try:
            response = await self._client.get(f"{self.base_url}/api/v2/product/3017624010701.json")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"OpenFoodFacts health check failed: {e}")
            return False

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()
