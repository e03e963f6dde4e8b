"""
Factory for creating nutrition lookup service instances.

Reads configuration from settings and returns the appropriate provider.
"""

import logging
from functools import lru_cache

from food_scan_api.core.config import get_settings

from .base import NutritionLookupService
from .openfoodfacts_provider import OpenFoodFactsLookup

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_nutrition_lookup_service() -> NutritionLookupService | None:
    """
    Get the configured nutrition lookup service.

    Configuration is read from settings:
    - openfoodfacts_enabled: Whether lookups are enabled
    - openfoodfacts_base_url / openfoodfacts_country / openfoodfacts_timeout

    Returns:
        Configured NutritionLookupService instance, or None if disabled
    """
    settings = get_settings()

    if not settings.openfoodfacts_enabled:
        logger.warning("OpenFoodFacts lookup disabled; packaged items use heuristics only")
        return None

    logger.info("Initializing OpenFoodFacts nutrition lookup service")

    return OpenFoodFactsLookup(
        base_url=settings.openfoodfacts_base_url,
        country=settings.openfoodfacts_country,
        timeout=settings.openfoodfacts_timeout,
    )


def clear_service_cache():
    """Clear the cached service instance (useful for testing)."""
    get_nutrition_lookup_service.cache_clear()
