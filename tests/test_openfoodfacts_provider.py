"""Tests for the OpenFoodFacts lookup provider."""

import httpx
import pytest

from food_scan_api.services.nutrition_lookup import (
    NutrientsPer100,
    NutritionLookupError,
    OpenFoodFactsLookup,
    nutriments_to_per100,
)

COKE_ZERO = {
    "code": "5449000131805",
    "product_name": "Coca-Cola Zero",
    "brands": "Coca-Cola",
    "categories": "Beverages, Sodas, Diet sodas",
    "nutriments": {
        "energy-kcal_100ml": 0.2,
        "carbohydrates_100ml": 0,
        "sugars_100ml": 0,
        "sodium_100ml": 0.01,
    },
}


def make_lookup(handler) -> OpenFoodFactsLookup:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenFoodFactsLookup(base_url="https://off.test", country="spain", client=client)


class TestNutrimentsToPer100:
    """Tests for nutriments conversion."""

    def test_sodium_grams_to_milligrams(self):
        per100 = nutriments_to_per100(COKE_ZERO["nutriments"])

        assert per100.sodium_mg == pytest.approx(10)
        assert per100.calories == pytest.approx(0.2)

    def test_kilojoules_fallback(self):
        """Test energy in kJ is converted when kcal is missing."""
        per100 = nutriments_to_per100({"energy_100g": 418.4, "proteins_100g": 3})

        assert per100.calories == pytest.approx(100)
        assert per100.protein_g == 3

    def test_junk_values(self):
        per100 = nutriments_to_per100({"fat_100g": "n/a", "fiber_100g": -2})

        assert per100.fat_g == 0
        assert per100.fiber_g == 0


class TestScaleToServing:
    """Tests for per-100 scaling."""

    def test_330_ml_multiplies_by_3_3(self):
        """Test per100 carbs 10.6 scale to 35.0 for a 330 ml can."""
        per100 = NutrientsPer100(calories=42, carbs_g=10.6, sugar_g=10.6, sodium_mg=2)

        scaled = per100.scale_to_serving(volume_ml=330)

        assert scaled.carbs_g == 35.0
        assert scaled.sugar_g == 35.0
        assert scaled.calories == 139
        assert scaled.sodium_mg == 7

    def test_mass_wins_over_volume(self):
        per100 = NutrientsPer100(calories=100)

        assert per100.scale_to_serving(mass_g=50, volume_ml=330).calories == 50

    def test_unknown_size_is_per_100(self):
        per100 = NutrientsPer100(calories=100, protein_g=2.5)

        scaled = per100.scale_to_serving()

        assert scaled.calories == 100
        assert scaled.protein_g == 2.5


class TestOpenFoodFactsLookup:
    """Tests for OpenFoodFactsLookup."""

    @pytest.mark.asyncio
    async def test_get_by_barcode(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v2/product/5449000131805.json"
            return httpx.Response(200, json={"status": 1, "product": COKE_ZERO})

        product = await make_lookup(handler).get_by_barcode("5449000131805")

        assert product.product_name == "Coca-Cola Zero"
        assert product.has_nutrients
        assert product.provider == "openfoodfacts"

    @pytest.mark.asyncio
    async def test_unknown_barcode(self):
        lookup = make_lookup(lambda request: httpx.Response(404, json={"status": 0}))

        assert await lookup.get_by_barcode("000") is None

    @pytest.mark.asyncio
    async def test_search_prefers_products_with_nutriments(self):
        """Test the first result carrying nutriments is chosen."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(
                200,
                json={"products": [{"product_name": "Fanta Zero (no data)"}, COKE_ZERO]},
            )

        product = await make_lookup(handler).search_by_name("coca cola zero")

        assert product.product_name == "Coca-Cola Zero"
        assert seen["params"]["search_terms"] == "coca cola zero"
        assert seen["params"]["countries"] == "spain"
        assert seen["params"]["page_size"] == "5"

    @pytest.mark.asyncio
    async def test_search_without_results(self):
        lookup = make_lookup(lambda request: httpx.Response(200, json={"products": []}))

        assert await lookup.search_by_name("nothing") is None

    @pytest.mark.asyncio
    async def test_connection_error(self):
        """Test network failures raise NutritionLookupError."""

        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        with pytest.raises(NutritionLookupError) as exc_info:
            await make_lookup(handler).get_by_barcode("123")

        assert exc_info.value.error_code == "CONNECTION_ERROR"

    @pytest.mark.asyncio
    async def test_health_check(self):
        assert await make_lookup(lambda request: httpx.Response(200, json={})).health_check() is True
        assert await make_lookup(lambda request: httpx.Response(503)).health_check() is False

    @pytest.mark.asyncio
    async def test_non_string_fields_are_dropped(self):
        """Test numeric or list text fields do not break product parsing."""
        reply = {
            "products": [
                {
                    "product_name": 123,
                    "brands": ["Acme"],
                    "categories": None,
                    "nutriments": {"energy-kcal_100g": 40},
                }
            ]
        }
        lookup = make_lookup(lambda request: httpx.Response(200, json=reply))

        product = await lookup.search_by_name("sparkling water")

        assert product.product_name is None
        assert product.brands is None
        assert product.nutrients.calories == 40
