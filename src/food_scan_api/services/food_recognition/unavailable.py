"""Placeholder fallback used when no secondary vision provider is configured."""

from food_scan_api.models.food_scan import FoodAnalysis
from food_scan_api.utils.images import ImagePayload

from .base import FoodRecognitionError, FoodRecognitionService


class UnavailableFoodRecognition(FoodRecognitionService):
    """Fallback that always fails, so the request ends with a retry message."""

    @property
    def provider_name(self) -> str:
        return "unavailable"

    async def recognize(
        self,
        image: ImagePayload,
        *,
        context: str | None = None,
        barcode: str | None = None,
        text_hint: str | None = None,
        max_items: int = 5,
    ) -> FoodAnalysis:
        raise FoodRecognitionError(
            message="Vision fallback unavailable",
            error_code="FALLBACK_UNAVAILABLE",
            provider=self.provider_name,
        )

    async def health_check(self) -> bool:
        return False
