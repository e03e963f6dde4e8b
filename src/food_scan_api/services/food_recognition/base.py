"""
Base classes for the food recognition service.

Defines the abstract interface that every vision provider implements and
the error type the orchestrator uses to decide on the fallback path.
"""

from abc import ABC, abstractmethod
from typing import Any

from food_scan_api.models.food_scan import FoodAnalysis
from food_scan_api.utils.images import ImagePayload


class FoodRecognitionError(Exception):
    """Error during food recognition.

    error_code is one of PROVIDER_ERROR, CONNECTION_ERROR, EMPTY_RESPONSE,
    PARSE_ERROR, MALFORMED_OUTPUT, NO_ITEMS, FALLBACK_UNAVAILABLE,
    INVALID_PROVIDER or UNEXPECTED_ERROR.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "RECOGNITION_ERROR",
        provider: str = "unknown",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.provider = provider
        self.details = details or {}


class FoodRecognitionService(ABC):
    """
    Abstract base class for food recognition services.

    Providers send the image plus an instruction prompt to a vision model
    and return a validated, confidence-scored FoodAnalysis.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider."""
        ...

    @abstractmethod
    async def recognize(
        self,
        image: ImagePayload,
        *,
        context: str | None = None,
        barcode: str | None = None,
        text_hint: str | None = None,
        max_items: int = 5,
    ) -> FoodAnalysis:
        """
        Analyze the foods and beverages in an image.

        Args:
            image: Image payload (data URL or raw base64)
            context: Free-text context from the user
            barcode: Barcode hint, if one was scanned
            text_hint: Label text or product name typed/OCR'd by the user
            max_items: Maximum number of items to keep

        Returns:
            FoodAnalysis with 1..max_items items

        Raises:
            FoodRecognitionError: If the call or the parse fails
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is ready to accept requests."""
        return True
