"""
Ollama/LLaVA provider for food recognition.

Secondary vision path: uses a local Ollama instance with a LLaVA vision
model when the primary chat model is unreachable.
"""

import logging
import time

import httpx

from food_scan_api.models.food_scan import FoodAnalysis
from food_scan_api.services.confidence_engine import ConfidenceEngine
from food_scan_api.utils.images import ImagePayload

from .base import FoodRecognitionError, FoodRecognitionService
from .parser import parse_food_analysis
from .prompts import build_food_analysis_prompt

logger = logging.getLogger(__name__)


class OllamaFoodRecognition(FoodRecognitionService):
    """
    Food recognition using Ollama with LLaVA vision model.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llava:7b",
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
        engine: ConfidenceEngine | None = None,
    ):
        """
        Initialize Ollama provider.

        Args:
            base_url: Ollama API base URL
            model: Vision model to use (default: llava:7b)
            timeout: Request timeout in seconds
            client: Optional preconfigured HTTP client
            engine: Confidence engine used while parsing
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.engine = engine
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def provider_name(self) -> str:
        return f"ollama/{self.model}"

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
        Analyze foods in an image using LLaVA.
        """
        start_time = time.time()

        request_body = {
            "model": self.model,
            "prompt": build_food_analysis_prompt(
                context=context,
                barcode=barcode,
                text_hint=text_hint,
                max_items=max_items,
            ),
            "images": [image.base64_data],
            "stream": False,
            "options": {
                "temperature": 0.2,
                "num_predict": 2000,
            },
        }

        logger.info(f"Sending food analysis request to Ollama ({self.model})")

        try:
            response = await self._client.post(
                f"{self.base_url}/api/generate",
                json=request_body,
            )
        except httpx.RequestError as e:
            raise FoodRecognitionError(
                message=f"Failed to connect to Ollama: {e}",
                error_code="CONNECTION_ERROR",
                provider=self.provider_name,
            ) from e

        if response.status_code != 200:
            raise FoodRecognitionError(
                message=f"Ollama API error: {response.status_code}",
                error_code="PROVIDER_ERROR",
                provider=self.provider_name,
                details={"status_code": response.status_code, "body": response.text[:500]},
            )

        try:
            body = response.json()
        except ValueError as e:
            raise FoodRecognitionError(
                message=f"Invalid JSON from Ollama: {e}",
                error_code="PROVIDER_ERROR",
                provider=self.provider_name,
                details={"body": response.text[:500]},
            ) from e

        raw_response = body.get("response", "") if isinstance(body, dict) else ""
        if not isinstance(raw_response, str) or not raw_response:
            raise FoodRecognitionError(
                message="Empty response from Ollama",
                error_code="EMPTY_RESPONSE",
                provider=self.provider_name,
            )

        logger.debug(f"Raw Ollama response: {raw_response[:500]}...")

        analysis = parse_food_analysis(
            raw_response,
            provider=self.provider_name,
            max_items=max_items,
            engine=self.engine,
        )

        processing_time = int((time.time() - start_time) * 1000)
        logger.info(f"Ollama analysis complete: {len(analysis.items)} items in {processing_time}ms")
        return analysis

    async def health_check(self) -> bool:
        """Check if Ollama is available and has the required model."""
        try:
            response = await self._client.get(f"{self.base_url}/api/tags")
            if response.status_code != 200:
                return False

            models = [m.get("name", "") for m in response.json().get("models", [])]
            model_available = any(
                self.model in m or m.startswith(self.model.split(":")[0])
                for m in models
            )
            if not model_available:
                logger.warning(f"Model {self.model} not found. Available: {models}")
            return model_available

        except httpx.HTTPError as e:
            logger.error(f"Ollama health check failed: {e}")
            return False

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()
