"""
Chat-model vision provider for food recognition.

Sends the analysis prompt and the image as one multimodal user message to a
LangChain chat model (OpenAI GPT-4o or Google Gemini) and parses the reply.
"""

import logging
import time

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from food_scan_api.models.food_scan import FoodAnalysis
from food_scan_api.services.confidence_engine import ConfidenceEngine
from food_scan_api.utils.images import ImagePayload

from .base import FoodRecognitionError, FoodRecognitionService
from .parser import parse_food_analysis
from .prompts import build_food_analysis_prompt

logger = logging.getLogger(__name__)


class ChatVisionFoodRecognition(FoodRecognitionService):
    """
    Food recognition using a multimodal LangChain chat model.
    """

    def __init__(
        self,
        llm: BaseChatModel,
        model_name: str,
        engine: ConfidenceEngine | None = None,
    ):
        """
        Initialize the provider.

        Args:
            llm: Configured chat model (temperature/max tokens already set)
            model_name: Model identifier, used for logging and errors
            engine: Confidence engine used while parsing
        """
        self.llm = llm
        self.model_name = model_name
        self.engine = engine

    @property
    def provider_name(self) -> str:
        return f"chat/{self.model_name}"

    async def recognize(
        self,
        image: ImagePayload,
        *,
        context: str | None = None,
        barcode: str | None = None,
        text_hint: str | None = None,
        max_items: int = 5,
    ) -> FoodAnalysis:
        start_time = time.time()
        prompt = build_food_analysis_prompt(
            context=context,
            barcode=barcode,
            text_hint=text_hint,
            max_items=max_items,
        )
        message = HumanMessage(
            content=[
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": image.data_url}},
            ]
        )

        logger.info(f"Sending food analysis request to {self.model_name}")

        try:
            response = await self.llm.ainvoke([message])
        except Exception as e:
            logger.warning(f"Vision model call failed ({self.model_name}): {e}")
            raise FoodRecognitionError(
                message=f"Vision model call failed: {e}",
                error_code="PROVIDER_ERROR",
                provider=self.provider_name,
            ) from e

        content = response.content if isinstance(response.content, str) else _join_text(response.content)
        if not content or not content.strip():
            raise FoodRecognitionError(
                message="No response from vision model",
                error_code="EMPTY_RESPONSE",
                provider=self.provider_name,
            )

        logger.debug(f"Raw vision response: {content[:500]}...")

        analysis = parse_food_analysis(
            content,
            provider=self.provider_name,
            max_items=max_items,
            engine=self.engine,
        )

        processing_time = int((time.time() - start_time) * 1000)
        logger.info(
            f"Vision analysis complete: {len(analysis.items)} items, "
            f"confidence={analysis.overall_confidence} in {processing_time}ms"
        )
        return analysis


def _join_text(blocks: list) -> str:
    """Concatenate the text parts of a content-block reply."""
    parts = []
    for block in blocks:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)
