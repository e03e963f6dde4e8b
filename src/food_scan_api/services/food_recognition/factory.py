"""
Factory for creating food recognition service instances.

Reads configuration from settings and returns the primary and fallback
providers.
"""

import logging
from functools import lru_cache

from langchain_core.language_models import BaseChatModel

from food_scan_api.core.config import FallbackProvider, Settings, VisionProvider, get_settings

from .base import FoodRecognitionService
from .ollama_provider import OllamaFoodRecognition
from .unavailable import UnavailableFoodRecognition
from .vision_chat_provider import ChatVisionFoodRecognition

logger = logging.getLogger(__name__)


def get_vision_llm(settings: Settings) -> tuple[BaseChatModel, str]:
    """
    Build the multimodal chat model for the configured provider.

    Returns:
        Tuple of (chat model, model name)

    Raises:
        ValueError: If the provider is not configured or unsupported
    """
    match settings.vision_provider:
        case VisionProvider.OPENAI:
            from langchain_openai import ChatOpenAI

            if not settings.openai_api_key:
                raise ValueError(
                    "OpenAI API key not configured. "
                    "Set OPENAI_API_KEY in your .env file."
                )
            llm = ChatOpenAI(
                model=settings.openai_vision_model,
                api_key=settings.openai_api_key,
                temperature=settings.vision_temperature,
                max_tokens=settings.vision_max_tokens,
            )
            return llm, settings.openai_vision_model
        case VisionProvider.GEMINI:
            from langchain_google_genai import ChatGoogleGenerativeAI

            if not settings.google_api_key:
                raise ValueError(
                    "Google API key not configured. "
                    "Set GOOGLE_API_KEY in your .env file."
                )
            llm = ChatGoogleGenerativeAI(
                model=settings.gemini_vision_model,
                google_api_key=settings.google_api_key,
                temperature=settings.vision_temperature,
                max_output_tokens=settings.vision_max_tokens,
            )
            return llm, settings.gemini_vision_model
        case _:
            raise ValueError(f"Unsupported vision provider: {settings.vision_provider}")


@lru_cache(maxsize=1)
def get_food_recognition_service() -> FoodRecognitionService:
    """
    Get the primary food recognition service.

    An unconfigured provider is replaced by the unavailable stub so requests
    fail with the standard retry message instead of a startup error.
    """
    settings = get_settings()

    logger.info(f"Initializing vision provider: {settings.vision_provider.value}")

    try:
        llm, model_name = get_vision_llm(settings)
    except ValueError as e:
        logger.warning(f"Vision provider not configured: {e}")
        return UnavailableFoodRecognition()

    return ChatVisionFoodRecognition(llm=llm, model_name=model_name)


@lru_cache(maxsize=1)
def get_fallback_recognition_service() -> FoodRecognitionService:
    """
    Get the secondary food recognition service.

    Configuration is read from settings:
    - vision_fallback_provider: "none" (default) or "ollama"
    - ollama_base_url / ollama_model / ollama_timeout
    """
    settings = get_settings()

    if settings.vision_fallback_provider == FallbackProvider.OLLAMA:
        logger.info(
            f"Configuring Ollama fallback: {settings.ollama_base_url}, model={settings.ollama_model}"
        )
        return OllamaFoodRecognition(
            base_url=settings.ollama_base_url,
            model=settings.ollama_model,
            timeout=settings.ollama_timeout,
        )

    return UnavailableFoodRecognition()


def clear_service_cache():
    """Clear the cached service instances (useful for testing)."""
    get_food_recognition_service.cache_clear()
    get_fallback_recognition_service.cache_clear()
