"""
Food Recognition Service - Facade pattern for vision model providers.

Provides the abstraction layer for photo analysis with a LangChain chat model
as primary provider and an optional Ollama/LLaVA fallback.
"""

from .base import FoodRecognitionError, FoodRecognitionService
from .factory import (
    clear_service_cache,
    get_fallback_recognition_service,
    get_food_recognition_service,
)
from .ollama_provider import OllamaFoodRecognition
from .parser import extract_json, parse_food_analysis
from .unavailable import UnavailableFoodRecognition
from .vision_chat_provider import ChatVisionFoodRecognition

__all__ = [
    "ChatVisionFoodRecognition",
    "FoodRecognitionError",
    "FoodRecognitionService",
    "OllamaFoodRecognition",
    "UnavailableFoodRecognition",
    "clear_service_cache",
    "extract_json",
    "get_fallback_recognition_service",
    "get_food_recognition_service",
    "parse_food_analysis",
]
