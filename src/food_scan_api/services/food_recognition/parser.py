"""
Parsing of vision model replies into a FoodAnalysis.

Model output is schema-less text. It is decoded in three steps:
1. extract_json() pulls a JSON object out of fenced or chatty text
2. RawFoodItem checks the type of every field before anything is trusted
3. Each raw item is normalized, validated and confidence-scored
"""

import json
import logging
import re
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from food_scan_api.models.food_scan import FoodAnalysis, FoodItem
from food_scan_api.services.confidence_engine import ConfidenceEngine, get_confidence_engine
from food_scan_api.services.nutrition_validation import validate_nutrition
from food_scan_api.services.serving_size import normalize_serving_size

from .base import FoodRecognitionError

logger = logging.getLogger(__name__)

FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


# =============================================================================
# Raw (untrusted) shapes
# =============================================================================


class RawNutrition(BaseModel):
    """Nutrition as returned by the model; every field optional."""

    model_config = ConfigDict(extra="ignore")

    calories: float | None = Field(None, validation_alias=AliasChoices("calories", "kcal"))
    protein_g: float | None = Field(None, validation_alias=AliasChoices("protein_g", "protein"))
    carbs_g: float | None = Field(
        None, validation_alias=AliasChoices("carbs_g", "carbs", "carbohydrates")
    )
    fat_g: float | None = Field(None, validation_alias=AliasChoices("fat_g", "fat"))
    fiber_g: float | None = Field(None, validation_alias=AliasChoices("fiber_g", "fiber"))
    sugar_g: float | None = Field(
        None, validation_alias=AliasChoices("sugar_g", "sugar", "sugars")
    )
    sodium_mg: float | None = Field(None, validation_alias=AliasChoices("sodium_mg", "sodium"))


class RawSources(BaseModel):
    model_config = ConfigDict(extra="ignore")

    label_text: str | None = None


class RawFoodItem(BaseModel):
    """One item as returned by the model, type-checked but not yet trusted."""

    model_config = ConfigDict(extra="ignore")

    food_name: str | None = Field(None, validation_alias=AliasChoices("food_name", "name"))
    brand: str | None = None
    category: str | None = None
    serving_size: str | None = Field(
        None, validation_alias=AliasChoices("serving_size", "serving_description")
    )
    nutrition: RawNutrition | None = None
    confidence: float | None = None
    is_packaged: bool | None = None
    notes: str | None = None
    sources: RawSources | None = None


# =============================================================================
# Extraction
# =============================================================================


def extract_json(text: str, provider: str = "unknown") -> Any:
    """
    Extract a JSON document from a model reply.

    Tries a fenced code block first, then the outermost {...} span.

    Raises:
        FoodRecognitionError: PARSE_ERROR if neither yields valid JSON
    """
    candidates: list[str] = []
    fence = FENCE_RE.search(text)
    if fence:
        candidates.append(fence.group(1))

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as e:
            logger.debug(f"JSON candidate rejected: {e}")

    raise FoodRecognitionError(
        message="Failed to parse JSON from model response",
        error_code="PARSE_ERROR",
        provider=provider,
        details={"response_preview": text[:200]},
    )


def _raw_items(data: Any) -> list[Any]:
    if isinstance(data, list):
        return data
    if not isinstance(data, dict):
        return []
    if isinstance(data.get("items"), list):
        return data["items"]
    if data.get("food_name") or data.get("name"):
        return [data]
    return []


# =============================================================================
# Item construction
# =============================================================================


def build_food_item(raw: RawFoodItem, engine: ConfidenceEngine) -> FoodItem:
    """Normalize, validate and score one raw item."""
    category = (raw.category or "").strip() or "mixed"
    serving, units = normalize_serving_size(raw.serving_size)
    nutrition = validate_nutrition(raw.nutrition.model_dump() if raw.nutrition else {}, category)
    label_text = (raw.sources.label_text if raw.sources else None) or None
    is_packaged = bool(raw.is_packaged)

    confidence = engine.score_item(
        raw.confidence,
        nutrition,
        is_packaged=is_packaged,
        label_text=label_text,
    )

    return FoodItem(
        food_name=(raw.food_name or "").strip() or "Unknown item",
        brand=raw.brand or None,
        category=category,
        serving_description=serving,
        units=units,
        nutrition=nutrition,
        confidence=confidence,
        is_packaged=is_packaged,
        notes=raw.notes or "",
        source_label=label_text,
    )


def parse_food_analysis(
    text: str,
    *,
    provider: str = "unknown",
    max_items: int = 5,
    engine: ConfidenceEngine | None = None,
) -> FoodAnalysis:
    """
    Turn a model reply into a validated FoodAnalysis.

    Args:
        text: Raw model reply
        provider: Provider name for error reporting
        max_items: Maximum number of items to keep
        engine: Confidence engine (defaults to the singleton)

    Raises:
        FoodRecognitionError: PARSE_ERROR, MALFORMED_OUTPUT or NO_ITEMS
    """
    engine = engine or get_confidence_engine()
    data = extract_json(text, provider)
    raw_items = _raw_items(data)

    if not raw_items:
        raise FoodRecognitionError(
            message="No items found in analysis",
            error_code="NO_ITEMS",
            provider=provider,
        )

    items: list[FoodItem] = []
    malformed: list[str] = []
    for index, raw in enumerate(raw_items[:max_items]):
        try:
            parsed = RawFoodItem.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Skipping malformed item {index} from {provider}: {e.error_count()} errors")
            malformed.append(str(e))
            continue
        items.append(build_food_item(parsed, engine))

    if not items:
        raise FoodRecognitionError(
            message="Malformed classifier output",
            error_code="MALFORMED_OUTPUT",
            provider=provider,
            details={"errors": malformed},
        )

    description = data.get("description") if isinstance(data, dict) else None
    return FoodAnalysis(
        items=items,
        overall_confidence=engine.overall_confidence(items),
        description=description if isinstance(description, str) else "",
    )
