"""Pydantic models for the Food Scan API contract.

Defines the analyzed item shapes returned by the vision pipeline, the
request/response contract for POST /food-scan/analyze, and the persisted
meal entry document.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

# =============================================================================
# Enums
# =============================================================================


class MealType(str, Enum):
    """Meal slot an analyzed photo is logged under."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class AnalysisStatus(str, Enum):
    """Progress states of a tracked meal entry."""

    PENDING = "pending"  # Placeholder created by the client
    ANALYZING = "analyzing"  # Vision call in flight
    PROCESSING = "processing"  # Enrichment / persistence
    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# Analysis Models
# =============================================================================


class NutritionRecord(BaseModel):
    """Validated nutrients for one serving of an item."""

    calories: int = Field(0, ge=0, description="Energy in kcal")
    protein_g: float = Field(0.0, ge=0, description="Protein in grams")
    carbs_g: float = Field(0.0, ge=0, description="Carbohydrates in grams")
    fat_g: float = Field(0.0, ge=0, description="Total fat in grams")
    fiber_g: float = Field(0.0, ge=0, description="Dietary fiber in grams")
    sugar_g: float = Field(0.0, ge=0, description="Total sugars in grams")
    sodium_mg: int = Field(0, ge=0, description="Sodium in milligrams")

    @property
    def is_empty(self) -> bool:
        """True when no energy-bearing nutrient has been estimated."""
        return not any(
            (self.calories, self.carbs_g, self.fat_g, self.protein_g, self.sugar_g)
        )


class ServingUnits(BaseModel):
    """Structured quantities parsed from a serving description."""

    mass_g: float | None = Field(None, ge=0, description="Mass in grams")
    volume_ml: float | None = Field(None, ge=0, description="Volume in millilitres")
    count: int | None = Field(None, ge=0, description="Discrete piece count")


class FoodItem(BaseModel):
    """A single analyzed food or beverage item."""

    food_name: str = Field(..., description="Human-readable food name")
    brand: str | None = Field(None, description="Brand, when visible or looked up")
    category: str = Field("mixed", description="fruit, beverage, dairy, snack, ...")
    serving_description: str = Field("1 serving", description="Canonical serving text")
    units: ServingUnits = Field(default_factory=ServingUnits)
    nutrition: NutritionRecord = Field(default_factory=NutritionRecord)
    confidence: int = Field(50, ge=10, le=100, description="Confidence score 10-100")
    is_packaged: bool = Field(False, description="Manufactured/packaged product")
    notes: str = Field("", description="Free-text notes, ' | '-joined")
    source_label: str | None = Field(
        None, description="Label text or lookup evidence backing the estimate"
    )


class FoodAnalysis(BaseModel):
    """Complete multi-item analysis of one photo."""

    items: list[FoodItem] = Field(default_factory=list, description="1-5 analyzed items")
    overall_confidence: int = Field(
        10, ge=0, le=100, description="Derived from item confidences"
    )
    description: str = Field("", description="Short overview from the model")


# =============================================================================
# Request / Response Models
# =============================================================================


class FoodScanRequest(BaseModel):
    """Request payload for POST /food-scan/analyze."""

    image_base64: str | None = Field(
        None, description="Raw base64 or a complete data:image/...;base64 reference"
    )
    context: str | None = Field(None, description="Free-text hint for prompt and notes")
    barcode: str | None = Field(None, description="Barcode used for composition lookup")
    text_hint: str | None = Field(
        None, description="Partially read label text, used in prompt and lookup"
    )
    meal_type: MealType | None = Field(None, description="Required when auto_save is true")
    user_id: str | None = Field(None, description="Enables image upload and auto-save")
    auto_save: bool = Field(False, description="Accumulate into the day's meal entry")
    logged_date: str | None = Field(None, description="YYYY-MM-DD, defaults to UTC today")
    meal_entry_id: str | None = Field(
        None, description="Placeholder entry to report progress on and overwrite"
    )


class FoodScanResponse(BaseModel):
    """Successful analysis response."""

    success: bool = True
    analysis: FoodAnalysis
    meal_entry_id: str | None = None
    auto_saved: bool = False
    image_url: str | None = None


class ErrorResponse(BaseModel):
    """Error body for every non-2xx response."""

    error: str
    details: Any = None


# =============================================================================
# Persistence Models
# =============================================================================


class MealEntry(BaseModel):
    """Meal entry document in the `meal_entries` collection."""

    id: str
    user_id: str
    meal_type: str
    logged_date: str
    logged_time: str | None = None
    food_items: list[dict[str, Any]] = Field(default_factory=list)
    total_calories: float | None = None
    total_protein: float | None = None
    total_carbs: float | None = None
    total_fat: float | None = None
    total_fiber: float | None = None
    total_sugar: float | None = None
    notes: str | None = None
    image_url: str | None = None
    analysis_status: AnalysisStatus | None = None
    analysis_progress: int | None = None
    analysis_stage: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
