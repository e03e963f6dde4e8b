"""Pydantic models for API schemas."""

from .food_scan import (
    AnalysisStatus,
    ErrorResponse,
    FoodAnalysis,
    FoodItem,
    FoodScanRequest,
    FoodScanResponse,
    MealEntry,
    MealType,
    NutritionRecord,
    ServingUnits,
)

__all__ = [
    "AnalysisStatus",
    "ErrorResponse",
    "FoodAnalysis",
    "FoodItem",
    "FoodScanRequest",
    "FoodScanResponse",
    "MealEntry",
    "MealType",
    "NutritionRecord",
    "ServingUnits",
]
