"""Tests for the confidence engine."""

import pytest

from food_scan_api.models.food_scan import FoodItem, NutritionRecord
from food_scan_api.services.confidence_engine import ConfidenceEngine, get_confidence_engine


def item(confidence: int) -> FoodItem:
    return FoodItem(food_name="x", confidence=confidence)


class TestConfidenceEngine:
    """Tests for ConfidenceEngine."""

    @pytest.fixture
    def engine(self):
        return ConfidenceEngine()

    def test_overall_confidence_penalizes_extra_items(self, engine):
        """Test mean 75 minus (4 - 2) * 3 = 69."""
        items = [item(80), item(90), item(70), item(60)]

        assert engine.overall_confidence(items) == 69

    def test_overall_confidence_two_items_no_penalty(self, engine):
        assert engine.overall_confidence([item(80), item(61)]) == 71

    def test_overall_confidence_empty(self, engine):
        assert engine.overall_confidence([]) == 0

    def test_overall_confidence_floor(self, engine):
        """Test the aggregate never drops below 10."""
        items = [item(10)] * 5

        assert engine.overall_confidence(items) == 10

    @pytest.mark.parametrize(
        "reported, expected",
        [(-5, 10), (0, 10), (55, 55), (150, 100), ("80", 80), ("high", 10), (None, 10)],
    )
    def test_clamp_confidence(self, engine, reported, expected):
        """Test reported confidence is clamped into [10, 100]."""
        assert engine.clamp_confidence(reported) == expected

    def test_calorie_deviation_penalty(self, engine):
        """Test calories far from the macro estimate cost 15 points."""
        nutrition = NutritionRecord(calories=200, carbs_g=10, protein_g=5, fat_g=2)

        assert engine.score_item(70, nutrition, is_packaged=False, label_text=None) == 55

    def test_consistent_calories_no_penalty(self, engine):
        nutrition = NutritionRecord(calories=80, carbs_g=10, protein_g=5, fat_g=2)

        assert engine.score_item(70, nutrition, is_packaged=False, label_text=None) == 70

    def test_label_bonus_for_packaged_items(self, engine):
        """Test packaged items with real label text gain 10 points."""
        nutrition = NutritionRecord()
        label = "Coca-Cola Zero Sugar 330ml can"

        assert engine.score_item(70, nutrition, is_packaged=True, label_text=label) == 80
        assert engine.score_item(95, nutrition, is_packaged=True, label_text=label) == 100

    def test_short_label_gets_no_bonus(self, engine):
        nutrition = NutritionRecord()

        assert engine.score_item(70, nutrition, is_packaged=True, label_text="Coke") == 70
        assert engine.score_item(70, nutrition, is_packaged=False, label_text="x" * 40) == 70

    def test_zero_calories_no_deviation(self, engine):
        assert engine.calorie_deviation(NutritionRecord(carbs_g=10)) == 0.0


def test_get_confidence_engine_singleton():
    """Test the engine is a process-wide singleton."""
    assert get_confidence_engine() is get_confidence_engine()
