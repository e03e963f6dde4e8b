"""
Confidence Engine for food photo analyses.

Adjusts the model-reported confidence of each item using checks the model
cannot be trusted to apply itself:
- Calories that disagree with the macros lower confidence
- Packaged items backed by readable label text raise it
The aggregate score penalizes analyses claiming many simultaneous items.
"""

import logging
from collections.abc import Sequence

from food_scan_api.models.food_scan import FoodItem, NutritionRecord
from food_scan_api.services.nutrition_validation import derived_calories
from food_scan_api.utils.numbers import clamp, round_half_up

logger = logging.getLogger(__name__)


class ConfidenceEngine:
    """
    Per-item and aggregate confidence scoring on a 10-100 scale.

    Scores are computed against the final (validated) nutrition values.
    """

    MIN_CONFIDENCE = 10
    MAX_CONFIDENCE = 100

    # Calorie/macro disagreement that costs confidence
    DEVIATION_THRESHOLD = 0.20
    DEVIATION_PENALTY = 15

    # Label evidence longer than this counts as a real label read
    LABEL_EVIDENCE_MIN_CHARS = 20
    LABEL_BONUS = 10

    # Items beyond this count are penalized in the aggregate
    FREE_ITEM_COUNT = 2
    PER_EXTRA_ITEM_PENALTY = 3

    def clamp_confidence(self, value: object) -> int:
        """Clamp any reported confidence into [10, 100]."""
        return int(
            clamp(value, self.MIN_CONFIDENCE, self.MAX_CONFIDENCE, default=self.MIN_CONFIDENCE)
        )

    def calorie_deviation(self, nutrition: NutritionRecord) -> float:
        """Relative difference between stated calories and the macro estimate."""
        if nutrition.calories <= 0:
            return 0.0
        derived = derived_calories(nutrition.carbs_g, nutrition.protein_g, nutrition.fat_g)
        return abs(nutrition.calories - derived) / max(1, nutrition.calories)

    def score_item(
        self,
        reported_confidence: object,
        nutrition: NutritionRecord,
        *,
        is_packaged: bool,
        label_text: str | None,
    ) -> int:
        """
        Calculate the confidence for one item.

        Args:
            reported_confidence: Model-reported confidence (untrusted)
            nutrition: Validated nutrition for the item
            is_packaged: Whether the item is a packaged product
            label_text: Label/OCR evidence string, if any

        Returns:
            Confidence in [10, 100]
        """
        score = self.clamp_confidence(reported_confidence)

        deviation = self.calorie_deviation(nutrition)
        if deviation > self.DEVIATION_THRESHOLD:
            score = self.clamp_confidence(score - self.DEVIATION_PENALTY)

        if is_packaged and len(label_text or "") > self.LABEL_EVIDENCE_MIN_CHARS:
            score = self.clamp_confidence(score + self.LABEL_BONUS)

        logger.debug(f"Item confidence {reported_confidence!r} -> {score} (deviation={deviation:.2f})")
        return score

    def overall_confidence(self, items: Sequence[FoodItem]) -> int:
        """
        Aggregate confidence for a multi-item analysis.

        Mean of item confidences minus 3 points per item beyond the second.
        Returns 0 for an empty list.
        """
        if not items:
            return 0
        average = sum(item.confidence for item in items) / len(items)
        penalty = max(0, len(items) - self.FREE_ITEM_COUNT) * self.PER_EXTRA_ITEM_PENALTY
        return self.clamp_confidence(round_half_up(average - penalty))


# Singleton instance
_engine: ConfidenceEngine | None = None


def get_confidence_engine() -> ConfidenceEngine:
    """Get the confidence engine singleton."""
    global _engine
    if _engine is None:
        _engine = ConfidenceEngine()
    return _engine
