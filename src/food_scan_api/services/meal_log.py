"""
Meal log persistence for analyzed scans.

Two write paths:

- accumulate: auto-saved scans are merged into a single row per user,
  meal type and day (items appended, totals summed, notes pipe-joined).
- complete_tracked_entry: a row the client created before scanning is
  overwritten with the scan result and marked completed.
"""

import logging
import secrets
from collections.abc import Iterable
from typing import Any

from food_scan_api.db.repositories.meal_entries import MealEntryRepository
from food_scan_api.models.food_scan import AnalysisStatus, FoodAnalysis, FoodItem, MealEntry
from food_scan_api.utils.dates import utc_now, utc_time_of_day
from food_scan_api.utils.numbers import round_half_up

logger = logging.getLogger(__name__)

UNKNOWN_BRAND = "AI Detected"
NOTE_SEPARATOR = " | "

# Meal entry total column -> nutrition field
TOTAL_FIELDS = {
    "total_calories": "calories",
    "total_protein": "protein_g",
    "total_carbs": "carbs_g",
    "total_fat": "fat_g",
    "total_fiber": "fiber_g",
    "total_sugar": "sugar_g",
}


def new_item_id() -> str:
    """`scan_<epoch ms>_<hex>`"""
    return f"scan_{int(utc_now().timestamp() * 1000)}_{secrets.token_hex(3)}"


def to_food_item_documents(items: Iterable[FoodItem]) -> list[dict[str, Any]]:
    """Serialize analyzed items for the food_items array."""
    documents = []
    for item in items:
        document = {"id": new_item_id(), "quantity": 1, **item.model_dump()}
        document["brand"] = item.brand or UNKNOWN_BRAND
        documents.append(document)
    return documents


def round_totals(totals: dict[str, float]) -> dict[str, float]:
    """Calories to integers, everything else to one decimal."""
    return {
        key: int(round_half_up(value)) if key == "total_calories" else round_half_up(value, 1)
        for key, value in totals.items()
    }


def sum_totals(items: Iterable[FoodItem]) -> dict[str, float]:
    """Sum item nutrition into meal entry totals."""
    totals = dict.fromkeys(TOTAL_FIELDS, 0.0)
    for item in items:
        nutrition = item.nutrition.model_dump()
        for column, field in TOTAL_FIELDS.items():
            totals[column] += nutrition[field]
    return round_totals(totals)


def scan_note(overall_confidence: int, context: str | None = None) -> str:
    note = f"AI scan ({overall_confidence}%)"
    if context and context.strip():
        note = f"{note} • {context.strip()}"
    return note


def join_notes(*notes: str | None) -> str:
    return NOTE_SEPARATOR.join(note for note in notes if note)


class MealLogService:
    """
    Writes scan results to the meal_entries collection.

    Errors from the repository propagate; callers decide whether a failed
    write is fatal.
    """

    def __init__(self, repository: MealEntryRepository):
        self.repository = repository

    async def accumulate(
        self,
        analysis: FoodAnalysis,
        *,
        user_id: str,
        meal_type: str,
        logged_date: str,
        context: str | None = None,
        image_url: str | None = None,
    ) -> str:
        """
        Merge a scan into the user's row for this meal and day.

        The existing row is read right before writing, so two concurrent
        scans can still race; the last writer wins on the sums.

        Returns:
            ID of the updated or inserted row
        """
        items = to_food_item_documents(analysis.items)
        totals = sum_totals(analysis.items)
        note = scan_note(analysis.overall_confidence, context)

        existing = await self.repository.find_by_key(user_id, meal_type, logged_date)

        if existing is not None:
            merged = self._merge(existing, items, totals, note, image_url)
            await self.repository.update_entry(existing.id, merged)
            logger.info(
                f"Appended {len(items)} item(s) to {meal_type} on {logged_date} "
                f"for user {user_id} (entry {existing.id})"
            )
            return existing.id

        document = {
            "user_id": user_id,
            "meal_type": meal_type,
            "logged_date": logged_date,
            "logged_time": utc_time_of_day(),
            "food_items": items,
            **totals,
            "notes": note,
            "image_url": image_url,
            "analysis_status": AnalysisStatus.COMPLETED.value,
            "analysis_progress": 100,
            "analysis_stage": None,
        }
        entry_id = await self.repository.insert_entry(document)
        logger.info(f"Created {meal_type} entry {entry_id} on {logged_date} for user {user_id}")
        return entry_id

    @staticmethod
    def _merge(
        existing: MealEntry,
        items: list[dict[str, Any]],
        totals: dict[str, float],
        note: str,
        image_url: str | None,
    ) -> dict[str, Any]:
        summed = {
            column: (getattr(existing, column) or 0) + value for column, value in totals.items()
        }
        return {
            "food_items": [*existing.food_items, *items],
            **round_totals(summed),
            "notes": join_notes(existing.notes, note),
            "image_url": image_url or existing.image_url,
        }

    async def complete_tracked_entry(
        self,
        entry_id: str,
        analysis: FoodAnalysis,
        image_url: str | None = None,
    ) -> bool:
        """
        Overwrite a tracked entry with the scan result and mark it completed.

        Returns:
            True if the entry exists
        """
        fields: dict[str, Any] = {
            "food_items": to_food_item_documents(analysis.items),
            **sum_totals(analysis.items),
            "analysis_status": AnalysisStatus.COMPLETED.value,
            "analysis_progress": 100,
            "analysis_stage": None,
        }
        if image_url:
            fields["image_url"] = image_url

        found = await self.repository.update_entry(entry_id, fields)
        if found:
            logger.info(f"Tracked entry {entry_id} completed with {len(analysis.items)} item(s)")
        else:
            logger.warning(f"Tracked entry {entry_id} not found")
        return found
