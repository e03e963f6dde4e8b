"""Repository for the meal_entries collection."""

from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DESCENDING

from food_scan_api.models.food_scan import AnalysisStatus, MealEntry

from .base import BaseRepository


class MealEntryRepository(BaseRepository[MealEntry]):
    """
    Repository for logged meals.

    One row per user, meal type and day accumulates every auto-saved scan.
    Rows created by the client before a scan (tracked entries) are
    overwritten with the scan result and carry its progress fields.
    """

    model_class = MealEntry

    def __init__(self, collection: AsyncIOMotorCollection):
        super().__init__(collection)

    async def find_by_key(
        self,
        user_id: str,
        meal_type: str,
        logged_date: str,
    ) -> MealEntry | None:
        """Get the most recently updated row for a user, meal type and day."""
        return await self.find_one(
            {"user_id": user_id, "meal_type": meal_type, "logged_date": logged_date},
            sort=[("updated_at", DESCENDING), ("created_at", DESCENDING)],
        )

    async def insert_entry(self, document: dict[str, Any]) -> str:
        """Insert a new meal row, returning its ID."""
        return await self.insert_one(document)

    async def update_entry(self, entry_id: str, fields: dict[str, Any]) -> bool:
        """Overwrite fields of an existing row."""
        return await self.update_one(entry_id, dict(fields))

    async def update_progress(
        self,
        entry_id: str,
        status: AnalysisStatus,
        progress: int,
        stage: str | None,
    ) -> bool:
        """Write the analysis status triple of a tracked entry."""
        return await self.update_one(
            entry_id,
            {
                "analysis_status": status.value,
                "analysis_progress": progress,
                "analysis_stage": stage,
            },
        )
