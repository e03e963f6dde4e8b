"""
Analysis progress reporting for tracked meal entries.

A client that created a meal entry before scanning watches its
analysis_status / analysis_progress / analysis_stage fields. The scan writes
them at fixed checkpoints:

    pending -> analyzing (20) -> processing (70) -> completed (100) | failed (0)

Progress writes never fail a scan.
"""

import logging
from abc import ABC, abstractmethod

from food_scan_api.db.repositories.meal_entries import MealEntryRepository
from food_scan_api.models.food_scan import AnalysisStatus

logger = logging.getLogger(__name__)

ANALYZING_PROGRESS = 20
PROCESSING_PROGRESS = 70
COMPLETED_PROGRESS = 100
FAILED_PROGRESS = 0


class ProgressSink(ABC):
    """Destination for progress updates."""

    @abstractmethod
    async def report(
        self,
        entry_id: str,
        status: AnalysisStatus,
        progress: int,
        stage: str | None,
    ) -> None:
        ...


class MongoProgressSink(ProgressSink):
    """Writes progress onto the tracked meal entry document."""

    def __init__(self, repository: MealEntryRepository):
        self.repository = repository

    async def report(
        self,
        entry_id: str,
        status: AnalysisStatus,
        progress: int,
        stage: str | None,
    ) -> None:
        found = await self.repository.update_progress(entry_id, status, progress, stage)
        if not found:
            logger.warning(f"Progress update for unknown meal entry {entry_id}")


class ProgressReporter:
    """
    Checkpoint helper around a ProgressSink.

    Every write is isolated: sink errors are logged and swallowed so a
    progress failure cannot change the outcome of a scan.
    """

    def __init__(self, sink: ProgressSink):
        self.sink = sink

    async def _report(
        self,
        entry_id: str | None,
        status: AnalysisStatus,
        progress: int,
        stage: str | None,
    ) -> None:
        if not entry_id:
            return
        try:
            await self.sink.report(entry_id, status, progress, stage)
            logger.debug(f"Meal entry {entry_id}: {status.value} ({progress}%)")
        except Exception as e:
            logger.warning(f"Progress update failed for {entry_id} ({status.value}): {e}")

    async def mark_analyzing(self, entry_id: str | None) -> None:
        await self._report(entry_id, AnalysisStatus.ANALYZING, ANALYZING_PROGRESS, "analyzing")

    async def mark_processing(self, entry_id: str | None) -> None:
        await self._report(entry_id, AnalysisStatus.PROCESSING, PROCESSING_PROGRESS, "processing")

    async def mark_completed(self, entry_id: str | None) -> None:
        await self._report(entry_id, AnalysisStatus.COMPLETED, COMPLETED_PROGRESS, None)

    async def mark_failed(self, entry_id: str | None) -> None:
        await self._report(entry_id, AnalysisStatus.FAILED, FAILED_PROGRESS, None)
