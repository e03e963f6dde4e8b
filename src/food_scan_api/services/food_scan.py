"""
Food scan orchestration.

One scan runs these steps in order:

1. Upload the photo (best-effort, only when a user is known)
2. Classify with the primary vision provider, then the fallback
3. Enrich packaged items from the composition database
4. Re-validate and re-aggregate the final items
5. Persist: overwrite the tracked entry, or accumulate into the day's meal

Progress checkpoints are written to the tracked entry, if any, along the way.
"""

import logging

from food_scan_api.core.exceptions import (
    APIError,
    ClassificationUnavailableError,
    InvalidScanRequestError,
    ScanProcessingError,
)
from food_scan_api.models.food_scan import FoodAnalysis, FoodScanRequest, FoodScanResponse
from food_scan_api.services.confidence_engine import ConfidenceEngine, get_confidence_engine
from food_scan_api.services.enrichment import CompositionEnricher
from food_scan_api.services.food_recognition.base import (
    FoodRecognitionError,
    FoodRecognitionService,
)
from food_scan_api.services.image_storage import ImageUploader
from food_scan_api.services.meal_log import MealLogService
from food_scan_api.services.nutrition_validation import validate_nutrition
from food_scan_api.services.progress import ProgressReporter
from food_scan_api.utils.dates import resolve_logged_date
from food_scan_api.utils.images import ImagePayload

logger = logging.getLogger(__name__)


class FoodScanService:
    """
    Runs the analysis pipeline for one photo.

    All collaborators are injected; see api/dependencies.py for the wiring.
    """

    def __init__(
        self,
        recognizer: FoodRecognitionService,
        fallback: FoodRecognitionService,
        enricher: CompositionEnricher,
        uploader: ImageUploader,
        meal_log: MealLogService,
        progress: ProgressReporter,
        engine: ConfidenceEngine | None = None,
        max_items: int = 5,
    ):
        self.recognizer = recognizer
        self.fallback = fallback
        self.enricher = enricher
        self.uploader = uploader
        self.meal_log = meal_log
        self.progress = progress
        self.engine = engine or get_confidence_engine()
        self.max_items = max_items

    async def scan(self, request: FoodScanRequest) -> FoodScanResponse:
        """
        Analyze a photo and persist the result.

        Raises:
            InvalidScanRequestError: No image supplied (400)
            ClassificationUnavailableError: Both vision paths failed (502)
            ScanProcessingError: Any other failure (500)
        """
        if not request.image_base64 or not request.image_base64.strip():
            raise InvalidScanRequestError("image_base64 is required")

        try:
            return await self._run(request)
        except APIError:
            await self.progress.mark_failed(request.meal_entry_id)
            raise
        except Exception as e:
            logger.exception(f"Food scan failed: {e}")
            await self.progress.mark_failed(request.meal_entry_id)
            raise ScanProcessingError() from e

    async def _run(self, request: FoodScanRequest) -> FoodScanResponse:
        payload = ImagePayload.from_request(request.image_base64)
        entry_id = request.meal_entry_id

        image_url = None
        if request.user_id:
            image_url = await self.uploader.upload_image(request.user_id, payload)

        await self.progress.mark_analyzing(entry_id)
        analysis = await self.classify(payload, request)
        await self.progress.mark_processing(entry_id)

        await self.enricher.enrich(
            analysis.items,
            barcode=request.barcode,
            text_hint=request.text_hint,
        )
        analysis = self.finalize(analysis)

        saved_id = None
        auto_saved = False
        if entry_id:
            auto_saved = await self._complete_tracked(entry_id, analysis, image_url)
        elif request.auto_save:
            saved_id = await self._auto_save(request, analysis, image_url)
            auto_saved = saved_id is not None

        logger.info(
            f"Scan complete: {len(analysis.items)} item(s), "
            f"confidence {analysis.overall_confidence}%, auto_saved={auto_saved}"
        )

        return FoodScanResponse(
            analysis=analysis,
            meal_entry_id=entry_id or saved_id,
            auto_saved=auto_saved,
            image_url=image_url,
        )

    async def classify(self, payload: ImagePayload, request: FoodScanRequest) -> FoodAnalysis:
        """Primary provider first, fallback second."""
        options = {
            "context": request.context,
            "barcode": request.barcode,
            "text_hint": request.text_hint,
            "max_items": self.max_items,
        }

        try:
            return await self.recognizer.recognize(payload, **options)
        except FoodRecognitionError as e:
            logger.warning(
                f"Primary vision provider {e.provider} failed ({e.error_code}): {e.message}"
            )

        try:
            return await self.fallback.recognize(payload, **options)
        except FoodRecognitionError as e:
            logger.error(
                f"Fallback vision provider {e.provider} failed ({e.error_code}): {e.message}"
            )
            raise ClassificationUnavailableError() from e

    def finalize(self, analysis: FoodAnalysis) -> FoodAnalysis:
        """Final validation pass; scores reflect the values being returned."""
        for item in analysis.items:
            item.nutrition = validate_nutrition(item.nutrition, item.category)
            item.confidence = self.engine.clamp_confidence(item.confidence)

        analysis.overall_confidence = self.engine.overall_confidence(analysis.items)
        return analysis

    async def _complete_tracked(
        self,
        entry_id: str,
        analysis: FoodAnalysis,
        image_url: str | None,
    ) -> bool:
        try:
            return await self.meal_log.complete_tracked_entry(entry_id, analysis, image_url)
        except Exception as e:
            logger.error(f"Failed to overwrite tracked entry {entry_id}: {e}")
            await self.progress.mark_completed(entry_id)
            return False

    async def _auto_save(
        self,
        request: FoodScanRequest,
        analysis: FoodAnalysis,
        image_url: str | None,
    ) -> str | None:
        if not request.user_id or request.meal_type is None:
            logger.warning("auto_save requested without user_id and meal_type; skipping")
            return None

        try:
            return await self.meal_log.accumulate(
                analysis,
                user_id=request.user_id,
                meal_type=request.meal_type.value,
                logged_date=resolve_logged_date(request.logged_date),
                context=request.context,
                image_url=image_url,
            )
        except Exception as e:
            logger.error(f"Auto-save failed for user {request.user_id}: {e}")
            return None
