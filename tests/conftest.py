"""Pytest configuration and fixtures."""

import json
from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from langchain_core.language_models import FakeListChatModel

from food_scan_api.api.dependencies import get_food_scan_service, get_image_storage
from food_scan_api.main import app
from food_scan_api.models.food_scan import AnalysisStatus, FoodAnalysis, MealEntry
from food_scan_api.services.confidence_engine import ConfidenceEngine
from food_scan_api.services.enrichment import CompositionEnricher
from food_scan_api.services.food_recognition import (
    ChatVisionFoodRecognition,
    FoodRecognitionError,
    FoodRecognitionService,
    UnavailableFoodRecognition,
)
from food_scan_api.services.food_scan import FoodScanService
from food_scan_api.services.image_storage import (
    BucketNotFoundError,
    ImageStorage,
    ImageUploader,
    StorageError,
)
from food_scan_api.services.meal_log import MealLogService
from food_scan_api.services.nutrition_lookup import CompositionProduct, NutritionLookupService
from food_scan_api.services.progress import MongoProgressSink, ProgressReporter
from food_scan_api.utils.dates import utc_now
from food_scan_api.utils.images import ImagePayload

# Sample test image (1x1 red pixel PNG)
TINY_PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8DwHwAFBQIAX8jx0gAAAABJRU5ErkJggg=="
)


# =============================================================================
# In-memory fakes
# =============================================================================


class InMemoryMealEntryRepository:
    """Dict-backed stand-in for MealEntryRepository."""

    def __init__(self):
        self.docs: dict[str, dict[str, Any]] = {}
        self.progress_calls: list[tuple[str, AnalysisStatus, int, str | None]] = []
        self._counter = 0

    def add(self, entry_id: str, **fields: Any) -> None:
        now = utc_now()
        self.docs[entry_id] = {
            "user_id": "user-1",
            "meal_type": "lunch",
            "logged_date": "2025-01-15",
            "created_at": now,
            "updated_at": now,
            **fields,
        }

    async def find_by_key(self, user_id, meal_type, logged_date):
        matches = [
            (doc["updated_at"], entry_id)
            for entry_id, doc in self.docs.items()
            if (doc.get("user_id"), doc.get("meal_type"), doc.get("logged_date"))
            == (user_id, meal_type, logged_date)
        ]
        if not matches:
            return None
        _, entry_id = max(matches)
        return MealEntry.model_validate({"id": entry_id, **self.docs[entry_id]})

    async def insert_entry(self, document):
        self._counter += 1
        entry_id = f"entry-{self._counter}"
        now = utc_now()
        self.docs[entry_id] = {"created_at": now, "updated_at": now, **document}
        return entry_id

    async def update_entry(self, entry_id, fields):
        if entry_id not in self.docs:
            return False
        self.docs[entry_id].update(fields, updated_at=utc_now())
        return True

    async def update_progress(self, entry_id, status, progress, stage):
        self.progress_calls.append((entry_id, status, progress, stage))
        return await self.update_entry(
            entry_id,
            {
                "analysis_status": status.value,
                "analysis_progress": progress,
                "analysis_stage": stage,
            },
        )


class InMemoryImageStorage(ImageStorage):
    """Image storage that keeps files in a dict."""

    def __init__(self, bucket_exists: bool = True, fail_uploads: bool = False):
        self.exists = bucket_exists
        self.fail_uploads = fail_uploads
        self.files: dict[str, tuple[bytes, str, str]] = {}
        self.create_calls = 0

    @property
    def bucket_name(self) -> str:
        return "meal_images"

    async def upload(self, data, filename, content_type):
        if not self.exists:
            raise BucketNotFoundError("Bucket not found: meal_images")
        if self.fail_uploads:
            raise StorageError("disk full")
        file_id = f"file{len(self.files) + 1}"
        self.files[file_id] = (data, filename, content_type)
        return file_id

    async def create_bucket(self):
        self.create_calls += 1
        self.exists = True

    async def download(self, file_id):
        if file_id not in self.files:
            raise StorageError(f"Image not found: {file_id}")
        data, _, content_type = self.files[file_id]
        return data, content_type


class FakeNutritionLookup(NutritionLookupService):
    """Lookup returning canned products."""

    def __init__(
        self,
        by_barcode: dict[str, CompositionProduct] | None = None,
        by_name: CompositionProduct | None = None,
        error: Exception | None = None,
    ):
        self.by_barcode = by_barcode or {}
        self.by_name = by_name
        self.error = error
        self.barcode_calls: list[str] = []
        self.name_calls: list[str] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    async def get_by_barcode(self, barcode):
        self.barcode_calls.append(barcode)
        if self.error:
            raise self.error
        return self.by_barcode.get(barcode)

    async def search_by_name(self, query):
        self.name_calls.append(query)
        if self.error:
            raise self.error
        return self.by_name


class FailingRecognizer(FoodRecognitionService):
    """Provider that always fails with the given error code."""

    def __init__(self, error_code: str = "PROVIDER_ERROR"):
        self.error_code = error_code
        self.calls = 0

    @property
    def provider_name(self) -> str:
        return "failing"

    async def recognize(self, image: ImagePayload, **kwargs) -> FoodAnalysis:
        self.calls += 1
        raise FoodRecognitionError(
            message="upstream exploded: secret-token-123",
            error_code=self.error_code,
            provider=self.provider_name,
        )


def model_reply(*items: dict[str, Any], description: str = "A meal") -> str:
    """Fenced JSON reply the way chat models tend to answer."""
    return f"Here you go:\n```json\n{json.dumps({'items': list(items), 'description': description})}\n```"


def chat_recognizer(*replies: str) -> ChatVisionFoodRecognition:
    return ChatVisionFoodRecognition(
        llm=FakeListChatModel(responses=list(replies)),
        model_name="fake-vision",
        engine=ConfidenceEngine(),
    )


def build_service(
    recognizer: FoodRecognitionService,
    *,
    fallback: FoodRecognitionService | None = None,
    repository: InMemoryMealEntryRepository | None = None,
    storage: InMemoryImageStorage | None = None,
    lookup: NutritionLookupService | None = None,
) -> FoodScanService:
    repository = repository if repository is not None else InMemoryMealEntryRepository()
    storage = storage if storage is not None else InMemoryImageStorage()
    return FoodScanService(
        recognizer=recognizer,
        fallback=fallback or UnavailableFoodRecognition(),
        enricher=CompositionEnricher(lookup),
        uploader=ImageUploader(storage),
        meal_log=MealLogService(repository),
        progress=ProgressReporter(MongoProgressSink(repository)),
        engine=ConfidenceEngine(),
    )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def sample_items() -> list[dict[str, Any]]:
    """Two unpackaged items as a vision model would return them."""
    return [
        {
            "food_name": "Grilled chicken breast",
            "category": "protein",
            "serving_size": "150 g",
            "nutrition": {"calories": 248, "protein_g": 46.5, "carbs_g": 0, "fat_g": 5.4},
            "confidence": 85,
            "is_packaged": False,
        },
        {
            "food_name": "White rice",
            "category": "grain",
            "serving_size": "1 cup (158 g)",
            "nutrition": {"calories": 205, "protein_g": 4.3, "carbs_g": 44.5, "fat_g": 0.4},
            "confidence": 75,
            "is_packaged": False,
        },
    ]


@pytest.fixture
def repository() -> InMemoryMealEntryRepository:
    return InMemoryMealEntryRepository()


@pytest.fixture
def storage() -> InMemoryImageStorage:
    return InMemoryImageStorage()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """
    Create async test client.

    Usage:
        async def test_endpoint(client: AsyncClient):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def override_service():
    """Install a FoodScanService (and image storage) for the app under test."""

    def install(service: FoodScanService, storage: ImageStorage | None = None) -> None:
        app.dependency_overrides[get_food_scan_service] = lambda: service
        if storage is not None:
            app.dependency_overrides[get_image_storage] = lambda: storage

    yield install
    app.dependency_overrides.clear()
