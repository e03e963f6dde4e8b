"""FastAPI dependency injection factories."""

from typing import Annotated

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from food_scan_api.core.config import Settings, get_settings
from food_scan_api.db.mongo import MongoDB
from food_scan_api.db.repositories import MealEntryRepository
from food_scan_api.services.confidence_engine import get_confidence_engine
from food_scan_api.services.enrichment import CompositionEnricher
from food_scan_api.services.food_recognition import (
    get_fallback_recognition_service,
    get_food_recognition_service,
)
from food_scan_api.services.food_scan import FoodScanService
from food_scan_api.services.image_storage import GridFSImageStorage, ImageStorage, ImageUploader
from food_scan_api.services.meal_log import MealLogService
from food_scan_api.services.nutrition_lookup import get_nutrition_lookup_service
from food_scan_api.services.progress import MongoProgressSink, ProgressReporter


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_database() -> AsyncIOMotorDatabase:
    """
    Get the MongoDB database instance.

    Returns:
        Motor database instance
    """
    settings = get_settings()
    return MongoDB.get_database(settings.db_name)


def get_meal_entry_repository(
    db: AsyncIOMotorDatabase = Depends(get_database),
) -> MealEntryRepository:
    settings = get_settings()
    return MealEntryRepository(db[settings.meal_entries_collection])


def get_image_storage(db: AsyncIOMotorDatabase = Depends(get_database)) -> ImageStorage:
    """GridFS storage for meal photos."""
    settings = get_settings()
    return GridFSImageStorage(
        db,
        bucket_name=settings.image_bucket_name,
        check_bucket=settings.image_bucket_check,
    )


def get_food_scan_service(
    repository: MealEntryRepository = Depends(get_meal_entry_repository),
    storage: ImageStorage = Depends(get_image_storage),
) -> FoodScanService:
    """
    Get FoodScanService instance.

    Args:
        repository: Injected meal entry repository
        storage: Injected image storage

    Returns:
        FoodScanService wired to the configured providers
    """
    settings = get_settings()
    engine = get_confidence_engine()

    return FoodScanService(
        recognizer=get_food_recognition_service(),
        fallback=get_fallback_recognition_service(),
        enricher=CompositionEnricher(get_nutrition_lookup_service()),
        uploader=ImageUploader(storage, public_base_url=settings.public_base_url),
        meal_log=MealLogService(repository),
        progress=ProgressReporter(MongoProgressSink(repository)),
        engine=engine,
        max_items=settings.max_items,
    )


# Type aliases for service dependencies
ImageStorageDep = Annotated[ImageStorage, Depends(get_image_storage)]
FoodScanServiceDep = Annotated[FoodScanService, Depends(get_food_scan_service)]
