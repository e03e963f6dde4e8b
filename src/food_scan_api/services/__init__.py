"""Business logic services."""

from .confidence_engine import ConfidenceEngine, get_confidence_engine
from .enrichment import CompositionEnricher
from .food_scan import FoodScanService
from .image_storage import GridFSImageStorage, ImageUploader
from .meal_log import MealLogService
from .progress import MongoProgressSink, ProgressReporter

__all__ = [
    "CompositionEnricher",
    "ConfidenceEngine",
    "FoodScanService",
    "GridFSImageStorage",
    "ImageUploader",
    "MealLogService",
    "MongoProgressSink",
    "ProgressReporter",
    "get_confidence_engine",
]
