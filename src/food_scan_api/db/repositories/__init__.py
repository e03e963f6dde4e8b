"""Database repositories."""

from .base import BaseRepository
from .meal_entries import MealEntryRepository

__all__ = ["BaseRepository", "MealEntryRepository"]
