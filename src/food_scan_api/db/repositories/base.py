"""Base repository class with common database operations."""

from typing import Any, Generic, TypeVar

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import BaseModel

from food_scan_api.utils.dates import utc_now

T = TypeVar("T", bound=BaseModel)


def id_filter(id: str) -> dict[str, Any]:
    """Match `_id` as an ObjectId when the string is one, else literally."""
    return {"_id": ObjectId(id) if ObjectId.is_valid(id) else id}


class BaseRepository(Generic[T]):
    """
    Base repository providing common CRUD operations.

    Subclasses should set the `model_class` attribute to enable
    automatic document-to-model conversion.
    """

    model_class: type[T] | None = None

    def __init__(self, collection: AsyncIOMotorCollection):
        """
        Initialize repository with a MongoDB collection.

        Args:
            collection: Motor collection instance
        """
        self.collection = collection

    def _to_model(self, doc: dict[str, Any] | None) -> T | dict[str, Any] | None:
        """Convert MongoDB document to Pydantic model if model_class is set."""
        if doc is None:
            return None
        if "_id" in doc:
            doc["id"] = str(doc.pop("_id"))
        if self.model_class is not None:
            return self.model_class.model_validate(doc)
        return doc

    async def find_one(
        self,
        filter: dict[str, Any],
        sort: list[tuple[str, int]] | None = None,
    ) -> T | dict[str, Any] | None:
        """
        Find single document matching filter.

        Args:
            filter: MongoDB query filter
            sort: Optional ordering; the first document wins

        Returns:
            Document as model or dict, or None if not found
        """
        doc = await self.collection.find_one(filter, sort=sort)
        return self._to_model(doc)

    async def insert_one(self, document: dict[str, Any]) -> str:
        """
        Insert a single document.

        Args:
            document: Document to insert

        Returns:
            Inserted document ID as string
        """
        now = utc_now()
        document.setdefault("created_at", now)
        document.setdefault("updated_at", now)

        result = await self.collection.insert_one(document)
        return str(result.inserted_id)

    async def update_one(
        self,
        id: str,
        update: dict[str, Any],
        upsert: bool = False,
    ) -> bool:
        """
        Update a single document by ID.

        Args:
            id: Document ID
            update: Update operations (will be wrapped in $set if not an operator)
            upsert: Create document if it doesn't exist

        Returns:
            True if a document matched (or was upserted)
        """
        # Wrap in $set if not already an operator
        if not any(key.startswith("$") for key in update.keys()):
            update = {"$set": update}

        update.setdefault("$set", {})["updated_at"] = utc_now()

        result = await self.collection.update_one(id_filter(id), update, upsert=upsert)
        return result.matched_count > 0 or result.upserted_id is not None
