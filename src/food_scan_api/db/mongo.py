"""MongoDB connection management using Motor async driver."""

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)


class MongoDB:
    """
    Process-wide MongoDB connection holder.

    The client is opened once in the application lifespan and shared by
    the meal entry repository and the GridFS image storage.
    """

    client: AsyncIOMotorClient | None = None
    _db_name: str = "food_scan_db"

    @classmethod
    def connect(cls, uri: str, db_name: str = "food_scan_db") -> None:
        """
        Open the Motor client.

        Args:
            uri: MongoDB connection URI
            db_name: Default database name
        """
        cls.client = AsyncIOMotorClient(uri)
        cls._db_name = db_name

    @classmethod
    def close(cls) -> None:
        """Close the Motor client if one is open."""
        if cls.client is not None:
            cls.client.close()
            cls.client = None

    @classmethod
    def get_database(cls, name: str | None = None) -> AsyncIOMotorDatabase:
        """
        Get a database handle.

        Raises:
            RuntimeError: If connect() has not been called
        """
        if cls.client is None:
            raise RuntimeError("MongoDB not connected. Call MongoDB.connect() first.")
        return cls.client[name or cls._db_name]

    @classmethod
    def get_collection(cls, collection: str, db_name: str | None = None) -> AsyncIOMotorCollection:
        """Get a collection from the default (or named) database."""
        return cls.get_database(db_name)[collection]

    @classmethod
    def is_connected(cls) -> bool:
        """Check if MongoDB is connected."""
        return cls.client is not None
