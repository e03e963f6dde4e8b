"""GridFS Storage for meal photos.

Stores scanned images in a MongoDB GridFS bucket so the meal entry can link
back to the photo. Uploads are best-effort: a failed upload never fails the
scan, the entry is simply saved without an image URL.
"""

import logging
import secrets
from abc import ABC, abstractmethod
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from gridfs.errors import NoFile
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorGridFSBucket
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from food_scan_api.utils.dates import utc_now
from food_scan_api.utils.images import ImagePayload

logger = logging.getLogger(__name__)

# Default bucket name for meal photos
IMAGE_BUCKET_NAME = "meal_images"


class StorageError(Exception):
    """Exception raised for image storage operations."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class BucketNotFoundError(StorageError):
    """The target bucket has not been provisioned yet."""


class ImageStorage(ABC):
    """Binary image store addressed by file ID."""

    @property
    @abstractmethod
    def bucket_name(self) -> str:
        ...

    @abstractmethod
    async def upload(self, data: bytes, filename: str, content_type: str) -> str:
        """
        Store an image.

        Returns:
            The stored file's ID

        Raises:
            BucketNotFoundError: If the bucket does not exist
            StorageError: If the upload fails
        """
        ...

    @abstractmethod
    async def create_bucket(self) -> None:
        """Provision the bucket."""
        ...

    @abstractmethod
    async def download(self, file_id: str) -> tuple[bytes, str]:
        """
        Fetch an image.

        Returns:
            Tuple of (data, content_type)

        Raises:
            StorageError: If the file is missing or cannot be read
        """
        ...


class GridFSImageStorage(ImageStorage):
    """
    Image storage backed by a MongoDB GridFS bucket.

    Usage:
        storage = GridFSImageStorage(db, "meal_images")
        file_id = await storage.upload(data, "user/123_ab.jpg", "image/jpeg")
        data, content_type = await storage.download(file_id)
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        bucket_name: str = IMAGE_BUCKET_NAME,
        check_bucket: bool = True,
    ):
        """
        Initialize GridFS image storage.

        Args:
            db: Motor database instance
            bucket_name: Name of the GridFS bucket
            check_bucket: Refuse uploads until the bucket is provisioned
        """
        self._db = db
        self._bucket_name = bucket_name
        self._check_bucket = check_bucket
        self._bucket: AsyncIOMotorGridFSBucket | None = None

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @property
    def bucket(self) -> AsyncIOMotorGridFSBucket:
        """Get or create the GridFS bucket handle (lazy initialization)."""
        if self._bucket is None:
            self._bucket = AsyncIOMotorGridFSBucket(self._db, bucket_name=self._bucket_name)
        return self._bucket

    async def bucket_exists(self) -> bool:
        """A bucket exists once its files collection does."""
        try:
            names = await self._db.list_collection_names(
                filter={"name": f"{self._bucket_name}.files"}
            )
        except PyMongoError as e:
            logger.error(f"Failed to check GridFS bucket {self._bucket_name}: {e}")
            raise StorageError(
                message=f"Failed to check bucket: {e}",
                details={"bucket": self._bucket_name},
            ) from e
        return bool(names)

    async def create_bucket(self) -> None:
        """
        Provision the bucket: files/chunks collections and GridFS indexes.

        Safe to call when the bucket already exists.
        """
        try:
            files_collection = self._db[f"{self._bucket_name}.files"]
            chunks_collection = self._db[f"{self._bucket_name}.chunks"]

            await files_collection.create_index(
                [("filename", ASCENDING), ("uploadDate", ASCENDING)],
                name="filename_upload_idx",
            )
            await chunks_collection.create_index(
                [("files_id", ASCENDING), ("n", ASCENDING)],
                name="files_id_n_idx",
                unique=True,
            )
            await files_collection.create_index("metadata.user_id", name="user_id_idx")

            logger.info(f"GridFS bucket provisioned: {self._bucket_name}")

        except PyMongoError as e:
            logger.error(f"Failed to provision GridFS bucket {self._bucket_name}: {e}")
            raise StorageError(
                message=f"Failed to create bucket: {e}",
                details={"bucket": self._bucket_name},
            ) from e

    async def upload(self, data: bytes, filename: str, content_type: str) -> str:
        if self._check_bucket and not await self.bucket_exists():
            raise BucketNotFoundError(
                message=f"Bucket not found: {self._bucket_name}",
                details={"bucket": self._bucket_name},
            )

        metadata = {
            "content_type": content_type,
            "user_id": filename.split("/", 1)[0],
            "uploaded_at": utc_now(),
        }

        try:
            file_id = await self.bucket.upload_from_stream(filename, data, metadata=metadata)
        except PyMongoError as e:
            logger.error(f"GridFS upload failed: {e}")
            raise StorageError(
                message=f"Failed to upload file: {e}",
                details={"filename": filename, "size": len(data)},
            ) from e

        logger.info(f"Uploaded image {filename}: {len(data)} bytes -> {file_id}")
        return str(file_id)

    async def download(self, file_id: str) -> tuple[bytes, str]:
        try:
            grid_out = await self.bucket.open_download_stream(ObjectId(file_id))
            data = await grid_out.read()
        except (InvalidId, NoFile) as e:
            raise StorageError(
                message=f"Image not found: {file_id}",
                details={"file_id": file_id},
            ) from e
        except PyMongoError as e:
            logger.error(f"GridFS download failed for {file_id}: {e}")
            raise StorageError(
                message=f"Failed to download file: {e}",
                details={"file_id": file_id},
            ) from e

        metadata = grid_out.metadata or {}
        logger.debug(f"Downloaded GridFS file {file_id}: {len(data)} bytes")
        return data, metadata.get("content_type", "application/octet-stream")


class ImageUploader:
    """
    Best-effort photo upload for scans.

    Provisions the bucket and retries once when it is missing. Any other
    failure is logged and reported as no URL.
    """

    def __init__(self, storage: ImageStorage, public_base_url: str = ""):
        self.storage = storage
        self.public_base_url = public_base_url.rstrip("/")

    @staticmethod
    def build_filename(user_id: str, extension: str) -> str:
        """`<user_id>/<timestamp_ms>_<hex>.<ext>`"""
        timestamp = int(utc_now().timestamp() * 1000)
        return f"{user_id}/{timestamp}_{secrets.token_hex(4)}.{extension}"

    def public_url(self, file_id: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/food-scan/images/{file_id}"
        return f"gridfs://{self.storage.bucket_name}/{file_id}"

    async def upload_image(self, user_id: str, payload: ImagePayload) -> str | None:
        """
        Upload a scan photo.

        Returns:
            The image URL, or None if the upload failed
        """
        try:
            data = payload.to_bytes()
        except ValueError as e:
            logger.warning(f"Skipping image upload for {user_id}: {e}")
            return None

        filename = self.build_filename(user_id, payload.extension)

        try:
            try:
                file_id = await self.storage.upload(data, filename, payload.content_type)
            except BucketNotFoundError:
                logger.info(f"Image bucket missing, creating {self.storage.bucket_name}")
                await self.storage.create_bucket()
                file_id = await self.storage.upload(data, filename, payload.content_type)
        except StorageError as e:
            logger.warning(f"Image upload failed for {user_id}: {e.message}")
            return None

        return self.public_url(file_id)
