"""Binary blob storage: original CV documents and derived text files."""

import asyncio
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from resort_cv_ai.config import GRIDFS_BUCKET, MONGODB_DB_NAME, MONGODB_URI
from resort_cv_ai.utils.logger import get_logger

logger = get_logger(__name__)


class BlobNotFoundError(KeyError):
    """Raised when a blob id does not exist in the store."""


class BlobStore(ABC):
    """Abstract blob store addressed by opaque string ids."""

    @abstractmethod
    async def put(self, data: bytes, filename: str, content_type: str) -> str:
        """Store bytes and return the new blob id."""
        ...

    @abstractmethod
    async def get(self, blob_id: str) -> bytes:
        """Return the stored bytes. Raises BlobNotFoundError for unknown ids."""
        ...

    @abstractmethod
    async def delete(self, blob_id: str) -> None:
        ...


class InMemoryBlobStore(BlobStore):
    """Process-local blob store for tests and local runs."""

    def __init__(self) -> None:
        self._blobs: Dict[str, Tuple[bytes, str, str]] = {}

    async def put(self, data: bytes, filename: str, content_type: str) -> str:
        blob_id = uuid.uuid4().hex
        self._blobs[blob_id] = (bytes(data), filename, content_type)
        return blob_id

    async def get(self, blob_id: str) -> bytes:
        try:
            return self._blobs[blob_id][0]
        except KeyError:
            raise BlobNotFoundError(blob_id)

    async def delete(self, blob_id: str) -> None:
        if self._blobs.pop(blob_id, None) is None:
            raise BlobNotFoundError(blob_id)

    def metadata(self, blob_id: str) -> Optional[Tuple[str, str]]:
        """(filename, content_type) for a blob, or None."""
        entry = self._blobs.get(blob_id)
        return (entry[1], entry[2]) if entry else None

    def __len__(self) -> int:
        return len(self._blobs)


class GridFSBlobStore(BlobStore):
    """
    MongoDB GridFS blob store. pymongo is blocking, so every driver call runs in
    a worker thread. The bucket is created lazily on first use.
    """

    def __init__(
        self,
        uri: str = MONGODB_URI,
        db_name: str = MONGODB_DB_NAME,
        bucket_name: str = GRIDFS_BUCKET,
    ) -> None:
        self._uri = uri
        self._db_name = db_name
        self._bucket_name = bucket_name
        self._bucket = None

    def _get_bucket(self):
        if self._bucket is None:
            import gridfs
            from pymongo import MongoClient

            client = MongoClient(self._uri)
            self._bucket = gridfs.GridFSBucket(client[self._db_name], bucket_name=self._bucket_name)
            logger.info("Connected GridFS bucket %s.%s", self._db_name, self._bucket_name)
        return self._bucket

    @staticmethod
    def _object_id(blob_id: str):
        from bson import ObjectId
        from bson.errors import InvalidId

        try:
            return ObjectId(blob_id)
        except (InvalidId, TypeError):
            raise BlobNotFoundError(blob_id)

    def _put_sync(self, data: bytes, filename: str, content_type: str) -> str:
        file_id = self._get_bucket().upload_from_stream(
            filename,
            data,
            metadata={"contentType": content_type},
        )
        return str(file_id)

    def _get_sync(self, blob_id: str) -> bytes:
        import gridfs

        try:
            stream = self._get_bucket().open_download_stream(self._object_id(blob_id))
        except gridfs.errors.NoFile:
            raise BlobNotFoundError(blob_id)
        with stream:
            return stream.read()

    def _delete_sync(self, blob_id: str) -> None:
        import gridfs

        try:
            self._get_bucket().delete(self._object_id(blob_id))
        except gridfs.errors.NoFile:
            raise BlobNotFoundError(blob_id)

    async def put(self, data: bytes, filename: str, content_type: str) -> str:
        return await asyncio.to_thread(self._put_sync, data, filename, content_type)

    async def get(self, blob_id: str) -> bytes:
        return await asyncio.to_thread(self._get_sync, blob_id)

    async def delete(self, blob_id: str) -> None:
        await asyncio.to_thread(self._delete_sync, blob_id)
