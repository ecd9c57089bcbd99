"""Service exports."""

from .blob_store import BlobNotFoundError, BlobStore, GridFSBlobStore, InMemoryBlobStore
from .cv_store import CVStore
from .file_fetcher import FetchedFile, fetch_file
from .openai_client import get_openai_client
from .record_store import InMemoryRecordStore, MongoRecordStore, RecordNotFoundError, RecordStore

__all__ = [
    "BlobStore",
    "BlobNotFoundError",
    "InMemoryBlobStore",
    "GridFSBlobStore",
    "RecordStore",
    "RecordNotFoundError",
    "InMemoryRecordStore",
    "MongoRecordStore",
    "CVStore",
    "FetchedFile",
    "fetch_file",
    "get_openai_client",
]
