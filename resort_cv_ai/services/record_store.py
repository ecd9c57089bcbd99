"""CV record storage: metadata, status, tags and derived fields keyed by CV id."""

import asyncio
import operator
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from resort_cv_ai.config import CV_COLLECTION, MONGODB_DB_NAME, MONGODB_URI
from resort_cv_ai.schemas.cv_record import CVRecord
from resort_cv_ai.utils.logger import get_logger

logger = get_logger(__name__)


class RecordNotFoundError(KeyError):
    """Raised when updating a CV id that does not exist."""


class RecordStore(ABC):
    """Abstract record store. Field names in updates and queries are CVRecord attribute names."""

    @abstractmethod
    async def insert(self, record: CVRecord) -> CVRecord:
        ...

    @abstractmethod
    async def get(self, cv_id: str) -> Optional[CVRecord]:
        ...

    @abstractmethod
    async def update(self, cv_id: str, fields: Dict[str, Any]) -> CVRecord:
        """Apply a partial update and return the updated record."""
        ...

    @abstractmethod
    async def find(self, query: Optional[Dict[str, Any]] = None) -> List[CVRecord]:
        ...

    @abstractmethod
    async def delete(self, cv_id: str) -> bool:
        ...


_COMPARISONS: Dict[str, Callable[[Any, Any], bool]] = {
    "$gte": operator.ge,
    "$gt": operator.gt,
    "$lte": operator.le,
    "$lt": operator.lt,
}


def _compare(value: Any, op: str, operand: Any) -> bool:
    # Like MongoDB, missing values and mismatched types never satisfy a range
    if value is None or isinstance(value, (bool, list, dict)):
        return False
    try:
        return _COMPARISONS[op](value, operand)
    except TypeError:
        return False


def _matches_operator(value: Any, op: str, operand: Any, condition: Dict[str, Any]) -> bool:
    if op == "$in":
        if isinstance(value, list):
            return any(v in operand for v in value)
        return value in operand
    if op == "$all":
        return isinstance(value, list) and all(v in value for v in operand)
    if op in _COMPARISONS:
        return _compare(value, op, operand)
    if op == "$regex":
        flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
        candidates = value if isinstance(value, list) else [value]
        return any(isinstance(v, str) and re.search(operand, v, flags) for v in candidates)
    raise ValueError(f"Unsupported query operator: {op}")


def _matches(value: Any, condition: Any) -> bool:
    """Mongo-like matching for one field: equality, array-contains, $in, $all, ranges, $regex."""
    if isinstance(condition, dict):
        return all(
            _matches_operator(value, op, operand, condition)
            for op, operand in condition.items()
            if op != "$options"
        )
    if isinstance(value, list) and not isinstance(condition, list):
        return condition in value
    return value == condition


class InMemoryRecordStore(RecordStore):
    """Process-local record store for tests and local runs. Keeps insertion order."""

    def __init__(self) -> None:
        self._records: Dict[str, CVRecord] = {}

    async def insert(self, record: CVRecord) -> CVRecord:
        if record.id in self._records:
            raise ValueError(f"Duplicate CV id: {record.id}")
        self._records[record.id] = record
        return record

    async def get(self, cv_id: str) -> Optional[CVRecord]:
        return self._records.get(cv_id)

    async def update(self, cv_id: str, fields: Dict[str, Any]) -> CVRecord:
        current = self._records.get(cv_id)
        if current is None:
            raise RecordNotFoundError(cv_id)
        updated = CVRecord.model_validate({**current.model_dump(), **fields})
        self._records[cv_id] = updated
        return updated

    async def find(self, query: Optional[Dict[str, Any]] = None) -> List[CVRecord]:
        query = query or {}
        result = []
        for record in self._records.values():
            data = record.model_dump()
            if all(_matches(data.get(k), cond) for k, cond in query.items()):
                result.append(record)
        return result

    async def delete(self, cv_id: str) -> bool:
        return self._records.pop(cv_id, None) is not None


def _alias(field_name: str) -> str:
    field = CVRecord.model_fields.get(field_name)
    if field_name == "id":
        return "_id"
    return field.alias if field is not None and field.alias else field_name


class MongoRecordStore(RecordStore):
    """
    MongoDB collection of camelCase CV documents with `_id` set to the CV id.
    pymongo calls run in a worker thread.
    """

    def __init__(
        self,
        uri: str = MONGODB_URI,
        db_name: str = MONGODB_DB_NAME,
        collection_name: str = CV_COLLECTION,
    ) -> None:
        self._uri = uri
        self._db_name = db_name
        self._collection_name = collection_name
        self._collection = None

    def _get_collection(self):
        if self._collection is None:
            from pymongo import ASCENDING, MongoClient

            client = MongoClient(self._uri)
            collection = client[self._db_name][self._collection_name]
            collection.create_index([("tags", ASCENDING)])
            collection.create_index([("status", ASCENDING)])
            collection.create_index([("fileId", ASCENDING)])
            collection.create_index([("age", ASCENDING)])
            collection.create_index([("expectedSalary", ASCENDING)])
            self._collection = collection
            logger.info("Connected MongoDB collection %s.%s", self._db_name, self._collection_name)
        return self._collection

    @staticmethod
    def _to_document(record: CVRecord) -> Dict[str, Any]:
        doc = record.model_dump(mode="json", by_alias=True)
        doc["_id"] = doc.pop("id")
        doc["uploadDate"] = record.upload_date
        return doc

    @staticmethod
    def _from_document(doc: Dict[str, Any]) -> CVRecord:
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return CVRecord.model_validate(data)

    @staticmethod
    def _translate(fields: Dict[str, Any]) -> Dict[str, Any]:
        """Attribute names -> persisted names; pydantic values -> JSON-safe values."""
        out: Dict[str, Any] = {}
        for name, value in fields.items():
            if hasattr(value, "model_dump"):
                value = value.model_dump(mode="json", by_alias=True)
            elif isinstance(value, Enum):
                value = value.value
            out[_alias(name)] = value
        return out

    def _insert_sync(self, record: CVRecord) -> CVRecord:
        self._get_collection().insert_one(self._to_document(record))
        return record

    def _get_sync(self, cv_id: str) -> Optional[CVRecord]:
        doc = self._get_collection().find_one({"_id": cv_id})
        return self._from_document(doc) if doc else None

    def _update_sync(self, cv_id: str, fields: Dict[str, Any]) -> CVRecord:
        from pymongo import ReturnDocument

        doc = self._get_collection().find_one_and_update(
            {"_id": cv_id},
            {"$set": self._translate(fields)},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise RecordNotFoundError(cv_id)
        return self._from_document(doc)

    def _find_sync(self, query: Dict[str, Any]) -> List[CVRecord]:
        cursor = self._get_collection().find(self._translate(query))
        return [self._from_document(doc) for doc in cursor]

    def _delete_sync(self, cv_id: str) -> bool:
        return self._get_collection().delete_one({"_id": cv_id}).deleted_count > 0

    async def insert(self, record: CVRecord) -> CVRecord:
        return await asyncio.to_thread(self._insert_sync, record)

    async def get(self, cv_id: str) -> Optional[CVRecord]:
        return await asyncio.to_thread(self._get_sync, cv_id)

    async def update(self, cv_id: str, fields: Dict[str, Any]) -> CVRecord:
        return await asyncio.to_thread(self._update_sync, cv_id, fields)

    async def find(self, query: Optional[Dict[str, Any]] = None) -> List[CVRecord]:
        return await asyncio.to_thread(self._find_sync, query or {})

    async def delete(self, cv_id: str) -> bool:
        return await asyncio.to_thread(self._delete_sync, cv_id)
