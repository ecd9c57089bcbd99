"""CV store: ties CV records to their blobs (original document and derived text)."""

import re
import uuid
from typing import Any, Dict, List, Optional

from resort_cv_ai.schemas.cv_record import CVRecord, CVStatus
from resort_cv_ai.schemas.search_filter import DemographicFilter
from resort_cv_ai.services.blob_store import BlobNotFoundError, BlobStore
from resort_cv_ai.services.record_store import RecordStore
from resort_cv_ai.utils.logger import get_logger

logger = get_logger(__name__)

TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


def _contains(text: str) -> Dict[str, str]:
    return {"$regex": re.escape(text.strip()), "$options": "i"}


def build_search_query(
    tags: Optional[List[str]] = None,
    demographic: Optional[DemographicFilter] = None,
    match_all: bool = True,
) -> Dict[str, Any]:
    """Record-store query over tags and promoted demographic fields."""
    query: Dict[str, Any] = {}
    tags = [t.strip() for t in tags or [] if t and t.strip()]
    if tags:
        query["tags"] = {"$all" if match_all else "$in": tags}
    if demographic is None:
        return query
    for field in ("first_name", "last_name", "department"):
        value = getattr(demographic, field)
        if value and value.strip():
            query[field] = _contains(value)
    for field in ("age", "expected_salary"):
        bounds = getattr(demographic, field)
        if bounds is not None:
            query[field] = {"$gte": bounds[0], "$lte": bounds[1]}
    return query


class CVStore:
    """Facade used by the analysis service, the CLI and any HTTP layer."""

    def __init__(self, records: RecordStore, blobs: BlobStore) -> None:
        self.records = records
        self.blobs = blobs

    async def add_cv(self, data: bytes, filename: str, content_type: Optional[str] = None) -> CVRecord:
        """Store the document and create a pending record bound to it."""
        file_id = await self.blobs.put(data, filename, content_type or "application/octet-stream")
        record = CVRecord(
            id=uuid.uuid4().hex,
            filename=filename,
            file_id=file_id,
            content_type=content_type,
        )
        await self.records.insert(record)
        logger.info("Added CV %s (%s, %s bytes)", record.id, filename, len(data))
        return record

    async def get_cv(self, cv_id: str) -> Optional[CVRecord]:
        return await self.records.get(cv_id)

    async def list_cvs(self, query: Optional[Dict[str, Any]] = None) -> List[CVRecord]:
        return await self.records.find(query)

    async def update_cv(self, cv_id: str, fields: Dict[str, Any]) -> CVRecord:
        return await self.records.update(cv_id, fields)

    async def get_cv_file(self, cv: CVRecord) -> bytes:
        if not cv.file_id:
            raise BlobNotFoundError(f"CV {cv.id} has no file attached")
        return await self.blobs.get(cv.file_id)

    async def save_text_content(self, text: str, filename: str) -> str:
        """Write text as a new blob; never overwrites an existing one."""
        return await self.blobs.put(text.encode("utf-8"), filename, TEXT_CONTENT_TYPE)

    async def get_text_content(self, file_id: str) -> str:
        data = await self.blobs.get(file_id)
        return data.decode("utf-8", errors="replace")

    async def get_derived_text(self, cv_id: str, enhanced: bool = False) -> Optional[str]:
        """Stored original (or enhanced) text of an analyzed CV; None if there is none yet."""
        cv = await self.records.get(cv_id)
        if cv is None:
            return None
        file_id = cv.enhanced_text_file_id if enhanced else cv.original_text_file_id
        if not file_id:
            return None
        return await self.get_text_content(file_id)

    async def search_by_tags(self, tags: List[str], match_all: bool = True) -> List[CVRecord]:
        """CVs carrying all (or, with match_all=False, any) of the given tags."""
        return await self.search(tags, match_all=match_all)

    async def search(
        self,
        tags: Optional[List[str]] = None,
        demographic: Optional[DemographicFilter] = None,
        match_all: bool = True,
    ) -> List[CVRecord]:
        """CVs matching the tags and every demographic filter given."""
        query = build_search_query(tags, demographic, match_all)
        logger.info("Searching CVs: %s", query)
        return await self.records.find(query)

    async def pending_ids(self) -> List[str]:
        """Ids of CVs that have never been analyzed successfully or whose last run failed."""
        records = await self.records.find({"status": {"$in": [CVStatus.PENDING.value, CVStatus.ERROR.value]}})
        return [r.id for r in records]

    async def delete_cv(self, cv_id: str) -> bool:
        """Remove the record and every blob it references."""
        cv = await self.records.get(cv_id)
        if cv is None:
            return False
        for blob_id in (cv.file_id, cv.original_text_file_id, cv.enhanced_text_file_id):
            if not blob_id:
                continue
            try:
                await self.blobs.delete(blob_id)
            except BlobNotFoundError:
                logger.warning("Blob %s of CV %s was already missing", blob_id, cv_id)
        deleted = await self.records.delete(cv_id)
        logger.info("Deleted CV %s", cv_id)
        return deleted
