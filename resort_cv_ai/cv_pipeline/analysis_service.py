"""
CV analysis service: runs one stored CV through the full pipeline.

- Extract text from the document (parsers, then OCR)
- Enhance the text with the LLM (best-effort)
- Parse the enhanced text into the recruiting taxonomy
- Generate tags and derive contact fields
- Store text blobs and results on the CV record

`analyze_cv` and `analyze_cvs` never raise. Fatal failures are persisted as
status `error` and returned as `success=False`.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from resort_cv_ai.config import BATCH_CONCURRENCY
from resort_cv_ai.cv_pipeline.cv_parser import CVParser, get_cv_parser
from resort_cv_ai.cv_pipeline.demographics import (
    build_analysis_projection,
    derive_record_fields,
    extract_demographics,
)
from resort_cv_ai.cv_pipeline.ocr_engine import OcrEngine, TesseractOcrEngine
from resort_cv_ai.cv_pipeline.tag_generator import convert_parsed_cv_to_tags
from resort_cv_ai.cv_pipeline.text_enhancer import TextEnhancer, get_text_enhancer
from resort_cv_ai.cv_pipeline.text_extractor import TextExtractor, UnsupportedDocumentError
from resort_cv_ai.schemas.analysis_result import AnalysisResult, BatchItemResult
from resort_cv_ai.schemas.cv_record import CVStatus
from resort_cv_ai.services.blob_store import GridFSBlobStore
from resort_cv_ai.services.cv_store import CVStore
from resort_cv_ai.services.record_store import MongoRecordStore
from resort_cv_ai.utils.logger import get_logger

logger = get_logger(__name__)

SUCCESS_MESSAGE = "CV analysis completed successfully"
FAILURE_MESSAGE = "Failed to analyze CV"
BATCH_SUCCESS_MESSAGE = "CV analyzed successfully"
IN_PROGRESS_ERROR = "Analysis already in progress for this CV"
UNKNOWN_ERROR = "Unknown error occurred"


class AnalysisError(Exception):
    """Fatal failure of one analysis run; the message is stored on the CV record."""


class CVAnalysisService:
    """
    Orchestrates extraction, enhancement, parsing and tagging for stored CVs.
    Collaborators are injected so tests can substitute fakes.
    """

    def __init__(
        self,
        cv_store: CVStore,
        text_extractor: TextExtractor,
        text_enhancer: TextEnhancer,
        cv_parser: CVParser,
        batch_concurrency: int = BATCH_CONCURRENCY,
    ) -> None:
        self.cv_store = cv_store
        self.text_extractor = text_extractor
        self.text_enhancer = text_enhancer
        self.cv_parser = cv_parser
        self.batch_concurrency = max(1, batch_concurrency)
        self._locks: Dict[str, asyncio.Lock] = {}

    async def analyze_cv(self, cv_id: str) -> AnalysisResult:
        """Analyze one CV. At most one run per id is in flight in this process."""
        lock = self._locks.setdefault(cv_id, asyncio.Lock())
        if lock.locked():
            logger.warning("Analysis for CV %s is already running; request rejected", cv_id)
            return AnalysisResult(success=False, message=FAILURE_MESSAGE, error=IN_PROGRESS_ERROR)
        async with lock:
            try:
                return await self._run(cv_id)
            finally:
                self._locks.pop(cv_id, None)

    async def analyze_cvs(self, cv_ids: Sequence[str]) -> List[BatchItemResult]:
        """
        Analyze several CVs. One CV's failure never affects the others; results
        follow the order of `cv_ids`.
        """
        logger.info("Starting batch analysis for %s CVs (concurrency %s)", len(cv_ids), self.batch_concurrency)
        if self.batch_concurrency == 1:
            results = [await self._analyze_batch_item(cv_id) for cv_id in cv_ids]
        else:
            semaphore = asyncio.Semaphore(self.batch_concurrency)

            async def bounded(cv_id: str) -> BatchItemResult:
                async with semaphore:
                    return await self._analyze_batch_item(cv_id)

            results = list(await asyncio.gather(*(bounded(cv_id) for cv_id in cv_ids)))
        succeeded = sum(1 for r in results if r.success)
        logger.info("Completed batch analysis: %s/%s succeeded", succeeded, len(results))
        return results

    async def _analyze_batch_item(self, cv_id: str) -> BatchItemResult:
        try:
            result = await self.analyze_cv(cv_id)
        except Exception as e:
            logger.exception("Error in batch processing CV %s: %s", cv_id, e)
            return BatchItemResult(id=cv_id, success=False, message=FAILURE_MESSAGE, error=str(e) or UNKNOWN_ERROR)
        return BatchItemResult(
            id=cv_id,
            success=result.success,
            message=BATCH_SUCCESS_MESSAGE if result.success else FAILURE_MESSAGE,
            error=result.error,
        )

    async def _run(self, cv_id: str) -> AnalysisResult:
        logger.info("Starting analysis pipeline for CV %s", cv_id)
        try:
            fields = await self._analyze(cv_id)
            await self.cv_store.update_cv(cv_id, fields)
        except Exception as e:
            message = str(e) or UNKNOWN_ERROR
            logger.exception("Error analyzing CV %s: %s", cv_id, message)
            await self._record_failure(cv_id, message)
            return AnalysisResult(success=False, message=FAILURE_MESSAGE, error=message)
        logger.info("Successfully completed analysis for CV %s (%s tags)", cv_id, len(fields["tags"]))
        return AnalysisResult(success=True, message=SUCCESS_MESSAGE)

    async def _record_failure(self, cv_id: str, message: str) -> None:
        try:
            await self.cv_store.update_cv(cv_id, {"status": CVStatus.ERROR, "error": message})
        except Exception as e:
            logger.exception("Failed to update error status for CV %s: %s", cv_id, e)

    async def _analyze(self, cv_id: str) -> Dict[str, Any]:
        """Run every stage and return the fields of the final record update."""
        cv = await self.cv_store.get_cv(cv_id)
        if cv is None or not cv.file_id:
            raise AnalysisError("CV not found or no file attached")
        logger.info("Processing CV %s (%s)", cv_id, cv.filename)

        await self.cv_store.update_cv(cv_id, {"status": CVStatus.PROCESSING})

        try:
            data = await self.cv_store.get_cv_file(cv)
        except Exception as e:
            raise AnalysisError(f"Could not retrieve CV file: {e}") from e
        if not data:
            raise AnalysisError("Could not retrieve CV file: Empty file buffer received")
        logger.info("Retrieved file for CV %s, size: %s bytes", cv_id, len(data))

        text = await self._extract_text(data, cv.content_type)
        original_text_file_id = await self.cv_store.save_text_content(text, f"{cv_id}-original.txt")

        enhanced_text = await self._enhance_text(text)
        enhanced_text_file_id = await self.cv_store.save_text_content(enhanced_text, f"{cv_id}-enhanced.txt")

        try:
            parsed = await self.cv_parser.parse(enhanced_text)
        except Exception as e:
            raise AnalysisError(f"Failed to parse CV data: {e}") from e
        if not isinstance(parsed, dict):
            raise AnalysisError("Failed to parse CV data: Parsing returned no structured result")

        tags = self._generate_tags(parsed)
        demographics = extract_demographics(parsed)

        return {
            "analyzed": True,
            "status": CVStatus.COMPLETED,
            "error": None,
            "tags": tags,
            "original_text_file_id": original_text_file_id,
            "enhanced_text_file_id": enhanced_text_file_id,
            "parsed_data": {**parsed, "demographics": demographics.model_dump(by_alias=True)},
            "analysis": build_analysis_projection(parsed),
            **derive_record_fields(parsed, demographics),
        }

    async def _extract_text(self, data: bytes, content_type: Optional[str]) -> str:
        try:
            extraction = await self.text_extractor.extract_with_method(data, content_type)
        except UnsupportedDocumentError as e:
            raise AnalysisError(f"Failed to extract text from CV: {e}") from e
        if not extraction.succeeded:
            raise AnalysisError(
                "Failed to extract text from CV: All extraction methods failed to get meaningful text from this document"
            )
        logger.info("Extracted %s characters using %s", len(extraction.text), extraction.method)
        return extraction.text

    async def _enhance_text(self, text: str) -> str:
        try:
            enhanced = await self.text_enhancer.enhance(text)
        except Exception as e:
            logger.exception("Error enhancing text, using original text: %s", e)
            return text
        if not enhanced or not enhanced.strip():
            logger.warning("Enhancement returned empty text, using original text")
            return text
        return enhanced

    @staticmethod
    def _generate_tags(parsed: Dict[str, Any]) -> List[str]:
        try:
            tags = convert_parsed_cv_to_tags(parsed)
        except Exception as e:
            logger.exception("Error generating tags, continuing with none: %s", e)
            return []
        logger.info("Generated %s tags: %s", len(tags), ", ".join(tags))
        return tags


def build_analysis_service(
    cv_store: Optional[CVStore] = None,
    ocr_engine: Optional[OcrEngine] = None,
) -> CVAnalysisService:
    """Service wired to MongoDB/GridFS, tesseract and OpenAI from configuration."""
    cv_store = cv_store or CVStore(MongoRecordStore(), GridFSBlobStore())
    return CVAnalysisService(
        cv_store=cv_store,
        text_extractor=TextExtractor(ocr_engine or TesseractOcrEngine()),
        text_enhancer=get_text_enhancer(),
        cv_parser=get_cv_parser(),
    )
