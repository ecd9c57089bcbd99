"""Tests for the CV analysis service (orchestrator)."""

import asyncio

from conftest import (
    JANE_DOE_PARSED,
    RESUME_LINES,
    RESUME_TEXT,
    FakeEnhancer,
    FakeOcrEngine,
    FakeParser,
    make_pdf,
)
from resort_cv_ai.cv_pipeline.analysis_service import (
    FAILURE_MESSAGE,
    IN_PROGRESS_ERROR,
    SUCCESS_MESSAGE,
    CVAnalysisService,
)
from resort_cv_ai.cv_pipeline.cv_parser import CVParseError
from resort_cv_ai.cv_pipeline.text_enhancer import TextEnhancer
from resort_cv_ai.cv_pipeline.text_extractor import TextExtractor
from resort_cv_ai.schemas.cv_record import CVRecord, CVStatus
from resort_cv_ai.services.record_store import InMemoryRecordStore
from resort_cv_ai.services.cv_store import CVStore
from resort_cv_ai.utils.helpers import digits_only


def add_text_cv(cv_store, text=RESUME_TEXT, filename="jane.txt"):
    return asyncio.run(cv_store.add_cv(text.encode("utf-8"), filename, "text/plain"))


def get(cv_store, cv_id) -> CVRecord:
    return asyncio.run(cv_store.get_cv(cv_id))


def make_service(cv_store, parser=None, enhancer=None, ocr=None, batch_concurrency=1):
    return CVAnalysisService(
        cv_store=cv_store,
        text_extractor=TextExtractor(ocr or FakeOcrEngine()),
        text_enhancer=enhancer or FakeEnhancer(),
        cv_parser=parser or FakeParser(JANE_DOE_PARSED),
        batch_concurrency=batch_concurrency,
    )


class StatusRecordingParser(FakeParser):
    """Records the CV status visible while parsing runs."""

    def __init__(self, cv_store, cv_id, result):
        super().__init__(result)
        self.cv_store = cv_store
        self.cv_id = cv_id
        self.seen_status = None

    async def parse(self, text):
        record = await self.cv_store.get_cv(self.cv_id)
        self.seen_status = record.status
        return await super().parse(text)


class FailingLookupRecordStore(InMemoryRecordStore):
    """Record store whose lookup raises for one id."""

    def __init__(self, failing_id):
        super().__init__()
        self.failing_id = failing_id

    async def get(self, cv_id):
        if cv_id == self.failing_id:
            raise ConnectionError("record store unavailable")
        return await super().get(cv_id)


class RaisingEnhancer(TextEnhancer):
    async def enhance(self, text):
        raise RuntimeError("enhancer exploded")


class TestAnalyzeCv:
    """Tests for CVAnalysisService.analyze_cv."""

    def test_success_lifecycle(self, cv_store, blob_store):
        """Test pending -> processing -> completed with all artifacts stored."""
        record = add_text_cv(cv_store)
        assert record.status == CVStatus.PENDING
        parser = StatusRecordingParser(cv_store, record.id, JANE_DOE_PARSED)
        enhancer = FakeEnhancer(prefix="ENHANCED\n")
        service = make_service(cv_store, parser=parser, enhancer=enhancer)

        result = asyncio.run(service.analyze_cv(record.id))
        stored = get(cv_store, record.id)

        assert result.success is True
        assert result.message == SUCCESS_MESSAGE
        assert result.error is None
        assert parser.seen_status == CVStatus.PROCESSING
        assert stored.status == CVStatus.COMPLETED
        assert stored.analyzed is True
        assert stored.error is None
        assert stored.tags and "language:english-fluent" in stored.tags
        assert stored.parsed_data is not None and stored.analysis is not None
        assert asyncio.run(cv_store.get_text_content(stored.original_text_file_id)) == RESUME_TEXT
        assert asyncio.run(cv_store.get_text_content(stored.enhanced_text_file_id)) == "ENHANCED\n" + RESUME_TEXT
        assert parser.texts == ["ENHANCED\n" + RESUME_TEXT]
        assert blob_store.metadata(stored.original_text_file_id)[0] == f"{record.id}-original.txt"

    def test_parsed_data_and_projection(self, cv_store, service):
        """Test parsed data keeps the parser output and gains demographics."""
        record = add_text_cv(cv_store)
        asyncio.run(service.analyze_cv(record.id))
        stored = get(cv_store, record.id)

        assert stored.parsed_data["Languages"] == {"English": "Fluent", "Spanish": "Fluent"}
        assert stored.parsed_data["demographics"] == {
            "firstName": "Jane",
            "lastName": "Doe",
            "email": "jane@example.com",
            "phone": "(555) 111-2222",
            "birthdate": "",
        }
        assert [entry.name for entry in stored.analysis.languages] == ["English", "Spanish"]
        assert stored.analysis.experience.duration == "4 years"
        assert stored.email == "jane@example.com"
        assert (stored.first_name, stored.last_name) == ("Jane", "Doe")
        assert stored.age is None

    def test_parser_failure_sets_error(self, cv_store):
        """Test a parser failure ends in error with analyzed still false."""
        record = add_text_cv(cv_store)
        service = make_service(cv_store, parser=FakeParser(error=CVParseError("Failed to parse CV: invalid JSON")))

        result = asyncio.run(service.analyze_cv(record.id))
        stored = get(cv_store, record.id)

        assert result.success is False
        assert result.message == FAILURE_MESSAGE
        assert "invalid JSON" in result.error
        assert stored.status == CVStatus.ERROR
        assert stored.analyzed is False
        assert stored.error
        assert stored.tags == []
        assert stored.original_text_file_id is None

    def test_failed_rerun_keeps_previous_analysis(self, cv_store):
        """Test analyzed stays true after a later failed run and retry recovers."""
        record = add_text_cv(cv_store)
        asyncio.run(make_service(cv_store).analyze_cv(record.id))
        first = get(cv_store, record.id)

        failing = make_service(cv_store, parser=FakeParser(error=CVParseError("quota")))
        asyncio.run(failing.analyze_cv(record.id))
        after_failure = get(cv_store, record.id)

        assert after_failure.status == CVStatus.ERROR
        assert after_failure.analyzed is True
        assert after_failure.tags == first.tags
        assert after_failure.original_text_file_id == first.original_text_file_id

        asyncio.run(make_service(cv_store).analyze_cv(record.id))
        retried = get(cv_store, record.id)
        assert retried.status == CVStatus.COMPLETED
        assert retried.error is None
        assert retried.original_text_file_id != first.original_text_file_id

    def test_tags_are_replaced(self, cv_store):
        """Test a new run replaces the tag list instead of merging."""
        record = add_text_cv(cv_store)
        asyncio.run(make_service(cv_store).analyze_cv(record.id))
        asyncio.run(make_service(cv_store, parser=FakeParser({"Soft Skills": ["Initiative"]})).analyze_cv(record.id))

        assert get(cv_store, record.id).tags == ["soft-skill:initiative"]

    def test_missing_record(self, service):
        result = asyncio.run(service.analyze_cv("does-not-exist"))

        assert result.success is False
        assert result.error == "CV not found or no file attached"

    def test_record_without_file(self, cv_store, record_store, service):
        """Test a record with no bound file fails fast and is marked as error."""
        asyncio.run(record_store.insert(CVRecord(id="no-file", filename="ghost.pdf")))

        result = asyncio.run(service.analyze_cv("no-file"))
        stored = get(cv_store, "no-file")

        assert result.error == "CV not found or no file attached"
        assert stored.status == CVStatus.ERROR
        assert stored.error == "CV not found or no file attached"

    def test_empty_file(self, cv_store, service):
        record = asyncio.run(cv_store.add_cv(b"", "empty.pdf", "application/pdf"))
        result = asyncio.run(service.analyze_cv(record.id))

        assert result.success is False
        assert "Empty file buffer" in result.error
        assert get(cv_store, record.id).status == CVStatus.ERROR

    def test_extraction_exhaustion(self, cv_store, parser):
        """Test too little text is fatal and never reaches the parser."""
        record = add_text_cv(cv_store, text="Jane Doe")
        service = make_service(cv_store, parser=parser)

        result = asyncio.run(service.analyze_cv(record.id))
        stored = get(cv_store, record.id)

        assert result.success is False
        assert "All extraction methods failed" in result.error
        assert stored.status == CVStatus.ERROR
        assert stored.original_text_file_id is None
        assert parser.texts == []

    def test_unsupported_document(self, cv_store, service):
        record = asyncio.run(cv_store.add_cv(b"\x00\x01\x02\x03\xff\xfe", "blob.bin", None))
        result = asyncio.run(service.analyze_cv(record.id))

        assert result.success is False
        assert result.error.startswith("Failed to extract text from CV")

    def test_enhancer_failure_is_not_fatal(self, cv_store):
        """Test a raising enhancer degrades to the original text."""
        record = add_text_cv(cv_store)
        parser = FakeParser(JANE_DOE_PARSED)
        service = make_service(cv_store, parser=parser, enhancer=RaisingEnhancer())

        result = asyncio.run(service.analyze_cv(record.id))
        stored = get(cv_store, record.id)

        assert result.success is True
        assert parser.texts == [RESUME_TEXT]
        assert asyncio.run(cv_store.get_text_content(stored.enhanced_text_file_id)) == RESUME_TEXT

    def test_bracket_age_stays_in_parsed_data(self, cv_store):
        """Test Age "23-28" leaves the numeric age unset."""
        record = add_text_cv(cv_store)
        service = make_service(cv_store, parser=FakeParser({**JANE_DOE_PARSED, "Age": "23-28"}))

        asyncio.run(service.analyze_cv(record.id))
        stored = get(cv_store, record.id)

        assert stored.age is None
        assert stored.parsed_data["Age"] == "23-28"
        assert "age:23-28" in stored.tags
        assert "age" not in {k for k, v in stored.to_document().items() if v is not None}

    def test_numeric_age_promoted(self, cv_store):
        record = add_text_cv(cv_store)
        service = make_service(cv_store, parser=FakeParser({**JANE_DOE_PARSED, "Age": "31"}))

        asyncio.run(service.analyze_cv(record.id))

        assert get(cv_store, record.id).age == 31.0

    def test_final_write_failure_reported(self, cv_store):
        """Test a failing terminal write surfaces as a failed run."""
        record = add_text_cv(cv_store)
        service = make_service(cv_store)
        original_update = cv_store.update_cv

        async def update_cv(cv_id, fields):
            if fields.get("status") == CVStatus.COMPLETED:
                raise ConnectionError("write concern failed")
            return await original_update(cv_id, fields)

        cv_store.update_cv = update_cv
        result = asyncio.run(service.analyze_cv(record.id))
        stored = get(cv_store, record.id)

        assert result.success is False
        assert "write concern failed" in result.error
        assert stored.status == CVStatus.ERROR
        assert stored.analyzed is False

    def test_error_write_failure_is_swallowed(self, cv_store):
        """Test the error-status write never raises out of analyze_cv."""
        record = add_text_cv(cv_store)
        service = make_service(cv_store, parser=FakeParser(error=CVParseError("bad")))
        original_update = cv_store.update_cv

        async def update_cv(cv_id, fields):
            if fields.get("status") == CVStatus.ERROR:
                raise ConnectionError("database down")
            return await original_update(cv_id, fields)

        cv_store.update_cv = update_cv
        result = asyncio.run(service.analyze_cv(record.id))

        assert result.success is False
        assert result.error == "Failed to parse CV data: bad"

    def test_concurrent_same_id_rejected(self, cv_store, service):
        """Test a second run for an id already in flight is rejected without touching it."""
        record = add_text_cv(cv_store)

        async def run_twice():
            return await asyncio.gather(service.analyze_cv(record.id), service.analyze_cv(record.id))

        first, second = asyncio.run(run_twice())

        assert first.success is True
        assert second.success is False
        assert second.error == IN_PROGRESS_ERROR
        assert get(cv_store, record.id).status == CVStatus.COMPLETED

        # Lock released afterwards
        assert asyncio.run(service.analyze_cv(record.id)).success is True


class TestAnalyzeCvs:
    """Tests for CVAnalysisService.analyze_cvs."""

    def test_batch_isolation(self, blob_store):
        """Test a record lookup failure for the middle id affects only that id."""
        records = FailingLookupRecordStore(failing_id="broken")
        cv_store = CVStore(records, blob_store)
        first = add_text_cv(cv_store, filename="a.txt")
        last = add_text_cv(cv_store, filename="c.txt")
        service = make_service(cv_store)

        results = asyncio.run(service.analyze_cvs([first.id, "broken", last.id]))

        assert [r.id for r in results] == [first.id, "broken", last.id]
        assert [r.success for r in results] == [True, False, True]
        assert results[1].message == FAILURE_MESSAGE
        assert "record store unavailable" in results[1].error
        assert results[0].message == "CV analyzed successfully"
        assert get(cv_store, first.id).status == CVStatus.COMPLETED
        assert get(cv_store, last.id).status == CVStatus.COMPLETED

    def test_batch_order_independent(self, blob_store):
        """Test the failing id can be anywhere in the batch."""
        records = FailingLookupRecordStore(failing_id="broken")
        cv_store = CVStore(records, blob_store)
        ids = [add_text_cv(cv_store).id, add_text_cv(cv_store).id]
        service = make_service(cv_store)

        results = asyncio.run(service.analyze_cvs(["broken", *ids]))

        assert [r.success for r in results] == [False, True, True]

    def test_bounded_concurrency_keeps_order(self, cv_store):
        """Test a worker pool larger than one returns results in input order."""
        ids = [add_text_cv(cv_store, filename=f"{i}.txt").id for i in range(4)]
        service = make_service(cv_store, batch_concurrency=3)

        results = asyncio.run(service.analyze_cvs(ids + ["missing"]))

        assert [r.id for r in results] == ids + ["missing"]
        assert [r.success for r in results] == [True, True, True, True, False]

    def test_empty_batch(self, service):
        assert asyncio.run(service.analyze_cvs([])) == []


class TestEndToEnd:
    """PDF upload through tagging with stubbed language model and OCR."""

    def test_jane_doe_pdf(self, cv_store):
        parser = FakeParser(JANE_DOE_PARSED)
        service = make_service(cv_store, parser=parser, ocr=FakeOcrEngine())
        record = asyncio.run(cv_store.add_cv(make_pdf(RESUME_LINES), "jane-doe.pdf", "application/pdf"))

        result = asyncio.run(service.analyze_cv(record.id))
        stored = get(cv_store, record.id)

        assert result.success is True
        assert stored.status == CVStatus.COMPLETED
        assert stored.original_text_file_id
        original_text = asyncio.run(cv_store.get_text_content(stored.original_text_file_id))
        assert "jane@example.com" in original_text
        assert "Jane Doe" in parser.texts[0]
        assert "language:english-fluent" in stored.tags
        assert any(tag.startswith("language:spanish-") for tag in stored.tags)
        assert {"experience:3-5-years", "experience:1-3-years"} & set(stored.tags)
        assert stored.email == "jane@example.com"
        assert digits_only(stored.phone) == "5551112222"
