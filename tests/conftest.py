"""Shared fakes and fixtures for the test suite."""

from typing import Any, Dict, List, Optional

import pytest

from resort_cv_ai.cv_pipeline.cv_parser import CVParser
from resort_cv_ai.cv_pipeline.ocr_engine import OcrEngine
from resort_cv_ai.cv_pipeline.text_enhancer import TextEnhancer
from resort_cv_ai.cv_pipeline.text_extractor import TextExtractor
from resort_cv_ai.cv_pipeline.analysis_service import CVAnalysisService
from resort_cv_ai.schemas.analysis_result import OcrResult
from resort_cv_ai.services.blob_store import InMemoryBlobStore
from resort_cv_ai.services.cv_store import CVStore
from resort_cv_ai.services.record_store import InMemoryRecordStore

RESUME_LINES = [
    "Jane Doe",
    "jane@example.com",
    "(555) 111-2222",
    "Fluent in English and Spanish",
    "4 years Front Office experience at a luxury resort",
]
RESUME_TEXT = "\n".join(RESUME_LINES)

JANE_DOE_PARSED: Dict[str, Any] = {
    "Demographics": {
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "jane@example.com",
        "phone": "(555) 111-2222",
        "birthdate": "",
    },
    "Age": "",
    "Languages": {"English": "Fluent", "Spanish": "Fluent"},
    "Education": {},
    "Experience": {
        "Duration": "4 years",
        "Establishment Type": ["Luxury Resort"],
        "Position Level": "Specialist",
    },
    "Technical Skills": {
        "Front Office / Reservation / CRM & Call Center": "Check-in/Check-out procedures",
    },
    "Soft Skills": ["Guest Communication"],
    "Certifications": [],
}


def _pdf_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def make_pdf(lines: List[str]) -> bytes:
    """Minimal one-page PDF with each line drawn in Helvetica."""
    ops = ["BT", "/F1 12 Tf", "72 720 Td", "16 TL"]
    for line in lines:
        ops.append(f"({_pdf_escape(line)}) Tj T*")
    ops.append("ET")
    stream = "\n".join(ops).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_offset}\n%%EOF\n".encode()
    return bytes(out)


def make_png(size=(40, 20)) -> bytes:
    from io import BytesIO

    from PIL import Image

    buffer = BytesIO()
    Image.new("RGB", size, "white").save(buffer, format="PNG")
    return buffer.getvalue()


class FakeOcrEngine(OcrEngine):
    def __init__(self, text: str = "", error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.calls: List[bytes] = []

    async def recognize(self, data: bytes) -> OcrResult:
        self.calls.append(data)
        if self.error is not None:
            raise self.error
        return OcrResult(text=self.text)


class FakeEnhancer(TextEnhancer):
    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix
        self.texts: List[str] = []

    async def enhance(self, text: str) -> str:
        self.texts.append(text)
        return self.prefix + text


class FakeParser(CVParser):
    def __init__(self, result: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.texts: List[str] = []

    async def parse(self, text: str) -> Dict[str, Any]:
        self.texts.append(text)
        if self.error is not None:
            raise self.error
        return dict(self.result or {})


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def cv_store(record_store, blob_store):
    return CVStore(record_store, blob_store)


@pytest.fixture
def parser():
    return FakeParser(JANE_DOE_PARSED)


@pytest.fixture
def enhancer():
    return FakeEnhancer()


@pytest.fixture
def ocr_engine():
    return FakeOcrEngine()


@pytest.fixture
def service(cv_store, ocr_engine, enhancer, parser):
    return CVAnalysisService(
        cv_store=cv_store,
        text_extractor=TextExtractor(ocr_engine),
        text_enhancer=enhancer,
        cv_parser=parser,
        batch_concurrency=1,
    )


