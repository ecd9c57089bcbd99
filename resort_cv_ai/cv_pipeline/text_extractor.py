"""
Extract plain text from uploaded CV documents (PDF, DOCX, images, plain text).

Each document kind has an ordered chain of strategies. The first strategy whose
cleaned output reaches the minimum length wins; strategy failures only move
the chain along. When every strategy falls short the extractor returns
NO_TEXT_MESSAGE instead of raising, so callers can tell "nothing readable" apart
from a real error. The only error raised is UnsupportedDocumentError, for bytes
that are not a document of any supported kind.
"""

import asyncio
import zipfile
from io import BytesIO
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Tuple

from resort_cv_ai.config import (
    MAX_CLEAN_TEXT_CHARS,
    MIN_TEXT_LENGTH,
    OCR_RENDER_RESOLUTION,
    PDF_LINE_TOLERANCE,
)
from resort_cv_ai.cv_pipeline.ocr_engine import OcrEngine
from resort_cv_ai.schemas.analysis_result import ExtractionResult
from resort_cv_ai.utils.logger import get_logger
from resort_cv_ai.utils.text_cleaner import clean_text_for_llm

logger = get_logger(__name__)

NO_TEXT_MESSAGE = (
    "No text could be extracted from this document. The document might be scanned, "
    "protected, or in an unsupported format."
)

PDF = "pdf"
DOCX = "docx"
IMAGE = "image"
TEXT = "text"
UNKNOWN = "unknown"

DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_IMAGE_MAGIC = (
    b"\x89PNG\r\n\x1a\n",
    b"\xff\xd8\xff",
    b"GIF87a",
    b"GIF89a",
    b"II*\x00",
    b"MM\x00*",
    b"BM",
)

Strategy = Callable[[bytes], Awaitable[Optional[str]]]


class UnsupportedDocumentError(ValueError):
    """The bytes are not a PDF, DOCX, image or text document."""


def _is_docx(data: bytes) -> bool:
    if not data.startswith(b"PK\x03\x04"):
        return False
    try:
        with zipfile.ZipFile(BytesIO(data)) as archive:
            return "word/document.xml" in archive.namelist()
    except zipfile.BadZipFile:
        return False


def _is_image(data: bytes) -> bool:
    if data.startswith(_IMAGE_MAGIC) or (data[:4] == b"RIFF" and data[8:12] == b"WEBP"):
        return True
    try:
        from PIL import Image, UnidentifiedImageError

        with Image.open(BytesIO(data)) as image:
            image.verify()
        return True
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return False


def _is_text(data: bytes) -> bool:
    head = data[:4096]
    if b"\x00" in head:
        return False
    try:
        head.decode("utf-8")
    except UnicodeDecodeError as e:
        # A multi-byte character cut at the 4 KB boundary is still text
        return e.start >= len(head) - 3
    return True


def detect_document_kind(data: bytes, declared_type: Optional[str] = None) -> str:
    """Classify by magic bytes first, then by the declared content type."""
    declared = (declared_type or "").split(";", 1)[0].strip().lower()
    if b"%PDF-" in data[:1024]:
        return PDF
    if _is_docx(data):
        return DOCX
    if data.startswith(_IMAGE_MAGIC) or (data[:4] == b"RIFF" and data[8:12] == b"WEBP"):
        return IMAGE
    if declared == "application/pdf":
        return PDF
    if declared == DOCX_CONTENT_TYPE:
        return DOCX
    if declared.startswith("image/"):
        return IMAGE
    if declared.startswith("text/") or _is_text(data):
        return TEXT
    if _is_image(data):
        return IMAGE
    return UNKNOWN


def is_placeholder_text(text: str) -> bool:
    return (text or "").strip() == NO_TEXT_MESSAGE


def reconstruct_lines(runs: Iterable[Tuple[str, float]], tolerance: float = PDF_LINE_TOLERANCE) -> str:
    """
    Join positioned text runs into lines: a newline is emitted whenever the
    vertical coordinate moves by more than `tolerance` between consecutive runs.
    """
    pieces: List[str] = []
    last_y: Optional[float] = None
    for text, y in runs:
        chunk = (text or "").strip("\r\n")
        if not chunk.strip():
            continue
        if last_y is not None:
            pieces.append("\n" if abs(y - last_y) > tolerance else " ")
        pieces.append(chunk)
        last_y = y
    return "".join(pieces)


def _device_y(cm: Sequence[float], tm: Sequence[float]) -> float:
    """Vertical position of a text run after applying the current transformation matrix."""
    try:
        return tm[4] * cm[1] + tm[5] * cm[3] + cm[5]
    except (IndexError, TypeError):
        return float(tm[5]) if tm else 0.0


class TextExtractor:
    """Best-effort text extraction with per-kind fallback chains."""

    def __init__(
        self,
        ocr_engine: Optional[OcrEngine] = None,
        min_length: int = MIN_TEXT_LENGTH,
        max_chars: int = MAX_CLEAN_TEXT_CHARS,
        line_tolerance: float = PDF_LINE_TOLERANCE,
        render_resolution: int = OCR_RENDER_RESOLUTION,
    ) -> None:
        self._ocr = ocr_engine
        self._min_length = min_length
        self._max_chars = max_chars
        self._line_tolerance = line_tolerance
        self._render_resolution = render_resolution

    @property
    def min_length(self) -> int:
        return self._min_length

    async def extract(self, data: bytes, declared_type: Optional[str] = None) -> str:
        """Cleaned text of the document, or NO_TEXT_MESSAGE."""
        result = await self.extract_with_method(data, declared_type)
        return result.text

    async def extract_with_method(self, data: bytes, declared_type: Optional[str] = None) -> ExtractionResult:
        if not data:
            raise UnsupportedDocumentError("Document is empty")
        kind = detect_document_kind(data, declared_type)
        if kind == UNKNOWN:
            raise UnsupportedDocumentError(
                f"Unsupported document format (declared type: {declared_type or 'none'})"
            )

        for name, strategy in self._strategies_for(kind):
            try:
                raw = await strategy(data)
            except Exception as e:
                logger.warning("%s extraction failed: %s", name, e)
                continue
            text = clean_text_for_llm(raw or "", self._max_chars)
            if self._is_sufficient(text):
                logger.info("Extracted %s characters from %s document using %s", len(text), kind, name)
                return ExtractionResult(text=text, method=name)
            logger.info(
                "%s returned %s characters (minimum %s); trying next method",
                name,
                len(text),
                self._min_length,
            )

        logger.warning("All extraction methods fell below %s characters for %s document", self._min_length, kind)
        return ExtractionResult(text=NO_TEXT_MESSAGE, method=None)

    def _is_sufficient(self, text: str) -> bool:
        return len(text) >= self._min_length and not is_placeholder_text(text)

    def _strategies_for(self, kind: str) -> List[Tuple[str, Strategy]]:
        if kind == PDF:
            return [
                ("pdfplumber", self._run_sync(self._pdf_text_layer)),
                ("pypdf", self._run_sync(self._pdf_text_runs)),
                ("ocr", self._ocr_pdf),
            ]
        if kind == DOCX:
            return [("python-docx", self._run_sync(self._docx_text))]
        if kind == IMAGE:
            return [("ocr", self._ocr_image)]
        return [("plain-text", self._run_sync(self._plain_text))]

    @staticmethod
    def _run_sync(func: Callable[[bytes], Optional[str]]) -> Strategy:
        async def runner(data: bytes) -> Optional[str]:
            return await asyncio.to_thread(func, data)

        return runner

    # ----- PDF -----

    def _pdf_text_layer(self, data: bytes) -> Optional[str]:
        """Text layer via pdfplumber."""
        import pdfplumber

        with pdfplumber.open(BytesIO(data)) as pdf:
            parts = []
            for page in pdf.pages:
                ptext = page.extract_text()
                if ptext:
                    parts.append(ptext)
            return "\n\n".join(parts) if parts else None

    def _pdf_text_runs(self, data: bytes) -> Optional[str]:
        """Text runs via pypdf, with line breaks rebuilt from vertical positions."""
        from pypdf import PdfReader

        reader = PdfReader(BytesIO(data))
        pages = []
        for page in reader.pages:
            runs: List[Tuple[str, float]] = []

            def visitor(text, cm, tm, font_dict, font_size, runs=runs):
                if text:
                    runs.append((text, _device_y(cm, tm)))

            page.extract_text(visitor_text=visitor)
            page_text = reconstruct_lines(runs, self._line_tolerance)
            if page_text:
                pages.append(page_text)
        return "\n\n".join(pages) if pages else None

    def _render_pdf_pages(self, data: bytes) -> List[bytes]:
        """Render every page to PNG bytes for OCR."""
        import pdfplumber

        images = []
        with pdfplumber.open(BytesIO(data)) as pdf:
            for page in pdf.pages:
                buffer = BytesIO()
                page.to_image(resolution=self._render_resolution).original.save(buffer, format="PNG")
                images.append(buffer.getvalue())
        return images

    async def _ocr_pdf(self, data: bytes) -> Optional[str]:
        if self._ocr is None:
            logger.warning("No OCR engine configured; skipping OCR")
            return None
        try:
            pages = await asyncio.to_thread(self._render_pdf_pages, data)
        except Exception as e:
            logger.warning("PDF page rendering failed, running OCR on raw bytes: %s", e)
            pages = [data]
        texts = []
        for index, page in enumerate(pages, 1):
            result = await self._ocr.recognize(page)
            logger.info("OCR page %s/%s: %s characters", index, len(pages), len(result.text))
            texts.append(result.text)
        return "\n\n".join(t for t in texts if t.strip())

    # ----- Other kinds -----

    async def _ocr_image(self, data: bytes) -> Optional[str]:
        if self._ocr is None:
            logger.warning("No OCR engine configured; skipping OCR")
            return None
        result = await self._ocr.recognize(data)
        return result.text

    def _docx_text(self, data: bytes) -> Optional[str]:
        """Paragraphs and table cells via python-docx."""
        from docx import Document

        doc = Document(BytesIO(data))
        parts = [p.text for p in doc.paragraphs if p.text.strip()]
        for table in doc.tables:
            for row in table.rows:
                cells = [c.text.strip() for c in row.cells if c.text.strip()]
                if cells:
                    parts.append(" | ".join(dict.fromkeys(cells)))
        return "\n\n".join(parts) if parts else None

    @staticmethod
    def _plain_text(data: bytes) -> Optional[str]:
        return data.decode("utf-8", errors="replace")
