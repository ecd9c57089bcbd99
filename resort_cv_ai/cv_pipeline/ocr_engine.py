"""OCR engine: tesseract via pytesseract, created once and injected where needed."""

import asyncio
from abc import ABC, abstractmethod
from io import BytesIO
from typing import Optional

from resort_cv_ai.config import OCR_LANGUAGES
from resort_cv_ai.schemas.analysis_result import OcrResult
from resort_cv_ai.utils.logger import get_logger

logger = get_logger(__name__)


class OcrInitializationError(RuntimeError):
    """The OCR engine could not be started; it stays unusable until restart."""


class OcrEngine(ABC):
    """Abstract OCR provider."""

    @abstractmethod
    async def recognize(self, data: bytes) -> OcrResult:
        """Recognize text in encoded image bytes (PNG, JPEG, TIFF, ...)."""
        ...


class TesseractOcrEngine(OcrEngine):
    """
    Tesseract OCR. The binary is checked lazily on first use; a failed check is
    remembered and re-raised on every later call.
    """

    def __init__(self, languages: str = OCR_LANGUAGES) -> None:
        self._languages = languages
        self._ready = False
        self._init_error: Optional[OcrInitializationError] = None

    def _ensure_ready(self) -> None:
        if self._ready:
            return
        if self._init_error is not None:
            raise self._init_error
        try:
            import pytesseract

            version = pytesseract.get_tesseract_version()
            logger.info("Tesseract %s ready, languages=%s", version, self._languages)
            self._ready = True
        except Exception as e:
            self._init_error = OcrInitializationError(f"Failed to initialize OCR: {e}")
            logger.error("Tesseract initialization failed: %s", e)
            raise self._init_error from e

    def _recognize_sync(self, data: bytes) -> str:
        import pytesseract
        from PIL import Image

        self._ensure_ready()
        with Image.open(BytesIO(data)) as image:
            image.load()
            if image.mode not in ("RGB", "L"):
                image = image.convert("RGB")
            return pytesseract.image_to_string(image, lang=self._languages)

    async def recognize(self, data: bytes) -> OcrResult:
        text = await asyncio.to_thread(self._recognize_sync, data)
        return OcrResult(text=text or "")
