"""CV analysis pipeline: text extraction (PDF/DOCX/images), LLM enhancement and parsing, tagging."""

from .analysis_service import AnalysisError, CVAnalysisService, build_analysis_service
from .cv_parser import CVParseError, CVParser, OpenAICVParser, get_cv_parser
from .ocr_engine import OcrEngine, OcrInitializationError, TesseractOcrEngine
from .tag_generator import convert_parsed_cv_to_tags, format_tag_value
from .text_enhancer import OpenAITextEnhancer, PassthroughTextEnhancer, TextEnhancer, get_text_enhancer
from .text_extractor import NO_TEXT_MESSAGE, TextExtractor, UnsupportedDocumentError

__all__ = [
    "CVAnalysisService",
    "AnalysisError",
    "build_analysis_service",
    "TextExtractor",
    "UnsupportedDocumentError",
    "NO_TEXT_MESSAGE",
    "OcrEngine",
    "OcrInitializationError",
    "TesseractOcrEngine",
    "TextEnhancer",
    "OpenAITextEnhancer",
    "PassthroughTextEnhancer",
    "get_text_enhancer",
    "CVParser",
    "CVParseError",
    "OpenAICVParser",
    "get_cv_parser",
    "convert_parsed_cv_to_tags",
    "format_tag_value",
]
