"""Utility exports."""

from .helpers import EMAIL_PATTERN, PHONE_PATTERN, coerce_to_list, digits_only
from .logger import get_logger
from .text_cleaner import clean_text_for_llm, normalize_ocr_confusions

__all__ = [
    "get_logger",
    "EMAIL_PATTERN",
    "PHONE_PATTERN",
    "digits_only",
    "coerce_to_list",
    "clean_text_for_llm",
    "normalize_ocr_confusions",
]
