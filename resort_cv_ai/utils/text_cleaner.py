"""Clean and normalize extracted CV text for LLM consumption."""

import re
import unicodedata

from resort_cv_ai.config import MAX_CLEAN_TEXT_CHARS

_ZERO_WIDTH = re.compile(r"[\u200b-\u200d\u2060\ufeff\u00ad]")
_HORIZONTAL_WS = re.compile(r"[^\S\n]+")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")

# Known OCR confusions for Latin-extended text (Turkish CVs mostly)
OCR_SUBSTITUTIONS = (
    ("i\u0307", "i"),  # dotted i
    ("\u00f0", "\u011f"),  # eth -> g with breve
    ("\u00ba", "o"),  # ordinal indicator -> o
)


def normalize_ocr_confusions(text: str) -> str:
    """Replace a small table of commonly misrecognized diacritics."""
    for wrong, right in OCR_SUBSTITUTIONS:
        text = text.replace(wrong, right)
    return text


def clean_text_for_llm(text: str, max_chars: int = MAX_CLEAN_TEXT_CHARS) -> str:
    """
    Normalize raw extracted text before it is stored or sent to the LLM.
    Collapses horizontal whitespace, trims lines, keeps at most one blank line
    between blocks, strips invisible characters, fixes known OCR confusions and
    truncates to max_chars.
    """
    if not text:
        return ""

    t = unicodedata.normalize("NFC", text)
    t = t.replace("\r\n", "\n").replace("\r", "\n")
    t = _ZERO_WIDTH.sub("", t)
    t = _HORIZONTAL_WS.sub(" ", t)
    t = "\n".join(line.strip() for line in t.split("\n"))
    t = _EXTRA_NEWLINES.sub("\n\n", t)
    t = normalize_ocr_confusions(t)
    return t[:max_chars].strip()
