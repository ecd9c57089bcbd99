"""Configuration loaded from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env: try package dir then project root
_base = Path(__file__).resolve().parent
for _env_path in (_base / ".env", _base.parent / ".env"):
    if load_dotenv(_env_path):
        break
load_dotenv()  # also allow process env

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# API keys – never hardcode
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
MODEL_NAME: str = os.getenv("MODEL_NAME", "gpt-4o")

# LLM client settings
LLM_TIMEOUT_SECONDS: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))
LLM_MAX_RETRIES: int = int(os.getenv("LLM_MAX_RETRIES", "3"))

ENHANCER_TEMPERATURE: float = 0.5
ENHANCER_MAX_TOKENS: int = 4000
PARSER_TEMPERATURE: float = 0.3
PARSER_MAX_TOKENS: int = 2000

# Text limits (characters)
MIN_TEXT_LENGTH: int = int(os.getenv("MIN_TEXT_LENGTH", "50"))
MAX_CLEAN_TEXT_CHARS: int = int(os.getenv("MAX_CLEAN_TEXT_CHARS", "100000"))
ENHANCER_MAX_INPUT_CHARS: int = int(os.getenv("ENHANCER_MAX_INPUT_CHARS", "50000"))
PARSER_MAX_INPUT_CHARS: int = int(os.getenv("PARSER_MAX_INPUT_CHARS", "50000"))

# Extraction / OCR
PDF_LINE_TOLERANCE: float = float(os.getenv("PDF_LINE_TOLERANCE", "5.0"))
OCR_LANGUAGES: str = os.getenv("OCR_LANGUAGES", "eng+tur")
OCR_RENDER_RESOLUTION: int = int(os.getenv("OCR_RENDER_RESOLUTION", "300"))

# MongoDB / GridFS
MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "cv_analyzer")
CV_COLLECTION: str = os.getenv("CV_COLLECTION", "cvs")
GRIDFS_BUCKET: str = os.getenv("GRIDFS_BUCKET", "fs")

# HTTP / fetch settings (CV import from URL)
HTTP_TIMEOUT_SECONDS: float = 30.0
HTTP_MAX_RETRIES: int = 3

# Batch analysis: 1 keeps CVs strictly serial to protect OCR/LLM rate limits
BATCH_CONCURRENCY: int = max(1, int(os.getenv("BATCH_CONCURRENCY", "1")))

# Upload content types accepted by the CLI when the extension is known
CONTENT_TYPES_BY_EXTENSION: dict = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".bmp": "image/bmp",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".txt": "text/plain",
}
