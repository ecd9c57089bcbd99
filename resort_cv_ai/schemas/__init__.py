"""Schema exports."""

from .analysis_result import AnalysisResult, BatchItemResult, ExtractionResult, OcrResult
from .cv_record import (
    AnalysisProjection,
    CVRecord,
    CVStatus,
    Demographics,
    EducationSummary,
    ExperienceSummary,
    LanguageEntry,
)
from .search_filter import DemographicFilter

__all__ = [
    "AnalysisProjection",
    "AnalysisResult",
    "BatchItemResult",
    "CVRecord",
    "CVStatus",
    "Demographics",
    "DemographicFilter",
    "EducationSummary",
    "ExperienceSummary",
    "ExtractionResult",
    "LanguageEntry",
    "OcrResult",
]
