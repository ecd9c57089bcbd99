"""Results returned by the analysis service and its collaborators."""

from typing import Optional

from pydantic import BaseModel, Field


class AnalysisResult(BaseModel):
    """Outcome of analyzing a single CV."""

    success: bool = Field(..., description="True if the run reached the completed state")
    message: str = Field(default="", description="Human-readable summary")
    error: Optional[str] = Field(default=None, description="Failure reason when success is False")


class BatchItemResult(BaseModel):
    """Outcome for one id inside a batch analysis."""

    id: str
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None


class ExtractionResult(BaseModel):
    """Text produced by the extractor and the strategy that produced it."""

    text: str = Field(default="", description="Cleaned text, or the no-text diagnostic")
    method: Optional[str] = Field(default=None, description="Winning strategy; None if all fell short")

    @property
    def succeeded(self) -> bool:
        return self.method is not None


class OcrResult(BaseModel):
    text: str = ""
