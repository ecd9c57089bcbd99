"""CV record schema: one document per uploaded CV, with analysis results."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CVStatus(str, Enum):
    """Analysis lifecycle: pending -> processing -> completed | error."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class _CamelModel(BaseModel):
    """Python attributes are snake_case; persisted documents use camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Demographics(_CamelModel):
    """Contact details injected into parsed_data after analysis."""

    first_name: str = Field(default="", description="Candidate first name")
    last_name: str = Field(default="", description="Candidate last name")
    email: str = Field(default="", description="Email address")
    phone: str = Field(default="", description="Phone number")
    birthdate: str = Field(default="", description="Date of birth, YYYY-MM-DD when known")


class LanguageEntry(_CamelModel):
    name: str
    level: str = ""


class EducationSummary(_CamelModel):
    level: str = ""
    fields: List[str] = Field(default_factory=list)


class ExperienceSummary(_CamelModel):
    duration: str = ""
    establishments: List[str] = Field(default_factory=list)
    position: str = ""


class AnalysisProjection(_CamelModel):
    """Fixed-shape projection of the parser output, for display."""

    languages: List[LanguageEntry] = Field(default_factory=list)
    education: EducationSummary = Field(default_factory=EducationSummary)
    experience: ExperienceSummary = Field(default_factory=ExperienceSummary)
    technical_skills: List[str] = Field(default_factory=list)
    soft_skills: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CVRecord(_CamelModel):
    """A stored CV and everything the analysis pipeline derived from it."""

    id: str = Field(..., description="Opaque record id, immutable")
    filename: str = Field(..., description="Original upload filename")
    upload_date: datetime = Field(default_factory=_utcnow, description="Upload timestamp")
    file_id: Optional[str] = Field(default=None, description="Blob id of the original document")
    content_type: Optional[str] = Field(default=None, description="Declared media type of the upload")
    status: CVStatus = Field(default=CVStatus.PENDING)
    analyzed: bool = Field(default=False, description="True once an analysis run has completed")
    error: Optional[str] = Field(default=None, description="Message of the last failed run")
    original_text_file_id: Optional[str] = Field(default=None)
    enhanced_text_file_id: Optional[str] = Field(default=None)
    tags: List[str] = Field(default_factory=list)
    parsed_data: Optional[Dict[str, Any]] = Field(default=None, description="Raw parser JSON plus demographics")
    analysis: Optional[AnalysisProjection] = Field(default=None)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    age: Optional[float] = Field(default=None, description="Numeric age only; brackets stay in parsed_data")
    email: Optional[str] = None
    phone: Optional[str] = None
    birthdate: Optional[str] = None
    department: Optional[str] = None
    expected_salary: Optional[float] = None
    gender: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        """JSON-safe camelCase document, as persisted and shown to clients."""
        return self.model_dump(mode="json", by_alias=True)
