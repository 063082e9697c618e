"""
Domain Models
=============

Internal domain models representing the uploaded file, the schedule
items extracted from it, and the outcome of a pipeline run.
"""

from datetime import date
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProcessingStatus(str, Enum):
    """
    Per-file processing states.

    Forward order: pending -> processing -> text_extracted -> completed.
    FAILED is terminal and reachable only from PROCESSING or TEXT_EXTRACTED.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    TEXT_EXTRACTED = "text_extracted"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """True for states with no further automatic transition."""
        return self in (ProcessingStatus.COMPLETED, ProcessingStatus.FAILED)

    def can_transition_to(self, target: "ProcessingStatus") -> bool:
        """Check whether moving from this state to ``target`` is allowed."""
        return target in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS: dict[ProcessingStatus, frozenset[ProcessingStatus]] = {
    ProcessingStatus.PENDING: frozenset({ProcessingStatus.PROCESSING}),
    ProcessingStatus.PROCESSING: frozenset(
        {ProcessingStatus.TEXT_EXTRACTED, ProcessingStatus.FAILED}
    ),
    ProcessingStatus.TEXT_EXTRACTED: frozenset(
        {ProcessingStatus.COMPLETED, ProcessingStatus.FAILED}
    ),
    ProcessingStatus.COMPLETED: frozenset(),
    ProcessingStatus.FAILED: frozenset(),
}


class StrategyFamily(str, Enum):
    """Closed set of text extraction strategy families."""

    SPREADSHEET = "spreadsheet"
    DOCUMENT = "document"
    PDF = "pdf"
    PLAIN_TEXT = "plain_text"
    IMAGE = "image"


class UploadedFile(BaseModel):
    """
    Stored upload as seen by the pipeline.

    Created at upload time by the request path; the pipeline only
    advances ``processing_status`` and fills ``extracted_text`` and
    ``processing_error``.
    """

    id: UUID
    user_id: UUID
    original_name: str = Field(..., min_length=1)
    storage_path: str = Field(..., min_length=1)
    size_bytes: int = Field(default=0, ge=0)
    content_type: str
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    processing_error: str | None = None
    extracted_text: str | None = None


class ScheduleItem(BaseModel):
    """
    Candidate schedule item produced by the schedule extractor.

    Attributes:
        description: What is due or happening (non-empty, trimmed)
        due_date: Calendar date, or None when the source gave no valid date
        location: Where it happens, if stated
        source: Label of the originating file
    """

    model_config = ConfigDict(frozen=True)

    description: str = Field(..., min_length=1, max_length=500)
    due_date: date | None = None
    location: str | None = Field(default=None, max_length=255)
    source: str = Field(..., min_length=1, max_length=255)

    @field_validator("description", "source")
    @classmethod
    def strip_required(cls, v: str) -> str:
        """Strip surrounding whitespace from mandatory text fields."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("location")
    @classmethod
    def normalize_location(cls, v: str | None) -> str | None:
        """Strip location and collapse blank values to None."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    def to_dict(self) -> dict:
        """Convert to dictionary for database insertion."""
        return {
            "assignment": self.description,
            "due_date": self.due_date,
            "location": self.location,
            "source": self.source,
        }


class PipelineResult(BaseModel):
    """
    Outcome of one pipeline run.

    ``final_status`` is the last status durably written. ``aborted`` is
    set when a repository write failed and the run stopped early.
    """

    file_id: UUID
    final_status: ProcessingStatus
    items_extracted: int = Field(default=0, ge=0)
    error: str | None = None
    aborted: bool = False

    @property
    def succeeded(self) -> bool:
        """True when the file reached COMPLETED."""
        return self.final_status == ProcessingStatus.COMPLETED
