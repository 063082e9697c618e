"""
Schemas Package
===============

Pydantic models for domain objects.
"""

from schedule_ingest.schemas.domain import (
    PipelineResult,
    ProcessingStatus,
    ScheduleItem,
    StrategyFamily,
    UploadedFile,
)

__all__ = [
    "PipelineResult",
    "ProcessingStatus",
    "ScheduleItem",
    "StrategyFamily",
    "UploadedFile",
]
