"""
Services Package
================

Schedule extraction and pipeline orchestration.

Components:
    - CompletionClient / OllamaCompletionClient: remote completion port
    - ScheduleExtractor: prompt, retries and response validation
    - FileRepository / InMemoryFileRepository: persistence port
    - IngestionPipeline / StatusTracker: per-file state machine
"""

from schedule_ingest.services.completion_client import CompletionClient, OllamaCompletionClient
from schedule_ingest.services.ingestion_pipeline import IngestionPipeline, StatusTracker
from schedule_ingest.services.repository import FileRepository, InMemoryFileRepository
from schedule_ingest.services.response_parser import parse_schedule_response
from schedule_ingest.services.schedule_extractor import ScheduleExtractor

__all__ = [
    "CompletionClient",
    "OllamaCompletionClient",
    "ScheduleExtractor",
    "parse_schedule_response",
    "FileRepository",
    "InMemoryFileRepository",
    "IngestionPipeline",
    "StatusTracker",
]
