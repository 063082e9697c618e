"""
Tasks Package
=============

Background execution of the ingestion pipeline (in-process runner and
arq worker).
"""

from schedule_ingest.tasks.ingestion_task import (
    IngestionRunner,
    WorkerSettings,
    enqueue_file_ingestion,
    process_uploaded_file,
)

__all__ = [
    "IngestionRunner",
    "WorkerSettings",
    "enqueue_file_ingestion",
    "process_uploaded_file",
]
