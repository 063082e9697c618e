"""
File Repository Port
=====================

Persistence port used by the ingestion pipeline, plus an in-memory
implementation for local runs and tests.

The database-backed implementation lives in
``schedule_ingest.db.repositories.files_repo``.
"""

import asyncio
from typing import Protocol, runtime_checkable
from uuid import UUID

from schedule_ingest.schemas.domain import ProcessingStatus, ScheduleItem, UploadedFile
from schedule_ingest.utils.errors import StorageError
from schedule_ingest.utils.logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class FileRepository(Protocol):
    """
    Writes performed by a pipeline run.

    Every method either persists durably or raises StorageError.
    """

    async def update_file_status(
        self,
        file_id: UUID,
        status: ProcessingStatus,
        error: str | None = None,
    ) -> None:
        ...

    async def update_extracted_text(self, file_id: UUID, text: str) -> None:
        ...

    async def append_schedule_items(
        self,
        file_id: UUID,
        user_id: UUID,
        items: list[ScheduleItem],
    ) -> None:
        ...


class InMemoryFileRepository:
    """
    Dict-backed FileRepository.

    Files must be registered with ``add_file`` before a run; writes for an
    unknown id raise StorageError, like a missing row in the database.
    """

    def __init__(self) -> None:
        self._files: dict[UUID, UploadedFile] = {}
        self._items: dict[UUID, list[ScheduleItem]] = {}
        self._owners: dict[UUID, UUID] = {}
        self._lock = asyncio.Lock()

    def add_file(self, file: UploadedFile) -> None:
        """Register an upload record."""
        self._files[file.id] = file

    def get_file(self, file_id: UUID) -> UploadedFile | None:
        return self._files.get(file_id)

    def get_items(self, file_id: UUID) -> list[ScheduleItem]:
        """Schedule items appended for a file, in insertion order."""
        return list(self._items.get(file_id, []))

    def get_item_owner(self, file_id: UUID) -> UUID | None:
        return self._owners.get(file_id)

    def _require(self, file_id: UUID) -> UploadedFile:
        file = self._files.get(file_id)
        if file is None:
            raise StorageError(
                message=f"Uploaded file not found: {file_id}",
                details={"file_id": str(file_id)},
            )
        return file

    async def update_file_status(
        self,
        file_id: UUID,
        status: ProcessingStatus,
        error: str | None = None,
    ) -> None:
        async with self._lock:
            file = self._require(file_id)
            self._files[file_id] = file.model_copy(
                update={"processing_status": status, "processing_error": error}
            )
        logger.debug("File status updated", file_id=str(file_id), status=status.value)

    async def update_extracted_text(self, file_id: UUID, text: str) -> None:
        async with self._lock:
            file = self._require(file_id)
            self._files[file_id] = file.model_copy(update={"extracted_text": text})

    async def append_schedule_items(
        self,
        file_id: UUID,
        user_id: UUID,
        items: list[ScheduleItem],
    ) -> None:
        async with self._lock:
            self._require(file_id)
            self._items.setdefault(file_id, []).extend(items)
            self._owners[file_id] = user_id
        logger.debug("Schedule items appended", file_id=str(file_id), count=len(items))
