"""
Uploaded Files Repository
=========================

Database implementation of the FileRepository port over the
uploaded_files and assignments tables.

Every call runs in its own short transaction so each status change is
durable before the pipeline moves on.
"""

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from schedule_ingest.db.connection import get_session_factory
from schedule_ingest.db.models import AssignmentRecord, UploadedFileRecord
from schedule_ingest.schemas.domain import ProcessingStatus, ScheduleItem, UploadedFile
from schedule_ingest.utils.errors import StorageError
from schedule_ingest.utils.logger import get_logger

logger = get_logger(__name__)


class FileRecordsRepository:
    """
    Repository for uploaded_files / assignments operations.

    Raises StorageError for any database failure and when the file row
    does not exist.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        """
        Initialize repository.

        Args:
            session_factory: Session factory (defaults to the one from init_database)
        """
        self._session_factory = session_factory or get_session_factory()

    async def get_file(self, file_id: UUID) -> UploadedFile | None:
        """
        Load an upload record.

        Returns:
            UploadedFile or None if no row has this id
        """
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(UploadedFileRecord).where(UploadedFileRecord.id == file_id)
                )
                record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._storage_error("get_file", file_id, e) from e

        if record is None:
            return None

        return UploadedFile(
            id=record.id,
            user_id=record.user_id,
            original_name=record.original_name,
            storage_path=record.file_path,
            size_bytes=record.file_size,
            content_type=record.mime_type,
            processing_status=ProcessingStatus(record.processing_status),
            processing_error=record.processing_error,
            extracted_text=record.extracted_text,
        )

    async def update_file_status(
        self,
        file_id: UUID,
        status: ProcessingStatus,
        error: str | None = None,
    ) -> None:
        """Set processing_status and processing_error (None clears it)."""
        await self._update_file(
            "update_file_status",
            file_id,
            {"processing_status": status.value, "processing_error": error},
        )
        logger.debug("File status written", file_id=str(file_id), status=status.value)

    async def update_extracted_text(self, file_id: UUID, text: str) -> None:
        await self._update_file("update_extracted_text", file_id, {"extracted_text": text})
        logger.debug("Extracted text written", file_id=str(file_id), chars=len(text))

    async def append_schedule_items(
        self,
        file_id: UUID,
        user_id: UUID,
        items: list[ScheduleItem],
    ) -> None:
        """Insert all items in one transaction (all or nothing)."""
        try:
            async with self._session_factory.begin() as session:
                exists = await session.scalar(
                    select(UploadedFileRecord.id).where(UploadedFileRecord.id == file_id)
                )
                if exists is None:
                    raise self._not_found(file_id)

                session.add_all(
                    [
                        AssignmentRecord(user_id=user_id, file_id=file_id, **item.to_dict())
                        for item in items
                    ]
                )
        except SQLAlchemyError as e:
            raise self._storage_error("append_schedule_items", file_id, e) from e

        logger.info("Schedule items stored", file_id=str(file_id), count=len(items))

    async def _update_file(self, operation: str, file_id: UUID, values: Mapping[str, Any]) -> None:
        try:
            async with self._session_factory.begin() as session:
                result = await session.execute(
                    update(UploadedFileRecord)
                    .where(UploadedFileRecord.id == file_id)
                    .values(**values)
                )
                updated = result.rowcount
        except SQLAlchemyError as e:
            raise self._storage_error(operation, file_id, e) from e

        if updated == 0:
            raise self._not_found(file_id)

    @staticmethod
    def _not_found(file_id: UUID) -> StorageError:
        logger.error("Uploaded file row not found", file_id=str(file_id))
        return StorageError(
            message=f"Uploaded file not found: {file_id}",
            details={"file_id": str(file_id)},
        )

    @staticmethod
    def _storage_error(operation: str, file_id: UUID, error: Exception) -> StorageError:
        logger.error(
            "Database write failed",
            operation=operation,
            file_id=str(file_id),
            error=str(error),
        )
        return StorageError(
            message=f"Database operation failed: {operation}",
            details={"file_id": str(file_id), "error": str(error)},
        )
