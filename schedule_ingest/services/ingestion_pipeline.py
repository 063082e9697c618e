"""
Ingestion Pipeline
==================

Orchestrates one uploaded file through text extraction, schedule
extraction and persistence, advancing the per-file status state machine.

Pipeline:
1. Write PROCESSING (clears any previous processing error)
2. Route by content type, extract and normalize text
3. Write extracted text, then TEXT_EXTRACTED
4. Extract schedule items via the completion service (with retries)
5. Append items, then write COMPLETED

Failure handling:
- UnsupportedTypeError / ExtractionError / ScheduleExtractionError and any
  unexpected stage error: write FAILED with a readable message
- StorageError: abort immediately; the last durably written status stands

``run`` never raises for a per-file problem; callers read the returned
PipelineResult or poll the repository.
"""

from uuid import UUID

from structlog.contextvars import bound_contextvars

from schedule_ingest.config.settings import Settings, get_settings
from schedule_ingest.ingest.format_router import FormatRouter
from schedule_ingest.ingest.text_normalizer import normalize_text
from schedule_ingest.schemas.domain import PipelineResult, ProcessingStatus, UploadedFile
from schedule_ingest.services.repository import FileRepository
from schedule_ingest.services.schedule_extractor import ScheduleExtractor
from schedule_ingest.utils.errors import (
    InvalidTransitionError,
    ScheduleIngestError,
    StorageError,
)
from schedule_ingest.utils.logger import get_logger

logger = get_logger(__name__)


class StatusTracker:
    """
    In-memory view of a file's status during one run.

    ``current`` only moves after the matching repository write succeeded,
    so it always equals the last durably written status.
    """

    def __init__(self, file_id: UUID, initial: ProcessingStatus = ProcessingStatus.PENDING) -> None:
        self.file_id = file_id
        self.current = initial
        self.history: list[ProcessingStatus] = [initial]

    def can_move_to(self, target: ProcessingStatus) -> bool:
        return self.current.can_transition_to(target)

    def ensure_allowed(self, target: ProcessingStatus) -> None:
        """
        Raises:
            InvalidTransitionError: If ``target`` is not reachable from ``current``
        """
        if not self.can_move_to(target):
            raise InvalidTransitionError(
                message=f"Invalid status transition: {self.current.value} -> {target.value}",
                details={
                    "file_id": str(self.file_id),
                    "from": self.current.value,
                    "to": target.value,
                },
            )

    def commit(self, target: ProcessingStatus) -> None:
        """Record a transition whose write has succeeded."""
        self.ensure_allowed(target)
        self.current = target
        self.history.append(target)


class IngestionPipeline:
    """
    Runs the ingestion stages for a single file.

    Example:
        pipeline = IngestionPipeline.from_settings(repository)
        result = await pipeline.run(uploaded_file)
    """

    def __init__(
        self,
        repository: FileRepository,
        router: FormatRouter,
        extractor: ScheduleExtractor,
    ) -> None:
        """
        Initialize IngestionPipeline.

        Args:
            repository: Persistence port for status, text and items
            router: Content type to extraction strategy mapping
            extractor: Schedule extractor (completion client + retries)
        """
        self.repository = repository
        self.router = router
        self.extractor = extractor

    @classmethod
    def from_settings(
        cls,
        repository: FileRepository,
        settings: Settings | None = None,
        extractor: ScheduleExtractor | None = None,
    ) -> "IngestionPipeline":
        """Wire the default router and extractor from settings."""
        settings = settings or get_settings()
        return cls(
            repository=repository,
            router=FormatRouter(settings=settings),
            extractor=extractor or ScheduleExtractor.from_settings(settings),
        )

    async def run(self, file: UploadedFile) -> PipelineResult:
        """
        Process one uploaded file end to end.

        Args:
            file: Upload record (id, owner, storage path, content type)

        Returns:
            PipelineResult with the last durably written status
        """
        tracker = StatusTracker(file.id)

        with bound_contextvars(file_id=str(file.id)):
            logger.info(
                "Pipeline run started",
                original_name=file.original_name,
                content_type=file.content_type,
                size_bytes=file.size_bytes,
            )

            try:
                result = await self._run_stages(file, tracker)
            except StorageError as e:
                logger.error(
                    "Pipeline run aborted: storage write failed",
                    last_status=tracker.current.value,
                    error=e.message,
                )
                return PipelineResult(
                    file_id=file.id,
                    final_status=tracker.current,
                    error=e.message,
                    aborted=True,
                )

            logger.info(
                "Pipeline run finished",
                status=result.final_status.value,
                items=result.items_extracted,
            )
            return result

    async def _run_stages(self, file: UploadedFile, tracker: StatusTracker) -> PipelineResult:
        await self._transition(tracker, ProcessingStatus.PROCESSING)

        try:
            text = await self._extract_text(file)

            await self.repository.update_extracted_text(file.id, text)
            await self._transition(tracker, ProcessingStatus.TEXT_EXTRACTED)

            items = await self.extractor.extract(text, source_label=file.original_name)

            await self.repository.append_schedule_items(file.id, file.user_id, items)
            await self._transition(tracker, ProcessingStatus.COMPLETED)

        except StorageError:
            raise
        except ScheduleIngestError as e:
            logger.warning(
                "Pipeline stage failed",
                status=tracker.current.value,
                error_type=type(e).__name__,
                error=e.message,
            )
            return await self._fail(file, tracker, e.message)
        except Exception as e:
            logger.exception("Unexpected pipeline error", status=tracker.current.value)
            return await self._fail(file, tracker, str(e) or type(e).__name__)

        return PipelineResult(
            file_id=file.id,
            final_status=tracker.current,
            items_extracted=len(items),
        )

    async def _extract_text(self, file: UploadedFile) -> str:
        """Route, extract and normalize the file's text."""
        strategy = self.router.select(file.content_type)
        raw_text = await strategy.extract(file.storage_path)
        text = normalize_text(raw_text)

        logger.info(
            "Text extraction complete",
            family=strategy.family.value,
            raw_chars=len(raw_text),
            normalized_chars=len(text),
        )
        return text

    async def _transition(
        self,
        tracker: StatusTracker,
        target: ProcessingStatus,
        error: str | None = None,
    ) -> None:
        """Validate, persist, then record a status change."""
        tracker.ensure_allowed(target)
        await self.repository.update_file_status(tracker.file_id, target, error=error)
        tracker.commit(target)
        logger.info("Status changed", status=target.value)

    async def _fail(self, file: UploadedFile, tracker: StatusTracker, message: str) -> PipelineResult:
        """Write FAILED with ``message`` when the current state allows it."""
        if not tracker.can_move_to(ProcessingStatus.FAILED):
            logger.error(
                "Cannot mark file failed from current status",
                status=tracker.current.value,
                error=message,
            )
            return PipelineResult(
                file_id=file.id,
                final_status=tracker.current,
                error=message,
            )

        await self._transition(tracker, ProcessingStatus.FAILED, error=message)
        return PipelineResult(
            file_id=file.id,
            final_status=ProcessingStatus.FAILED,
            error=message,
        )
