"""
Ingestion Task
==============

Two ways to run the ingestion pipeline in the background:

- IngestionRunner: in-process, fire-and-forget ``asyncio.create_task``
  with a concurrency bound (used by a single-process deployment and tests)
- arq worker: ``process_uploaded_file`` enqueued with
  ``enqueue_file_ingestion`` and executed by ``WorkerSettings``

At most one run per file id is in flight at a time. A whole file is never
retried automatically; only the completion call inside the schedule
extractor retries.
"""

import asyncio
from typing import Any
from uuid import UUID

from arq import ArqRedis
from arq.connections import RedisSettings
from arq.worker import func
from redis.exceptions import RedisError

from schedule_ingest.config.settings import Settings, get_settings
from schedule_ingest.db.connection import close_database, init_database
from schedule_ingest.db.repositories.files_repo import FileRecordsRepository
from schedule_ingest.schemas.domain import PipelineResult, UploadedFile
from schedule_ingest.services.ingestion_pipeline import IngestionPipeline
from schedule_ingest.services.repository import FileRepository
from schedule_ingest.utils.errors import StorageError
from schedule_ingest.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

JOB_ID_PREFIX = "ingest:"


def job_id_for(file_id: UUID) -> str:
    """Deterministic arq job id, one per uploaded file."""
    return f"{JOB_ID_PREFIX}{file_id}"


# ============================================================================
# In-process runner
# ============================================================================


class IngestionRunner:
    """
    Schedules pipeline runs on the running event loop.

    ``submit`` returns immediately; outcomes are observable only through
    the repository. Task references are kept until each run finishes.

    Example:
        runner = IngestionRunner(pipeline, max_concurrent=5)
        runner.submit(uploaded_file)
        ...
        await runner.wait_idle()
    """

    def __init__(self, pipeline: IngestionPipeline, max_concurrent: int | None = 5) -> None:
        """
        Initialize IngestionRunner.

        Args:
            pipeline: Pipeline executed for every submitted file
            max_concurrent: Parallel run limit (None for unbounded)
        """
        if max_concurrent is not None and max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.pipeline = pipeline
        self._semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent else None
        self._tasks: dict[UUID, asyncio.Task[PipelineResult]] = {}

    @classmethod
    def from_settings(
        cls,
        repository: FileRepository,
        settings: Settings | None = None,
    ) -> "IngestionRunner":
        settings = settings or get_settings()
        return cls(
            pipeline=IngestionPipeline.from_settings(repository, settings),
            max_concurrent=settings.max_concurrent_runs,
        )

    @property
    def in_flight(self) -> set[UUID]:
        """Ids of files with a run in progress or waiting for a slot."""
        return set(self._tasks)

    def is_running(self, file_id: UUID) -> bool:
        return file_id in self._tasks

    def submit(self, file: UploadedFile) -> bool:
        """
        Start a background run for ``file``.

        Must be called from within a running event loop.

        Returns:
            False if a run for the same file id is already in flight
        """
        if file.id in self._tasks:
            logger.warning("Ingestion already in flight, submit ignored", file_id=str(file.id))
            return False

        task = asyncio.create_task(self._run(file), name=job_id_for(file.id))
        self._tasks[file.id] = task
        task.add_done_callback(lambda t, file_id=file.id: self._on_done(file_id, t))

        logger.info("Ingestion submitted", file_id=str(file.id), in_flight=len(self._tasks))
        return True

    async def wait_idle(self) -> None:
        """Wait until every submitted run has finished."""
        while self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)

    async def _run(self, file: UploadedFile) -> PipelineResult:
        if self._semaphore is None:
            return await self.pipeline.run(file)
        async with self._semaphore:
            return await self.pipeline.run(file)

    def _on_done(self, file_id: UUID, task: asyncio.Task[PipelineResult]) -> None:
        if self._tasks.get(file_id) is task:
            del self._tasks[file_id]

        if task.cancelled():
            logger.warning("Ingestion task cancelled", file_id=str(file_id))
            return

        error = task.exception()
        if error is not None:
            logger.error(
                "Ingestion task crashed",
                file_id=str(file_id),
                error_type=type(error).__name__,
                error=str(error),
            )


# ============================================================================
# arq worker
# ============================================================================


async def process_uploaded_file(ctx: dict[str, Any], file_id: str) -> dict[str, Any]:
    """
    arq task: run the pipeline for one stored upload.

    Args:
        ctx: arq context (``repository`` and ``pipeline`` set at startup)
        file_id: Uploaded file UUID as a string

    Returns:
        Serialized PipelineResult, or a not-found marker
    """
    file_uuid = UUID(str(file_id))
    repository: FileRecordsRepository = ctx["repository"]
    pipeline: IngestionPipeline = ctx["pipeline"]

    logger.info("Processing uploaded file", file_id=str(file_uuid), job_try=ctx.get("job_try"))

    file = await repository.get_file(file_uuid)
    if file is None:
        logger.warning("Uploaded file not found, nothing to process", file_id=str(file_uuid))
        return {"file_id": str(file_uuid), "final_status": None, "error": "File not found"}

    result = await pipeline.run(file)
    return result.model_dump(mode="json")


async def startup(ctx: dict[str, Any]) -> None:
    """arq worker startup hook."""
    settings = get_settings()
    configure_logging(settings)
    logger.info("Ingestion worker starting", queue=settings.queue_name)

    await init_database(settings)

    repository = FileRecordsRepository()
    ctx["repository"] = repository
    ctx["pipeline"] = IngestionPipeline.from_settings(repository, settings)


async def shutdown(ctx: dict[str, Any]) -> None:
    """arq worker shutdown hook."""
    logger.info("Ingestion worker shutting down")
    await close_database()


def build_redis_settings(settings: Settings | None = None) -> RedisSettings:
    """arq connection settings from application settings."""
    settings = settings or get_settings()
    return RedisSettings(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        database=settings.redis_db,
    )


class WorkerSettings:
    """arq worker settings."""

    functions = [func(process_uploaded_file, max_tries=1, keep_result=0)]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = build_redis_settings()
    queue_name = get_settings().queue_name

    max_jobs = get_settings().max_concurrent_runs
    job_timeout = 600
    max_tries = 1
    # Job ids are reused per file, so no result key may outlive a run
    keep_result = 0


async def enqueue_file_ingestion(
    redis: ArqRedis,
    file_id: UUID,
    queue_name: str | None = None,
) -> bool:
    """
    Enqueue processing of an uploaded file.

    Args:
        redis: arq Redis pool
        file_id: Uploaded file UUID
        queue_name: Target queue (defaults to settings.queue_name)

    Returns:
        False if a job for this file is already queued or running

    Raises:
        StorageError: If Redis is unreachable
    """
    try:
        job = await redis.enqueue_job(
            "process_uploaded_file",
            str(file_id),
            _job_id=job_id_for(file_id),
            _queue_name=queue_name or get_settings().queue_name,
        )
    except RedisError as e:
        logger.error("Failed to enqueue ingestion", file_id=str(file_id), error=str(e))
        raise StorageError(
            message="Failed to enqueue ingestion job",
            details={"file_id": str(file_id), "error": str(e)},
        ) from e

    if job is None:
        logger.warning("Ingestion job already exists", file_id=str(file_id))
        return False

    logger.info("Ingestion job enqueued", file_id=str(file_id), job_id=job.job_id)
    return True
