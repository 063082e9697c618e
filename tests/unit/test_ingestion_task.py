"""
Unit Tests for Ingestion Task
=============================

Tests for the in-process runner and the arq task/enqueue helpers.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from schedule_ingest.schemas.domain import PipelineResult, ProcessingStatus, UploadedFile
from schedule_ingest.tasks.ingestion_task import (
    IngestionRunner,
    WorkerSettings,
    enqueue_file_ingestion,
    job_id_for,
    process_uploaded_file,
)
from schedule_ingest.utils.errors import StorageError


def _file() -> UploadedFile:
    return UploadedFile(
        id=uuid4(),
        user_id=uuid4(),
        original_name="notes.txt",
        storage_path="/uploads/notes.txt",
        content_type="text/plain",
    )


class BlockingPipeline:
    """Pipeline stand-in whose runs wait until released."""

    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.started: list[UploadedFile] = []
        self.running = 0
        self.max_running = 0

    async def run(self, file: UploadedFile) -> PipelineResult:
        self.started.append(file)
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            await self.release.wait()
        finally:
            self.running -= 1
        return PipelineResult(file_id=file.id, final_status=ProcessingStatus.COMPLETED)


class TestIngestionRunner:
    """Tests for IngestionRunner."""

    @pytest.mark.asyncio
    async def test_submit_returns_immediately(self):
        pipeline = BlockingPipeline()
        runner = IngestionRunner(pipeline)
        file = _file()

        assert runner.submit(file) is True
        assert runner.is_running(file.id)

        pipeline.release.set()
        await runner.wait_idle()

        assert not runner.is_running(file.id)
        assert pipeline.started == [file]

    @pytest.mark.asyncio
    async def test_second_submit_for_same_file_refused(self):
        pipeline = BlockingPipeline()
        runner = IngestionRunner(pipeline)
        file = _file()

        assert runner.submit(file) is True
        assert runner.submit(file) is False

        pipeline.release.set()
        await runner.wait_idle()

        assert len(pipeline.started) == 1

    @pytest.mark.asyncio
    async def test_same_file_accepted_again_after_finish(self):
        pipeline = BlockingPipeline()
        pipeline.release.set()
        runner = IngestionRunner(pipeline)
        file = _file()

        runner.submit(file)
        await runner.wait_idle()

        assert runner.submit(file) is True
        await runner.wait_idle()
        assert len(pipeline.started) == 2

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self):
        pipeline = BlockingPipeline()
        runner = IngestionRunner(pipeline, max_concurrent=2)

        for _ in range(5):
            runner.submit(_file())
        await asyncio.sleep(0.01)

        assert pipeline.running == 2
        assert len(runner.in_flight) == 5

        pipeline.release.set()
        await runner.wait_idle()

        assert pipeline.max_running == 2
        assert len(pipeline.started) == 5
        assert runner.in_flight == set()

    @pytest.mark.asyncio
    async def test_crashed_run_is_released(self):
        pipeline = MagicMock()
        pipeline.run = AsyncMock(side_effect=RuntimeError("boom"))
        runner = IngestionRunner(pipeline)
        file = _file()

        runner.submit(file)
        await runner.wait_idle()

        assert not runner.is_running(file.id)

    def test_invalid_limit_rejected(self):
        with pytest.raises(ValueError):
            IngestionRunner(MagicMock(), max_concurrent=0)


class TestProcessUploadedFile:
    """Tests for the arq task function."""

    @pytest.mark.asyncio
    async def test_runs_pipeline_for_stored_file(self):
        file = _file()
        repository = MagicMock()
        repository.get_file = AsyncMock(return_value=file)
        pipeline = MagicMock()
        pipeline.run = AsyncMock(
            return_value=PipelineResult(
                file_id=file.id,
                final_status=ProcessingStatus.COMPLETED,
                items_extracted=2,
            )
        )

        result = await process_uploaded_file(
            {"repository": repository, "pipeline": pipeline, "job_try": 1},
            str(file.id),
        )

        repository.get_file.assert_awaited_once_with(file.id)
        pipeline.run.assert_awaited_once_with(file)
        assert result["final_status"] == "completed"
        assert result["items_extracted"] == 2

    @pytest.mark.asyncio
    async def test_missing_file_skipped(self):
        repository = MagicMock()
        repository.get_file = AsyncMock(return_value=None)
        pipeline = MagicMock()
        pipeline.run = AsyncMock()

        result = await process_uploaded_file(
            {"repository": repository, "pipeline": pipeline},
            str(uuid4()),
        )

        assert result["final_status"] is None
        pipeline.run.assert_not_awaited()


class TestEnqueueFileIngestion:
    """Tests for enqueue_file_ingestion."""

    @pytest.mark.asyncio
    async def test_enqueues_with_per_file_job_id(self):
        file_id = uuid4()
        redis = MagicMock()
        redis.enqueue_job = AsyncMock(return_value=MagicMock(job_id=job_id_for(file_id)))

        assert await enqueue_file_ingestion(redis, file_id, queue_name="test-queue") is True

        redis.enqueue_job.assert_awaited_once_with(
            "process_uploaded_file",
            str(file_id),
            _job_id=f"ingest:{file_id}",
            _queue_name="test-queue",
        )

    @pytest.mark.asyncio
    async def test_duplicate_job_returns_false(self):
        redis = MagicMock()
        redis.enqueue_job = AsyncMock(return_value=None)

        assert await enqueue_file_ingestion(redis, uuid4()) is False

    @pytest.mark.asyncio
    async def test_redis_failure_raises_storage_error(self):
        redis = MagicMock()
        redis.enqueue_job = AsyncMock(side_effect=RedisConnectionError("refused"))

        with pytest.raises(StorageError, match="Failed to enqueue"):
            await enqueue_file_ingestion(redis, uuid4())


class TestWorkerSettings:
    """Tests for arq worker configuration."""

    def test_whole_file_never_retried(self):
        assert WorkerSettings.max_tries == 1
        assert WorkerSettings.functions[0].max_tries == 1
        assert WorkerSettings.functions[0].name == "process_uploaded_file"

    def test_queue_from_settings(self):
        assert WorkerSettings.queue_name == "schedule-ingest-queue"

    def test_finished_run_leaves_no_result_key(self):
        # arq refuses a job id while its result key exists
        assert WorkerSettings.keep_result == 0
        assert WorkerSettings.functions[0].keep_result_s == 0
