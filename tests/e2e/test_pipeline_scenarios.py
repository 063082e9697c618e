"""
End-to-End Pipeline Scenarios
=============================

Real routing, strategies, normalization, prompt building, response
validation and retries; only the completion client and sleeping are
replaced. Results are observed through the repository, the way a caller
polling file status would see them.
"""

from contextlib import ExitStack
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pymupdf
import pytest

from schedule_ingest.ingest.format_router import FormatRouter, build_default_strategies
from schedule_ingest.schemas.domain import ProcessingStatus
from schedule_ingest.services.ingestion_pipeline import IngestionPipeline
from schedule_ingest.services.schedule_extractor import ScheduleExtractor
from schedule_ingest.tasks.ingestion_task import IngestionRunner

pytestmark = pytest.mark.e2e


@pytest.fixture
def strategies(test_settings):
    return build_default_strategies(test_settings)


@pytest.fixture
def pipeline(repository, strategies, mock_completion_client, recording_sleep) -> IngestionPipeline:
    return IngestionPipeline(
        repository=repository,
        router=FormatRouter(strategies=strategies),
        extractor=ScheduleExtractor(
            client=mock_completion_client,
            max_attempts=3,
            base_delay=1.0,
            sleep=recording_sleep,
        ),
    )


def _blank_pdf_bytes(tmp_path: Path) -> bytes:
    path = tmp_path / "blank-source.pdf"
    doc = pymupdf.open()
    doc.new_page()
    doc.save(str(path))
    doc.close()
    return path.read_bytes()


class TestPipelineScenarios:
    """Scenario tests for a whole file run."""

    @pytest.mark.asyncio
    async def test_plain_text_with_dated_item_completes(
        self, pipeline, repository, make_uploaded_file, mock_completion_client
    ):
        file = make_uploaded_file("notes.txt", "Math HW due 2024-03-05 in Room 12", "text/plain")
        repository.add_file(file)
        mock_completion_client.complete.return_value = (
            '[{"assignment":"Math HW","due_date":"2024-03-05",'
            '"location":"Room 12","source":"notes.txt"}]'
        )

        result = await pipeline.run(file)

        stored = repository.get_file(file.id)
        items = repository.get_items(file.id)
        assert result.final_status == ProcessingStatus.COMPLETED
        assert stored.processing_status == ProcessingStatus.COMPLETED
        assert stored.extracted_text == "Math HW due 2024-03-05 in Room 12"
        assert len(items) == 1
        assert items[0].due_date == date(2024, 3, 5)
        assert items[0].location == "Room 12"
        assert repository.get_item_owner(file.id) == file.user_id
        assert "Math HW due 2024-03-05 in Room 12" in (
            mock_completion_client.complete.await_args.args[0]
        )

    @pytest.mark.asyncio
    async def test_non_json_on_every_attempt_fails(
        self, pipeline, repository, make_uploaded_file, mock_completion_client, recording_sleep
    ):
        file = make_uploaded_file("notes.txt", "Essay due soon", "text/plain")
        repository.add_file(file)
        mock_completion_client.complete.return_value = "not json at all"

        result = await pipeline.run(file)

        stored = repository.get_file(file.id)
        assert result.final_status == ProcessingStatus.FAILED
        assert stored.processing_status == ProcessingStatus.FAILED
        assert "after 3 attempts" in stored.processing_error
        assert stored.extracted_text == "Essay due soon"
        assert mock_completion_client.complete.await_count == 3
        assert recording_sleep.delays == [1.0, 2.0]
        assert repository.get_items(file.id) == []

    @pytest.mark.asyncio
    async def test_impossible_date_stored_as_null(
        self, pipeline, repository, make_uploaded_file, mock_completion_client
    ):
        file = make_uploaded_file("f", "X on Feb 30", "text/plain")
        repository.add_file(file)
        mock_completion_client.complete.return_value = (
            '[{"assignment":"X","due_date":"2024-02-30","location":null,"source":"f"}]'
        )

        result = await pipeline.run(file)

        items = repository.get_items(file.id)
        assert result.final_status == ProcessingStatus.COMPLETED
        assert len(items) == 1
        assert items[0].description == "X"
        assert items[0].due_date is None
        assert items[0].location is None

    @pytest.mark.asyncio
    async def test_unsupported_type_fails_immediately(
        self, pipeline, repository, strategies, make_uploaded_file, mock_completion_client
    ):
        file = make_uploaded_file("bundle.zip", b"PK\x03\x04", "application/zip")
        repository.add_file(file)

        with ExitStack() as stack:
            spies = [
                stack.enter_context(patch.object(strategy, "extract", new=AsyncMock()))
                for strategy in strategies.values()
            ]
            result = await pipeline.run(file)

        stored = repository.get_file(file.id)
        assert result.final_status == ProcessingStatus.FAILED
        assert stored.processing_error == "Unsupported file type: application/zip"
        assert stored.extracted_text is None
        for spy in spies:
            spy.assert_not_awaited()
        mock_completion_client.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pdf_without_text_completes_with_no_items(
        self, pipeline, repository, make_uploaded_file, mock_completion_client, tmp_path
    ):
        file = make_uploaded_file("scan.pdf", _blank_pdf_bytes(tmp_path), "application/pdf")
        repository.add_file(file)
        mock_completion_client.complete.return_value = "[]"

        result = await pipeline.run(file)

        stored = repository.get_file(file.id)
        assert result.final_status == ProcessingStatus.COMPLETED
        assert stored.extracted_text == ""
        mock_completion_client.complete.assert_awaited_once()
        assert repository.get_items(file.id) == []

    @pytest.mark.asyncio
    async def test_empty_array_completes_with_no_items(
        self, pipeline, repository, make_uploaded_file, mock_completion_client
    ):
        file = make_uploaded_file("notes.txt", "Nothing scheduled this week", "text/plain")
        repository.add_file(file)
        mock_completion_client.complete.return_value = "[]"

        result = await pipeline.run(file)

        assert result.final_status == ProcessingStatus.COMPLETED
        assert result.items_extracted == 0
        assert repository.get_items(file.id) == []


class TestBackgroundRuns:
    """Scenario tests through the in-process runner."""

    @pytest.mark.asyncio
    async def test_results_observable_through_repository(
        self, pipeline, repository, make_uploaded_file, mock_completion_client
    ):
        mock_completion_client.complete.return_value = (
            '[{"assignment":"Reading","due_date":null,"location":null,"source":"a.md"}]'
        )
        files = [
            make_uploaded_file("a.md", "# Week 1\nReading", "text/markdown"),
            make_uploaded_file("b.zip", b"PK", "application/zip"),
        ]
        runner = IngestionRunner(pipeline, max_concurrent=2)

        for file in files:
            repository.add_file(file)
            assert runner.submit(file) is True

        await runner.wait_idle()

        assert repository.get_file(files[0].id).processing_status == ProcessingStatus.COMPLETED
        assert [item.description for item in repository.get_items(files[0].id)] == ["Reading"]
        assert repository.get_file(files[1].id).processing_status == ProcessingStatus.FAILED
