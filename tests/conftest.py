"""
Test Configuration and Fixtures
================================

Shared pytest fixtures for schedule-ingest tests.
"""

import os

# Settings are read from the environment; keep tests independent of any .env
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("OLLAMA_BASE_URL", "http://localhost:11434")

from pathlib import Path
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from schedule_ingest.config.settings import Settings
from schedule_ingest.schemas.domain import UploadedFile
from schedule_ingest.services.repository import InMemoryFileRepository


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(float(seconds))


@pytest.fixture
def test_settings() -> Settings:
    """Settings with deterministic values for tests."""
    return Settings(
        environment="development",
        ollama_llm_model="test-model",
        extraction_max_attempts=3,
        extraction_base_delay=1.0,
        extraction_max_input_chars=16000,
        ocr_language="eng",
        max_concurrent_runs=2,
    )


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def mock_completion_client() -> AsyncMock:
    """Completion client whose responses are set per test via side_effect."""
    client = AsyncMock()
    client.model_name = "test-model"
    client.complete = AsyncMock(return_value="[]")
    return client


@pytest.fixture
def repository() -> InMemoryFileRepository:
    return InMemoryFileRepository()


@pytest.fixture
def make_uploaded_file(tmp_path: Path):
    """Factory writing ``content`` to disk and returning its upload record."""

    def _make(
        name: str = "notes.txt",
        content: bytes | str = b"",
        content_type: str = "text/plain",
    ) -> UploadedFile:
        path = tmp_path / name
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
        return UploadedFile(
            id=uuid4(),
            user_id=uuid4(),
            original_name=name,
            storage_path=str(path),
            size_bytes=len(content),
            content_type=content_type,
        )

    return _make
