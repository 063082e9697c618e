"""
Schedule Extractor
==================

Turns normalized document text into validated schedule items using the
remote completion capability.

Flow per call:
    1. Bound the text and build one prompt (source label + text)
    2. Send it through the CompletionClient
    3. Validate the raw response (response_parser)
    4. On TransportError / ResponseValidationError wait attempt × base_delay
       and try again, up to max_attempts in total

After the last failed attempt a single ScheduleExtractionError is raised
naming the attempt count and the final cause.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from schedule_ingest.config.settings import Settings, get_settings
from schedule_ingest.schemas.domain import ScheduleItem
from schedule_ingest.services.completion_client import CompletionClient, OllamaCompletionClient
from schedule_ingest.services.prompts import get_schedule_prompt, truncate_document_text
from schedule_ingest.services.response_parser import parse_schedule_response
from schedule_ingest.utils.errors import (
    ResponseValidationError,
    ScheduleExtractionError,
    TransportError,
)
from schedule_ingest.utils.logger import get_logger

logger = get_logger(__name__)

RETRYABLE_ERRORS = (TransportError, ResponseValidationError)


class ScheduleExtractor:
    """
    LLM-based schedule extraction with linear backoff retries.

    Configuration is explicit: nothing is read from globals once the
    extractor is built.

    Example:
        extractor = ScheduleExtractor.from_settings()
        items = await extractor.extract(text, source_label="syllabus.pdf")
    """

    def __init__(
        self,
        client: CompletionClient,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_input_chars: int = 16000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize ScheduleExtractor.

        Args:
            client: Completion port used for every attempt
            max_attempts: Total attempts per extraction (first try included)
            base_delay: Backoff unit in seconds; wait after attempt n is n × base_delay
            max_input_chars: Document characters embedded in the prompt
            sleep: Coroutine used to wait between attempts
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay < 0:
            raise ValueError("base_delay must not be negative")

        self.client = client
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_input_chars = max_input_chars
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        client: CompletionClient | None = None,
    ) -> "ScheduleExtractor":
        """Build an extractor (and, unless given, an Ollama client) from settings."""
        settings = settings or get_settings()
        return cls(
            client=client or OllamaCompletionClient.from_settings(settings),
            max_attempts=settings.extraction_max_attempts,
            base_delay=settings.extraction_base_delay,
            max_input_chars=settings.extraction_max_input_chars,
        )

    def build_prompt(self, normalized_text: str, source_label: str) -> str:
        """Build the bounded extraction prompt."""
        document_text, truncated = truncate_document_text(normalized_text, self.max_input_chars)
        if truncated:
            logger.warning(
                "schedule_extractor.text_truncated",
                source=source_label,
                original_chars=len(normalized_text),
                kept_chars=self.max_input_chars,
            )
        return get_schedule_prompt(document_text, source_label)

    async def extract(self, normalized_text: str, source_label: str) -> list[ScheduleItem]:
        """
        Extract schedule items from normalized text.

        Empty text is still sent; the model is expected to answer ``[]``.

        Args:
            normalized_text: Output of normalize_text
            source_label: Originating file name

        Returns:
            Validated schedule items (possibly empty)

        Raises:
            ScheduleExtractionError: If every attempt failed
        """
        prompt = self.build_prompt(normalized_text, source_label)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.base_delay, increment=self.base_delay),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=self._log_retry,
            sleep=self._sleep,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    items = await self._attempt(
                        prompt,
                        source_label,
                        attempt.retry_state.attempt_number,
                    )
        except RetryError as e:
            last_error = e.last_attempt.exception()
            logger.error(
                "schedule_extractor.attempts_exhausted",
                source=source_label,
                attempts=self.max_attempts,
                error=str(last_error),
            )
            raise ScheduleExtractionError(self.max_attempts, last_error) from last_error

        return items

    async def _attempt(self, prompt: str, source_label: str, attempt_number: int) -> list[ScheduleItem]:
        """Run one completion call and validate its response."""
        logger.info(
            "schedule_extractor.attempt",
            source=source_label,
            attempt=attempt_number,
            max_attempts=self.max_attempts,
            prompt_chars=len(prompt),
        )

        start = time.perf_counter()
        try:
            response_text = await self.client.complete(prompt)
            items = parse_schedule_response(response_text)
        except RETRYABLE_ERRORS as e:
            logger.warning(
                "schedule_extractor.attempt_failed",
                source=source_label,
                attempt=attempt_number,
                error_type=type(e).__name__,
                error=e.message,
            )
            raise

        logger.info(
            "schedule_extractor.attempt_succeeded",
            source=source_label,
            attempt=attempt_number,
            items=len(items),
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        return items

    def _log_retry(self, retry_state: RetryCallState) -> None:
        """tenacity before_sleep hook."""
        logger.info(
            "schedule_extractor.retry_scheduled",
            attempt=retry_state.attempt_number,
            delay_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        )
