"""
Completion Client
=================

Port to the remote structured-extraction capability plus its Ollama
implementation (LangChain ChatOllama).

The port promises nothing about structure: it returns whatever text the
model produced, or raises TransportError.
"""

from typing import Protocol, runtime_checkable

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_ollama import ChatOllama

from schedule_ingest.config.settings import Settings, get_settings
from schedule_ingest.services.prompts import SCHEDULE_SYSTEM_PROMPT
from schedule_ingest.utils.errors import TransportError
from schedule_ingest.utils.logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class CompletionClient(Protocol):
    """Anything that can turn a prompt into raw response text."""

    @property
    def model_name(self) -> str:
        ...

    async def complete(self, prompt: str) -> str:
        """
        Send a prompt and return the raw response text.

        Raises:
            TransportError: If the call fails
        """
        ...


class OllamaCompletionClient:
    """
    Completion client backed by a local Ollama server.

    Example:
        client = OllamaCompletionClient.from_settings()
        text = await client.complete(prompt)
    """

    def __init__(
        self,
        model_name: str,
        base_url: str,
        temperature: float = 0.1,
        request_timeout: int = 120,
        system_prompt: str = SCHEDULE_SYSTEM_PROMPT,
    ) -> None:
        """
        Initialize client.

        Args:
            model_name: Ollama model name
            base_url: Ollama base URL
            temperature: LLM temperature (lower = more deterministic)
            request_timeout: Timeout for LLM requests in seconds
            system_prompt: System message sent before every prompt
        """
        self._model_name = model_name
        self._system_prompt = system_prompt
        self.llm = ChatOllama(
            model=model_name,
            base_url=base_url,
            temperature=temperature,
            client_kwargs={"timeout": request_timeout},
        )

        logger.info(
            "completion_client.initialized",
            model=model_name,
            base_url=base_url,
            temperature=temperature,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "OllamaCompletionClient":
        """Build a client from application settings."""
        settings = settings or get_settings()
        return cls(
            model_name=settings.ollama_llm_model,
            base_url=settings.ollama_base_url,
            temperature=settings.llm_temperature,
            request_timeout=settings.llm_request_timeout,
        )

    @property
    def model_name(self) -> str:
        return self._model_name

    async def complete(self, prompt: str) -> str:
        messages = [
            SystemMessage(content=self._system_prompt),
            HumanMessage(content=prompt),
        ]

        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            logger.error(
                "completion_client.request_failed",
                model=self._model_name,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise TransportError(
                message=f"Completion request failed: {e}",
                details={"model": self._model_name, "error_type": type(e).__name__},
            ) from e

        content = response.content
        if not isinstance(content, str):
            # Multi-part content: keep only the text parts
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )
        return content
