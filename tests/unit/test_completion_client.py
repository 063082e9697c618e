"""
Unit Tests for OllamaCompletionClient
=====================================

ChatOllama is patched; no Ollama server is needed.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import HumanMessage, SystemMessage

from schedule_ingest.services.completion_client import CompletionClient, OllamaCompletionClient
from schedule_ingest.services.prompts import SCHEDULE_SYSTEM_PROMPT
from schedule_ingest.utils.errors import TransportError


@pytest.fixture
def mock_chat_ollama():
    with patch("schedule_ingest.services.completion_client.ChatOllama") as mock_cls:
        mock_cls.return_value.ainvoke = AsyncMock()
        yield mock_cls


class TestOllamaCompletionClient:
    """Tests for OllamaCompletionClient."""

    def test_from_settings_configures_model(self, mock_chat_ollama, test_settings):
        client = OllamaCompletionClient.from_settings(test_settings)

        assert client.model_name == "test-model"
        mock_chat_ollama.assert_called_once_with(
            model="test-model",
            base_url=test_settings.ollama_base_url,
            temperature=test_settings.llm_temperature,
            client_kwargs={"timeout": test_settings.llm_request_timeout},
        )

    def test_satisfies_protocol(self, mock_chat_ollama):
        client = OllamaCompletionClient(model_name="llama3", base_url="http://ollama:11434")

        assert isinstance(client, CompletionClient)

    @pytest.mark.asyncio
    async def test_complete_sends_system_and_user_messages(self, mock_chat_ollama):
        mock_chat_ollama.return_value.ainvoke.return_value = MagicMock(content="[]")
        client = OllamaCompletionClient(model_name="llama3", base_url="http://ollama:11434")

        result = await client.complete("Extract this")

        assert result == "[]"
        messages = mock_chat_ollama.return_value.ainvoke.await_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert messages[0].content == SCHEDULE_SYSTEM_PROMPT
        assert isinstance(messages[1], HumanMessage)
        assert messages[1].content == "Extract this"

    @pytest.mark.asyncio
    async def test_multipart_content_joined(self, mock_chat_ollama):
        mock_chat_ollama.return_value.ainvoke.return_value = MagicMock(
            content=[{"type": "text", "text": "[{"}, "}]"]
        )
        client = OllamaCompletionClient(model_name="llama3", base_url="http://ollama:11434")

        assert await client.complete("prompt") == "[{}]"

    @pytest.mark.asyncio
    async def test_failure_wrapped_in_transport_error(self, mock_chat_ollama):
        mock_chat_ollama.return_value.ainvoke.side_effect = ConnectionError("refused")
        client = OllamaCompletionClient(model_name="llama3", base_url="http://ollama:11434")

        with pytest.raises(TransportError) as exc_info:
            await client.complete("prompt")

        assert "refused" in exc_info.value.message
        assert exc_info.value.details["error_type"] == "ConnectionError"
