"""Tests for the LLM oracle client."""

import asyncio

import pytest
from unittest.mock import AsyncMock, Mock, patch

from aeo.exceptions import OracleCallError
from aeo.llm import LLMClient


class TestLLMClient:
    """Test cases for LLMClient."""

    def test_llm_initialization_with_key(self):
        """Test LLM client initialization with API key."""
        client = LLMClient(api_key="test-key")
        assert client.api_key == "test-key"
        assert client.model == "gpt-4.1-mini"
        assert client.provider == "openai"
        assert client.max_tokens == 4000
        assert client.temperature == 0.0

    def test_llm_initialization_without_key(self):
        """Test LLM client initialization without API key raises error."""
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError, match="API key must be provided"):
                LLMClient()

    def test_llm_initialization_from_env(self):
        """Test LLM client initialization from environment variable."""
        with patch.dict("os.environ", {"LLM_API_KEY": "env-key"}):
            client = LLMClient()
            assert client.api_key == "env-key"

    def test_unsupported_provider(self):
        """Test that unknown providers are rejected up front."""
        with pytest.raises(ValueError, match="Unsupported provider"):
            LLMClient(api_key="test-key", provider="cohere")

    @pytest.mark.asyncio
    @patch("openai.AsyncOpenAI")
    async def test_call_openai(self, mock_openai_class):
        """Test calling OpenAI with JSON mode and retries disabled."""
        mock_client = Mock()
        mock_response = Mock()
        mock_response.choices = [Mock(message=Mock(content='{"score": 1}'))]
        mock_client.chat.completions.create = AsyncMock(return_value=mock_response)
        mock_openai_class.return_value = mock_client

        client = LLMClient(api_key="test-key", provider="openai")
        response = await client.complete("system", "user")

        assert response == '{"score": 1}'
        mock_openai_class.assert_called_once_with(api_key="test-key", max_retries=0)
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.0
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    @pytest.mark.asyncio
    @patch("anthropic.AsyncAnthropic")
    async def test_call_anthropic(self, mock_anthropic_class):
        """Test calling Anthropic with the system prompt as a parameter."""
        mock_client = Mock()
        mock_response = Mock()
        mock_response.content = [Mock(type="text", text='{"score": 2}')]
        mock_client.messages.create = AsyncMock(return_value=mock_response)
        mock_anthropic_class.return_value = mock_client

        client = LLMClient(api_key="test-key", model="claude-sonnet-4-5", provider="anthropic")
        response = await client.complete("system", "user")

        assert response == '{"score": 2}'
        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["system"] == "system"
        assert kwargs["messages"] == [{"role": "user", "content": "user"}]

    @pytest.mark.asyncio
    @patch("openai.AsyncOpenAI")
    async def test_provider_failure_wrapped(self, mock_openai_class):
        """Test that SDK errors become retryable OracleCallError."""
        mock_client = Mock()
        mock_client.chat.completions.create = AsyncMock(side_effect=ConnectionError("reset"))
        mock_openai_class.return_value = mock_client

        client = LLMClient(api_key="test-key")
        with pytest.raises(OracleCallError) as exc_info:
            await client.complete("system", "user")

        assert exc_info.value.retryable is True
        assert isinstance(exc_info.value.cause, ConnectionError)
        assert mock_client.chat.completions.create.await_count == 1

    @pytest.mark.asyncio
    @patch("openai.AsyncOpenAI")
    async def test_timeout_wrapped(self, mock_openai_class):
        """Test that a slow oracle times out as OracleCallError."""

        async def slow(**kwargs):
            await asyncio.sleep(5)

        mock_client = Mock()
        mock_client.chat.completions.create = slow
        mock_openai_class.return_value = mock_client

        client = LLMClient(api_key="test-key", timeout=0.05)
        with pytest.raises(OracleCallError, match="timed out"):
            await client.complete("system", "user")

    @pytest.mark.asyncio
    @patch("openai.AsyncOpenAI")
    async def test_cancellation_propagates(self, mock_openai_class):
        """Test that task cancellation is not converted into OracleCallError."""
        started = asyncio.Event()

        async def hang(**kwargs):
            started.set()
            await asyncio.sleep(10)

        mock_client = Mock()
        mock_client.chat.completions.create = hang
        mock_openai_class.return_value = mock_client

        client = LLMClient(api_key="test-key", timeout=30)
        task = asyncio.create_task(client.complete("system", "user"))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
