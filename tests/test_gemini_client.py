"""
Tests for the Gemini client.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from tenacity import wait_none

from erpro.exceptions import AuthorizationRevokedError, GenerationError, RateLimitError
from erpro.llm.gemini_client import GeminiClient, classify_error


def make_client(generate_content: AsyncMock) -> GeminiClient:
    """Create a GeminiClient with the SDK call replaced."""
    with patch("erpro.llm.gemini_client.genai.Client") as sdk_cls:
        sdk = MagicMock()
        sdk.aio.models.generate_content = generate_content
        sdk_cls.return_value = sdk
        return GeminiClient(api_key="test-key")


def text_response(text: str | None) -> MagicMock:
    response = MagicMock()
    response.text = text
    return response


class TestClassifyError:
    """Test mapping of provider errors."""

    @pytest.mark.parametrize(
        "message",
        [
            "404 NOT_FOUND. {'error': {'message': 'Requested entity was not found.'}}",
            "Entity not found",
        ],
    )
    def test_revoked(self, message: str) -> None:
        error = classify_error(Exception(message), "gemini-test")

        assert isinstance(error, AuthorizationRevokedError)
        assert error.context["model"] == "gemini-test"

    @pytest.mark.parametrize(
        "message",
        ["429 Too Many Requests", "RESOURCE_EXHAUSTED: quota", "rate limit reached"],
    )
    def test_rate_limit(self, message: str) -> None:
        assert isinstance(classify_error(Exception(message), "m"), RateLimitError)

    def test_generic(self) -> None:
        error = classify_error(Exception("500 INTERNAL"), "m")

        assert type(error) is GenerationError
        assert "500 INTERNAL" in error.message

    def test_generate_word_is_not_rate_limit(self) -> None:
        """Test that messages merely containing 'rate' are not rate limits."""
        error = classify_error(Exception("failed to generate content"), "m")

        assert type(error) is GenerationError


class TestGenerate:
    """Test generation requests."""

    @pytest.mark.asyncio
    async def test_returns_text(self) -> None:
        call = AsyncMock(return_value=text_response("| 2023 | ... |"))
        client = make_client(call)

        text = await client.generate("prompt", model="gemini-test")

        assert text == "| 2023 | ... |"
        kwargs = call.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["contents"] == "prompt"
        assert not kwargs["config"].tools

    @pytest.mark.asyncio
    async def test_search_and_thinking_config(self) -> None:
        call = AsyncMock(return_value=text_response("ok"))
        client = make_client(call)

        await client.generate("prompt", model="m", google_search=True, thinking_budget=1024)

        config = call.call_args.kwargs["config"]
        assert config.tools[0].google_search is not None
        assert config.thinking_config.thinking_budget == 1024

    @pytest.mark.asyncio
    async def test_revoked_key_raises(self) -> None:
        call = AsyncMock(side_effect=Exception("Requested entity was not found."))
        client = make_client(call)

        with pytest.raises(AuthorizationRevokedError):
            await client.generate("prompt", model="m")
        assert call.await_count == 1

    @pytest.mark.asyncio
    async def test_empty_response_raises(self) -> None:
        client = make_client(AsyncMock(return_value=text_response(None)))

        with pytest.raises(GenerationError, match="empty response"):
            await client.generate("prompt", model="m")

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried(self) -> None:
        call = AsyncMock(side_effect=[Exception("429 RESOURCE_EXHAUSTED"), text_response("ok")])
        client = make_client(call)
        generate = GeminiClient.generate.retry_with(wait=wait_none())

        assert await generate(client, "prompt", model="m") == "ok"
        assert call.await_count == 2

    @pytest.mark.asyncio
    async def test_rate_limit_gives_up(self) -> None:
        call = AsyncMock(side_effect=Exception("429 RESOURCE_EXHAUSTED"))
        client = make_client(call)
        generate = GeminiClient.generate.retry_with(wait=wait_none())

        with pytest.raises(RateLimitError):
            await generate(client, "prompt", model="m")
        assert call.await_count == 3
