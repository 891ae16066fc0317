"""
Google Gemini client implementation.

Uses the google-genai SDK against the Google AI Studio API. Provider
failures are mapped onto the pipeline's GenerationError hierarchy.
"""

from __future__ import annotations

import time

from google import genai
from google.genai import types
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from erpro.exceptions import (
    AuthorizationRevokedError,
    GenerationError,
    RateLimitError,
)
from erpro.logging import get_logger

logger = get_logger(__name__)

# Provider phrases meaning the selected key is no longer usable
REVOKED_PHRASES = (
    "requested entity was not found",
    "entity was not found",
    "entity not found",
)


def classify_error(error: Exception, model: str) -> GenerationError:
    """Map a provider exception onto the GenerationError hierarchy.

    Args:
        error: Exception raised by the SDK.
        model: Model that was being called.

    Returns:
        The GenerationError subclass to raise.
    """
    error_msg = str(error)
    lowered = error_msg.lower()
    context = {"provider": "google", "model": model}

    if any(phrase in lowered for phrase in REVOKED_PHRASES):
        return AuthorizationRevokedError(f"Gemini credential rejected: {error_msg}", context)

    if "429" in error_msg or "resource_exhausted" in lowered or "rate limit" in lowered:
        return RateLimitError(f"Gemini rate limit: {error_msg}", context)

    return GenerationError(f"Gemini API error: {error_msg}", context)


class GeminiClient:
    """Google Gemini client using the google-genai SDK.

    Supports Google Search grounding and thinking budgets.
    """

    def __init__(self, api_key: str | None = None) -> None:
        """Initialize the Gemini client.

        Args:
            api_key: Google AI Studio API key. If None, the SDK reads
                GEMINI_API_KEY / GOOGLE_API_KEY from the environment.
        """
        self._client = genai.Client(api_key=api_key)
        self._provider = "google"

    @property
    def provider(self) -> str:
        """Name of this provider."""
        return self._provider

    @retry(
        retry=retry_if_exception_type(RateLimitError),
        wait=wait_exponential(multiplier=1, min=1, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def generate(
        self,
        prompt: str,
        model: str,
        google_search: bool = False,
        thinking_budget: int = 0,
    ) -> str:
        """Send a single-prompt generation request.

        Args:
            prompt: Full prompt text.
            model: Gemini model name.
            google_search: Whether to enable Google Search grounding.
            thinking_budget: Thinking token budget, 0 to leave unset.

        Returns:
            Generated text.

        Raises:
            AuthorizationRevokedError: If the provider no longer accepts the key.
            RateLimitError: If rate limited after retries.
            GenerationError: For any other failure or an empty response.
        """
        start_time = time.monotonic()

        config = types.GenerateContentConfig()
        if google_search:
            config.tools = [types.Tool(google_search=types.GoogleSearch())]
        if thinking_budget:
            config.thinking_config = types.ThinkingConfig(thinking_budget=thinking_budget)

        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            error = classify_error(e, model)
            if isinstance(error, RateLimitError):
                logger.warning("Gemini rate limit hit", model=model)
            raise error from e

        text = response.text or ""
        latency_ms = int((time.monotonic() - start_time) * 1000)
        logger.debug(
            "Gemini response received",
            model=model,
            latency_ms=latency_ms,
            chars=len(text),
        )

        if not text.strip():
            raise GenerationError(
                "Gemini returned an empty response",
                {"provider": self._provider, "model": model},
            )
        return text
