"""
Custom exception hierarchy for the research pipeline.

All exceptions inherit from ERProError, which provides optional context
for structured error handling and logging.
"""

from __future__ import annotations

from typing import Any


class ERProError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(ERProError):
    """Raised when configuration is invalid or missing.

    Examples:
        - No Gemini API key configured
        - Invalid link suffix
    """

    pass


class GenerationError(ERProError):
    """Raised when a generation stage fails.

    Context should include:
        - stage: The stage that failed (sources, report, memo)
        - model: The model being used
    """

    pass


class AuthorizationRevokedError(GenerationError):
    """Raised when the provider no longer recognises the configured credential.

    The pipeline treats this as a request to re-authorize rather than
    a run failure.
    """

    pass


class RateLimitError(GenerationError):
    """Rate limit or quota exceeded."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, context)
        self.retry_after = retry_after


class RunInProgressError(ERProError):
    """Raised when a run is requested while another is still in progress."""

    pass


class ProbeError(ERProError):
    """Raised when a link probe cannot reach a verdict.

    Never leaves the link verifier; it is recorded as an unverifiable link.

    Context should include:
        - url: The URL being probed
    """

    pass


class HistoryStoreError(ERProError):
    """Raised when the run history cannot be read or written.

    Context should include:
        - path: The history file path
    """

    pass
