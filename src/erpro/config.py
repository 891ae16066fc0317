"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env files.
Validates fields and provides typed access to settings.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Optional:
        GEMINI_API_KEY: Google AI Studio API key (API_KEY is accepted too)
        MODEL_RESEARCH: Gemini model used for all three stages
        THINKING_BUDGET: Thinking token budget per stage (0 disables)
        PROBE_TIMEOUT_SECONDS: Timeout for each link probe
        LINK_SUFFIX: Suffix of links checked after the sources stage
        HISTORY_PATH: File holding recent completed runs
        HISTORY_LIMIT: Number of completed runs kept
        OUTPUT_DIR: Directory for exported artifacts
        LOG_LEVEL: Logging level
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    GEMINI_API_KEY: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY"),
        description="Google Gemini API key",
    )

    MODEL_RESEARCH: str = Field(
        default="gemini-3-pro-preview",
        description="Model used for sources, report and memo generation",
    )
    THINKING_BUDGET: int = Field(
        default=32768, ge=0, description="Thinking token budget per stage"
    )

    # Link verification
    PROBE_TIMEOUT_SECONDS: float = Field(
        default=5.0, gt=0.0, description="Timeout for each link probe in seconds"
    )
    LINK_SUFFIX: str = Field(
        default=".pdf", description="Suffix of links verified after sourcing"
    )

    # History
    HISTORY_PATH: Path = Field(
        default=Path(".erpro/history.json"), description="Run history file"
    )
    HISTORY_LIMIT: int = Field(
        default=5, ge=1, le=50, description="Number of completed runs kept"
    )

    # Directories
    OUTPUT_DIR: Path = Field(default=Path("output"), description="Output directory")

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    @property
    def gemini_api_key(self) -> str | None:
        """Get Gemini API key (lowercase alias), treating blank as unset."""
        if self.GEMINI_API_KEY and self.GEMINI_API_KEY.strip():
            return self.GEMINI_API_KEY.strip()
        return None

    @property
    def model_research(self) -> str:
        """Get research model (lowercase alias)."""
        return self.MODEL_RESEARCH

    @field_validator("LINK_SUFFIX")
    @classmethod
    def validate_link_suffix(cls, v: str) -> str:
        """Validate that LINK_SUFFIX looks like a file extension."""
        v = v.strip().lower()
        if not v.startswith(".") or len(v) < 2:
            raise ValueError("LINK_SUFFIX must be a file extension such as '.pdf'")
        return v

    def ensure_directories(self) -> None:
        """Create output and history directories if they don't exist."""
        self.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        self.HISTORY_PATH.parent.mkdir(parents=True, exist_ok=True)

    def get_run_output_dir(self, subject_name: str) -> Path:
        """Get the output directory for a subject's artifacts."""
        safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in subject_name)
        run_dir = self.OUTPUT_DIR / safe_name
        run_dir.mkdir(parents=True, exist_ok=True)
        return run_dir

    def redacted_display(self) -> dict[str, str | int | float | None]:
        """Return settings with API keys redacted for display."""
        def redact(value: str | None) -> str | None:
            if value is None:
                return None
            return f"{value[:8]}...{value[-4:]}" if len(value) > 12 else "***"

        return {
            "GEMINI_API_KEY": redact(self.gemini_api_key),
            "MODEL_RESEARCH": self.MODEL_RESEARCH,
            "THINKING_BUDGET": self.THINKING_BUDGET,
            "PROBE_TIMEOUT_SECONDS": self.PROBE_TIMEOUT_SECONDS,
            "LINK_SUFFIX": self.LINK_SUFFIX,
            "HISTORY_PATH": str(self.HISTORY_PATH),
            "HISTORY_LIMIT": self.HISTORY_LIMIT,
            "OUTPUT_DIR": str(self.OUTPUT_DIR),
            "LOG_LEVEL": self.LOG_LEVEL,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
