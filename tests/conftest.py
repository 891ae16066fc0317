"""
Pytest configuration and fixtures for pipeline tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from erpro.config import Settings, clear_settings_cache
from erpro.workspace.history import RunHistoryStore


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def mock_env_vars() -> Generator[dict[str, str], None, None]:
    """Provide mock environment variables for testing."""
    env_vars = {
        "GEMINI_API_KEY": "test-fake-gemini-key-1234567890",
        "MODEL_RESEARCH": "gemini-test-model",
        "THINKING_BUDGET": "0",
        "PROBE_TIMEOUT_SECONDS": "2.5",
        "HISTORY_LIMIT": "5",
        "LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture
def mock_settings(mock_env_vars: dict[str, str], temp_dir: Path) -> Generator[Settings, None, None]:
    """Provide a Settings instance with directories under temp_dir."""
    with patch.dict(
        os.environ,
        {
            "OUTPUT_DIR": str(temp_dir / "output"),
            "HISTORY_PATH": str(temp_dir / "state" / "history.json"),
        },
    ):
        clear_settings_cache()
        from erpro.config import get_settings

        settings = get_settings()
        settings.ensure_directories()
        yield settings
        clear_settings_cache()


@pytest.fixture
def history_store(temp_dir: Path) -> RunHistoryStore:
    """Provide an empty history store."""
    return RunHistoryStore(temp_dir / "history.json")


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
