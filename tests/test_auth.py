"""
Tests for the credential gate.
"""

from __future__ import annotations

import os
from unittest.mock import patch

from erpro.auth import CredentialGate
from erpro.config import Settings


class TestCredentialGate:
    """Test authorization probing and prompting."""

    def test_configured_key_is_authorized(self, mock_settings: Settings) -> None:
        assert CredentialGate(settings=mock_settings).is_authorized() is True

    def test_missing_key_is_not_authorized(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert CredentialGate(settings=settings).is_authorized() is False

    def test_prompt_is_confirmed_by_probe(self) -> None:
        """Test that completing the prompt alone does not authorize."""
        prompted: list[None] = []
        gate = CredentialGate(probe=lambda: False, prompt=lambda: prompted.append(None))

        assert gate.request_authorization() is False
        assert len(prompted) == 1

    def test_prompt_then_probe_succeeds(self) -> None:
        state = {"key": None}

        def prompt() -> None:
            state["key"] = "new-key"

        gate = CredentialGate(probe=lambda: state["key"] is not None, prompt=prompt)

        assert gate.is_authorized() is False
        assert gate.request_authorization() is True

    def test_probe_error_means_unauthorized(self) -> None:
        def probe() -> bool:
            raise RuntimeError("credential service unavailable")

        assert CredentialGate(probe=probe).is_authorized() is False

    def test_no_prompt_falls_back_to_probe(self) -> None:
        assert CredentialGate(probe=lambda: True).request_authorization() is True
