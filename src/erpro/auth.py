"""
Credential gate consulted before any run starts.

Authorization is two independent facts: whether a usable key is
configured, and an action that asks for one. Completing the action
proves nothing, so the gate probes again afterwards.
"""

from __future__ import annotations

from typing import Callable

from erpro.config import Settings, get_settings
from erpro.logging import get_logger

logger = get_logger(__name__)

CredentialProbe = Callable[[], bool]
CredentialPrompt = Callable[[], None]


class CredentialGate:
    """Decides whether the pipeline may be started."""

    def __init__(
        self,
        settings: Settings | None = None,
        probe: CredentialProbe | None = None,
        prompt: CredentialPrompt | None = None,
    ) -> None:
        """Initialize the gate.

        Args:
            settings: Settings holding the configured API key.
            probe: Overrides the default "is a key configured" check.
            prompt: Action that asks the user for a key.
        """
        self.settings = settings
        self._probe = probe or self._has_configured_key
        self._prompt = prompt

    def _has_configured_key(self) -> bool:
        settings = self.settings or get_settings()
        return settings.gemini_api_key is not None

    def is_authorized(self) -> bool:
        """Whether a credential is currently available."""
        try:
            return bool(self._probe())
        except Exception as e:
            logger.warning("Credential probe failed", error=str(e))
            return False

    def request_authorization(self) -> bool:
        """Run the prompt action, then confirm with a fresh probe.

        Returns:
            True only if the probe confirms a credential after prompting.
        """
        if self._prompt is None:
            logger.warning("No credential prompt available")
            return self.is_authorized()

        self._prompt()
        authorized = self.is_authorized()
        if not authorized:
            logger.warning("Credential prompt completed without a usable key")
        return authorized
