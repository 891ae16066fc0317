"""
Generation stage contract and its Gemini-backed implementation.

The pipeline only depends on GenerationStage; anything that turns
(stage, subject, context) into text can drive it.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from erpro.config import Settings, get_settings
from erpro.exceptions import GenerationError
from erpro.llm.gemini_client import GeminiClient
from erpro.llm.prompts import MEMO_PROMPT, REPORT_PROMPT, SOURCES_PROMPT
from erpro.types import StageKey

PROMPTS = {
    StageKey.SOURCES: SOURCES_PROMPT,
    StageKey.REPORT: REPORT_PROMPT,
    StageKey.MEMO: MEMO_PROMPT,
}


@runtime_checkable
class GenerationStage(Protocol):
    """Produces the text for one stage of the pipeline."""

    async def generate(
        self,
        stage: StageKey,
        subject_name: str,
        context: str | None = None,
    ) -> str:
        """Generate a stage's text.

        Args:
            stage: Which stage to run.
            subject_name: Company being researched.
            context: Previous stage output; None for the sources stage.

        Returns:
            Generated text.

        Raises:
            GenerationError: If generation fails.
        """
        ...


def build_prompt(stage: StageKey, subject_name: str, context: str | None = None) -> str:
    """Render the prompt for ``stage``."""
    if stage != StageKey.SOURCES and context is None:
        raise GenerationError(
            "Stage requires the previous stage's output",
            {"stage": stage.value},
        )
    return PROMPTS[stage].format(subject=subject_name, context=context or "")


class GeminiStages:
    """GenerationStage backed by Gemini.

    The sources stage runs with Google Search grounding so the model can
    find real document links; report and memo work from context only.
    """

    def __init__(
        self,
        client: GeminiClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.client = client or GeminiClient(api_key=self.settings.gemini_api_key)

    async def generate(
        self,
        stage: StageKey,
        subject_name: str,
        context: str | None = None,
    ) -> str:
        prompt = build_prompt(stage, subject_name, context)
        try:
            return await self.client.generate(
                prompt,
                model=self.settings.model_research,
                google_search=stage == StageKey.SOURCES,
                thinking_budget=self.settings.THINKING_BUDGET,
            )
        except GenerationError as e:
            e.context.setdefault("stage", stage.value)
            raise
