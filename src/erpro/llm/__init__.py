"""
LLM package.

Provides the Gemini client used by the three generation stages and the
stage contract the pipeline depends on.
"""

from erpro.llm.gemini_client import GeminiClient
from erpro.llm.stages import GeminiStages, GenerationStage

__all__ = [
    "GeminiClient",
    "GeminiStages",
    "GenerationStage",
]
