"""
Provider and generation-settings selection per resource type.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from studyforge.core.config import LLM_PROVIDER
from studyforge.llm.provider import LLMProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationSettings:
    temperature: float
    max_tokens: int


# Resource type -> sampling settings
GENERATION_SETTINGS = {
    "quiz": GenerationSettings(temperature=0.7, max_tokens=4000),
    "flashcard": GenerationSettings(temperature=0.7, max_tokens=3000),
    "tutor": GenerationSettings(temperature=0.8, max_tokens=2000),
}


def get_generation_settings(resource_type: str) -> GenerationSettings:
    """Sampling settings for a resource type (tutor settings for unknown types)."""
    return GENERATION_SETTINGS.get(resource_type, GENERATION_SETTINGS["tutor"])


def create_provider(name: Optional[str] = None) -> LLMProvider:
    """
    Build the configured generation backend.

    Args:
        name: "gemini" or "openai" (defaults to LLM_PROVIDER)

    Raises:
        ValueError: Unknown provider or missing API key
    """
    name = (name or LLM_PROVIDER).lower()
    if name == "gemini":
        from studyforge.llm.gemini_provider import GeminiProvider
        return GeminiProvider()
    if name == "openai":
        from studyforge.llm.openai_provider import OpenAIProvider
        return OpenAIProvider()
    raise ValueError(f"Unknown LLM provider: {name}")
