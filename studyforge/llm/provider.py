"""
Generation backend interface.

Providers turn one prompt into one text completion. Retries, validation and
caching happen above this layer.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class LLMResponse:
    content: str
    tokens_in: int = 0
    tokens_out: int = 0
    model: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        return self.tokens_in + self.tokens_out


class LLMProvider(ABC):
    """A text generation backend (Gemini, OpenAI)."""

    name: str = "llm"

    @abstractmethod
    def generate_text(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """
        Generate a completion for a single prompt.

        Raises:
            DependencyError: On API errors or a response without text
        """
        pass
