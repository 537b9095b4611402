"""
OpenAI provider implementation.
"""
import logging
from typing import Optional
from openai import OpenAI, APIError

from studyforge.core.config import OPENAI_API_KEY, OPENAI_MODEL
from studyforge.core.errors import DependencyError
from studyforge.llm.provider import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI provider using official OpenAI SDK."""

    name = "openai"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client=None):
        """Initialize OpenAI client."""
        self.api_key = api_key or OPENAI_API_KEY
        self.model = model or OPENAI_MODEL
        if client is not None:
            self.client = client
        else:
            if not self.api_key:
                raise ValueError("OPENAI_API_KEY not configured")
            self.client = OpenAI(api_key=self.api_key)
        logger.info(f"OpenAI provider initialized (model={self.model})")

    def generate_text(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Generate a chat completion for a single user prompt."""
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens or 2000,
            )
        except APIError as e:
            logger.error(f"OpenAI API error: {e}", exc_info=True)
            raise DependencyError(f"OpenAI API error: {e}", dependency="openai") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.error("Invalid OpenAI response: missing message content")
            raise DependencyError("Invalid response from OpenAI API - missing text content", dependency="openai")

        return LLMResponse(
            content=content,
            tokens_in=response.usage.prompt_tokens if response.usage else 0,
            tokens_out=response.usage.completion_tokens if response.usage else 0,
            model=self.model,
            metadata={
                "finish_reason": response.choices[0].finish_reason,
            }
        )
