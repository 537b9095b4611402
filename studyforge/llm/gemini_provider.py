"""
Gemini provider implementation.
"""
import logging
from typing import Optional

from google import genai
from google.genai import errors, types

from studyforge.core.config import GEMINI_API_KEY, GEMINI_MODEL
from studyforge.core.errors import DependencyError
from studyforge.llm.provider import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """Gemini provider using the google-genai SDK."""

    name = "gemini"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client=None):
        """Initialize Gemini client."""
        self.api_key = api_key or GEMINI_API_KEY
        self.model = model or GEMINI_MODEL
        if client is not None:
            self.client = client
        else:
            if not self.api_key:
                raise ValueError("GEMINI_API_KEY not configured")
            self.client = genai.Client(api_key=self.api_key)
        logger.info(f"Gemini provider initialized (model={self.model})")

    def generate_text(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Generate content for a prompt."""
        logger.debug(f"Calling Gemini with prompt length {len(prompt)}")
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=temperature,
                    max_output_tokens=max_tokens or 2000,
                    top_p=0.95,
                    top_k=40,
                ),
            )
        except errors.APIError as e:
            logger.error(f"Gemini API error ({e.code}): {e.message}")
            raise DependencyError(f"Gemini API error ({e.code}): {e.message}", dependency="gemini") from e

        text = getattr(response, "text", None)
        if not text:
            logger.error("Invalid Gemini response structure: missing text content")
            raise DependencyError("Invalid response from Gemini API - missing text content", dependency="gemini")

        usage = getattr(response, "usage_metadata", None)
        logger.info(f"Gemini response received, length={len(text)}")
        return LLMResponse(
            content=text,
            tokens_in=(getattr(usage, "prompt_token_count", None) or 0) if usage else 0,
            tokens_out=(getattr(usage, "candidates_token_count", None) or 0) if usage else 0,
            model=self.model,
        )
