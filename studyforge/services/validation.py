"""
Validation and sanitization of generated study content.

The model returns raw JSON text; nothing reaches the cache or the caller
until it has passed the structural checks here and been truncated to the
storage limits below.
"""
import json
import logging
import re
from numbers import Number
from typing import Any, Dict, List

from studyforge.core.errors import ValidationFailure

logger = logging.getLogger(__name__)

# Maximum lengths (characters)
QUIZ_QUESTION_MAX = 1000
QUIZ_OPTION_MAX = 500
QUIZ_CORRECT_ANSWER_MAX = 10
QUIZ_EXPLANATION_MAX = 500
FLASHCARD_FRONT_MAX = 500
FLASHCARD_BACK_MAX = 1000

_CODE_FENCE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _is_quiz_item(item: Any) -> bool:
    return (
        isinstance(item, dict)
        and _is_number(item.get("id"))
        and isinstance(item.get("question"), str)
        and isinstance(item.get("options"), list)
        and all(isinstance(opt, str) for opt in item["options"])
        and isinstance(item.get("correctAnswer"), str)
        and isinstance(item.get("explanation"), str)
    )


def _is_flashcard_item(item: Any) -> bool:
    return (
        isinstance(item, dict)
        and _is_number(item.get("id"))
        and isinstance(item.get("front"), str)
        and isinstance(item.get("back"), str)
    )


def validate_quiz_response(data: Any) -> bool:
    """True if data is a list of {id, question, options, correctAnswer, explanation} items."""
    return isinstance(data, list) and all(_is_quiz_item(item) for item in data)


def validate_flashcard_response(data: Any) -> bool:
    """True if data is a list of {id, front, back} items."""
    return isinstance(data, list) and all(_is_flashcard_item(item) for item in data)


def sanitize_quiz(quizzes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Truncate quiz text fields to their maximum lengths; other fields are kept."""
    return [
        {
            **quiz,
            "question": quiz["question"][:QUIZ_QUESTION_MAX],
            "options": [opt[:QUIZ_OPTION_MAX] for opt in quiz["options"]],
            "correctAnswer": quiz["correctAnswer"][:QUIZ_CORRECT_ANSWER_MAX],
            "explanation": quiz["explanation"][:QUIZ_EXPLANATION_MAX],
        }
        for quiz in quizzes
    ]


def sanitize_flashcards(flashcards: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Truncate flashcard sides to their maximum lengths; other fields are kept."""
    return [
        {
            **card,
            "front": card["front"][:FLASHCARD_FRONT_MAX],
            "back": card["back"][:FLASHCARD_BACK_MAX],
        }
        for card in flashcards
    ]


def parse_json_array(text: str) -> List[Any]:
    """
    Parse the JSON array out of raw model output.

    Accepts a bare array or one wrapped in a markdown code block.

    Raises:
        ValidationFailure: If no JSON array can be parsed
    """
    if not text:
        raise ValidationFailure("Empty response from generation backend")

    fenced = _CODE_FENCE.search(text)
    candidate = fenced.group(1) if fenced else text.strip()

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        start, end = candidate.find("["), candidate.rfind("]")
        if start == -1 or end <= start:
            logger.warning(f"No JSON array in generation output: {text[:100]}")
            raise ValidationFailure("Generation output is not valid JSON")
        try:
            data = json.loads(candidate[start:end + 1])
        except json.JSONDecodeError:
            logger.warning(f"Failed to parse JSON from generation output: {text[:100]}")
            raise ValidationFailure("Generation output is not valid JSON")

    if not isinstance(data, list):
        raise ValidationFailure("Generation output is not a JSON array")
    return data
