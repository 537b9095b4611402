"""
Prompt building and raw generation for quizzes, flashcards and tutor answers.

Each generate_* function makes exactly one backend call and either returns
validated content or raises; retries are the caller's concern.
"""
import logging
from typing import Any, Dict, List, Optional

from studyforge.core.errors import ValidationFailure
from studyforge.llm.provider import LLMProvider
from studyforge.llm.router import get_generation_settings
from studyforge.services.validation import (
    parse_json_array,
    validate_quiz_response,
    validate_flashcard_response,
)

logger = logging.getLogger(__name__)

QUIZ_DIFFICULTY = {
    "beginner": "basic concepts, fundamental principles, simple recall questions",
    "intermediate": "moderate complexity, application of concepts, some analysis required",
    "advanced": "complex scenarios, critical thinking, synthesis of multiple concepts",
}

FLASHCARD_DIFFICULTY = {
    "beginner": "simple definitions, basic facts, fundamental terms",
    "intermediate": "concepts with examples, relationships between ideas",
    "advanced": "complex topics, cross-disciplinary connections, advanced applications",
}


def _style_line(learning_style: Optional[str], label: str = "Learning style preference") -> str:
    return f"{label}: {learning_style}\n" if learning_style else ""


def build_quiz_prompt(subject: str, grade: str, difficulty: str, num_questions: int,
                      learning_style: Optional[str] = None) -> str:
    return (
        f"Generate exactly {num_questions} multiple-choice questions for {subject} at {grade} level.\n"
        f"Difficulty: {difficulty} ({QUIZ_DIFFICULTY.get(difficulty, difficulty)})\n"
        f"{_style_line(learning_style)}\n"
        "Format each question as JSON with this exact structure:\n"
        '{"id": number, "question": "Question text", '
        '"options": ["A) Option 1", "B) Option 2", "C) Option 3", "D) Option 4"], '
        '"correctAnswer": "A", "explanation": "Brief explanation of why this is correct"}\n\n'
        f"Return a JSON array with all {num_questions} questions. Start with [ and end with ]. "
        "Do not include any markdown formatting or code blocks."
    )


def build_flashcard_prompt(subject: str, grade: str, difficulty: str, num_cards: int,
                           learning_style: Optional[str] = None) -> str:
    return (
        f"Generate exactly {num_cards} flashcard pairs for {subject} at {grade} level.\n"
        f"Difficulty: {difficulty} ({FLASHCARD_DIFFICULTY.get(difficulty, difficulty)})\n"
        f"{_style_line(learning_style)}\n"
        "Format each flashcard as JSON with this exact structure:\n"
        '{"id": number, "front": "Question or term", "back": "Answer or definition"}\n\n'
        f"Return a JSON array with all {num_cards} flashcards. Start with [ and end with ]. "
        "Do not include any markdown formatting or code blocks."
    )


def build_tutor_prompt(question: str, grade: str, learning_style: Optional[str] = None) -> str:
    return (
        f"You are an expert AI tutor helping a {grade} student understand concepts.\n\n"
        f'Student\'s question: "{question}"\n'
        f"{_style_line(learning_style, 'Learning style')}\n"
        f"Provide a clear, concise explanation tailored to a {grade} student's level.\n"
        "- Start with a direct answer\n"
        "- Use relevant examples\n"
        "- Break down complex concepts\n"
        "- Encourage critical thinking\n"
    )


def generate_quiz(provider: LLMProvider, subject: str, grade: str, difficulty: str,
                  num_questions: int, learning_style: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Generate quiz questions with one backend call.

    Raises:
        DependencyError: Backend failure
        ValidationFailure: Output is not a well-formed quiz array
    """
    settings = get_generation_settings("quiz")
    prompt = build_quiz_prompt(subject, grade, difficulty, num_questions, learning_style)
    logger.info(f"Generating quiz with {provider.name} for subject={subject}")
    response = provider.generate_text(prompt, temperature=settings.temperature, max_tokens=settings.max_tokens)

    questions = parse_json_array(response.content)
    if not validate_quiz_response(questions):
        logger.warning(f"Quiz output failed validation for subject={subject}")
        raise ValidationFailure("Invalid quiz response format")

    logger.info(f"Generated {len(questions)} quiz questions ({response.total_tokens} tokens)")
    return questions


def generate_flashcards(provider: LLMProvider, subject: str, grade: str, difficulty: str,
                        num_cards: int, learning_style: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Generate flashcards with one backend call.

    Raises:
        DependencyError: Backend failure
        ValidationFailure: Output is not a well-formed flashcard array
    """
    settings = get_generation_settings("flashcard")
    prompt = build_flashcard_prompt(subject, grade, difficulty, num_cards, learning_style)
    logger.info(f"Generating flashcards with {provider.name} for subject={subject}")
    response = provider.generate_text(prompt, temperature=settings.temperature, max_tokens=settings.max_tokens)

    flashcards = parse_json_array(response.content)
    if not validate_flashcard_response(flashcards):
        logger.warning(f"Flashcard output failed validation for subject={subject}")
        raise ValidationFailure("Invalid flashcard response format")

    logger.info(f"Generated {len(flashcards)} flashcards ({response.total_tokens} tokens)")
    return flashcards


def generate_tutor_response(provider: LLMProvider, question: str, grade: str,
                            learning_style: Optional[str] = None) -> str:
    settings = get_generation_settings("tutor")
    prompt = build_tutor_prompt(question, grade, learning_style)
    logger.info(f"Generating tutor response with {provider.name} for question: {question[:50]}")
    response = provider.generate_text(prompt, temperature=settings.temperature, max_tokens=settings.max_tokens)

    text = response.content.strip()
    if not text:
        raise ValidationFailure("Empty tutor response")
    return text
