"""
AI generation endpoints: quizzes, flashcards and tutor messages.

Errors from the admission pipeline (quota, rate limit, validation,
dependency) are rendered by the handlers registered in create_app().
"""
import logging
from fastapi import APIRouter, Depends, status

from studyforge.api.dependencies import get_generation_service
from studyforge.core.auth_dependency import get_current_user_id
from studyforge.schemas.generation import (
    QuizRequest,
    FlashcardRequest,
    TutorRequest,
    QuizResponse,
    FlashcardResponse,
    TutorResponse,
)
from studyforge.services.generation_service import GenerationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Generation"])


@router.post("/generate-quiz", response_model=QuizResponse, status_code=status.HTTP_200_OK)
def generate_quiz(
    request: QuizRequest,
    user_id: str = Depends(get_current_user_id),
    service: GenerationService = Depends(get_generation_service),
):
    """
    Generate multiple-choice quiz questions.

    Identical subject/grade/difficulty/count requests within the cache TTL are
    served from cache and do not count against the user's quota.
    """
    return service.generate_quiz(user_id, request)


@router.post("/generate-flashcards", response_model=FlashcardResponse, status_code=status.HTTP_200_OK)
def generate_flashcards(
    request: FlashcardRequest,
    user_id: str = Depends(get_current_user_id),
    service: GenerationService = Depends(get_generation_service),
):
    """Generate flashcards (cached like quizzes)."""
    return service.generate_flashcards(user_id, request)


@router.post("/tutor", response_model=TutorResponse, status_code=status.HTTP_200_OK)
def ask_tutor(
    request: TutorRequest,
    user_id: str = Depends(get_current_user_id),
    service: GenerationService = Depends(get_generation_service),
):
    """Answer a student's question with the AI tutor."""
    logger.debug(f"Tutor request: user_id={user_id}, grade={request.grade}")
    return service.answer_tutor_question(user_id, request)
