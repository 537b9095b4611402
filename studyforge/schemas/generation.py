"""
Pydantic schemas for generation endpoints.
"""
from typing import Optional, List, Literal, Union
from pydantic import BaseModel, Field

Difficulty = Literal["beginner", "intermediate", "advanced"]


class QuizRequest(BaseModel):
    """Request model for quiz generation."""
    subject: str = Field(..., min_length=1, description="Subject or topic")
    grade: str = Field(..., min_length=1, description="Grade level, e.g. '9-10'")
    difficulty: Difficulty = Field(..., description="beginner, intermediate or advanced")
    num_questions: int = Field(..., ge=1, le=50, description="Number of questions")
    learning_style: Optional[str] = Field(None, description="Optional learning style preference")

    class Config:
        json_schema_extra = {
            "example": {
                "subject": "Biology",
                "grade": "9-10",
                "difficulty": "intermediate",
                "num_questions": 5,
                "learning_style": "visual"
            }
        }


class FlashcardRequest(BaseModel):
    """Request model for flashcard generation."""
    subject: str = Field(..., min_length=1, description="Subject or topic")
    grade: str = Field(..., min_length=1, description="Grade level, e.g. '9-10'")
    difficulty: Difficulty = Field(..., description="beginner, intermediate or advanced")
    num_cards: int = Field(..., ge=1, le=50, description="Number of flashcards")
    learning_style: Optional[str] = Field(None, description="Optional learning style preference")


class TutorRequest(BaseModel):
    """Request model for an AI tutor message."""
    question: str = Field(..., min_length=1, max_length=4000, description="Student's question")
    grade: str = Field("9-10", description="Grade level used to pitch the explanation")
    learning_style: Optional[str] = Field("visual", description="Learning style preference")


class QuizQuestion(BaseModel):
    id: Union[int, float]
    question: str
    options: List[str]
    correct_answer: str = Field(..., alias="correctAnswer")
    explanation: str

    class Config:
        populate_by_name = True


class Flashcard(BaseModel):
    id: Union[int, float]
    front: str
    back: str


class UsageSnapshot(BaseModel):
    """Usage position returned after a fresh generation."""
    used: int
    limit: int
    remaining: int
    plan_type: str


class QuizResponse(BaseModel):
    questions: List[QuizQuestion]
    cached: bool = Field(False, description="Served from the content cache")
    usage: Optional[UsageSnapshot] = Field(None, description="Usage after this request (fresh generations only)")


class FlashcardResponse(BaseModel):
    flashcards: List[Flashcard]
    cached: bool = Field(False, description="Served from the content cache")
    usage: Optional[UsageSnapshot] = Field(None, description="Usage after this request (fresh generations only)")


class TutorResponse(BaseModel):
    response: str
    usage: Optional[UsageSnapshot] = None
