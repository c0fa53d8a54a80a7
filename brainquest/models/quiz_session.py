"""
Quiz Session Models
Immutable snapshots of the in-memory session plus request/response bodies
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from brainquest.models.attempt import AttemptRecord
from brainquest.models.quiz_config import QuizConfig


class SessionStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


class PersistStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    SAVED = "saved"
    FAILED = "failed"


class QuestionView(BaseModel):
    """
    Current question as shown to the player

    correct_answer and is_correct stay None until the question has
    been answered.
    """
    index: int
    question: str
    category: str
    difficulty: str
    type: str
    options: List[str] = Field(..., description="Answer texts in display order")
    selected_answer: Optional[str] = Field(default=None, alias="selectedAnswer")
    is_correct: Optional[bool] = Field(default=None, alias="isCorrect")
    correct_answer: Optional[str] = Field(default=None, alias="correctAnswer")

    class Config:
        frozen = True
        populate_by_name = True


class QuizState(BaseModel):
    """
    Point-in-time snapshot of a quiz session

    answers[i] is None while question i is unanswered; an empty
    string is a real answer.
    """
    session_id: str = Field(..., alias="sessionId")
    status: SessionStatus
    generation: int
    config: Optional[QuizConfig] = None
    total_questions: int = Field(default=0, alias="totalQuestions")
    current_index: int = Field(default=0, alias="currentIndex")
    current_question: Optional[QuestionView] = Field(default=None, alias="currentQuestion")
    answers: List[Optional[str]] = Field(default_factory=list)
    score: int = 0
    is_empty: bool = Field(default=False, alias="isEmpty")
    is_complete: bool = Field(default=False, alias="isComplete")
    finalized: bool = False
    persist_status: PersistStatus = Field(default=PersistStatus.NONE, alias="persistStatus")
    error: Optional[str] = None

    class Config:
        frozen = True
        populate_by_name = True


class FinalizeResult(BaseModel):
    """Outcome of finalizing a session"""
    record: AttemptRecord
    persisted: bool = Field(..., description="Whether the gateway acknowledged the write")
    percentage: float
    message: str = Field(..., description="Feedback for the achieved percentage")
    warning: Optional[str] = Field(default=None, description="Set when the write failed")

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "record": {
                    "userId": "user_123",
                    "score": 7,
                    "totalQuestions": 10,
                    "category": "Geography",
                    "timestamp": "2025-01-15T10:30:00Z"
                },
                "persisted": True,
                "percentage": 70.0,
                "message": "Great job! You're doing well!",
                "warning": None
            }
        }


class SubmitAnswerRequest(BaseModel):
    """Request model for answer submission"""
    answer: str = Field(..., description="Answer text exactly as displayed")


class ResetSessionRequest(BaseModel):
    """Restart with a new configuration, or the previous one if omitted"""
    config: Optional[QuizConfig] = None


class ProfileUpdateRequest(BaseModel):
    name: str = Field(..., min_length=2, description="Display name")
    email: str = Field(default="", description="Contact email")
