"""
Quiz Session API Routes
Start, answer, advance, finalize, reset and abandon quiz sessions
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, status
from pydantic import BaseModel

from brainquest.api.dependencies import get_current_user_id
from brainquest.models.quiz_config import (
    DEFAULT_QUESTION_AMOUNT,
    MAX_QUESTION_AMOUNT,
    MIN_QUESTION_AMOUNT,
    QuizCategory,
    QuizConfig,
    QuizDifficulty,
    QuizType,
)
from brainquest.models.quiz_session import (
    FinalizeResult,
    QuizState,
    ResetSessionRequest,
    SubmitAnswerRequest,
)
from brainquest.services.errors import (
    EmptyBatchError,
    FetchFailure,
    InvalidTransitionError,
    SessionNotFoundError,
)
from brainquest.services.session_registry import SessionRegistry, get_session_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quiz")


# ==================== RESPONSE MODELS ====================

class OptionItem(BaseModel):
    value: str
    label: str


class CategoryItem(BaseModel):
    id: int
    label: str


class QuizOptionsResponse(BaseModel):
    """Choices for the quiz setup form"""
    categories: List[CategoryItem]
    difficulties: List[OptionItem]
    types: List[OptionItem]
    amount: Dict[str, int]


# ==================== ENDPOINTS ====================

@router.get(
    "/options",
    response_model=QuizOptionsResponse,
    summary="List quiz configuration choices"
)
async def get_quiz_options() -> QuizOptionsResponse:
    return QuizOptionsResponse(
        categories=[CategoryItem(id=c.value, label=c.display_name) for c in QuizCategory],
        difficulties=[OptionItem(value=d.value, label=d.display_name) for d in QuizDifficulty],
        types=[OptionItem(value=t.value, label=t.display_name) for t in QuizType],
        amount={
            "min": MIN_QUESTION_AMOUNT,
            "max": MAX_QUESTION_AMOUNT,
            "default": DEFAULT_QUESTION_AMOUNT
        }
    )


@router.post(
    "/sessions",
    response_model=QuizState,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Quiz session created with its first batch"},
        404: {"description": "No questions for this configuration"},
        502: {"description": "Question source unavailable"}
    },
    summary="Start a new quiz session",
    description="""
    Fetch a batch of questions from Open Trivia DB and start a session.

    The requested amount is clamped to 1-50. Use the returned `sessionId`
    with the answer/advance/finalize endpoints.
    """
)
async def start_session(
    config: QuizConfig,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_session_registry)
) -> QuizState:
    try:
        return await registry.start_session(user_id, config)

    except EmptyBatchError as e:
        logger.warning(f"⚠️ Empty batch for user {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except FetchFailure as e:
        logger.error(f"❌ Failed to start session for user {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.get("/sessions/{session_id}", response_model=QuizState, summary="Get session state")
async def get_session_state(
    session_id: str = Path(..., description="Quiz session ID"),
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_session_registry)
) -> QuizState:
    try:
        return registry.get(user_id, session_id).snapshot()
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post(
    "/sessions/{session_id}/answer",
    response_model=QuizState,
    summary="Answer the current question",
    description="Records or replaces the answer for the current question and returns the live score."
)
async def submit_answer(
    request: SubmitAnswerRequest,
    session_id: str = Path(..., description="Quiz session ID"),
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_session_registry)
) -> QuizState:
    try:
        return registry.submit_answer(user_id, session_id, request.answer)

    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except InvalidTransitionError as e:
        logger.warning(f"⚠️ Rejected answer for {session_id}: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/sessions/{session_id}/advance", response_model=QuizState, summary="Go to the next question")
async def advance(
    session_id: str = Path(..., description="Quiz session ID"),
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_session_registry)
) -> QuizState:
    try:
        return registry.advance(user_id, session_id)

    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except InvalidTransitionError as e:
        logger.warning(f"⚠️ Rejected advance for {session_id}: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post(
    "/sessions/{session_id}/finalize",
    response_model=FinalizeResult,
    summary="Finish the quiz and record the attempt",
    description="""
    Records the attempt once. Calling again returns the same result
    without recording a second attempt. If the attempt could not be
    saved, `persisted` is false and `warning` explains why.
    """
)
async def finalize(
    session_id: str = Path(..., description="Quiz session ID"),
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_session_registry)
) -> FinalizeResult:
    try:
        return await registry.finalize(user_id, session_id)

    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except InvalidTransitionError as e:
        logger.warning(f"⚠️ Rejected finalize for {session_id}: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/sessions/{session_id}/reset", response_model=QuizState, summary="Restart the quiz")
async def reset(
    request: Optional[ResetSessionRequest] = None,
    session_id: str = Path(..., description="Quiz session ID"),
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_session_registry)
) -> QuizState:
    config = request.config if request else None
    try:
        return await registry.reset(user_id, session_id, config)

    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except EmptyBatchError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except FetchFailure as e:
        logger.error(f"❌ Failed to reset session {session_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.delete("/sessions/{session_id}", response_model=QuizState, summary="Abandon the quiz")
async def abandon(
    session_id: str = Path(..., description="Quiz session ID"),
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_session_registry)
) -> QuizState:
    try:
        return registry.abandon(user_id, session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
