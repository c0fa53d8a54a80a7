"""
Profile, Statistics and Leaderboard API Routes
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from brainquest.api.dependencies import (
    get_attempt_gateway,
    get_current_user_id,
    get_result_aggregator,
)
from brainquest.db.attempt_store import AttemptGateway
from brainquest.models.attempt import (
    AttemptRecord,
    LeaderboardEntry,
    RankingKey,
    UserProfile,
    UserRankResponse,
    UserStatistics,
)
from brainquest.models.quiz_session import ProfileUpdateRequest
from brainquest.services.errors import PersistenceFailure
from brainquest.services.result_aggregator import ResultAggregator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# ==================== PROFILES ====================

@router.put("/users/me/profile", response_model=UserProfile, summary="Create or update my profile")
async def upsert_my_profile(
    request: ProfileUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    gateway: AttemptGateway = Depends(get_attempt_gateway)
) -> UserProfile:
    try:
        return await gateway.upsert_profile(
            UserProfile(user_id=user_id, name=request.name.strip(), email=request.email.strip())
        )
    except PersistenceFailure as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.get("/users/{user_id}/profile", response_model=UserProfile, summary="Get a user's profile")
async def get_profile(
    user_id: str = Path(..., description="User ID"),
    gateway: AttemptGateway = Depends(get_attempt_gateway)
) -> UserProfile:
    try:
        profile = await gateway.get_profile(user_id)
    except PersistenceFailure as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User not found: {user_id}")
    return profile


# ==================== STATISTICS ====================

@router.get(
    "/users/{user_id}/statistics",
    response_model=UserStatistics,
    summary="Get a user's quiz statistics",
    description="""
    Total attempts, total score, average percentage and best score,
    computed from every stored attempt. A user without attempts gets
    all zeros.
    """
)
async def get_user_statistics(
    user_id: str = Path(..., description="User ID"),
    aggregator: ResultAggregator = Depends(get_result_aggregator)
) -> UserStatistics:
    return await aggregator.user_statistics(user_id)


@router.get(
    "/users/{user_id}/attempts",
    response_model=List[AttemptRecord],
    summary="Get a user's recent attempts (newest first)"
)
async def get_recent_attempts(
    user_id: str = Path(..., description="User ID"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Maximum attempts to return"),
    aggregator: ResultAggregator = Depends(get_result_aggregator)
) -> List[AttemptRecord]:
    try:
        return await aggregator.recent_attempts(user_id, limit)
    except PersistenceFailure as e:
        logger.error(f"❌ Failed to load attempts for {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


# ==================== LEADERBOARD ====================

@router.get(
    "/leaderboard",
    response_model=List[LeaderboardEntry],
    summary="Get the leaderboard",
    description="""
    Every registered user ranked by the selected key (descending):
    - **total**: sum of scores
    - **average**: average percentage
    - **best**: best single score

    Ties are ordered by user id. Users without attempts are included.
    """
)
async def get_leaderboard(
    key: RankingKey = Query(RankingKey.TOTAL, description="Ranking key"),
    aggregator: ResultAggregator = Depends(get_result_aggregator)
) -> List[LeaderboardEntry]:
    try:
        return await aggregator.leaderboard(key)
    except PersistenceFailure as e:
        logger.error(f"❌ Failed to build leaderboard: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.get(
    "/leaderboard/rank/{user_id}",
    response_model=UserRankResponse,
    summary="Get one user's rank"
)
async def get_user_rank(
    user_id: str = Path(..., description="User ID"),
    key: RankingKey = Query(RankingKey.TOTAL, description="Ranking key"),
    aggregator: ResultAggregator = Depends(get_result_aggregator)
) -> UserRankResponse:
    try:
        return await aggregator.user_rank(user_id, key)
    except PersistenceFailure as e:
        logger.error(f"❌ Failed to rank user {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
