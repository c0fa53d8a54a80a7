"""
Shared API Dependencies
"""
from fastapi import Depends, Header, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from brainquest.core.config import settings
from brainquest.db.attempt_store import AttemptGateway, MongoAttemptStore
from brainquest.services.result_aggregator import PercentageFormula, ResultAggregator


async def get_db() -> AsyncIOMotorDatabase:
    """Dependency to get MongoDB database instance"""
    from brainquest.db.mongodb import get_database
    return get_database()


def get_attempt_gateway(
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> AttemptGateway:
    """Dependency to get the attempt store"""
    return MongoAttemptStore(
        db,
        users_collection=settings.users_collection,
        scores_collection=settings.scores_collection
    )


def get_result_aggregator(
    gateway: AttemptGateway = Depends(get_attempt_gateway)
) -> ResultAggregator:
    """Dependency to get ResultAggregator instance"""
    return ResultAggregator(
        gateway,
        formula=PercentageFormula(settings.percentage_formula),
        recent_limit=settings.recent_attempts_limit
    )


def get_current_user_id(
    x_user_id: str = Header(default="", alias="X-User-Id")
) -> str:
    """Caller identity; authentication happens upstream"""
    user_id = x_user_id.strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required"
        )
    return user_id
