"""
Attempt and Statistics Models
Finalized quiz attempts plus the statistics derived from them
FILE: brainquest/models/attempt.py
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class AttemptRecord(BaseModel):
    """
    One completed quiz, reduced to its score

    Stored in the scores collection as
    {userId, score, totalQuestions, category, timestamp}.
    Never mutated after creation.
    """
    user_id: str = Field(..., alias="userId", min_length=1, description="Owning user")
    score: int = Field(..., ge=0, description="Number of correct answers")
    total: int = Field(..., alias="totalQuestions", ge=1, description="Number of questions")
    category: str = Field(..., description="Category of the quiz")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the quiz was completed (UTC)"
    )

    @field_validator('timestamp')
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """MongoDB hands back naive datetimes that are already UTC"""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode='after')
    def check_score_within_total(self):
        if self.score > self.total:
            raise ValueError(f"score {self.score} exceeds total {self.total}")
        return self

    @property
    def percentage(self) -> float:
        return self.score * 100 / self.total

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "userId": "user_123",
                "score": 7,
                "totalQuestions": 10,
                "category": "Geography",
                "timestamp": "2025-01-15T10:30:00Z"
            }
        }


class UserProfile(BaseModel):
    """Profile fields stored in the users collection"""
    user_id: str = Field(..., alias="uid", min_length=1)
    name: str = Field(default="Anonymous")
    email: str = Field(default="")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    class Config:
        populate_by_name = True


class UserStatistics(BaseModel):
    """Statistics derived from one user's attempts at read time"""
    total_attempts: int = Field(default=0, alias="totalAttempts")
    total_score: int = Field(default=0, alias="totalScore")
    average_percentage: float = Field(default=0.0, alias="averagePercentage")
    best_score: int = Field(default=0, alias="bestScore")

    class Config:
        frozen = True
        populate_by_name = True


class RankingKey(str, Enum):
    TOTAL = "total"
    AVERAGE = "average"
    BEST = "best"


class LeaderboardEntry(BaseModel):
    """One row of the leaderboard"""
    rank: int = Field(..., ge=1)
    user_id: str = Field(..., alias="uid")
    name: str = Field(default="Anonymous")
    email: str = Field(default="")
    total_attempts: int = Field(default=0, alias="totalAttempts")
    total_score: int = Field(default=0, alias="totalScore")
    average_percentage: float = Field(default=0.0, alias="averagePercentage")
    best_score: int = Field(default=0, alias="bestScore")

    class Config:
        frozen = True
        populate_by_name = True


class UserRankResponse(BaseModel):
    user_id: str = Field(..., alias="uid")
    key: RankingKey
    rank: Optional[int] = Field(default=None, description="1-based rank, null if the user is unknown")
    total_users: int = Field(..., alias="totalUsers")

    class Config:
        populate_by_name = True


class UserHistory(BaseModel):
    """A user's profile together with every attempt read for them"""
    profile: UserProfile
    attempts: List[AttemptRecord] = Field(default_factory=list)
