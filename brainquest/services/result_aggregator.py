"""
Result Aggregator
Per-user statistics and leaderboard rankings folded from stored attempts
"""
import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from brainquest.db.attempt_store import AttemptGateway
from brainquest.models.attempt import (
    AttemptRecord,
    LeaderboardEntry,
    RankingKey,
    UserHistory,
    UserRankResponse,
    UserStatistics,
)
from brainquest.services.errors import PersistenceFailure

logger = logging.getLogger(__name__)


class PercentageFormula(str, Enum):
    """
    How an average percentage is derived from several attempts

    RATIO_OF_SUMS weights every question equally: sum(score) / sum(total).
    MEAN_OF_PERCENTAGES weights every attempt equally. The two only
    differ when attempts have different question counts.
    """
    RATIO_OF_SUMS = "ratio_of_sums"
    MEAN_OF_PERCENTAGES = "mean_of_percentages"


DEFAULT_FORMULA = PercentageFormula.RATIO_OF_SUMS

# (minimum percentage, message), checked top-down
PERFORMANCE_TIERS = [
    (90, "Outstanding! You're a quiz master!"),
    (80, "Excellent work! Keep it up!"),
    (70, "Great job! You're doing well!"),
    (60, "Good effort! Practice makes perfect!"),
]
FALLBACK_MESSAGE = "Don't give up! Every expert was once a beginner!"


def performance_message(percentage: float) -> str:
    for threshold, message in PERFORMANCE_TIERS:
        if percentage >= threshold:
            return message
    return FALLBACK_MESSAGE


def average_percentage(
    records: Sequence[AttemptRecord],
    formula: PercentageFormula = DEFAULT_FORMULA
) -> float:
    """Average percentage over records, 0.0 when there are none"""
    if not records:
        return 0.0
    if formula is PercentageFormula.MEAN_OF_PERCENTAGES:
        return sum(r.percentage for r in records) / len(records)
    return sum(r.score for r in records) * 100 / sum(r.total for r in records)


def compute_user_statistics(
    records: Sequence[AttemptRecord],
    formula: PercentageFormula = DEFAULT_FORMULA
) -> UserStatistics:
    """
    Fold one user's attempts into statistics

    Order of records does not matter. An empty history gives all zeros.
    """
    records = list(records)
    return UserStatistics(
        total_attempts=len(records),
        total_score=sum(r.score for r in records),
        average_percentage=average_percentage(records, formula),
        best_score=max((r.score for r in records), default=0)
    )


def _ranking_value(stats: UserStatistics, key: RankingKey) -> float:
    if key is RankingKey.AVERAGE:
        return stats.average_percentage
    if key is RankingKey.BEST:
        return stats.best_score
    return stats.total_score


def build_leaderboard(
    histories: Iterable[UserHistory],
    key: RankingKey = RankingKey.TOTAL,
    formula: PercentageFormula = DEFAULT_FORMULA
) -> List[LeaderboardEntry]:
    """
    Rank every user, including users without attempts

    Sorted by the selected key descending; ties go to the smaller
    user id so the order is reproducible. Ranks are 1-based.
    """
    rows = []
    for history in histories:
        stats = compute_user_statistics(history.attempts, formula)
        rows.append((history.profile, stats))

    rows.sort(key=lambda row: (-_ranking_value(row[1], key), row[0].user_id))

    return [
        LeaderboardEntry(
            rank=position,
            user_id=profile.user_id,
            name=profile.name,
            email=profile.email,
            total_attempts=stats.total_attempts,
            total_score=stats.total_score,
            average_percentage=stats.average_percentage,
            best_score=stats.best_score
        )
        for position, (profile, stats) in enumerate(rows, start=1)
    ]


def rank_of_user(
    histories: Iterable[UserHistory],
    user_id: str,
    key: RankingKey = RankingKey.TOTAL,
    formula: PercentageFormula = DEFAULT_FORMULA
) -> Optional[int]:
    """Rank of one user under the same ordering as build_leaderboard"""
    for entry in build_leaderboard(histories, key, formula):
        if entry.user_id == user_id:
            return entry.rank
    return None


class ResultAggregator:
    """Loads attempt histories from the gateway and aggregates them"""

    def __init__(
        self,
        gateway: AttemptGateway,
        formula: PercentageFormula = DEFAULT_FORMULA,
        recent_limit: int = 10
    ):
        self.gateway = gateway
        self.formula = formula
        self.recent_limit = recent_limit

    async def _attempts_or_empty(self, user_id: str) -> List[AttemptRecord]:
        try:
            return await self.gateway.get_attempts(user_id)
        except PersistenceFailure as e:
            logger.warning(f"⚠️ Attempts unavailable for user {user_id}, counting as zero: {e}")
            return []

    async def user_statistics(self, user_id: str) -> UserStatistics:
        attempts = await self._attempts_or_empty(user_id)
        stats = compute_user_statistics(attempts, self.formula)
        logger.info(
            f"📊 Statistics for {user_id}: attempts={stats.total_attempts}, "
            f"average={stats.average_percentage:.1f}%, best={stats.best_score}"
        )
        return stats

    async def recent_attempts(self, user_id: str, limit: Optional[int] = None) -> List[AttemptRecord]:
        """Newest attempts first; raises PersistenceFailure if the store is down"""
        return await self.gateway.get_attempts(user_id, limit=limit or self.recent_limit)

    async def load_histories(self) -> List[UserHistory]:
        """
        Read every user's history

        A user whose attempts cannot be read is kept with no attempts.

        Raises:
            PersistenceFailure: If the user list itself cannot be read
        """
        profiles = await self.gateway.list_profiles()
        histories = []
        for profile in profiles:
            attempts = await self._attempts_or_empty(profile.user_id)
            histories.append(UserHistory(profile=profile, attempts=attempts))
        return histories

    async def leaderboard(self, key: RankingKey = RankingKey.TOTAL) -> List[LeaderboardEntry]:
        entries = build_leaderboard(await self.load_histories(), key, self.formula)
        logger.info(f"🏆 Built {key.value} leaderboard with {len(entries)} users")
        return entries

    async def user_rank(self, user_id: str, key: RankingKey = RankingKey.TOTAL) -> UserRankResponse:
        histories = await self.load_histories()
        return UserRankResponse(
            user_id=user_id,
            key=key,
            rank=rank_of_user(histories, user_id, key, self.formula),
            total_users=len(histories)
        )
