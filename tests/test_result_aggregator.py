import pytest

from brainquest.models.attempt import RankingKey, UserHistory, UserProfile
from brainquest.services.errors import PersistenceFailure
from brainquest.services.result_aggregator import (
    PercentageFormula,
    ResultAggregator,
    build_leaderboard,
    compute_user_statistics,
    performance_message,
    rank_of_user,
)

from conftest import make_attempt


def history(user_id, *scores):
    attempts = []
    for minutes, score in enumerate(scores):
        score, total = score if isinstance(score, tuple) else (score, 10)
        attempts.append(make_attempt(user_id, score, total, minutes=minutes))
    return UserHistory(profile=UserProfile(user_id=user_id, name=user_id.upper()), attempts=attempts)


def test_statistics_for_no_attempts_are_zero():
    stats = compute_user_statistics([])

    assert stats.total_attempts == 0
    assert stats.total_score == 0
    assert stats.average_percentage == 0.0
    assert stats.best_score == 0


def test_statistics_for_single_attempt():
    stats = compute_user_statistics([make_attempt("u1", 7, 10)])

    assert stats.total_attempts == 1
    assert stats.average_percentage == pytest.approx(70.0)
    assert stats.best_score == 7


def test_statistics_ignore_record_order():
    records = [make_attempt("u1", 3, 5), make_attempt("u1", 8, 10, minutes=1), make_attempt("u1", 4, 20, minutes=2)]

    assert compute_user_statistics(records) == compute_user_statistics(list(reversed(records)))


def test_percentage_formulas_differ_for_uneven_totals():
    records = [make_attempt("u1", 1, 1), make_attempt("u1", 0, 9, minutes=1)]

    # 1 correct out of 10 questions
    assert compute_user_statistics(records, PercentageFormula.RATIO_OF_SUMS).average_percentage == pytest.approx(10.0)
    # mean of 100% and 0%
    assert compute_user_statistics(records, PercentageFormula.MEAN_OF_PERCENTAGES).average_percentage == pytest.approx(50.0)


def test_leaderboard_by_total_score():
    entries = build_leaderboard([history("a", 30), history("b", 50), history("c", (10, 50))])

    assert [e.user_id for e in entries] == ["b", "a", "c"]
    assert [e.rank for e in entries] == [1, 2, 3]


def test_leaderboard_accumulates_totals():
    entries = build_leaderboard([history("a", 5, 6, 7), history("b", 10)])

    first = entries[0]
    assert first.user_id == "a"
    assert first.total_score == 18
    assert first.total_attempts == 3
    assert first.best_score == 7
    assert first.average_percentage == pytest.approx(60.0)
    assert first.name == "A"


def test_leaderboard_by_average_and_best():
    histories = [history("a", (2, 2)), history("b", 9, 1), history("c", (8, 20))]

    by_average = build_leaderboard(histories, RankingKey.AVERAGE)
    assert [e.user_id for e in by_average] == ["a", "b", "c"]

    by_best = build_leaderboard(histories, RankingKey.BEST)
    assert [e.user_id for e in by_best] == ["b", "c", "a"]


def test_leaderboard_includes_users_without_attempts():
    entries = build_leaderboard([history("idle"), history("active", 4)])

    assert [e.user_id for e in entries] == ["active", "idle"]
    idle = entries[1]
    assert idle.total_attempts == 0
    assert idle.total_score == 0
    assert idle.average_percentage == 0.0
    assert idle.best_score == 0


def test_leaderboard_ties_are_ordered_by_user_id():
    entries = build_leaderboard([history("zed", 5), history("amy", 5), history("kim", 5)])

    assert [e.user_id for e in entries] == ["amy", "kim", "zed"]
    assert [e.rank for e in entries] == [1, 2, 3]


def test_rank_of_user_matches_leaderboard():
    histories = [history("zed", 5), history("amy", 5), history("bob", 9), history("new")]

    for key in RankingKey:
        board = build_leaderboard(histories, key)
        for entry in board:
            assert rank_of_user(histories, entry.user_id, key) == entry.rank

    assert rank_of_user(histories, "ghost") is None


@pytest.mark.parametrize("percentage, expected", [
    (100, "Outstanding! You're a quiz master!"),
    (90, "Outstanding! You're a quiz master!"),
    (85, "Excellent work! Keep it up!"),
    (70, "Great job! You're doing well!"),
    (60, "Good effort! Practice makes perfect!"),
    (59.9, "Don't give up! Every expert was once a beginner!"),
])
def test_performance_message(percentage, expected):
    assert performance_message(percentage) == expected


async def test_aggregator_isolates_failing_users(gateway):
    gateway.add_user("alice", scores=[8, 9])
    gateway.add_user("bob", scores=[10])
    gateway.add_user("carol", scores=[3])
    gateway.failing_users.add("bob")

    entries = await ResultAggregator(gateway).leaderboard(RankingKey.TOTAL)

    assert [e.user_id for e in entries] == ["alice", "carol", "bob"]
    assert entries[2].total_attempts == 0


async def test_aggregator_user_statistics_default_to_zero_on_failure(gateway):
    gateway.add_user("bob", scores=[10])
    gateway.failing_users.add("bob")

    stats = await ResultAggregator(gateway).user_statistics("bob")

    assert stats.total_attempts == 0
    assert stats.best_score == 0


async def test_aggregator_raises_when_users_cannot_be_listed(gateway):
    gateway.fail_list = True

    with pytest.raises(PersistenceFailure):
        await ResultAggregator(gateway).leaderboard()


async def test_aggregator_user_rank(gateway):
    gateway.add_user("alice", scores=[8])
    gateway.add_user("bob", scores=[10])

    rank = await ResultAggregator(gateway).user_rank("alice", RankingKey.BEST)

    assert rank.rank == 2
    assert rank.total_users == 2


async def test_recent_attempts_newest_first(gateway):
    gateway.add_user("alice", scores=[1, 2, 3, 4])

    recent = await ResultAggregator(gateway, recent_limit=3).recent_attempts("alice")

    assert [r.score for r in recent] == [4, 3, 2]
