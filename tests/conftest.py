import asyncio
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from brainquest.models.attempt import AttemptRecord, UserProfile
from brainquest.models.question import Question
from brainquest.services.errors import PersistenceFailure
from brainquest.services.quiz_session import QuizSession

BASE_TIME = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


def make_question(correct="Paris", category="Geography", incorrect=None, prompt="Capital of France?"):
    return Question(
        question=prompt,
        correct_answer=correct,
        incorrect_answers=incorrect if incorrect is not None else ["Lyon", "Nice", "Lille"],
        category=category,
        difficulty="easy",
        type="multiple"
    )


def make_batch(size, category="Geography"):
    return [
        make_question(correct=f"right-{i}", incorrect=[f"wrong-{i}-a", f"wrong-{i}-b"],
                      category=category, prompt=f"Question {i}?")
        for i in range(size)
    ]


def make_attempt(user_id, score, total=10, minutes=0, category="Geography"):
    return AttemptRecord(
        user_id=user_id,
        score=score,
        total=total,
        category=category,
        timestamp=BASE_TIME + timedelta(minutes=minutes)
    )


class FakeQuestionSource:
    """Returns queued batches in order; gates[i] holds back call i"""

    def __init__(self, batches: Optional[List[List[Question]]] = None):
        self.batches = list(batches or [])
        self.error: Optional[Exception] = None
        self.gates: Dict[int, asyncio.Event] = {}
        self.calls = []

    async def fetch_questions(self, config):
        call = len(self.calls)
        self.calls.append(config)
        gate = self.gates.get(call)
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        if not self.batches:
            return []
        return list(self.batches[min(call, len(self.batches) - 1)])


class FakeGateway:
    """In-memory attempt store"""

    def __init__(self):
        self.attempts: Dict[str, List[AttemptRecord]] = defaultdict(list)
        self.profiles: Dict[str, UserProfile] = {}
        self.fail_save = False
        self.fail_list = False
        self.failing_users = set()
        self.save_gate: Optional[asyncio.Event] = None
        self.save_calls = 0

    def add_user(self, user_id, name=None, scores=()):
        self.profiles[user_id] = UserProfile(user_id=user_id, name=name or user_id.title())
        for minutes, score in enumerate(scores):
            if isinstance(score, tuple):
                score, total = score
            else:
                total = 10
            self.attempts[user_id].append(make_attempt(user_id, score, total, minutes=minutes))

    async def save_attempt(self, record):
        self.save_calls += 1
        if self.save_gate is not None:
            await self.save_gate.wait()
        if self.fail_save:
            raise PersistenceFailure("database unreachable")
        self.attempts[record.user_id].append(record)

    async def get_attempts(self, user_id, limit=None):
        if user_id in self.failing_users:
            raise PersistenceFailure(f"cannot read {user_id}")
        records = sorted(self.attempts.get(user_id, []), key=lambda r: r.timestamp, reverse=True)
        return records[:limit] if limit else records

    async def get_profile(self, user_id):
        return self.profiles.get(user_id)

    async def upsert_profile(self, profile):
        existing = self.profiles.get(profile.user_id)
        created_at = existing.created_at if existing else (profile.created_at or BASE_TIME)
        stored = UserProfile(user_id=profile.user_id, name=profile.name, email=profile.email, created_at=created_at)
        self.profiles[profile.user_id] = stored
        return stored

    async def list_profiles(self):
        if self.fail_list:
            raise PersistenceFailure("users collection unavailable")
        return [self.profiles[uid] for uid in sorted(self.profiles)]


@pytest.fixture
def question_source():
    return FakeQuestionSource([make_batch(3)])


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def session(question_source, gateway):
    import random

    return QuizSession(
        question_source=question_source,
        gateway=gateway,
        session_id="session_test",
        rng=random.Random(7),
        clock=lambda: BASE_TIME
    )
