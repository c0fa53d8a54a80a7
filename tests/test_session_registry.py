import pytest

from brainquest.models.quiz_config import QuizConfig
from brainquest.models.quiz_session import SessionStatus
from brainquest.services.errors import EmptyBatchError, FetchFailure, SessionNotFoundError
from brainquest.services.session_registry import SessionRegistry


@pytest.fixture
def registry(question_source, gateway):
    return SessionRegistry(question_source=question_source, gateway=gateway)


async def play_to_the_end(registry, user_id):
    state = await registry.start_session(user_id, QuizConfig(amount=3))
    for i in range(state.total_questions):
        registry.submit_answer(user_id, state.session_id, f"right-{i}")
        registry.advance(user_id, state.session_id)
    await registry.finalize(user_id, state.session_id)
    return state.session_id


async def test_finished_sessions_do_not_accumulate(registry, gateway):
    for _ in range(5):
        await play_to_the_end(registry, "alice")

    assert len(registry) == 1
    assert len(gateway.attempts["alice"]) == 5


async def test_new_session_replaces_the_previous_one(registry):
    first = await registry.start_session("alice", QuizConfig())
    old_session = registry.get("alice", first.session_id)

    second = await registry.start_session("alice", QuizConfig())

    assert len(registry) == 1
    assert old_session.snapshot().status is SessionStatus.IDLE
    with pytest.raises(SessionNotFoundError):
        registry.get("alice", first.session_id)
    assert registry.get("alice", second.session_id)


async def test_sessions_of_other_users_are_kept(registry):
    await registry.start_session("alice", QuizConfig())
    await registry.start_session("bob", QuizConfig())

    assert len(registry) == 2


async def test_failed_start_keeps_the_live_session(registry, question_source):
    live = await registry.start_session("alice", QuizConfig())

    question_source.error = FetchFailure("Open Trivia DB unreachable")
    with pytest.raises(FetchFailure):
        await registry.start_session("alice", QuizConfig())

    question_source.error = None
    question_source.batches = [[]]
    with pytest.raises(EmptyBatchError):
        await registry.start_session("alice", QuizConfig())

    assert len(registry) == 1
    assert registry.get("alice", live.session_id).snapshot().status is SessionStatus.READY


async def test_abandon_removes_the_session(registry):
    state = await registry.start_session("alice", QuizConfig())

    registry.abandon("alice", state.session_id)

    assert len(registry) == 0
    await registry.start_session("alice", QuizConfig())
    assert len(registry) == 1
