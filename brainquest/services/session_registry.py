"""
Session Registry
Keeps live quiz sessions for the HTTP layer, one owner per session
"""
import logging
from typing import Dict, Optional, Tuple

from brainquest.db.attempt_store import AttemptGateway
from brainquest.models.quiz_config import QuizConfig
from brainquest.models.quiz_session import FinalizeResult, QuizState, SessionStatus
from brainquest.services.errors import (
    EmptyBatchError,
    FetchFailure,
    SessionNotFoundError,
)
from brainquest.services.question_source import QuestionSource
from brainquest.services.quiz_session import DEFAULT_CATEGORY, QuizSession

logger = logging.getLogger(__name__)

EMPTY_BATCH_MESSAGE = (
    "No questions available for this configuration. "
    "Try another category or difficulty, or ask for fewer questions."
)


class SessionRegistry:
    """
    In-memory map of session id -> (owner user id, QuizSession)

    Each user has at most one live session: starting a new one
    abandons and drops the previous one, finalized or not.
    Sessions that fail to load or come back empty are reported through
    FetchFailure / EmptyBatchError.
    """

    def __init__(
        self,
        question_source: QuestionSource,
        gateway: AttemptGateway,
        default_category: str = DEFAULT_CATEGORY
    ):
        self.question_source = question_source
        self.gateway = gateway
        self.default_category = default_category
        self._sessions: Dict[str, Tuple[str, QuizSession]] = {}
        self._user_sessions: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def start_session(self, user_id: str, config: QuizConfig) -> QuizState:
        """
        Create a session for the user and load its first batch

        Raises:
            FetchFailure: If the questions could not be fetched
            EmptyBatchError: If the configuration yields no questions
        """
        session = QuizSession(
            question_source=self.question_source,
            gateway=self.gateway,
            default_category=self.default_category
        )
        state = await session.start(config)
        self._check_loaded(state)

        self._drop_user_session(user_id)
        self._sessions[session.session_id] = (user_id, session)
        self._user_sessions[user_id] = session.session_id
        logger.info(f"✅ Registered session {session.session_id} for user {user_id}")
        return state

    def get(self, user_id: str, session_id: str) -> QuizSession:
        entry = self._sessions.get(session_id)
        if entry is None or entry[0] != user_id:
            logger.warning(f"⚠️ Session not found: {session_id} (user {user_id})")
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return entry[1]

    def submit_answer(self, user_id: str, session_id: str, answer: str) -> QuizState:
        return self.get(user_id, session_id).submit_answer(answer)

    def advance(self, user_id: str, session_id: str) -> QuizState:
        return self.get(user_id, session_id).advance()

    async def finalize(self, user_id: str, session_id: str) -> FinalizeResult:
        return await self.get(user_id, session_id).finalize(user_id)

    async def reset(
        self,
        user_id: str,
        session_id: str,
        config: Optional[QuizConfig] = None
    ) -> QuizState:
        """Restart an existing session; it stays registered even if loading fails"""
        state = await self.get(user_id, session_id).reset(config)
        self._check_loaded(state)
        return state

    def abandon(self, user_id: str, session_id: str) -> QuizState:
        session = self.get(user_id, session_id)
        state = session.abandon()
        del self._sessions[session_id]
        self._user_sessions.pop(user_id, None)
        return state

    def _drop_user_session(self, user_id: str):
        previous_id = self._user_sessions.pop(user_id, None)
        if previous_id is None:
            return
        _, previous = self._sessions.pop(previous_id)
        previous.abandon()
        logger.info(f"🗑️ Replaced session {previous_id} for user {user_id}")

    @staticmethod
    def _check_loaded(state: QuizState):
        if state.status is SessionStatus.ERROR:
            raise FetchFailure(state.error or "Failed to load questions")
        if state.is_empty:
            raise EmptyBatchError(EMPTY_BATCH_MESSAGE)


_session_registry: Optional[SessionRegistry] = None


def get_session_registry() -> SessionRegistry:
    """Get or create the global SessionRegistry instance"""
    global _session_registry

    if _session_registry is None:
        from brainquest.core.config import settings
        from brainquest.db.attempt_store import MongoAttemptStore
        from brainquest.db.mongodb import get_database
        from brainquest.services.question_source import get_trivia_client

        _session_registry = SessionRegistry(
            question_source=get_trivia_client(),
            gateway=MongoAttemptStore(
                get_database(),
                users_collection=settings.users_collection,
                scores_collection=settings.scores_collection
            ),
            default_category=settings.default_category
        )

    return _session_registry


def clear_session_registry():
    global _session_registry
    _session_registry = None
