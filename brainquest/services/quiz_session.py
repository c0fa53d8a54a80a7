"""
Quiz Session State Machine
In-memory progress through one batch of questions: current question,
recorded answers, live score and the one-time hand-off of the finished
attempt to the attempt store.
"""
import asyncio
import logging
import random
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from brainquest.db.attempt_store import AttemptGateway
from brainquest.models.attempt import AttemptRecord
from brainquest.models.question import Question
from brainquest.models.quiz_config import QuizConfig
from brainquest.models.quiz_session import (
    FinalizeResult,
    PersistStatus,
    QuestionView,
    QuizState,
    SessionStatus,
)
from brainquest.services.errors import (
    FetchFailure,
    InvalidTransitionError,
    PersistenceFailure,
)
from brainquest.services.question_source import QuestionSource
from brainquest.services.result_aggregator import performance_message

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General Knowledge"

StateObserver = Callable[[QuizState], None]


def compute_score(questions: Sequence[Question], answers: Dict[int, str]) -> int:
    """Count answered indices whose answer equals the correct answer text exactly"""
    return sum(
        1 for index, answer in answers.items()
        if 0 <= index < len(questions) and answer == questions[index].correct_answer
    )


class QuizSession:
    """
    State machine for a single quiz

    idle -> loading -> ready/in_progress -> completed, with error
    reachable from loading. Transitions other than start() and
    finalize() are synchronous and run under a lock, so snapshot()
    never sees a half-applied update. Every start/reset/abandon bumps
    the generation; a fetch that returns for an older generation is
    dropped.
    """

    def __init__(
        self,
        question_source: QuestionSource,
        gateway: AttemptGateway,
        session_id: Optional[str] = None,
        default_category: str = DEFAULT_CATEGORY,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.session_id = session_id or f"session_{uuid.uuid4().hex[:12]}"
        self.question_source = question_source
        self.gateway = gateway
        self.default_category = default_category
        self._rng = rng or random.Random()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._lock = threading.Lock()
        self._observers: List[StateObserver] = []
        self._generation = 0
        self._config: Optional[QuizConfig] = None
        self._clear()

    def _clear(self):
        self._phase = SessionStatus.IDLE
        self._questions: List[Question] = []
        self._options: List[List[str]] = []
        self._index = 0
        self._answers: Dict[int, str] = {}
        self._score = 0
        self._error: Optional[str] = None
        self._persist_status = PersistStatus.NONE
        self._finalize_future: Optional[asyncio.Future] = None
        self._finalize_result: Optional[FinalizeResult] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def start(self, config: QuizConfig) -> QuizState:
        """
        Fetch a new batch and begin the quiz

        A fetch failure leaves the session in the error state; calling
        start() again retries. An empty batch is accepted and shows up
        as is_empty on the returned state.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._clear()
            self._config = config
            self._phase = SessionStatus.LOADING
        self._notify()

        logger.info(f"🎬 Starting session {self.session_id} (generation {generation})")

        try:
            questions = await self.question_source.fetch_questions(config)
            error = None
        except FetchFailure as e:
            questions, error = [], str(e)
        except Exception as e:
            logger.error(f"❌ Unexpected error fetching questions for {self.session_id}: {e}")
            questions, error = [], f"Failed to load questions: {e}"

        with self._lock:
            if generation != self._generation:
                logger.debug(
                    f"Discarding stale fetch for {self.session_id}: "
                    f"generation {generation} superseded by {self._generation}"
                )
                return self._snapshot_locked()

            if error is not None:
                self._phase = SessionStatus.ERROR
                self._error = error
                logger.error(f"❌ Session {self.session_id} failed to load: {error}")
            else:
                self._questions = list(questions)
                self._options = [q.shuffled_options(self._rng) for q in self._questions]
                self._phase = SessionStatus.READY
                if self._questions:
                    logger.info(f"✅ Session {self.session_id} ready with {len(self._questions)} questions")
                else:
                    logger.warning(f"⚠️ Session {self.session_id} received an empty batch")
            state = self._snapshot_locked()

        self._notify(state)
        return state

    async def reset(self, config: Optional[QuizConfig] = None) -> QuizState:
        """Discard the current quiz and start again with the given or previous config"""
        return await self.start(config or self._config or QuizConfig())

    def abandon(self) -> QuizState:
        """Drop all in-memory state; an in-flight fetch becomes stale"""
        with self._lock:
            self._generation += 1
            self._clear()
            state = self._snapshot_locked()
        logger.info(f"🗑️ Abandoned session {self.session_id}")
        self._notify(state)
        return state

    # ------------------------------------------------------------------
    # Answering
    # ------------------------------------------------------------------

    def submit_answer(self, answer: str) -> QuizState:
        """
        Record (or replace) the answer for the current question

        Raises:
            InvalidTransitionError: If no question is active or the
                session was already finalized
        """
        with self._lock:
            self._require_active()
            if self._finalize_future is not None:
                raise InvalidTransitionError("Quiz already finalized")
            self._answers[self._index] = answer
            self._score = compute_score(self._questions, self._answers)
            state = self._snapshot_locked()
        self._notify(state)
        return state

    def advance(self) -> QuizState:
        """
        Move to the next question

        No-op on the last question. Raises InvalidTransitionError if the
        current question has no answer yet.
        """
        with self._lock:
            self._require_active()
            if self._index >= len(self._questions) - 1:
                return self._snapshot_locked()
            if self._index not in self._answers:
                raise InvalidTransitionError(
                    f"Question {self._index + 1} must be answered before advancing"
                )
            self._index += 1
            state = self._snapshot_locked()
        self._notify(state)
        return state

    def is_complete(self) -> bool:
        with self._lock:
            return self._is_complete_locked()

    @property
    def score(self) -> int:
        with self._lock:
            return self._score

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def finalize(self, user_id: str) -> FinalizeResult:
        """
        Turn the completed quiz into an AttemptRecord and persist it

        Only the first call writes to the gateway; later (or concurrent)
        calls get the same result. A failed write is reported in the
        result instead of raising, and the local outcome stays final.

        Raises:
            InvalidTransitionError: If the quiz is not complete
        """
        with self._lock:
            if self._finalize_result is not None:
                return self._finalize_result
            if self._finalize_future is None:
                if not self._is_complete_locked():
                    raise InvalidTransitionError("Quiz is not complete")
                record = AttemptRecord(
                    user_id=user_id,
                    score=self._score,
                    total=len(self._questions),
                    category=self._questions[0].category if self._questions else self.default_category,
                    timestamp=self._clock()
                )
                self._persist_status = PersistStatus.PENDING
                self._finalize_future = asyncio.ensure_future(
                    self._persist(record, self._generation)
                )
                first_call = True
            else:
                first_call = False
            future = self._finalize_future

        if first_call:
            logger.info(f"🏁 Finalizing session {self.session_id} for user {user_id}")
            self._notify()
        else:
            logger.info(f"Session {self.session_id} already finalized, not recording again")

        return await asyncio.shield(future)

    async def _persist(self, record: AttemptRecord, generation: int) -> FinalizeResult:
        warning = None
        try:
            await self.gateway.save_attempt(record)
            persisted = True
        except PersistenceFailure as e:
            persisted, warning = False, f"Result could not be saved: {e}"
        except Exception as e:
            logger.error(f"❌ Unexpected error saving attempt for {self.session_id}: {e}")
            persisted, warning = False, "Result could not be saved"

        if warning:
            logger.warning(f"⚠️ {warning} (session {self.session_id})")

        with self._lock:
            if generation == self._generation:
                self._persist_status = PersistStatus.SAVED if persisted else PersistStatus.FAILED
            state = self._snapshot_locked()
        self._notify(state)

        result = FinalizeResult(
            record=record,
            persisted=persisted,
            percentage=record.percentage,
            message=performance_message(record.percentage),
            warning=warning
        )
        with self._lock:
            if generation == self._generation:
                self._finalize_result = result
        return result

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def snapshot(self) -> QuizState:
        with self._lock:
            return self._snapshot_locked()

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """Call observer with a fresh snapshot after every transition"""
        self._observers.append(observer)

        def unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, state: Optional[QuizState] = None):
        if not self._observers:
            return
        state = state or self.snapshot()
        for observer in list(self._observers):
            try:
                observer(state)
            except Exception:
                logger.exception(f"❌ Session observer failed for {self.session_id}")

    # ------------------------------------------------------------------
    # Helpers (caller holds the lock)
    # ------------------------------------------------------------------

    def _require_active(self):
        if self._phase is not SessionStatus.READY:
            raise InvalidTransitionError(f"No active quiz (status: {self._phase.value})")
        if not self._questions:
            raise InvalidTransitionError("Quiz has no questions")

    def _is_complete_locked(self) -> bool:
        return (
            self._phase is SessionStatus.READY
            and len(self._questions) > 0
            and self._index == len(self._questions) - 1
            and self._index in self._answers
        )

    def _status_locked(self) -> SessionStatus:
        if self._phase is not SessionStatus.READY:
            return self._phase
        if self._is_complete_locked():
            return SessionStatus.COMPLETED
        if self._index in self._answers:
            return SessionStatus.IN_PROGRESS
        return SessionStatus.READY

    def _snapshot_locked(self) -> QuizState:
        current = None
        if self._phase is SessionStatus.READY and self._questions:
            question = self._questions[self._index]
            selected = self._answers.get(self._index)
            answered = self._index in self._answers
            current = QuestionView(
                index=self._index,
                question=question.question,
                category=question.category,
                difficulty=question.difficulty,
                type=question.type,
                options=list(self._options[self._index]),
                selected_answer=selected,
                is_correct=(selected == question.correct_answer) if answered else None,
                correct_answer=question.correct_answer if answered else None
            )

        return QuizState(
            session_id=self.session_id,
            status=self._status_locked(),
            generation=self._generation,
            config=self._config,
            total_questions=len(self._questions),
            current_index=self._index,
            current_question=current,
            answers=[self._answers.get(i) for i in range(len(self._questions))],
            score=self._score,
            is_empty=self._phase is SessionStatus.READY and not self._questions,
            is_complete=self._is_complete_locked(),
            finalized=self._finalize_future is not None,
            persist_status=self._persist_status,
            error=self._error
        )
