"""
Question Source
Async client for the Open Trivia DB api.php endpoint
"""
import asyncio
import logging
from typing import List, Optional, Protocol

import httpx
from pydantic import ValidationError

from brainquest.models.question import Question, TriviaResponse
from brainquest.models.quiz_config import QuizConfig
from brainquest.services.errors import FetchFailure

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_API_URL = "https://opentdb.com/api.php"
DEFAULT_TIMEOUT = 15.0  # seconds
MAX_RETRIES = 2
INITIAL_BACKOFF = 1.0  # seconds

# Open Trivia DB response codes
RESPONSE_SUCCESS = 0
RESPONSE_NO_RESULTS = 1
RESPONSE_INVALID_PARAMETER = 2
RESPONSE_TOKEN_NOT_FOUND = 3
RESPONSE_TOKEN_EMPTY = 4
RESPONSE_RATE_LIMIT = 5

_RESPONSE_MESSAGES = {
    RESPONSE_INVALID_PARAMETER: "Invalid quiz parameters",
    RESPONSE_TOKEN_NOT_FOUND: "Session token not found",
    RESPONSE_TOKEN_EMPTY: "Session token has returned all questions",
    RESPONSE_RATE_LIMIT: "Too many requests, please wait a few seconds",
}


class QuestionSource(Protocol):
    """Anything that can supply a batch of questions for a configuration"""

    async def fetch_questions(self, config: QuizConfig) -> List[Question]:
        ...


class RateLimitedError(Exception):
    """Raised when Open Trivia DB answers with response_code 5"""
    pass


async def _retry_with_backoff(
    coro_func,
    max_retries: int = MAX_RETRIES,
    initial_backoff: float = INITIAL_BACKOFF
):
    """
    Execute coroutine with exponential backoff retry

    Args:
        coro_func: Async function to call (no arguments)
        max_retries: Maximum number of retry attempts
        initial_backoff: Initial backoff delay in seconds

    Returns:
        Result from successful coroutine execution

    Raises:
        Last exception if all retries exhausted
    """
    last_exception = None
    backoff = initial_backoff

    for attempt in range(max_retries + 1):
        try:
            return await coro_func()
        except (httpx.TimeoutException, httpx.HTTPStatusError, RateLimitedError) as e:
            last_exception = e

            if attempt == max_retries:
                break

            # Don't retry on client errors (4xx) except rate limits (429)
            if isinstance(e, httpx.HTTPStatusError):
                if 400 <= e.response.status_code < 500 and e.response.status_code != 429:
                    raise

            logger.warning(
                f"⚠️ Attempt {attempt + 1}/{max_retries + 1} failed: {e}. "
                f"Retrying in {backoff:.1f}s..."
            )

            await asyncio.sleep(backoff)
            backoff *= 2  # Exponential backoff

    raise last_exception


class OpenTriviaClient:
    """
    Question source backed by https://opentdb.com

    An empty list is returned for response_code 1 (not enough
    questions for the configuration); every other failure raises
    FetchFailure.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        initial_backoff: float = INITIAL_BACKOFF,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.api_url = api_url
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch_questions(self, config: QuizConfig) -> List[Question]:
        """
        Fetch one batch of questions

        Args:
            config: Quiz configuration (amount already clamped)

        Returns:
            Questions in the order the API returned them

        Raises:
            FetchFailure: On network errors, HTTP errors, error response
                codes or a payload that does not match the expected shape
        """
        params = config.to_query_params()
        logger.info(f"🎯 Fetching questions from Open Trivia DB: {params}")

        async def make_request() -> TriviaResponse:
            response = await self.client.get(self.api_url, params=params)
            response.raise_for_status()
            payload = TriviaResponse.model_validate(response.json())
            if payload.response_code == RESPONSE_RATE_LIMIT:
                raise RateLimitedError(_RESPONSE_MESSAGES[RESPONSE_RATE_LIMIT])
            return payload

        try:
            payload = await _retry_with_backoff(
                make_request,
                max_retries=self.max_retries,
                initial_backoff=self.initial_backoff
            )
        except (httpx.HTTPError, RateLimitedError) as e:
            logger.error(f"❌ Open Trivia DB request failed: {e}")
            raise FetchFailure(f"Failed to fetch questions: {e}")
        except (ValidationError, ValueError) as e:
            logger.error(f"❌ Malformed Open Trivia DB response: {e}")
            raise FetchFailure("Failed to fetch questions: malformed response")

        if payload.response_code == RESPONSE_NO_RESULTS:
            logger.warning(f"⚠️ No questions available for {params}")
            return []

        if payload.response_code != RESPONSE_SUCCESS:
            message = _RESPONSE_MESSAGES.get(
                payload.response_code,
                f"Unexpected response code {payload.response_code}"
            )
            logger.error(f"❌ Open Trivia DB error: {message}")
            raise FetchFailure(message)

        logger.info(f"✅ Fetched {len(payload.results)} questions")
        return payload.results

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()


_trivia_client: Optional[OpenTriviaClient] = None


def get_trivia_client() -> OpenTriviaClient:
    """Get or create the global OpenTriviaClient instance"""
    global _trivia_client

    if _trivia_client is None:
        from brainquest.core.config import settings

        _trivia_client = OpenTriviaClient(
            api_url=settings.trivia_api_url,
            timeout=settings.trivia_timeout,
            max_retries=settings.trivia_max_retries,
            initial_backoff=settings.trivia_initial_backoff
        )

    return _trivia_client


async def close_trivia_client():
    global _trivia_client

    if _trivia_client is not None:
        await _trivia_client.aclose()
        _trivia_client = None
        logger.info("✓ Closed Open Trivia DB client")
