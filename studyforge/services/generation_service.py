"""
Request-admission pipeline for AI generation requests.

Every quiz, flashcard and tutor request goes through the same steps, in
order: quota gate, rate limiter, content cache (quiz/flashcard only),
retrying generator (generate + validate), sanitization, cache store, usage
increment, metric record.

Cache hits record a success metric but never increment usage.
"""
import logging
import time
from typing import Any, Callable, Optional, Tuple

from studyforge.core.errors import QuotaExceeded, RateLimited, StudyForgeError
from studyforge.core.rate_limit import RateLimiter
from studyforge.llm.provider import LLMProvider
from studyforge.schemas.generation import (
    QuizRequest,
    FlashcardRequest,
    TutorRequest,
    QuizResponse,
    FlashcardResponse,
    TutorResponse,
    UsageSnapshot,
)
from studyforge.services import generators
from studyforge.services.content_cache import CacheKey, ContentCache
from studyforge.services.metrics import MetricsRecorder, RequestMetric, UNKNOWN_USER
from studyforge.services.quota_service import QuotaService
from studyforge.services.retry import RetryConfig, retry_with_backoff
from studyforge.services.validation import (
    validate_quiz_response,
    validate_flashcard_response,
    sanitize_quiz,
    sanitize_flashcards,
)

logger = logging.getLogger(__name__)


class GenerationService:
    """Runs generation requests through quota, rate limit, cache and retry policies."""

    def __init__(
        self,
        quota: QuotaService,
        rate_limiter: RateLimiter,
        cache: ContentCache,
        metrics: MetricsRecorder,
        provider: Optional[LLMProvider] = None,
        retry_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        provider_factory: Optional[Callable[[], LLMProvider]] = None,
    ):
        if provider is None and provider_factory is None:
            raise ValueError("provider or provider_factory is required")
        self.quota = quota
        self.rate_limiter = rate_limiter
        self.cache = cache
        self.metrics = metrics
        self._provider = provider
        self._provider_factory = provider_factory
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep

    @property
    def provider(self) -> LLMProvider:
        """The generation backend, created on first use (after admission)."""
        if self._provider is None:
            self._provider = self._provider_factory()
        return self._provider

    # ============================================
    # Public operations
    # ============================================

    def generate_quiz(self, user_id: str, request: QuizRequest) -> QuizResponse:
        cache_key = CacheKey(
            type="quiz",
            subject=request.subject,
            grade=request.grade,
            difficulty=request.difficulty,
            count=request.num_questions,
        )
        questions, cached, usage = self._run(
            user_id=user_id,
            resource_type="quiz",
            cache_key=cache_key,
            generate=lambda: generators.generate_quiz(
                self.provider,
                request.subject,
                request.grade,
                request.difficulty,
                request.num_questions,
                request.learning_style,
            ),
            validate=validate_quiz_response,
            sanitize=sanitize_quiz,
        )
        return QuizResponse(questions=questions, cached=cached, usage=usage)

    def generate_flashcards(self, user_id: str, request: FlashcardRequest) -> FlashcardResponse:
        cache_key = CacheKey(
            type="flashcard",
            subject=request.subject,
            grade=request.grade,
            difficulty=request.difficulty,
            count=request.num_cards,
        )
        flashcards, cached, usage = self._run(
            user_id=user_id,
            resource_type="flashcard",
            cache_key=cache_key,
            generate=lambda: generators.generate_flashcards(
                self.provider,
                request.subject,
                request.grade,
                request.difficulty,
                request.num_cards,
                request.learning_style,
            ),
            validate=validate_flashcard_response,
            sanitize=sanitize_flashcards,
        )
        return FlashcardResponse(flashcards=flashcards, cached=cached, usage=usage)

    def answer_tutor_question(self, user_id: str, request: TutorRequest) -> TutorResponse:
        answer, _, usage = self._run(
            user_id=user_id,
            resource_type="tutor",
            cache_key=None,
            generate=lambda: generators.generate_tutor_response(
                self.provider,
                request.question.strip(),
                request.grade,
                request.learning_style,
            ),
        )
        return TutorResponse(response=answer, usage=usage)

    # ============================================
    # Pipeline
    # ============================================

    def _run(
        self,
        user_id: Optional[str],
        resource_type: str,
        cache_key: Optional[CacheKey],
        generate: Callable[[], Any],
        validate: Optional[Callable[[Any], bool]] = None,
        sanitize: Optional[Callable[[Any], Any]] = None,
    ) -> Tuple[Any, bool, Optional[UsageSnapshot]]:
        start = time.perf_counter()

        try:
            if not user_id:
                raise ValueError("user_id is required")

            self._admit(user_id, resource_type)

            if cache_key is not None:
                cached = self.cache.get(cache_key)
                if cached is not None and (validate is None or validate(cached)):
                    self._record(user_id, resource_type, start, "success", cache_key)
                    return cached, True, None

            # Backend is created only for admitted cache misses
            provider = self.provider
            logger.debug(f"Generating {resource_type} with {provider.name} for user_id={user_id}")

            content = retry_with_backoff(generate, self.retry_config, sleep=self._sleep)
            if sanitize is not None:
                content = sanitize(content)

            if cache_key is not None:
                self.cache.set(cache_key, content)

            if not self.quota.increment_usage(user_id, resource_type):
                logger.warning(
                    f"Generated {resource_type} for user_id={user_id} but usage was not incremented "
                    f"(limit reached by a concurrent request)"
                )
            updated = self.quota.check_limit(user_id, resource_type)

            self._record(user_id, resource_type, start, "success", cache_key)
            return content, False, UsageSnapshot(
                used=updated.used,
                limit=updated.limit,
                remaining=updated.remaining,
                plan_type=updated.plan_type,
            )
        except (QuotaExceeded, RateLimited):
            raise
        except StudyForgeError as e:
            logger.error(f"{resource_type} generation failed for user_id={user_id}: {e.message}")
            self._record(user_id, resource_type, start, "error", cache_key, error=e.message)
            raise
        except Exception as e:
            logger.error(f"{resource_type} generation failed for user_id={user_id}: {e}", exc_info=True)
            self._record(user_id, resource_type, start, "error", cache_key, error=str(e))
            raise

    def _admit(self, user_id: str, resource_type: str) -> None:
        """Quota gate then rate limiter; raises on denial."""
        status = self.quota.check_limit(user_id, resource_type)
        if not status.allowed:
            logger.warning(
                f"Quota exceeded: user_id={user_id}, resource={resource_type}, "
                f"plan={status.plan_type}, limit={status.limit}, used={status.used}"
            )
            raise QuotaExceeded(
                resource_type=resource_type,
                used=status.used,
                limit=status.limit,
                plan_type=status.plan_type,
            )

        if not self.rate_limiter.check_rate_limit(user_id):
            rate_status = self.rate_limiter.get_rate_limit_status(user_id)
            raise RateLimited(remaining=rate_status.remaining, reset_time=rate_status.reset_time)

    def _record(
        self,
        user_id: Optional[str],
        resource_type: str,
        start: float,
        status: str,
        cache_key: Optional[CacheKey],
        error: Optional[str] = None,
    ) -> None:
        self.metrics.record_metric(RequestMetric(
            user_id=user_id or UNKNOWN_USER,
            type=resource_type,
            duration=(time.perf_counter() - start) * 1000,
            status=status,
            error=error,
            subject=cache_key.subject if cache_key else None,
            difficulty=cache_key.difficulty if cache_key else None,
            count=cache_key.count if cache_key else None,
        ))
