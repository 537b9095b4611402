"""
FastAPI dependencies wiring services to their collaborators.

Process-local stores (rate limiter, content cache, metrics) are created once
per app in create_app() and live on app.state. The LLM provider joins them on
the first generation that needs it.
"""
import logging
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from studyforge.core import config
from studyforge.core.errors import DependencyError
from studyforge.core.rate_limit import RateLimiter
from studyforge.db.session import SessionLocal
from studyforge.llm.provider import LLMProvider
from studyforge.llm.router import create_provider
from studyforge.services.content_cache import ContentCache
from studyforge.services.generation_service import GenerationService
from studyforge.services.metrics import MetricsRecorder
from studyforge.services.quota_service import QuotaService
from studyforge.services.subscription_store import (
    SubscriptionRepository,
    SqlSubscriptionRepository,
    SupabaseSubscriptionRepository,
    get_supabase_client,
)

logger = logging.getLogger(__name__)


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_subscription_repository(db: Session = Depends(get_db)) -> SubscriptionRepository:
    if config.SUBSCRIPTION_BACKEND == "supabase":
        return SupabaseSubscriptionRepository(get_supabase_client())
    return SqlSubscriptionRepository(db)


def get_quota_service(repository: SubscriptionRepository = Depends(get_subscription_repository)) -> QuotaService:
    return QuotaService(repository)


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_content_cache(request: Request) -> ContentCache:
    return request.app.state.content_cache


def get_metrics_recorder(request: Request) -> MetricsRecorder:
    return request.app.state.metrics


def get_llm_provider_factory(request: Request) -> Callable[[], LLMProvider]:
    """
    Resolver for the app's generation backend.

    Called by GenerationService after the quota and rate-limit checks; the
    provider is built once and kept on app.state.
    """
    state = request.app.state

    def resolve() -> LLMProvider:
        provider = getattr(state, "llm_provider", None)
        if provider is None:
            try:
                provider = create_provider()
            except ValueError as e:
                logger.error(f"Generation backend not available: {e}")
                raise DependencyError("Generation backend not configured", dependency="llm") from e
            state.llm_provider = provider
        return provider

    return resolve


def get_generation_service(
    quota: QuotaService = Depends(get_quota_service),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    cache: ContentCache = Depends(get_content_cache),
    metrics: MetricsRecorder = Depends(get_metrics_recorder),
    provider_factory: Callable[[], LLMProvider] = Depends(get_llm_provider_factory),
) -> GenerationService:
    return GenerationService(
        quota=quota,
        rate_limiter=rate_limiter,
        cache=cache,
        metrics=metrics,
        provider_factory=provider_factory,
    )
