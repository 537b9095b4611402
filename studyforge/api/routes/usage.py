"""
Usage tracking endpoints.

Provides quota and rate-limit information for authenticated users.
"""
import logging
from fastapi import APIRouter, Depends, status

from studyforge.api.dependencies import get_quota_service, get_rate_limiter
from studyforge.core.auth_dependency import get_current_user_id
from studyforge.core.rate_limit import RateLimiter
from studyforge.schemas.usage import UsageSummaryResponse, RateLimitStatusResponse
from studyforge.services.quota_service import QuotaService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Usage"])


@router.get("/usage", response_model=UsageSummaryResponse, status_code=status.HTTP_200_OK)
def get_usage(
    user_id: str = Depends(get_current_user_id),
    quota: QuotaService = Depends(get_quota_service),
):
    """
    Get current period usage for the authenticated user.

    Returns:
    - quiz, flashcard, tutor: allowed, used, limit, remaining, plan_type,
      is_unlimited, percent_used, upgrade_required
    - subscription: the stored plan, limits and counters
    - days_until_reset: whole days until counters reset
    """
    summary = quota.get_usage_summary(user_id)
    logger.debug(f"Usage summary requested: user_id={user_id}, plan={summary['subscription'].plan_type}")
    return UsageSummaryResponse(**summary)


@router.get("/rate-limit", response_model=RateLimitStatusResponse, status_code=status.HTTP_200_OK)
def get_rate_limit(
    user_id: str = Depends(get_current_user_id),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
):
    """Remaining generation requests in the current window. Does not consume a request."""
    rate_status = rate_limiter.get_rate_limit_status(user_id)
    return RateLimitStatusResponse(remaining=rate_status.remaining, reset_time=rate_status.reset_time)
