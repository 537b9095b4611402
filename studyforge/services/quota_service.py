"""
Quota service for managing plan limits and usage tracking.

Handles subscription lookup (with lazy creation and period reset), limit
checks, and usage increments. Store failures propagate as DependencyError;
callers deny the request rather than treating the user as unlimited.
"""
import logging
import math
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Any, List

from studyforge.core.clock import utcnow
from studyforge.core.config import USAGE_RESET_DAYS
from studyforge.core.errors import DependencyError
from studyforge.core.plan_limits import (
    RESOURCE_TYPES,
    SUPPORTED_PLANS,
    UNLIMITED,
    get_limit_columns,
)
from studyforge.schemas.usage import SubscriptionRecord, UsageStatus
from studyforge.services.subscription_store import SubscriptionRepository

logger = logging.getLogger(__name__)

_LOCK_STRIPES = 64
_increment_locks: List[threading.Lock] = [threading.Lock() for _ in range(_LOCK_STRIPES)]


def _lock_for(user_id: str) -> threading.Lock:
    """Per-user lock (striped) for stores without an atomic increment."""
    return _increment_locks[hash(user_id) % _LOCK_STRIPES]


def _check_resource_type(resource_type: str) -> None:
    if resource_type not in RESOURCE_TYPES:
        raise ValueError(f"Unknown resource type: {resource_type}")


def build_usage_status(subscription: SubscriptionRecord, resource_type: str) -> UsageStatus:
    """
    Compute the quota position for one resource from a subscription record.

    allowed is true when the limit is unlimited (-1) or used < limit.
    remaining is -1 when unlimited. percent_used is rounded half up and
    capped at 100.
    """
    used = subscription.used_for(resource_type)
    limit = subscription.limit_for(resource_type)

    is_unlimited = limit == UNLIMITED
    allowed = is_unlimited or used < limit

    if is_unlimited:
        remaining = -1
        percent_used = 0
    elif limit == 0:
        remaining = 0
        percent_used = 100
    else:
        remaining = max(0, limit - used)
        percent_used = min(100, math.floor(100 * used / limit + 0.5))

    return UsageStatus(
        allowed=allowed,
        used=used,
        limit=limit,
        remaining=remaining,
        plan_type=subscription.plan_type,
        is_unlimited=is_unlimited,
        percent_used=percent_used,
        upgrade_required=not allowed,
    )


class QuotaService:
    """Quota gate over a subscription repository."""

    def __init__(
        self,
        repository: SubscriptionRepository,
        clock: Callable[[], datetime] = utcnow,
        reset_days: int = USAGE_RESET_DAYS,
    ):
        self.repository = repository
        self._clock = clock
        self.reset_period = timedelta(days=reset_days)

    def get_subscription(self, user_id: str) -> SubscriptionRecord:
        """
        Get the user's subscription, creating a free one if none exists.

        If the usage period has ended, all counters are reset to 0 and the
        reset date moves to now + reset period before the record is returned.

        Raises:
            DependencyError: If the subscription store is unreachable
        """
        now = self._clock()
        subscription = self.repository.get(user_id)

        if subscription is None:
            logger.info(f"Creating free subscription for user_id={user_id}")
            try:
                return self.repository.create(
                    user_id=user_id,
                    plan_type="free",
                    limits=get_limit_columns("free"),
                    usage_reset_date=now + self.reset_period,
                )
            except DependencyError:
                # Another request may have created the row first
                subscription = self.repository.get(user_id)
                if subscription is None:
                    raise
                return subscription

        if subscription.usage_reset_date <= now:
            logger.info(
                f"Usage period ended for user_id={user_id} "
                f"(reset_date={subscription.usage_reset_date.isoformat()}), resetting counters"
            )
            subscription = self.repository.reset_usage(user_id, now + self.reset_period)

        return subscription

    def check_limit(self, user_id: str, resource_type: str) -> UsageStatus:
        """
        Check the user's quota for a resource type.

        Args:
            user_id: Authenticated user id
            resource_type: quiz, flashcard or tutor

        Returns:
            UsageStatus for the resource
        """
        _check_resource_type(resource_type)
        subscription = self.get_subscription(user_id)
        return build_usage_status(subscription, resource_type)

    def increment_usage(self, user_id: str, resource_type: str) -> bool:
        """
        Record one unit of usage if the user is under their limit.

        Returns:
            True if usage was recorded, False if the limit was already reached
            (counters are left unchanged)
        """
        status = self.check_limit(user_id, resource_type)
        if not status.allowed:
            logger.warning(
                f"Increment refused, limit reached: user_id={user_id}, resource={resource_type}, "
                f"used={status.used}/{status.limit}, plan={status.plan_type}"
            )
            return False

        incremented = self.repository.increment(user_id, resource_type)

        if incremented is None:
            incremented = self._increment_serialized(user_id, resource_type)

        if incremented:
            logger.info(
                f"Usage incremented: user_id={user_id}, resource={resource_type}, "
                f"plan={status.plan_type}, used_before={status.used}"
            )
        else:
            logger.warning(
                f"Increment lost to a concurrent request at the limit: user_id={user_id}, resource={resource_type}"
            )
        return incremented

    def _increment_serialized(self, user_id: str, resource_type: str) -> bool:
        with _lock_for(user_id):
            status = build_usage_status(self.get_subscription(user_id), resource_type)
            if not status.allowed:
                return False
            self.repository.set_used(user_id, resource_type, status.used + 1)
            return True

    def get_usage_summary(self, user_id: str) -> Dict[str, Any]:
        """
        Usage for every resource plus the subscription and days until reset.

        Returns:
            Dictionary with quiz, flashcard, tutor, subscription, days_until_reset
        """
        subscription = self.get_subscription(user_id)
        seconds_left = (subscription.usage_reset_date - self._clock()).total_seconds()
        days_until_reset = max(0, math.ceil(seconds_left / 86400))

        summary: Dict[str, Any] = {
            resource_type: build_usage_status(subscription, resource_type)
            for resource_type in RESOURCE_TYPES
        }
        summary["subscription"] = subscription
        summary["days_until_reset"] = days_until_reset
        return summary

    def change_plan(self, user_id: str, plan_type: str) -> SubscriptionRecord:
        """
        Move a user to another plan, applying its limits.

        Counters are kept, except that a counter above the new limit is
        lowered to the limit.
        """
        plan_type = plan_type.lower()
        if plan_type not in SUPPORTED_PLANS:
            raise ValueError(f"Unknown plan: {plan_type}")

        self.get_subscription(user_id)
        subscription = self.repository.update_plan(user_id, plan_type, get_limit_columns(plan_type))

        for resource_type in RESOURCE_TYPES:
            limit = subscription.limit_for(resource_type)
            if limit != UNLIMITED and subscription.used_for(resource_type) > limit:
                self.repository.set_used(user_id, resource_type, limit)
                subscription = self.repository.get(user_id) or subscription

        logger.info(f"Plan changed: user_id={user_id}, plan={plan_type}")
        return subscription
