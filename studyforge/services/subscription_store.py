"""
Subscription persistence.

Two stores implement the same repository interface: SQLAlchemy (default) and
the Supabase `user_subscriptions` table. Store failures surface as
DependencyError so the quota gate can fail closed.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from postgrest.exceptions import APIError as PostgrestAPIError
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from supabase import Client, create_client

from studyforge.core.clock import utcnow, to_naive_utc
from studyforge.core.config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY
from studyforge.core.errors import DependencyError
from studyforge.core.plan_limits import USAGE_COLUMNS, LIMIT_COLUMNS
from studyforge.db.models.subscription import UserSubscription
from studyforge.schemas.usage import SubscriptionRecord

logger = logging.getLogger(__name__)

SUBSCRIPTIONS_TABLE = "user_subscriptions"
INCREMENT_RPC = "increment_usage"
# PostgREST error code for "function not found in schema cache"
RPC_NOT_FOUND = "PGRST202"


def _to_record(row: Any) -> SubscriptionRecord:
    record = SubscriptionRecord.model_validate(row)
    record.usage_reset_date = to_naive_utc(record.usage_reset_date)
    return record


class SubscriptionRepository(ABC):
    """CRUD over one subscription row per user id."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[SubscriptionRecord]:
        pass

    @abstractmethod
    def create(self, user_id: str, plan_type: str, limits: Dict[str, int], usage_reset_date: datetime) -> SubscriptionRecord:
        pass

    @abstractmethod
    def reset_usage(self, user_id: str, usage_reset_date: datetime) -> SubscriptionRecord:
        """Zero all counters and move the reset date."""
        pass

    @abstractmethod
    def increment(self, user_id: str, resource_type: str) -> Optional[bool]:
        """
        Atomically add one to a usage counter.

        Returns:
            True if incremented, False if the row was at its limit,
            None if this store has no atomic increment
        """
        pass

    @abstractmethod
    def set_used(self, user_id: str, resource_type: str, value: int) -> None:
        pass

    @abstractmethod
    def update_plan(self, user_id: str, plan_type: str, limits: Dict[str, int]) -> SubscriptionRecord:
        pass


class SqlSubscriptionRepository(SubscriptionRepository):
    """Subscription store backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def _query(self, user_id: str):
        return self.db.query(UserSubscription).filter(UserSubscription.user_id == user_id)

    def _fail(self, action: str, user_id: str, error: Exception) -> DependencyError:
        self.db.rollback()
        logger.error(f"Database error during {action} for user_id={user_id}: {error}", exc_info=True)
        return DependencyError(f"Subscription store unavailable ({action})", dependency="database")

    def get(self, user_id: str) -> Optional[SubscriptionRecord]:
        try:
            subscription = self._query(user_id).first()
        except SQLAlchemyError as e:
            raise self._fail("get", user_id, e)
        return _to_record(subscription) if subscription else None

    def create(self, user_id: str, plan_type: str, limits: Dict[str, int], usage_reset_date: datetime) -> SubscriptionRecord:
        subscription = UserSubscription(
            user_id=user_id,
            plan_type=plan_type,
            quizzes_used=0,
            flashcards_used=0,
            tutor_messages_used=0,
            usage_reset_date=usage_reset_date,
            **limits,
        )
        try:
            self.db.add(subscription)
            self.db.commit()
            self.db.refresh(subscription)
        except SQLAlchemyError as e:
            raise self._fail("create", user_id, e)
        return _to_record(subscription)

    def reset_usage(self, user_id: str, usage_reset_date: datetime) -> SubscriptionRecord:
        try:
            self._query(user_id).update(
                {
                    UserSubscription.quizzes_used: 0,
                    UserSubscription.flashcards_used: 0,
                    UserSubscription.tutor_messages_used: 0,
                    UserSubscription.usage_reset_date: usage_reset_date,
                    UserSubscription.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
            self.db.commit()
            subscription = self._query(user_id).populate_existing().one()
        except SQLAlchemyError as e:
            raise self._fail("reset_usage", user_id, e)
        return _to_record(subscription)

    def increment(self, user_id: str, resource_type: str) -> Optional[bool]:
        used = getattr(UserSubscription, USAGE_COLUMNS[resource_type])
        limit = getattr(UserSubscription, LIMIT_COLUMNS[resource_type])
        try:
            # Single conditional UPDATE: the ceiling check and the increment are one statement
            rowcount = self._query(user_id).filter(or_(limit == -1, used < limit)).update(
                {used: used + 1, UserSubscription.updated_at: utcnow()},
                synchronize_session=False,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("increment", user_id, e)
        return rowcount == 1

    def set_used(self, user_id: str, resource_type: str, value: int) -> None:
        used = getattr(UserSubscription, USAGE_COLUMNS[resource_type])
        try:
            self._query(user_id).update(
                {used: value, UserSubscription.updated_at: utcnow()},
                synchronize_session=False,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("set_used", user_id, e)

    def update_plan(self, user_id: str, plan_type: str, limits: Dict[str, int]) -> SubscriptionRecord:
        values = {getattr(UserSubscription, column): limit for column, limit in limits.items()}
        values[UserSubscription.plan_type] = plan_type
        values[UserSubscription.updated_at] = utcnow()
        try:
            self._query(user_id).update(values, synchronize_session=False)
            self.db.commit()
            subscription = self._query(user_id).populate_existing().one()
        except SQLAlchemyError as e:
            raise self._fail("update_plan", user_id, e)
        return _to_record(subscription)


class SupabaseSubscriptionRepository(SubscriptionRepository):
    """
    Subscription store backed by the Supabase `user_subscriptions` table.

    Uses the `increment_usage(p_user_id, p_column)` RPC when it is deployed.
    """

    def __init__(self, client: Client):
        self.client = client

    @staticmethod
    def _timestamp(value: datetime) -> str:
        return value.replace(tzinfo=timezone.utc).isoformat()

    def _execute(self, action: str, user_id: str, request):
        try:
            return request.execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            logger.error(f"Supabase error during {action} for user_id={user_id}: {e}")
            raise DependencyError(f"Subscription store unavailable ({action})", dependency="supabase") from e

    def _single(self, action: str, user_id: str, response) -> SubscriptionRecord:
        if not response.data:
            raise DependencyError(f"Subscription store returned no row ({action})", dependency="supabase")
        return _to_record(response.data[0])

    def get(self, user_id: str) -> Optional[SubscriptionRecord]:
        response = self._execute(
            "get", user_id,
            self.client.table(SUBSCRIPTIONS_TABLE).select("*").eq("user_id", user_id).limit(1),
        )
        return _to_record(response.data[0]) if response.data else None

    def create(self, user_id: str, plan_type: str, limits: Dict[str, int], usage_reset_date: datetime) -> SubscriptionRecord:
        payload = {
            "user_id": user_id,
            "plan_type": plan_type,
            "quizzes_used": 0,
            "flashcards_used": 0,
            "tutor_messages_used": 0,
            "usage_reset_date": self._timestamp(usage_reset_date),
            **limits,
        }
        response = self._execute("create", user_id, self.client.table(SUBSCRIPTIONS_TABLE).insert(payload))
        return self._single("create", user_id, response)

    def reset_usage(self, user_id: str, usage_reset_date: datetime) -> SubscriptionRecord:
        payload = {
            "quizzes_used": 0,
            "flashcards_used": 0,
            "tutor_messages_used": 0,
            "usage_reset_date": self._timestamp(usage_reset_date),
            "updated_at": self._timestamp(utcnow()),
        }
        response = self._execute(
            "reset_usage", user_id,
            self.client.table(SUBSCRIPTIONS_TABLE).update(payload).eq("user_id", user_id),
        )
        return self._single("reset_usage", user_id, response)

    def increment(self, user_id: str, resource_type: str) -> Optional[bool]:
        params = {"p_user_id": user_id, "p_column": USAGE_COLUMNS[resource_type]}
        try:
            self.client.rpc(INCREMENT_RPC, params).execute()
        except PostgrestAPIError as e:
            if e.code == RPC_NOT_FOUND:
                logger.info(f"{INCREMENT_RPC} RPC not deployed, falling back to read-increment-write")
                return None
            logger.error(f"Supabase RPC {INCREMENT_RPC} failed for user_id={user_id}: {e}")
            raise DependencyError("Subscription store unavailable (increment)", dependency="supabase") from e
        except httpx.HTTPError as e:
            logger.error(f"Supabase RPC {INCREMENT_RPC} unreachable for user_id={user_id}: {e}")
            raise DependencyError("Subscription store unavailable (increment)", dependency="supabase") from e
        return True

    def set_used(self, user_id: str, resource_type: str, value: int) -> None:
        payload = {USAGE_COLUMNS[resource_type]: value, "updated_at": self._timestamp(utcnow())}
        self._execute(
            "set_used", user_id,
            self.client.table(SUBSCRIPTIONS_TABLE).update(payload).eq("user_id", user_id),
        )

    def update_plan(self, user_id: str, plan_type: str, limits: Dict[str, int]) -> SubscriptionRecord:
        payload = {"plan_type": plan_type, "updated_at": self._timestamp(utcnow()), **limits}
        response = self._execute(
            "update_plan", user_id,
            self.client.table(SUBSCRIPTIONS_TABLE).update(payload).eq("user_id", user_id),
        )
        return self._single("update_plan", user_id, response)


_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Returns the process-wide Supabase client, creating it on first use."""
    global _supabase_client
    if _supabase_client is None:
        if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
            raise ValueError("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not configured")
        _supabase_client = create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
        logger.info("Supabase client initialized")
    return _supabase_client
