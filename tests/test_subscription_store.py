"""
Tests for the SQL and Supabase subscription stores.
"""
from datetime import datetime
from unittest.mock import MagicMock

import httpx
import pytest
from postgrest.exceptions import APIError as PostgrestAPIError
from sqlalchemy.exc import OperationalError

from studyforge.core.errors import DependencyError
from studyforge.services.subscription_store import (
    SqlSubscriptionRepository,
    SupabaseSubscriptionRepository,
)


def supabase_row(**overrides):
    row = {
        "id": "6f1c2a9e-0000-0000-0000-000000000001",
        "user_id": "user-1",
        "plan_type": "free",
        "quiz_limit": 5,
        "flashcard_limit": 5,
        "tutor_messages_limit": 20,
        "quizzes_used": 2,
        "flashcards_used": 0,
        "tutor_messages_used": 1,
        "usage_reset_date": "2026-02-01T00:00:00+00:00",
        "created_at": "2026-01-01T00:00:00+00:00",
    }
    row.update(overrides)
    return row


# ============================================
# SQL store
# ============================================

def test_sql_get_missing_returns_none(db):
    assert SqlSubscriptionRepository(db).get("nobody") is None


def test_sql_create_and_get(db):
    repository = SqlSubscriptionRepository(db)
    created = repository.create(
        user_id="user-1",
        plan_type="free",
        limits={"quiz_limit": 5, "flashcard_limit": 5, "tutor_messages_limit": 20},
        usage_reset_date=datetime(2026, 2, 1),
    )
    fetched = repository.get("user-1")

    assert fetched.id == created.id
    assert fetched.quiz_limit == 5
    assert fetched.usage_reset_date == datetime(2026, 2, 1)


def test_sql_increment_stops_at_ceiling(make_subscription, db):
    make_subscription(limits=(1, 5, 20))
    repository = SqlSubscriptionRepository(db)

    assert repository.increment("user-1", "quiz") is True
    assert repository.increment("user-1", "quiz") is False
    assert repository.get("user-1").quizzes_used == 1


def test_sql_increment_unlimited(make_subscription, db):
    make_subscription(limits=(-1, -1, -1), used=(1000, 0, 0))
    repository = SqlSubscriptionRepository(db)
    assert repository.increment("user-1", "quiz") is True
    assert repository.get("user-1").quizzes_used == 1001


def test_sql_increment_missing_row(db):
    assert SqlSubscriptionRepository(db).increment("nobody", "quiz") is False


def test_sql_reset_usage(make_subscription, db):
    make_subscription(used=(5, 5, 20))
    record = SqlSubscriptionRepository(db).reset_usage("user-1", datetime(2026, 3, 1))

    assert (record.quizzes_used, record.flashcards_used, record.tutor_messages_used) == (0, 0, 0)
    assert record.usage_reset_date == datetime(2026, 3, 1)


def test_sql_failure_raises_dependency_error():
    session = MagicMock()
    session.query.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))

    with pytest.raises(DependencyError) as exc:
        SqlSubscriptionRepository(session).get("user-1")

    assert exc.value.dependency == "database"
    session.rollback.assert_called_once()


# ============================================
# Supabase store
# ============================================

def test_supabase_get():
    client = MagicMock()
    select = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    select.execute.return_value = MagicMock(data=[supabase_row()])

    record = SupabaseSubscriptionRepository(client).get("user-1")

    client.table.assert_called_with("user_subscriptions")
    client.table.return_value.select.return_value.eq.assert_called_with("user_id", "user-1")
    assert record.quizzes_used == 2
    assert record.usage_reset_date == datetime(2026, 2, 1)
    assert record.usage_reset_date.tzinfo is None


def test_supabase_get_missing():
    client = MagicMock()
    select = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    select.execute.return_value = MagicMock(data=[])

    assert SupabaseSubscriptionRepository(client).get("user-1") is None


def test_supabase_create_sends_utc_timestamp():
    client = MagicMock()
    client.table.return_value.insert.return_value.execute.return_value = MagicMock(data=[supabase_row(quizzes_used=0)])

    record = SupabaseSubscriptionRepository(client).create(
        user_id="user-1",
        plan_type="free",
        limits={"quiz_limit": 5, "flashcard_limit": 5, "tutor_messages_limit": 20},
        usage_reset_date=datetime(2026, 2, 1),
    )

    payload = client.table.return_value.insert.call_args[0][0]
    assert payload["usage_reset_date"] == "2026-02-01T00:00:00+00:00"
    assert payload["quiz_limit"] == 5
    assert payload["quizzes_used"] == 0
    assert record.plan_type == "free"


def test_supabase_update_without_row_raises():
    client = MagicMock()
    client.table.return_value.update.return_value.eq.return_value.execute.return_value = MagicMock(data=[])

    with pytest.raises(DependencyError):
        SupabaseSubscriptionRepository(client).reset_usage("user-1", datetime(2026, 3, 1))


def test_supabase_increment_uses_rpc():
    client = MagicMock()

    assert SupabaseSubscriptionRepository(client).increment("user-1", "flashcard") is True
    client.rpc.assert_called_once_with("increment_usage", {"p_user_id": "user-1", "p_column": "flashcards_used"})


def test_supabase_increment_without_rpc_returns_none():
    client = MagicMock()
    client.rpc.return_value.execute.side_effect = PostgrestAPIError({
        "code": "PGRST202",
        "message": "Could not find the function public.increment_usage in the schema cache",
    })

    assert SupabaseSubscriptionRepository(client).increment("user-1", "quiz") is None


def test_supabase_increment_other_error():
    client = MagicMock()
    client.rpc.return_value.execute.side_effect = PostgrestAPIError({"code": "42501", "message": "permission denied"})

    with pytest.raises(DependencyError) as exc:
        SupabaseSubscriptionRepository(client).increment("user-1", "quiz")
    assert exc.value.dependency == "supabase"


def test_supabase_unreachable():
    client = MagicMock()
    select = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    select.execute.side_effect = httpx.ConnectError("connection refused")

    with pytest.raises(DependencyError):
        SupabaseSubscriptionRepository(client).get("user-1")


def test_supabase_set_used():
    client = MagicMock()
    SupabaseSubscriptionRepository(client).set_used("user-1", "tutor", 7)

    payload = client.table.return_value.update.call_args[0][0]
    assert payload["tutor_messages_used"] == 7
    client.table.return_value.update.return_value.eq.assert_called_with("user_id", "user-1")
