"""
Tests for plan limit lookups and the plan admin script.
"""
from studyforge.core.plan_limits import get_limit_columns, normalize_plan
from studyforge.db.init_db import init_db
from studyforge.db.models.subscription import UserSubscription


def test_limit_columns_per_plan():
    assert get_limit_columns("free") == {"quiz_limit": 5, "flashcard_limit": 5, "tutor_messages_limit": 20}
    assert get_limit_columns("premium") == {"quiz_limit": 100, "flashcard_limit": 100, "tutor_messages_limit": 500}
    assert set(get_limit_columns("enterprise").values()) == {-1}


def test_normalize_plan():
    assert normalize_plan("Premium") == "premium"
    assert normalize_plan("") == "free"
    assert normalize_plan(None) == "free"
    assert normalize_plan("gold") == "free"
    assert get_limit_columns("gold") == get_limit_columns("free")


def test_init_db_creates_subscription_table(db):
    init_db(bind=db.get_bind())
    db.add(UserSubscription(user_id="user-1"))
    db.commit()

    sub = db.query(UserSubscription).one()
    assert sub.plan_type == "free"
    assert sub.quiz_limit == 5
    assert sub.quizzes_used == 0
    assert sub.usage_reset_date > sub.created_at


def test_set_user_plan_script(db, monkeypatch):
    from sqlalchemy.orm import sessionmaker
    from scripts import set_user_plan as script

    monkeypatch.setattr(script.config, "SUBSCRIPTION_BACKEND", "sql")
    monkeypatch.setattr(script, "SessionLocal", sessionmaker(bind=db.get_bind()))
    monkeypatch.setattr(script, "init_db", lambda: None)

    assert script.set_user_plan("user-1", "enterprise") is True
    assert script.set_user_plan("user-1", "platinum") is False

    db.expire_all()
    sub = db.query(UserSubscription).filter(UserSubscription.user_id == "user-1").one()
    assert sub.plan_type == "enterprise"
    assert sub.quiz_limit == -1
