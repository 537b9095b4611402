from datetime import timedelta

from sqlalchemy import Column, Integer, String, DateTime

from studyforge.core.clock import utcnow
from studyforge.core.config import USAGE_RESET_DAYS
from studyforge.db.base import Base


def default_reset_date():
    return utcnow() + timedelta(days=USAGE_RESET_DAYS)


class UserSubscription(Base):
    """
    Per-user plan and usage counters for the current usage period.

    Limits of -1 mean unlimited. Counters are zeroed and usage_reset_date is
    pushed forward when the period ends.
    """
    __tablename__ = "user_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, unique=True, index=True)  # identity provider subject

    plan_type = Column(String, nullable=False, default="free")  # free | premium | enterprise

    quiz_limit = Column(Integer, nullable=False, default=5)
    flashcard_limit = Column(Integer, nullable=False, default=5)
    tutor_messages_limit = Column(Integer, nullable=False, default=20)

    quizzes_used = Column(Integer, nullable=False, default=0)
    flashcards_used = Column(Integer, nullable=False, default=0)
    tutor_messages_used = Column(Integer, nullable=False, default=0)

    usage_reset_date = Column(DateTime, nullable=False, default=default_reset_date)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
