"""
Database models module.

Imports every model so it is registered with SQLAlchemy's Base.metadata
before table creation.
"""
from studyforge.db.models.subscription import UserSubscription

__all__ = [
    "UserSubscription",
]
