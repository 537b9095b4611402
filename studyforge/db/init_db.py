import logging

from studyforge.db.session import engine
from studyforge.db.base import Base

logger = logging.getLogger(__name__)


def init_db(bind=None) -> None:
    """Create tables for all registered models."""
    import studyforge.db.models  # noqa: F401  registers models on Base.metadata

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured")
