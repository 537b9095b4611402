"""
Script to move a user to another plan (free, premium, enterprise).
Run: python -m scripts.set_user_plan <user_id> <plan>
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from studyforge.core import config
from studyforge.core.errors import DependencyError
from studyforge.db.init_db import init_db
from studyforge.db.session import SessionLocal
from studyforge.services.quota_service import QuotaService
from studyforge.services.subscription_store import (
    SqlSubscriptionRepository,
    SupabaseSubscriptionRepository,
    get_supabase_client,
)
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def set_user_plan(user_id: str, plan_type: str) -> bool:
    """Create the user's subscription if needed and apply the plan's limits."""
    db = SessionLocal()
    try:
        if config.SUBSCRIPTION_BACKEND == "supabase":
            repository = SupabaseSubscriptionRepository(get_supabase_client())
        else:
            init_db()
            repository = SqlSubscriptionRepository(db)

        subscription = QuotaService(repository).change_plan(user_id, plan_type)
        logger.info(
            f"User {user_id} is now on {subscription.plan_type}: "
            f"quiz={subscription.quiz_limit}, flashcard={subscription.flashcard_limit}, "
            f"tutor={subscription.tutor_messages_limit}"
        )
        return True
    except (ValueError, DependencyError) as e:
        logger.error(f"Error updating plan for {user_id}: {e}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python -m scripts.set_user_plan <user_id> <free|premium|enterprise>")
        sys.exit(2)

    user_id, plan_type = sys.argv[1], sys.argv[2]
    if set_user_plan(user_id, plan_type):
        print(f"\n[SUCCESS] User {user_id} is now on the {plan_type} plan")
    else:
        print(f"\n[ERROR] Failed to set plan for user {user_id}")
        sys.exit(1)
