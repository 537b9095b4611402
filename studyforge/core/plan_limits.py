"""
Plan-based usage limits configuration.

Single source of truth for monthly quota limits per plan.
-1 means unlimited quota for that resource.
"""
from typing import Dict, List

UNLIMITED = -1

# Supported resource types
RESOURCE_TYPES: List[str] = [
    "quiz",
    "flashcard",
    "tutor",
]

SUPPORTED_PLANS: List[str] = ["free", "premium", "enterprise"]

# Plan limits (per usage period)
PLAN_LIMITS: Dict[str, Dict[str, int]] = {
    "free": {
        "quiz": 5,
        "flashcard": 5,
        "tutor": 20,
    },
    "premium": {
        "quiz": 100,
        "flashcard": 100,
        "tutor": 500,
    },
    "enterprise": {
        "quiz": UNLIMITED,
        "flashcard": UNLIMITED,
        "tutor": UNLIMITED,
    },
}

# Resource type -> column names on user_subscriptions
USAGE_COLUMNS: Dict[str, str] = {
    "quiz": "quizzes_used",
    "flashcard": "flashcards_used",
    "tutor": "tutor_messages_used",
}

LIMIT_COLUMNS: Dict[str, str] = {
    "quiz": "quiz_limit",
    "flashcard": "flashcard_limit",
    "tutor": "tutor_messages_limit",
}


def normalize_plan(plan_type: str) -> str:
    """Lowercase a plan name, falling back to 'free' for unknown values."""
    plan_type = plan_type.lower() if plan_type else "free"
    return plan_type if plan_type in PLAN_LIMITS else "free"


def get_limit_columns(plan_type: str) -> Dict[str, int]:
    """Plan limits keyed by user_subscriptions column name."""
    limits = PLAN_LIMITS[normalize_plan(plan_type)]
    return {LIMIT_COLUMNS[resource]: limit for resource, limit in limits.items()}
