"""
Pydantic schemas for usage, subscription and metrics endpoints.
"""
from datetime import datetime
from typing import Optional, Union
from pydantic import BaseModel, Field

from studyforge.core.plan_limits import USAGE_COLUMNS, LIMIT_COLUMNS


class SubscriptionRecord(BaseModel):
    """A user's plan, limits and counters as read from the subscription store."""
    id: Optional[Union[int, str]] = Field(None, description="Store row id")
    user_id: str = Field(..., description="Identity provider user id")
    plan_type: str = Field("free", description="Plan type (free, premium, enterprise)")
    quiz_limit: int = Field(..., description="Quiz limit per period (-1 for unlimited)")
    flashcard_limit: int = Field(..., description="Flashcard limit per period (-1 for unlimited)")
    tutor_messages_limit: int = Field(..., description="Tutor message limit per period (-1 for unlimited)")
    quizzes_used: int = Field(0, ge=0)
    flashcards_used: int = Field(0, ge=0)
    tutor_messages_used: int = Field(0, ge=0)
    usage_reset_date: datetime = Field(..., description="When counters next reset (UTC)")

    class Config:
        from_attributes = True

    def used_for(self, resource_type: str) -> int:
        return getattr(self, USAGE_COLUMNS[resource_type])

    def limit_for(self, resource_type: str) -> int:
        return getattr(self, LIMIT_COLUMNS[resource_type])


class UsageStatus(BaseModel):
    """Quota position of one user for one resource type."""
    allowed: bool = Field(..., description="Whether another request is allowed")
    used: int = Field(..., description="Usage in the current period")
    limit: int = Field(..., description="Limit for the period (-1 for unlimited)")
    remaining: int = Field(..., description="Remaining quota (-1 for unlimited)")
    plan_type: str = Field(..., description="User's current plan")
    is_unlimited: bool = Field(..., description="Whether this resource has unlimited quota")
    percent_used: int = Field(..., ge=0, le=100, description="Percentage of quota used")
    upgrade_required: bool = Field(..., description="True when the user must upgrade to continue")

    class Config:
        json_schema_extra = {
            "example": {
                "allowed": True,
                "used": 2,
                "limit": 5,
                "remaining": 3,
                "plan_type": "free",
                "is_unlimited": False,
                "percent_used": 40,
                "upgrade_required": False
            }
        }


class UsageSummaryResponse(BaseModel):
    """Response schema for GET /api/usage."""
    success: bool = True
    quiz: UsageStatus
    flashcard: UsageStatus
    tutor: UsageStatus
    subscription: SubscriptionRecord
    days_until_reset: int = Field(..., ge=0, description="Whole days until counters reset")


class RateLimitStatusResponse(BaseModel):
    """Response schema for GET /api/rate-limit."""
    remaining: int = Field(..., ge=0, description="Requests left in the current window")
    reset_time: datetime = Field(..., description="When the current window ends (UTC)")


class MetricsStatsResponse(BaseModel):
    """Response schema for GET /api/metrics (last hour)."""
    total_requests: int
    success_count: int
    error_count: int
    success_rate: float = Field(..., description="Percentage of successful requests")
    avg_duration: int = Field(..., description="Average request duration in milliseconds")
