"""
Error taxonomy for the request-admission pipeline.

Each error carries the HTTP status it maps to and a structured detail payload
that the frontend uses to render upgrade / retry prompts.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from studyforge.core.config import FRONTEND_URL

logger = logging.getLogger(__name__)


class StudyForgeError(Exception):
    """Base class for pipeline errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "internal_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> Dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


class QuotaExceeded(StudyForgeError):
    """User has used their plan's allowance for a resource type."""
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "quota_exceeded"

    def __init__(self, resource_type: str, used: int, limit: int, plan_type: str):
        self.resource_type = resource_type
        self.used = used
        self.limit = limit
        self.remaining = max(0, limit - used)
        self.plan_type = plan_type
        super().__init__(
            f"You've used all {limit} {resource_type} requests for this period. "
            f"Upgrade your plan for more."
        )

    def to_detail(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "code": "LIMIT_REACHED",
            "resource_type": self.resource_type,
            "plan_type": self.plan_type,
            "used": self.used,
            "limit": self.limit,
            "remaining": self.remaining,
            "message": self.message,
            "upgrade_url": f"{FRONTEND_URL}/protected/upgrade",
        }


class RateLimited(StudyForgeError):
    """Too many requests inside the current rate-limit window."""
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error_code = "rate_limited"

    def __init__(self, remaining: int, reset_time: datetime):
        self.remaining = remaining
        self.reset_time = reset_time
        super().__init__("Rate limit exceeded. Please try again later.")

    def to_detail(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "remaining": self.remaining,
            "reset_time": self.reset_time.isoformat(),
        }


class ValidationFailure(StudyForgeError):
    """Generation output did not match the expected shape."""
    error_code = "invalid_response_format"

    def __init__(self, message: str = "Invalid response format"):
        super().__init__(message)


class DependencyError(StudyForgeError):
    """Persistence layer or generation backend failed or is unreachable."""
    error_code = "dependency_error"

    def __init__(self, message: str, dependency: Optional[str] = None):
        super().__init__(message)
        self.dependency = dependency

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        if self.dependency:
            detail["dependency"] = self.dependency
        return detail


async def studyforge_error_handler(request: Request, exc: StudyForgeError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_detail())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StudyForgeError, studyforge_error_handler)
