"""
Request metrics endpoint.
"""
from fastapi import APIRouter, Depends

from studyforge.api.dependencies import get_metrics_recorder
from studyforge.core.auth_dependency import get_current_user_id
from studyforge.schemas.usage import MetricsStatsResponse
from studyforge.services.metrics import MetricsRecorder

router = APIRouter(prefix="/api", tags=["Metrics"])


@router.get("/metrics", response_model=MetricsStatsResponse)
def get_metrics(
    user_id: str = Depends(get_current_user_id),
    metrics: MetricsRecorder = Depends(get_metrics_recorder),
):
    """Last-hour generation stats for the authenticated user."""
    return MetricsStatsResponse(**metrics.get_metrics_stats(user_id))
