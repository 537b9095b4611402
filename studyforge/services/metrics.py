"""
In-memory request metrics for generation endpoints.

Metrics live in a bounded ring buffer and are lost on restart.
"""
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional

from studyforge.core.config import METRICS_BUFFER_SIZE

UNKNOWN_USER = "unknown"


@dataclass
class RequestMetric:
    user_id: str
    type: str  # quiz | flashcard | tutor
    duration: float  # milliseconds
    status: str  # success | error
    timestamp: Optional[float] = None  # epoch seconds; stamped by the recorder when unset
    error: Optional[str] = None
    subject: Optional[str] = None
    difficulty: Optional[str] = None
    count: Optional[int] = None


class MetricsRecorder:
    def __init__(self, max_entries: int = METRICS_BUFFER_SIZE, clock: Callable[[], float] = time.time):
        self._metrics: Deque[RequestMetric] = deque(maxlen=max_entries)
        self._clock = clock
        self._lock = threading.Lock()

    def record_metric(self, metric: RequestMetric) -> None:
        if metric.timestamp is None:
            metric.timestamp = self._clock()
        with self._lock:
            self._metrics.append(metric)

    def get_metrics(self, user_id: Optional[str] = None) -> List[RequestMetric]:
        with self._lock:
            metrics = list(self._metrics)
        if user_id:
            return [m for m in metrics if m.user_id == user_id]
        return metrics

    def get_metrics_stats(self, user_id: Optional[str] = None) -> Dict[str, float]:
        """
        Summarize the last hour of requests.

        Returns:
            total_requests, success_count, error_count, success_rate (percent)
            and avg_duration (rounded milliseconds)
        """
        hour_ago = self._clock() - 60 * 60
        recent = [m for m in self.get_metrics(user_id) if m.timestamp > hour_ago]

        success_count = sum(1 for m in recent if m.status == "success")
        error_count = sum(1 for m in recent if m.status == "error")
        avg_duration = sum(m.duration for m in recent) / len(recent) if recent else 0

        return {
            "total_requests": len(recent),
            "success_count": success_count,
            "error_count": error_count,
            "success_rate": (success_count / len(recent)) * 100 if recent else 0,
            "avg_duration": round(avg_duration),
        }

    def clear(self) -> None:
        with self._lock:
            self._metrics.clear()

    def __len__(self) -> int:
        return len(self._metrics)
