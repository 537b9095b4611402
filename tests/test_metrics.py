"""
Unit tests for the in-memory metrics recorder.
"""
from studyforge.services.metrics import MetricsRecorder, RequestMetric


class FakeTime:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


def metric(user_id="user-1", status="success", duration=100.0, timestamp=1_000_000.0, **kwargs):
    return RequestMetric(user_id=user_id, type="quiz", duration=duration, status=status, timestamp=timestamp, **kwargs)


def test_buffer_keeps_most_recent_entries():
    recorder = MetricsRecorder(max_entries=3, clock=FakeTime())
    for i in range(5):
        recorder.record_metric(metric(duration=float(i)))

    assert len(recorder) == 3
    assert [m.duration for m in recorder.get_metrics()] == [2.0, 3.0, 4.0]


def test_default_buffer_size_is_1000():
    recorder = MetricsRecorder(clock=FakeTime())
    for _ in range(1005):
        recorder.record_metric(metric())
    assert len(recorder) == 1000


def test_filter_by_user():
    recorder = MetricsRecorder(clock=FakeTime())
    recorder.record_metric(metric(user_id="user-1"))
    recorder.record_metric(metric(user_id="user-2"))

    assert [m.user_id for m in recorder.get_metrics("user-2")] == ["user-2"]
    assert len(recorder.get_metrics()) == 2


def test_stats_last_hour():
    clock = FakeTime()
    recorder = MetricsRecorder(clock=clock)
    recorder.record_metric(metric(status="success", duration=100.0, timestamp=clock.now - 10))
    recorder.record_metric(metric(status="success", duration=201.0, timestamp=clock.now - 20))
    recorder.record_metric(metric(status="error", duration=300.0, timestamp=clock.now - 30, error="boom"))
    recorder.record_metric(metric(status="success", duration=5000.0, timestamp=clock.now - 3600))

    stats = recorder.get_metrics_stats()
    assert stats["total_requests"] == 3
    assert stats["success_count"] == 2
    assert stats["error_count"] == 1
    assert round(stats["success_rate"], 2) == 66.67
    assert stats["avg_duration"] == 200


def test_stats_for_one_user():
    clock = FakeTime()
    recorder = MetricsRecorder(clock=clock)
    recorder.record_metric(metric(user_id="user-1", status="error"))
    recorder.record_metric(metric(user_id="user-2", status="success"))

    stats = recorder.get_metrics_stats("user-2")
    assert stats["total_requests"] == 1
    assert stats["success_rate"] == 100


def test_empty_stats():
    stats = MetricsRecorder(clock=FakeTime()).get_metrics_stats()
    assert stats == {
        "total_requests": 0,
        "success_count": 0,
        "error_count": 0,
        "success_rate": 0,
        "avg_duration": 0,
    }


def test_clear():
    recorder = MetricsRecorder(clock=FakeTime())
    recorder.record_metric(metric())
    recorder.clear()
    assert recorder.get_metrics() == []


def test_unstamped_metric_uses_recorder_clock():
    clock = FakeTime(now=500.0)
    recorder = MetricsRecorder(clock=clock)
    recorder.record_metric(RequestMetric(user_id="user-1", type="quiz", duration=10.0, status="success"))

    [stored] = recorder.get_metrics()
    assert stored.timestamp == 500.0
    assert recorder.get_metrics_stats()["total_requests"] == 1

    clock.now += 3600
    assert recorder.get_metrics_stats()["total_requests"] == 0
