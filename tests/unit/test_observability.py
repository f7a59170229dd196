import pytest

from promptsmith.obs.metrics import InMemoryMetrics
from promptsmith.obs.telemetry import NullTelemetry, Telemetry, error_severity
from promptsmith.obs.tracing import NullRecorder, SpanRecorder


def test_span_lifecycle_records_logs_tags_and_status() -> None:
    recorder = SpanRecorder(service="test")

    span_id = recorder.start_span("prompt_processing")
    recorder.add_span_log(span_id, {"step": "analysis_complete"})
    record = recorder.finish_span(span_id, {"result": "success"})

    assert record is not None
    assert record.status == "ok"
    assert record.tags["service.name"] == "test"
    assert record.tags["result"] == "success"
    assert record.logs[0]["step"] == "analysis_complete"
    assert record.duration_ms is not None and record.duration_ms >= 0.0
    assert recorder.get(span_id) is record
    assert recorder.finish_span(span_id) is None


def test_child_span_shares_trace_id() -> None:
    recorder = SpanRecorder()
    parent = recorder.start_span("parent")
    child = recorder.start_span("child", parent)

    assert recorder.get(child).trace_id == recorder.get(parent).trace_id


def test_span_context_manager_marks_errors() -> None:
    recorder = SpanRecorder()

    with pytest.raises(RuntimeError):
        with recorder.span("stage") as span_id:
            raise RuntimeError("boom")

    assert recorder.get(span_id).status == "error"
    assert recorder.summary()["error_spans"] == 1


def test_track_error_counts_and_records_metric() -> None:
    recorder = SpanRecorder()
    recorder.track_error(ValueError("bad"), {"step": "scoring"})
    recorder.record_metric("prompt_quality_score", 0.8, "gauge", {"domain": "sql"})

    summary = recorder.summary()
    assert summary["tracked_errors"] == 1
    assert summary["metric_samples"] == 2
    assert recorder.metrics("errors_total")[0].labels["error_type"] == "ValueError"
    assert recorder.metrics("prompt_quality_score")[0].labels["domain"] == "sql"


def test_tracked_errors_are_bounded() -> None:
    recorder = SpanRecorder(max_records=3)
    for index in range(5):
        recorder.track_error(ValueError(f"failure {index}"))

    assert recorder.summary()["tracked_errors"] == 3


def test_get_unknown_span_raises_key_error() -> None:
    with pytest.raises(KeyError):
        SpanRecorder().get("nope")


def test_null_recorder_keeps_nothing() -> None:
    recorder = NullRecorder()
    span_id = recorder.start_span("x")
    recorder.add_span_log(span_id, {"a": 1})
    recorder.finish_span(span_id)

    assert recorder.summary()["total_spans"] == 0


def test_telemetry_stats_aggregate_today() -> None:
    telemetry = Telemetry()
    telemetry.track("processing_complete", {"domain": "sql", "score": 0.8})
    telemetry.track("processing_complete", {"domain": "sql", "score": 0.6})
    telemetry.track("processing_complete", {"domain": "branding", "score": 0.4})
    telemetry.timing("processing", 10.0)
    telemetry.timing("processing", 30.0)
    telemetry.error("processing_error", RuntimeError("boom"), {"domain": "sql"})

    stats = telemetry.get_stats()

    assert stats["events_today"] == 3
    assert stats["errors_today"] == 1
    assert stats["error_rate"] == pytest.approx(1 / 3)
    assert stats["avg_processing_time"] == pytest.approx(20.0)
    assert stats["top_domains"][0] == {"domain": "sql", "count": 2}
    assert stats["quality_trends"][0]["avg_score"] == pytest.approx(0.6)
    assert telemetry.errors()[0].severity == "critical"
    assert len(telemetry.events("processing_complete")) == 3


def test_telemetry_buffer_is_bounded() -> None:
    telemetry = Telemetry(buffer_size=2)
    for index in range(5):
        telemetry.track("event", {"index": index})

    assert [event.data["index"] for event in telemetry.events()] == [3, 4]


@pytest.mark.parametrize(
    ("name", "severity"),
    [
        ("processing_error", "critical"),
        ("validation_error", "high"),
        ("cache_error", "medium"),
        ("save_error", "low"),
    ],
)
def test_error_severity(name: str, severity: str) -> None:
    assert error_severity(name) == severity


def test_null_telemetry_is_disabled() -> None:
    telemetry = NullTelemetry()
    telemetry.track("anything", {"domain": "sql"})

    assert not telemetry.enabled
    assert telemetry.get_stats()["events_today"] == 0


def test_in_memory_metrics_counts_and_resets() -> None:
    metrics = InMemoryMetrics()
    metrics.increment("cache_hits")
    metrics.increment("cache_hits", 2)
    metrics.observe("latency", 4.0)
    metrics.observe("latency", 6.0)

    assert metrics.count("cache_hits") == 3
    assert metrics.snapshot()["latency_avg"] == 5.0

    metrics.reset("cache_hits")
    assert metrics.count("cache_hits") == 0
    assert metrics.snapshot()["latency_count"] == 2
