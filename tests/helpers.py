"""Shared test utilities for metric verification."""

from datetime import datetime

from metrics import GAUGE, emit_counter_metric, emit_gauge_metric
from sources.base import MetricsSource


class MetricMatcher:
    """Custom matcher for verifying TimeSeries metric properties."""

    def __init__(self, metric_type, value, labels, metric_kind=GAUGE):
        self.metric_type = metric_type
        self.value = value
        self.labels = labels
        self.metric_kind = metric_kind

    def __eq__(self, time_series_list):
        """Match against a list containing a single TimeSeries."""
        if len(time_series_list) != 1:
            return False
        ts = time_series_list[0]
        return (
            ts.metric.type == f"custom.googleapis.com/{self.metric_type}"
            and dict(ts.metric.labels) == self.labels
            and ts.metric_kind == self.metric_kind
            and len(ts.points) == 1
            and ts.points[0].value.int64_value == self.value
        )

    def __repr__(self):
        return f"MetricMatcher(type={self.metric_type}, value={self.value}, labels={self.labels})"


def assert_metrics_emitted(mock_monitoring_client, expected_calls: list) -> None:
    """Assert that every expected series was sent to the project it names."""
    emitted = [
        (actual.kwargs.get("name"), actual.kwargs.get("time_series", []))
        for actual in mock_monitoring_client.create_time_series.call_args_list
    ]

    for expected in expected_calls:
        project_name = expected.kwargs["name"]
        matcher = expected.kwargs["time_series"]

        if not any(name == project_name and matcher == series for name, series in emitted):
            emitted_types = sorted(
                ts.metric.type for name, series in emitted if name == project_name for ts in series
            )
            raise AssertionError(
                f"{matcher} not emitted to {project_name}; emitted: {emitted_types}"
            )


class StaticMetricsSource(MetricsSource):
    """Source that emits fixed gauge and counter values."""

    def __init__(self, name: str, gauges: dict, counters: dict):
        self._name = name
        self.gauges = dict(gauges)
        self.counters = dict(counters)
        self.emit_count = 0

    @property
    def name(self) -> str:
        return self._name

    def emit_metrics(self, monitoring_client, project_id: str, timestamp: datetime) -> None:
        self.emit_count += 1
        for metric, value in self.gauges.items():
            emit_gauge_metric(
                monitoring_client=monitoring_client,
                project_id=project_id,
                name=f"static/{metric}",
                value=value,
                labels={"source": self._name},
                timestamp=timestamp,
            )
        for metric, value in self.counters.items():
            emit_counter_metric(
                monitoring_client=monitoring_client,
                project_id=project_id,
                name=f"static/{metric}",
                value=value,
                labels={"source": self._name},
                start_time=timestamp,
                timestamp=timestamp,
            )


ZERO_GAUGES = {
    "AllocatedMB": 0,
    "AllocatedVCores": 0,
    "AllocatedContainers": 0,
    "AvailableMB": 0,
    "AvailableVCores": 0,
    "PendingMB": 0,
    "PendingVCores": 0,
    "PendingContainers": 0,
    "ReservedMB": 0,
    "ReservedVCores": 0,
    "ReservedContainers": 0,
}

ZERO_COUNTERS = {
    "AggregateContainersAllocated": 0,
    "AggregateContainersReleased": 0,
}


def static_source(name: str = "root.default", gauges: dict | None = None, counters: dict | None = None):
    """Build a StaticMetricsSource reporting zero for every metric except the overrides."""
    return StaticMetricsSource(
        name,
        {**ZERO_GAUGES, **(gauges or {})},
        {**ZERO_COUNTERS, **(counters or {})},
    )


__all__ = [
    "MetricMatcher",
    "StaticMetricsSource",
    "assert_metrics_emitted",
    "static_source",
]
