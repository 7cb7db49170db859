"""Snapshot and equality assertions over the metrics of a source."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from google.cloud.monitoring_v3 import TimeSeries

from config import get_config
from metrics import CUMULATIVE, CapturingMonitoringClient, metric_name
from sources.base import MetricsSource

GAUGE_KIND = "gauge"
COUNTER_KIND = "counter"


@dataclass(frozen=True)
class MetricValue:
    name: str
    kind: str
    value: int


class MetricsRecord:
    """Point-in-time record of display name -> value for one source."""

    def __init__(self, source_name: str, values: dict[str, MetricValue]):
        self.source_name = source_name
        self._values = dict(values)

    @classmethod
    def from_time_series(cls, source_name: str, time_series: list[TimeSeries]) -> "MetricsRecord":
        """
        Decode captured series into a record.

        Args:
            source_name: Name of the source the series came from
            time_series: Series captured from one emission of the source

        Returns:
            Record keyed by display name; a later series overrides an earlier one
        """
        values = {}
        for ts in time_series:
            name = metric_name(ts)
            kind = COUNTER_KIND if ts.metric_kind == CUMULATIVE else GAUGE_KIND
            value = ts.points[-1].value.int64_value if ts.points else 0
            values[name] = MetricValue(name=name, kind=kind, value=value)
        return cls(source_name, values)

    def get(self, name: str) -> MetricValue | None:
        return self._values.get(name)

    def names(self) -> list[str]:
        return sorted(self._values)

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self):
        return f"MetricsRecord(source={self.source_name}, metrics={len(self._values)})"


def get_metrics(
    source: MetricsSource,
    project_id: str | None = None,
    timestamp: datetime | None = None,
) -> MetricsRecord:
    """
    Take a snapshot of every metric the source currently exposes.

    Args:
        source: Metrics source to snapshot
        project_id: Project the series are emitted under (default: configured project)
        timestamp: Snapshot time (default: now)

    Returns:
        Record of the source's metric values

    Raises:
        ValueError: If source is None
    """
    if source is None:
        raise ValueError("MetricsSource should not be None")

    client = CapturingMonitoringClient()
    source.emit_metrics(
        monitoring_client=client,
        project_id=project_id or get_config().project_id,
        timestamp=timestamp or datetime.now(UTC),
    )
    record = MetricsRecord.from_time_series(source.name, client.time_series)
    logging.debug(f"Captured {len(record)} metrics from {source.name}")
    return record


def _lookup(name: str, kind: str, record: MetricsRecord) -> int:
    metric = record.get(name)
    if metric is None:
        raise AssertionError(f"Expected {kind} {name} not found in metrics of {record.source_name}")
    if metric.kind != kind:
        raise AssertionError(f"Metric {name} is a {metric.kind}, not a {kind}")
    return metric.value


def assert_gauge(name: str, expected: int, record: MetricsRecord) -> None:
    """Assert that gauge ``name`` in ``record`` equals ``expected``."""
    actual = _lookup(name, GAUGE_KIND, record)
    if actual != expected:
        raise AssertionError(f"Bad value for metric {name}: expected {expected}, actual {actual}")


def assert_counter(name: str, expected: int, record: MetricsRecord) -> None:
    """Assert that counter ``name`` in ``record`` equals ``expected``."""
    actual = _lookup(name, COUNTER_KIND, record)
    if actual != expected:
        raise AssertionError(f"Bad value for metric {name}: expected {expected}, actual {actual}")


__all__ = [
    "MetricValue",
    "MetricsRecord",
    "assert_counter",
    "assert_gauge",
    "get_metrics",
]
