"""Metrics emission utilities."""

import json
import logging
from datetime import datetime

from google.api import metric_pb2 as ga_metric
from google.cloud import monitoring_v3
from google.cloud.monitoring_v3 import Point, TimeSeries

METRIC_TYPE_PREFIX = "custom.googleapis.com/"

GAUGE = ga_metric.MetricDescriptor.GAUGE
CUMULATIVE = ga_metric.MetricDescriptor.CUMULATIVE


def _build_series(
    *,
    project_id: str,
    name: str,
    labels: dict,
    metric_kind: int,
) -> TimeSeries:
    series = TimeSeries()
    series.metric.type = f"{METRIC_TYPE_PREFIX}{name}"
    series.metric.labels.update(labels)
    series.resource.type = "global"
    series.resource.labels["project_id"] = project_id
    series.metric_kind = metric_kind
    series.value_type = ga_metric.MetricDescriptor.INT64
    return series


def emit_gauge_metric(
    *,
    monitoring_client: monitoring_v3.MetricServiceClient,
    project_id: str,
    name: str,
    value: int,
    labels: dict,
    timestamp: datetime,
) -> None:
    """
    Emit an INT64 GAUGE metric through the given monitoring client.

    Args:
        monitoring_client: Monitoring client (real or capturing)
        project_id: Project ID for metric emission
        name: Metric name
        value: Metric value
        labels: Metric labels
        timestamp: Metric timestamp
    """
    series = _build_series(
        project_id=project_id,
        name=name,
        labels=labels,
        metric_kind=GAUGE,
    )

    point = Point()
    point.value.int64_value = int(value)
    point.interval.end_time = timestamp
    series.points = [point]

    monitoring_client.create_time_series(name=f"projects/{project_id}", time_series=[series])


def emit_counter_metric(
    *,
    monitoring_client: monitoring_v3.MetricServiceClient,
    project_id: str,
    name: str,
    value: int,
    labels: dict,
    start_time: datetime,
    timestamp: datetime,
) -> None:
    """
    Emit an INT64 CUMULATIVE metric through the given monitoring client.

    Cumulative points cover the interval from ``start_time`` (when the counter
    started counting) to ``timestamp``.

    Args:
        monitoring_client: Monitoring client (real or capturing)
        project_id: Project ID for metric emission
        name: Metric name
        value: Counter total
        labels: Metric labels
        start_time: Start of the cumulative interval
        timestamp: End of the cumulative interval
    """
    series = _build_series(
        project_id=project_id,
        name=name,
        labels=labels,
        metric_kind=CUMULATIVE,
    )

    point = Point()
    point.value.int64_value = int(value)
    point.interval.start_time = start_time
    point.interval.end_time = timestamp
    series.points = [point]

    monitoring_client.create_time_series(name=f"projects/{project_id}", time_series=[series])


def metric_name(series: TimeSeries) -> str:
    """Return the display name of a series (last segment of its metric type)."""
    return series.metric.type.rsplit("/", 1)[-1]


class CapturingMonitoringClient:
    """
    In-process stand-in for ``MetricServiceClient`` used to take snapshots.

    Records every series passed to ``create_time_series`` instead of calling GCP,
    and logs each one the same way a local-mode client would.
    """

    def __init__(self):
        self.captured_calls = []

    def create_time_series(self, name: str, time_series: list) -> None:
        """Record the call and log its series."""
        self.captured_calls.append({"project_name": name, "time_series": list(time_series)})

        for ts in time_series:
            metric_data = {
                "metric_type": "counter" if ts.metric_kind == CUMULATIVE else "gauge",
                "project_id": name.replace("projects/", ""),
                "name": ts.metric.type.replace(METRIC_TYPE_PREFIX, ""),
                "value": ts.points[0].value.int64_value if ts.points else 0,
                "labels": dict(ts.metric.labels),
            }
            logging.debug(f"METRIC: {json.dumps(metric_data)}")

    @property
    def time_series(self) -> list[TimeSeries]:
        """All captured series, in emission order."""
        return [ts for call in self.captured_calls for ts in call["time_series"]]


__all__ = [
    "CUMULATIVE",
    "CapturingMonitoringClient",
    "GAUGE",
    "emit_counter_metric",
    "emit_gauge_metric",
    "metric_name",
]
