"""Queue resource metrics source.

Tracks the allocation, availability, pending and reservation state of one
scheduler queue as a fixed set of named gauges and counters. A queue may keep
a per-user breakdown and may roll its changes up into a parent queue, so a
test can snapshot a leaf queue, its parent, or one user's share of either.
"""

import logging
from datetime import UTC, datetime

from google.cloud import monitoring_v3

from metrics import emit_counter_metric, emit_gauge_metric
from sources.base import MetricsSource

METRIC_NAME_PREFIX = "yarn_queue/"

GAUGE_NAMES = (
    "AllocatedMB",
    "AllocatedVCores",
    "AllocatedContainers",
    "AvailableMB",
    "AvailableVCores",
    "PendingMB",
    "PendingVCores",
    "PendingContainers",
    "ReservedMB",
    "ReservedVCores",
    "ReservedContainers",
)

COUNTER_NAMES = (
    "AggregateContainersAllocated",
    "AggregateContainersReleased",
)


def _check_non_negative(**amounts: int) -> None:
    for label, amount in amounts.items():
        if amount < 0:
            raise ValueError(f"{label} must not be negative, got {amount}")


class QueueMetrics(MetricsSource):
    """Gauges and counters of a single queue (or of one user within a queue)."""

    def __init__(
        self,
        queue_name: str,
        parent: "QueueMetrics | None" = None,
        enable_user_metrics: bool = False,
        user: str | None = None,
    ):
        """
        Initialize the queue metrics with every value at zero.

        Args:
            queue_name: Name of the queue
            parent: Parent queue that receives the same updates, if any
            enable_user_metrics: Whether to keep a per-user breakdown
            user: User this instance tracks, for per-user sub-metrics
        """
        self.queue_name = queue_name
        self.parent = parent
        self.user = user
        self.users: dict[str, QueueMetrics] | None = {} if enable_user_metrics else None
        self.start_time = datetime.now(UTC)
        self._gauges = {name: 0 for name in GAUGE_NAMES}
        self._counters = {name: 0 for name in COUNTER_NAMES}

    @property
    def name(self) -> str:
        if self.user is not None:
            return f"{self.queue_name}/{self.user}"
        return self.queue_name

    def get_user_metrics(self, user: str) -> "QueueMetrics | None":
        """Return the sub-metrics of ``user``, creating them on first use."""
        if self.users is None or user is None:
            return None
        if user not in self.users:
            self.users[user] = QueueMetrics(self.queue_name, user=user)
        return self.users[user]

    def gauge(self, name: str) -> int:
        return self._gauges[name]

    def counter(self, name: str) -> int:
        return self._counters[name]

    def _add(self, name: str, delta: int) -> None:
        self._gauges[name] += delta

    def _apply(self, user: str | None, update) -> None:
        """Apply ``update`` to this queue, the user's sub-metrics and the parent chain."""
        update(self)
        user_metrics = self.get_user_metrics(user)
        if user_metrics is not None:
            update(user_metrics)
        if self.parent is not None:
            self.parent._apply(user, update)

    def set_available_resources(self, memory_mb: int, vcores: int) -> None:
        """Set the headroom of this queue. Not rolled up into the parent."""
        _check_non_negative(memory_mb=memory_mb, vcores=vcores)
        self._gauges["AvailableMB"] = memory_mb
        self._gauges["AvailableVCores"] = vcores

    def set_available_resources_to_user(self, user: str, memory_mb: int, vcores: int) -> None:
        user_metrics = self.get_user_metrics(user)
        if user_metrics is not None:
            user_metrics.set_available_resources(memory_mb, vcores)

    def incr_pending_resources(
        self, user: str | None, containers: int, memory_mb: int, vcores: int
    ) -> None:
        """
        Record ``containers`` new outstanding requests of ``memory_mb``/``vcores`` each.

        Args:
            user: Requesting user, or None
            containers: Number of requested containers
            memory_mb: Memory per container
            vcores: Virtual cores per container
        """
        _check_non_negative(containers=containers, memory_mb=memory_mb, vcores=vcores)

        def update(metrics: QueueMetrics) -> None:
            metrics._add("PendingContainers", containers)
            metrics._add("PendingMB", containers * memory_mb)
            metrics._add("PendingVCores", containers * vcores)

        self._apply(user, update)

    def decr_pending_resources(
        self, user: str | None, containers: int, memory_mb: int, vcores: int
    ) -> None:
        _check_non_negative(containers=containers, memory_mb=memory_mb, vcores=vcores)

        def update(metrics: QueueMetrics) -> None:
            metrics._add("PendingContainers", -containers)
            metrics._add("PendingMB", -containers * memory_mb)
            metrics._add("PendingVCores", -containers * vcores)

        self._apply(user, update)

    def allocate_resources(
        self,
        user: str | None,
        containers: int,
        memory_mb: int,
        vcores: int,
        decr_pending: bool = True,
    ) -> None:
        """
        Record ``containers`` allocated containers of ``memory_mb``/``vcores`` each.

        Args:
            user: User receiving the containers, or None
            containers: Number of allocated containers
            memory_mb: Memory per container
            vcores: Virtual cores per container
            decr_pending: Whether the allocation satisfies pending requests
        """
        _check_non_negative(containers=containers, memory_mb=memory_mb, vcores=vcores)

        def update(metrics: QueueMetrics) -> None:
            metrics._add("AllocatedContainers", containers)
            metrics._add("AllocatedMB", containers * memory_mb)
            metrics._add("AllocatedVCores", containers * vcores)
            metrics._counters["AggregateContainersAllocated"] += containers
            if decr_pending:
                metrics._add("PendingContainers", -containers)
                metrics._add("PendingMB", -containers * memory_mb)
                metrics._add("PendingVCores", -containers * vcores)

        self._apply(user, update)

    def release_resources(
        self, user: str | None, containers: int, memory_mb: int, vcores: int
    ) -> None:
        _check_non_negative(containers=containers, memory_mb=memory_mb, vcores=vcores)

        def update(metrics: QueueMetrics) -> None:
            metrics._add("AllocatedContainers", -containers)
            metrics._add("AllocatedMB", -containers * memory_mb)
            metrics._add("AllocatedVCores", -containers * vcores)
            metrics._counters["AggregateContainersReleased"] += containers

        self._apply(user, update)

    def reserve_resource(self, user: str | None, memory_mb: int, vcores: int) -> None:
        """Record one reserved container of ``memory_mb``/``vcores``."""
        _check_non_negative(memory_mb=memory_mb, vcores=vcores)

        def update(metrics: QueueMetrics) -> None:
            metrics._add("ReservedContainers", 1)
            metrics._add("ReservedMB", memory_mb)
            metrics._add("ReservedVCores", vcores)

        self._apply(user, update)

    def unreserve_resource(self, user: str | None, memory_mb: int, vcores: int) -> None:
        _check_non_negative(memory_mb=memory_mb, vcores=vcores)

        def update(metrics: QueueMetrics) -> None:
            metrics._add("ReservedContainers", -1)
            metrics._add("ReservedMB", -memory_mb)
            metrics._add("ReservedVCores", -vcores)

        self._apply(user, update)

    def emit_metrics(
        self,
        monitoring_client: monitoring_v3.MetricServiceClient,
        project_id: str,
        timestamp: datetime,
    ) -> None:
        """Emit one series per gauge and counter of this queue (users excluded)."""
        labels = {"queue": self.queue_name}
        if self.user is not None:
            labels["user"] = self.user

        for name, value in self._gauges.items():
            emit_gauge_metric(
                monitoring_client=monitoring_client,
                project_id=project_id,
                name=f"{METRIC_NAME_PREFIX}{name}",
                value=value,
                labels=labels,
                timestamp=timestamp,
            )

        for name, value in self._counters.items():
            emit_counter_metric(
                monitoring_client=monitoring_client,
                project_id=project_id,
                name=f"{METRIC_NAME_PREFIX}{name}",
                value=value,
                labels=labels,
                start_time=self.start_time,
                timestamp=timestamp,
            )

        logging.debug(
            f"Emitted {len(self._gauges) + len(self._counters)} metrics for {self.name}"
        )

    def describe(self) -> str:
        users = ", ".join(sorted(self.users)) if self.users else ""
        return f"QueueName: {self.queue_name}, users: {users}"

    def __repr__(self):
        return f"QueueMetrics(name={self.name})"


__all__ = ["COUNTER_NAMES", "GAUGE_NAMES", "QueueMetrics"]
