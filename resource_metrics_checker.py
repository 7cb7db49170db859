"""Expected-value checker for queue resource metrics.

A checker accumulates expected values for the thirteen queue resource metrics,
split into long gauges, int gauges and counters, starting from an all-zero
baseline. After the operation under test, ``check_against`` snapshots a metrics
source and asserts every expectation:

    (
        ResourceMetricsChecker.create()
        .gauge_long(ResourceMetricsKey.ALLOCATED_MB, 1024)
        .gauge_int(ResourceMetricsKey.ALLOCATED_CONTAINERS, 2)
        .check_against(queue_metrics)
    )
"""

import logging
from enum import Enum
from types import MappingProxyType

from config import get_config
from metrics_asserts import assert_counter, assert_gauge, get_metrics
from sources.base import MetricsSource

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1
LONG_MIN = -(2**63)
LONG_MAX = 2**63 - 1


class MetricsCheckerConfigError(ValueError):
    """Raised when the checker is misused (missing source, wrong metric category)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MetricCategory(Enum):
    GAUGE_LONG = "gauge_long"
    GAUGE_INT = "gauge_int"
    COUNTER = "counter"


_RANGES = {
    MetricCategory.GAUGE_LONG: (LONG_MIN, LONG_MAX, "a long gauge"),
    MetricCategory.GAUGE_INT: (INT_MIN, INT_MAX, "an int gauge"),
    MetricCategory.COUNTER: (LONG_MIN, LONG_MAX, "a counter"),
}


class ResourceMetricsKey(Enum):
    """Known queue resource metrics: display name and category."""

    ALLOCATED_MB = ("AllocatedMB", MetricCategory.GAUGE_LONG)
    ALLOCATED_V_CORES = ("AllocatedVCores", MetricCategory.GAUGE_INT)
    ALLOCATED_CONTAINERS = ("AllocatedContainers", MetricCategory.GAUGE_INT)
    AGGREGATE_CONTAINERS_ALLOCATED = ("AggregateContainersAllocated", MetricCategory.COUNTER)
    AGGREGATE_CONTAINERS_RELEASED = ("AggregateContainersReleased", MetricCategory.COUNTER)
    AVAILABLE_MB = ("AvailableMB", MetricCategory.GAUGE_LONG)
    AVAILABLE_V_CORES = ("AvailableVCores", MetricCategory.GAUGE_INT)
    PENDING_MB = ("PendingMB", MetricCategory.GAUGE_LONG)
    PENDING_V_CORES = ("PendingVCores", MetricCategory.GAUGE_INT)
    PENDING_CONTAINERS = ("PendingContainers", MetricCategory.GAUGE_INT)
    RESERVED_MB = ("ReservedMB", MetricCategory.GAUGE_LONG)
    RESERVED_V_CORES = ("ReservedVCores", MetricCategory.GAUGE_INT)
    RESERVED_CONTAINERS = ("ReservedContainers", MetricCategory.GAUGE_INT)

    def __init__(self, display_name: str, category: MetricCategory):
        self.display_name = display_name
        self.category = category


class ResourceMetricsChecker:
    """Accumulates expected metric values and verifies them against a source."""

    def __init__(
        self,
        gauges_long: dict | None = None,
        gauges_int: dict | None = None,
        counters: dict | None = None,
        strict: bool | None = None,
    ):
        self._gauges_long = dict(gauges_long or {})
        self._gauges_int = dict(gauges_int or {})
        self._counters = dict(counters or {})
        self.strict = get_config().strict_categories if strict is None else strict

    @classmethod
    def create(cls, strict: bool | None = None) -> "ResourceMetricsChecker":
        """Return a new checker expecting every known metric to be zero."""
        return cls(
            _INITIAL_GAUGES_LONG,
            _INITIAL_GAUGES_INT,
            _INITIAL_COUNTERS,
            strict=strict,
        )

    @classmethod
    def create_from_checker(cls, checker: "ResourceMetricsChecker") -> "ResourceMetricsChecker":
        """Return an independent copy of ``checker``'s expectations."""
        if checker is None:
            raise MetricsCheckerConfigError("Checker to copy from should not be None")
        return cls(
            checker._gauges_long,
            checker._gauges_int,
            checker._counters,
            strict=checker.strict,
        )

    @property
    def gauges_long(self) -> MappingProxyType:
        return MappingProxyType(self._gauges_long)

    @property
    def gauges_int(self) -> MappingProxyType:
        return MappingProxyType(self._gauges_int)

    @property
    def counters(self) -> MappingProxyType:
        return MappingProxyType(self._counters)

    def expected(self, key: ResourceMetricsKey) -> int | None:
        """Expected value of ``key`` in its own category, or None if unset."""
        return self._mapping_for(key.category).get(key)

    def _mapping_for(self, category: MetricCategory) -> dict:
        if category is MetricCategory.GAUGE_LONG:
            return self._gauges_long
        if category is MetricCategory.GAUGE_INT:
            return self._gauges_int
        return self._counters

    def _put(self, category: MetricCategory, key: ResourceMetricsKey, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise MetricsCheckerConfigError(
                f"Expected value for {key.display_name} must be an integer, got {value!r}"
            )
        if self.strict:
            if key.category is not category:
                raise MetricsCheckerConfigError(
                    f"{key.display_name} is a {key.category.value} metric, "
                    f"not a {category.value} metric"
                )
            low, high, kind = _RANGES[category]
            if not low <= value <= high:
                raise MetricsCheckerConfigError(
                    f"Expected value {value} for {key.display_name} does not fit in {kind}"
                )
        self._mapping_for(category)[key] = value

    def gauge_long(self, key: ResourceMetricsKey, value: int) -> "ResourceMetricsChecker":
        self._put(MetricCategory.GAUGE_LONG, key, value)
        return self

    def gauge_int(self, key: ResourceMetricsKey, value: int) -> "ResourceMetricsChecker":
        self._put(MetricCategory.GAUGE_INT, key, value)
        return self

    def counter(self, key: ResourceMetricsKey, value: int) -> "ResourceMetricsChecker":
        self._put(MetricCategory.COUNTER, key, value)
        return self

    def check_against(self, source: MetricsSource) -> "ResourceMetricsChecker":
        """
        Assert every accumulated expectation against a snapshot of ``source``.

        Args:
            source: Metrics source to snapshot

        Returns:
            This checker, for further chaining

        Raises:
            MetricsCheckerConfigError: If source is None
            AssertionError: On the first metric whose value differs
        """
        if source is None:
            raise MetricsCheckerConfigError("MetricsSource should not be None!")

        record = get_metrics(source)
        if logging.getLogger().isEnabledFor(logging.DEBUG):
            logging.debug(f"Asserting Resource metrics.. {source.describe()}")

        for key, value in self._gauges_long.items():
            assert_gauge(key.display_name, value, record)

        for key, value in self._gauges_int.items():
            assert_gauge(key.display_name, value, record)

        for key, value in self._counters.items():
            assert_counter(key.display_name, value, record)
        return self

    def __repr__(self):
        return (
            f"ResourceMetricsChecker(gauges_long={len(self._gauges_long)}, "
            f"gauges_int={len(self._gauges_int)}, counters={len(self._counters)})"
        )


# Baseline: every known metric at zero, each in its own category
_INITIAL_GAUGES_LONG = MappingProxyType(
    {key: 0 for key in ResourceMetricsKey if key.category is MetricCategory.GAUGE_LONG}
)
_INITIAL_GAUGES_INT = MappingProxyType(
    {key: 0 for key in ResourceMetricsKey if key.category is MetricCategory.GAUGE_INT}
)
_INITIAL_COUNTERS = MappingProxyType(
    {key: 0 for key in ResourceMetricsKey if key.category is MetricCategory.COUNTER}
)


__all__ = [
    "MetricCategory",
    "MetricsCheckerConfigError",
    "ResourceMetricsChecker",
    "ResourceMetricsKey",
]
