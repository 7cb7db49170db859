"""Base metrics source class."""

from abc import ABC, abstractmethod
from datetime import datetime

from google.cloud import monitoring_v3


class MetricsSource(ABC):
    """Base class for every object whose metrics can be snapshotted."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identity of the source, used as a metric label."""
        pass

    @abstractmethod
    def emit_metrics(
        self,
        monitoring_client: monitoring_v3.MetricServiceClient,
        project_id: str,
        timestamp: datetime,
    ) -> None:
        """
        Emit the current value of every metric this source owns.

        Args:
            monitoring_client: Monitoring client receiving the time series
            project_id: Project ID for metric emission
            timestamp: Point-in-time of the emitted values
        """
        pass

    def describe(self) -> str:
        """Short human-readable description used in diagnostic logs."""
        return self.name
