"""Pytest configuration for checker tests."""

import pytest
from pytest_mock import MockerFixture

import config
from sources.queue_metrics import QueueMetrics


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """
    Fixture that isolates every test from the host environment.

    Clears the configuration variables and the cached Config so each test
    sees the defaults unless it sets its own environment.
    """
    for var in (
        "RESOURCE_METRICS_PROJECT_ID",
        "PROJECT_ID",
        "RESOURCE_METRICS_STRICT_CATEGORIES",
        "STRICT_CATEGORIES",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config, "_config", None)
    yield


@pytest.fixture(scope="function")
def mock_monitoring_client(mocker: MockerFixture):
    """Fixture that provides a mocked Monitoring client."""
    from google.cloud import monitoring_v3

    return mocker.MagicMock(spec=monitoring_v3.MetricServiceClient)


@pytest.fixture(scope="function")
def root_queue():
    """Fixture that provides a root queue with per-user metrics enabled."""
    return QueueMetrics("root", enable_user_metrics=True)


@pytest.fixture(scope="function")
def leaf_queue(root_queue):
    """Fixture that provides a leaf queue rolling up into ``root_queue``."""
    return QueueMetrics("root.default", parent=root_queue, enable_user_metrics=True)
