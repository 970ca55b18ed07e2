"""Shared test fixtures for kube-secrets-manager tests."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client import V1ObjectMeta, V1Secret

from kube_secrets_manager.clock import FakeClock

NAMESPACE = "shoot--foo--bar"
IDENTITY = "test-identity"


@pytest.fixture
def fake_clock():
    """Clock pinned to 2024-01-01 00:00:00 UTC."""
    return FakeClock(datetime(2024, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def make_secret():
    """Factory for managed secrets as returned by the API server."""

    def _make(
        object_name: str,
        logical_name: str | None = None,
        *,
        created: datetime | None = None,
        labels: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
    ) -> V1Secret:
        all_labels = {
            "managed-by": "secrets-manager",
            "manager-identity": IDENTITY,
        }
        if logical_name is not None:
            all_labels["name"] = logical_name
        all_labels.update(labels or {})
        return V1Secret(
            metadata=V1ObjectMeta(
                name=object_name,
                namespace=NAMESPACE,
                labels=all_labels,
                creation_timestamp=created,
            ),
            data=data,
        )

    return _make


@pytest.fixture
def mock_core_v1_api():
    """CoreV1Api double whose list call returns no secrets by default."""
    api = MagicMock()
    api.list_namespaced_secret.return_value = MagicMock(items=[])
    return api


@pytest.fixture
def mock_kube_contexts():
    """Mock kubernetes config contexts."""
    with patch("kubernetes.config.list_kube_config_contexts") as mock:
        mock.return_value = (
            [{"name": "test-context"}, {"name": "other-context"}],
            {"name": "test-context"},
        )
        yield mock


@pytest.fixture
def mock_kube_config():
    """Mock kubernetes config loading."""
    with patch("kubernetes.config.load_kube_config") as mock:
        yield mock


@pytest.fixture
def mock_client_api():
    """Mock CoreV1Api construction."""
    with patch("kubernetes.client.CoreV1Api") as mock:
        yield mock


@pytest.fixture
def cluster_mocks(mock_kube_contexts, mock_kube_config, mock_client_api):
    """Combined fixture for creating a Cluster instance without a cluster."""
    return {
        "contexts": mock_kube_contexts,
        "config": mock_kube_config,
        "client": mock_client_api,
    }
