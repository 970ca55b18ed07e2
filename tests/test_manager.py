"""Tests for manager.py module."""

import hashlib
import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import MaxRetryError, NewConnectionError, ReadTimeoutError

from kube_secrets_manager.clock import RealClock
from kube_secrets_manager.config import CertificateSecretConfig, CertType
from kube_secrets_manager.exceptions import (
    ClusterConnectionError,
    InitializationCancelledError,
    MalformedLabelError,
)
from kube_secrets_manager.manager import SecretsManager
from kube_secrets_manager.models import SecretClass

NAMESPACE = "shoot--foo--bar"
IDENTITY = "test-identity"

DAY = 24 * 60 * 60
NOW = "1704067200"  # 2024-01-01T00:00:00Z, the fake clock's instant
T0 = datetime(2023, 6, 1, tzinfo=timezone.utc)


def build(api, clock, overrides=None, **kwargs) -> SecretsManager:
    return SecretsManager(api, NAMESPACE, IDENTITY, clock, overrides, **kwargs)


def listing(api, *secrets) -> None:
    api.list_namespaced_secret.return_value = MagicMock(items=list(secrets))


def renewal_labels(issued_at: int, valid_until: int) -> dict[str, str]:
    return {"issued-at-time": str(issued_at), "valid-until-time": str(valid_until)}


class TestListCall:
    """Tests for the single list call."""

    def test_lists_owned_secrets(self, mock_core_v1_api, fake_clock):
        """Test the list call filters on the ownership labels."""
        build(mock_core_v1_api, fake_clock)

        mock_core_v1_api.list_namespaced_secret.assert_called_once_with(
            NAMESPACE,
            label_selector=f"managed-by=secrets-manager,manager-identity={IDENTITY}",
        )

    def test_request_timeout_is_passed(self, mock_core_v1_api, fake_clock):
        """Test the request timeout reaches the API client."""
        build(mock_core_v1_api, fake_clock, request_timeout=5)

        _, kwargs = mock_core_v1_api.list_namespaced_secret.call_args
        assert kwargs["_request_timeout"] == 5

    def test_empty_namespace(self, mock_core_v1_api, fake_clock):
        """Test a namespace without managed secrets yields no epochs."""
        manager = build(mock_core_v1_api, fake_clock)

        assert manager.last_rotation_initiation_times == {}
        assert manager.last_rotation_initiation_time("ca") == ""

    def test_api_error(self, mock_core_v1_api, fake_clock):
        """Test an API error aborts initialization."""
        error = ApiException(status=403, reason="Forbidden")
        mock_core_v1_api.list_namespaced_secret.side_effect = error

        with pytest.raises(ClusterConnectionError) as exc_info:
            build(mock_core_v1_api, fake_clock)

        assert "403" in str(exc_info.value)
        assert exc_info.value.__cause__ is error

    def test_connection_error(self, mock_core_v1_api, fake_clock):
        """Test an unreachable API server aborts initialization."""
        connection_error = NewConnectionError(None, "Failed to establish a new connection")
        mock_core_v1_api.list_namespaced_secret.side_effect = MaxRetryError(
            pool=None, url="/api/v1/namespaces/x/secrets", reason=connection_error
        )

        with pytest.raises(ClusterConnectionError) as exc_info:
            build(mock_core_v1_api, fake_clock)

        assert "Failed to connect" in str(exc_info.value)

    def test_timeout(self, mock_core_v1_api, fake_clock):
        """Test a timed out list call aborts initialization."""
        mock_core_v1_api.list_namespaced_secret.side_effect = ReadTimeoutError(None, "/api", "Read timed out.")

        with pytest.raises(ClusterConnectionError):
            build(mock_core_v1_api, fake_clock, request_timeout=1)


class TestCancellation:
    """Tests for caller cancellation."""

    def test_cancelled_before_list(self, mock_core_v1_api, fake_clock):
        """Test a cancelled initialization does not list anything."""
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(InitializationCancelledError):
            build(mock_core_v1_api, fake_clock, cancel_event=cancel)

        mock_core_v1_api.list_namespaced_secret.assert_not_called()

    def test_cancelled_during_list(self, mock_core_v1_api, fake_clock, make_secret):
        """Test cancellation while listing aborts initialization."""
        cancel = threading.Event()

        def list_and_cancel(*args, **kwargs):
            cancel.set()
            return MagicMock(items=[make_secret("ca", "ca")])

        mock_core_v1_api.list_namespaced_secret.side_effect = list_and_cancel

        with pytest.raises(InitializationCancelledError):
            build(mock_core_v1_api, fake_clock, cancel_event=cancel)


class TestEpochRecovery:
    """Tests for recovering the rotation epochs."""

    def test_epoch_recovered_verbatim(self, mock_core_v1_api, fake_clock, make_secret):
        """Test the epoch label is stored as found."""
        listing(
            mock_core_v1_api,
            make_secret("ca-1", "ca", created=T0, labels={"last-rotation-initiation-time": "1680000000"}),
            make_secret("etcd-1", "etcd", created=T0, labels={"last-rotation-initiation-time": ""}),
            make_secret("ssh-1", "ssh", created=T0),
        )

        manager = build(mock_core_v1_api, fake_clock)

        assert manager.last_rotation_initiation_times == {"ca": "1680000000", "etcd": "", "ssh": ""}

    def test_newest_secret_wins(self, mock_core_v1_api, fake_clock, make_secret):
        """Test only the newest generation's epoch is recovered."""
        newer = make_secret(
            "ca-new", "ca", created=T0 + timedelta(days=1), labels={"last-rotation-initiation-time": "200"}
        )
        older = make_secret("ca-old", "ca", created=T0, labels={"last-rotation-initiation-time": "100"})
        listing(mock_core_v1_api, newer, older)

        manager = build(mock_core_v1_api, fake_clock)

        assert manager.last_rotation_initiation_time("ca") == "200"

    def test_newest_secret_wins_in_listing_order(self, mock_core_v1_api, fake_clock, make_secret):
        """Test the result does not depend on the listing order."""
        older = make_secret("ca-old", "ca", created=T0, labels={"last-rotation-initiation-time": "100"})
        newer = make_secret(
            "ca-new", "ca", created=T0 + timedelta(days=1), labels={"last-rotation-initiation-time": "200"}
        )
        listing(mock_core_v1_api, older, newer)

        manager = build(mock_core_v1_api, fake_clock)

        assert manager.last_rotation_initiation_time("ca") == "200"

    def test_missing_creation_timestamp_is_oldest(self, mock_core_v1_api, fake_clock, make_secret):
        """Test a secret without creation timestamp loses against a dated one."""
        undated = make_secret("ca-x", "ca", labels={"last-rotation-initiation-time": "100"})
        dated = make_secret("ca-y", "ca", created=T0, labels={"last-rotation-initiation-time": "200"})
        listing(mock_core_v1_api, undated, dated)

        manager = build(mock_core_v1_api, fake_clock)

        assert manager.last_rotation_initiation_time("ca") == "200"

    def test_missing_name_label(self, mock_core_v1_api, fake_clock, make_secret):
        """Test secrets without a name label are grouped under the empty name."""
        listing(mock_core_v1_api, make_secret("orphan", None, created=T0, labels={"last-rotation-initiation-time": "5"}))

        manager = build(mock_core_v1_api, fake_clock)

        assert manager.last_rotation_initiation_times == {"": "5"}

    def test_store_is_not_populated(self, mock_core_v1_api, fake_clock, make_secret):
        """Test initialization only recovers epochs, not generations."""
        listing(mock_core_v1_api, make_secret("ca-1", "ca", created=T0))

        manager = build(mock_core_v1_api, fake_clock)

        assert manager.get_generations("ca") is None

    def test_times_property_is_a_copy(self, mock_core_v1_api, fake_clock, make_secret):
        """Test the returned mapping cannot change the manager."""
        listing(mock_core_v1_api, make_secret("ca-1", "ca", created=T0, labels={"last-rotation-initiation-time": "1"}))
        manager = build(mock_core_v1_api, fake_clock)

        manager.last_rotation_initiation_times["ca"] = "2"

        assert manager.last_rotation_initiation_time("ca") == "1"


class TestAutomaticRenewal:
    """Tests for flagging secrets due for renewal."""

    def test_due_secret_gets_fresh_epoch(self, mock_core_v1_api, fake_clock, make_secret):
        """Test a secret past 80% of its validity gets the current time as epoch."""
        now = int(NOW)
        listing(
            mock_core_v1_api,
            make_secret(
                "server-1",
                "server",
                created=T0,
                labels={"last-rotation-initiation-time": "100", **renewal_labels(now - 90 * DAY, now + 10 * DAY + 1)},
            ),
        )

        with patch("kube_secrets_manager.manager.console.info") as mock_info:
            manager = build(mock_core_v1_api, fake_clock)

        assert manager.last_rotation_initiation_time("server") == NOW
        mock_info.assert_called_once()
        assert "server-1" in mock_info.call_args[0][0]
        assert "automatic renewal" in mock_info.call_args[0][0]

    def test_expiring_secret_gets_fresh_epoch(self, mock_core_v1_api, fake_clock, make_secret):
        """Test a secret expiring within 10 days gets the current time as epoch."""
        now = int(NOW)
        listing(
            mock_core_v1_api,
            make_secret("server-1", "server", created=T0, labels=renewal_labels(now - DAY, now + 5 * DAY)),
        )

        manager = build(mock_core_v1_api, fake_clock)

        assert manager.last_rotation_initiation_time("server") == NOW

    def test_valid_secret_keeps_epoch(self, mock_core_v1_api, fake_clock, make_secret):
        """Test a secret not yet due keeps its recovered epoch."""
        now = int(NOW)
        listing(
            mock_core_v1_api,
            make_secret(
                "server-1",
                "server",
                created=T0,
                labels={"last-rotation-initiation-time": "100", **renewal_labels(now - DAY, now + 99 * DAY)},
            ),
        )

        with patch("kube_secrets_manager.manager.console.info") as mock_info:
            manager = build(mock_core_v1_api, fake_clock)

        assert manager.last_rotation_initiation_time("server") == "100"
        mock_info.assert_not_called()

    def test_only_newest_generation_is_evaluated(self, mock_core_v1_api, fake_clock, make_secret):
        """Test an expired older generation does not trigger renewal."""
        now = int(NOW)
        expired_old = make_secret(
            "server-old",
            "server",
            created=T0,
            labels={"last-rotation-initiation-time": "100", **renewal_labels(now - 100 * DAY, now - DAY)},
        )
        fresh_new = make_secret(
            "server-new",
            "server",
            created=T0 + timedelta(days=1),
            labels={"last-rotation-initiation-time": "200", **renewal_labels(now - DAY, now + 99 * DAY)},
        )
        listing(mock_core_v1_api, expired_old, fresh_new)

        manager = build(mock_core_v1_api, fake_clock)

        assert manager.last_rotation_initiation_time("server") == "200"

    def test_renewal_follows_the_clock(self, mock_core_v1_api, fake_clock, make_secret):
        """Test the decision is taken at the injected clock's time."""
        now = int(NOW)
        listing(
            mock_core_v1_api,
            make_secret("server-1", "server", created=T0, labels=renewal_labels(now, now + 100 * DAY)),
        )
        fake_clock.step(80 * DAY)

        manager = build(mock_core_v1_api, fake_clock)

        assert manager.last_rotation_initiation_time("server") == str(now + 80 * DAY)

    def test_clock_read_once_per_initialization(self, mock_core_v1_api, make_secret):
        """Test every renewed secret gets the instant the decision was taken at."""
        now = int(NOW)
        listing(
            mock_core_v1_api,
            make_secret("server-1", "server", created=T0, labels=renewal_labels(now - 90 * DAY, now + 1)),
            make_secret("client-1", "client", created=T0, labels=renewal_labels(now - 90 * DAY, now + 1)),
        )
        start = datetime.fromtimestamp(now, tz=timezone.utc)
        clock = MagicMock()
        clock.now.side_effect = [start + timedelta(seconds=i) for i in range(10)]

        with patch("kube_secrets_manager.manager.console.info"):
            manager = build(mock_core_v1_api, clock)

        clock.now.assert_called_once()
        assert manager.last_rotation_initiation_time("server") == NOW
        assert manager.last_rotation_initiation_time("client") == NOW

    def test_malformed_timestamp_aborts(self, mock_core_v1_api, fake_clock, make_secret):
        """Test a malformed timestamp label fails initialization."""
        listing(
            mock_core_v1_api,
            make_secret("server-1", "server", created=T0, labels={"issued-at-time": "x", "valid-until-time": "1"}),
        )

        with pytest.raises(MalformedLabelError):
            build(mock_core_v1_api, fake_clock)


class TestOverrides:
    """Tests for explicit rotation requests."""

    def test_override_wins_over_recovered_epoch(self, mock_core_v1_api, fake_clock, make_secret):
        """Test an override replaces the recovered epoch."""
        listing(mock_core_v1_api, make_secret("ca-1", "ca", created=T0, labels={"last-rotation-initiation-time": "1"}))

        manager = build(mock_core_v1_api, fake_clock, {"ca": datetime(2024, 2, 1, tzinfo=timezone.utc)})

        assert manager.last_rotation_initiation_time("ca") == "1706745600"

    def test_override_wins_over_renewal(self, mock_core_v1_api, fake_clock, make_secret):
        """Test an override replaces the renewal epoch."""
        now = int(NOW)
        listing(
            mock_core_v1_api,
            make_secret("server-1", "server", created=T0, labels=renewal_labels(now - 100 * DAY, now - DAY)),
        )

        manager = build(mock_core_v1_api, fake_clock, {"server": datetime(2023, 12, 1, tzinfo=timezone.utc)})

        assert manager.last_rotation_initiation_time("server") == "1701388800"

    def test_override_for_unknown_name(self, mock_core_v1_api, fake_clock, make_secret):
        """Test an override for a name without secrets is recorded."""
        listing(mock_core_v1_api, make_secret("ca-1", "ca", created=T0, labels={"last-rotation-initiation-time": "1"}))

        manager = build(mock_core_v1_api, fake_clock, {"etcd": datetime(2024, 1, 1, tzinfo=timezone.utc)})

        assert manager.last_rotation_initiation_times == {"ca": "1", "etcd": NOW}


class TestManagerFacade:
    """Tests for the operations offered after initialization."""

    def test_default_clock(self, mock_core_v1_api):
        """Test the system clock is used by default."""
        manager = SecretsManager(mock_core_v1_api, NAMESPACE, IDENTITY)

        assert isinstance(manager.clock, RealClock)

    def test_generations_roundtrip(self, mock_core_v1_api, fake_clock, make_secret):
        """Test registered generations are returned per slot."""
        manager = build(mock_core_v1_api, fake_clock)
        current = make_secret("ca-new", "ca", data={"ca.crt": "bmV3"})
        old = make_secret("ca-old", "ca", data={"ca.crt": "b2xk"})

        manager.add_generation("ca", current, SecretClass.CURRENT)
        manager.add_generation("ca", old, SecretClass.OLD)
        infos = manager.get_generations("ca")

        assert infos.current.obj is current
        assert infos.old.obj is old
        assert infos.bundle is None
        assert infos.current.data_checksum != infos.old.data_checksum

    def test_object_meta_uses_recorded_epoch(self, mock_core_v1_api, fake_clock):
        """Test metadata carries the manager's namespace, identity and epoch."""
        manager = build(mock_core_v1_api, fake_clock, {"ca": datetime(2024, 1, 1, tzinfo=timezone.utc)})

        meta = manager.object_meta(
            CertificateSecretConfig(name="ca", cert_type=CertType.CA),
            ignore_config_checksum_for_ca_secret_name=True,
            persist=True,
        )

        assert meta.namespace == NAMESPACE
        assert meta.labels["manager-identity"] == IDENTITY
        assert meta.labels["last-rotation-initiation-time"] == NOW
        assert meta.labels["persist"] == "true"
        assert meta.name == "ca-" + hashlib.sha256(NOW.encode()).hexdigest()[:5]

    def test_object_meta_without_epoch(self, mock_core_v1_api, fake_clock):
        """Test metadata of a never rotated secret has no rotation suffix."""
        manager = build(mock_core_v1_api, fake_clock)

        meta = manager.object_meta(
            CertificateSecretConfig(name="ca", cert_type=CertType.CA),
            ignore_config_checksum_for_ca_secret_name=True,
        )

        assert meta.name == "ca"
        assert meta.labels["last-rotation-initiation-time"] == ""

    def test_repr(self, mock_core_v1_api, fake_clock):
        """Test the debugging representation."""
        manager = build(mock_core_v1_api, fake_clock)

        assert repr(manager) == f"SecretsManager(namespace={NAMESPACE!r}, identity={IDENTITY!r})"
