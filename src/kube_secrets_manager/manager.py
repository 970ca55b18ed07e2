"""Secrets manager facade.

This module provides the SecretsManager class. On construction it lists the
secrets it owns in its namespace, recovers the rotation epoch of every
logical secret from the newest generation, flags secrets that are due for
automatic renewal and applies explicit rotation requests. Generating and
persisting new generations is left to the caller, who registers them in the
manager's generation store afterwards.
"""

import threading
from collections.abc import Mapping
from datetime import datetime, timezone

from icecream import ic
from kubernetes import client
from kubernetes.client import V1ObjectMeta, V1Secret
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from kube_secrets_manager import console
from kube_secrets_manager.clock import Clock, RealClock
from kube_secrets_manager.config import ConfigInterface
from kube_secrets_manager.exceptions import ClusterConnectionError, InitializationCancelledError
from kube_secrets_manager.labels import (
    LABEL_KEY_ISSUED_AT_TIME,
    LABEL_KEY_LAST_ROTATION_INITIATION_TIME,
    LABEL_KEY_NAME,
    LABEL_KEY_VALID_UNTIL_TIME,
    owned_by_selector,
)
from kube_secrets_manager.models import SecretClass, SecretInfos
from kube_secrets_manager.naming import object_meta
from kube_secrets_manager.policy import must_renew, unix_time
from kube_secrets_manager.store import GenerationStore

_EPOCH_MIN = datetime.min.replace(tzinfo=timezone.utc)


class SecretsManager:
    """Manager of secret generations in one namespace.

    A manager is only returned once initialization succeeded; any failure
    raises from the constructor.

    Attributes:
        namespace: Namespace the managed secrets live in.
        identity: Identity of this manager instance.
        clock: Time source used for renewal decisions.

    """

    def __init__(
        self,
        core_v1_api: client.CoreV1Api,
        namespace: str,
        identity: str,
        clock: Clock | None = None,
        secret_names_to_times: Mapping[str, datetime] | None = None,
        *,
        request_timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize the manager from the secrets found in the cluster.

        Args:
            core_v1_api: Client used for the single list call.
            namespace: Namespace the managed secrets live in.
            identity: Identity of this manager instance.
            clock: Time source, defaults to the system clock.
            secret_names_to_times: Explicit rotation requests; the given
                logical names get the given time as rotation epoch.
            request_timeout: Timeout in seconds for the list call.
            cancel_event: Aborts initialization when set.

        Raises:
            ClusterConnectionError: If listing the secrets fails.
            InitializationCancelledError: If ``cancel_event`` got set.
            MalformedLabelError: If a timestamp label is malformed.

        """
        self.namespace: str = namespace
        self.identity: str = identity
        self.clock: Clock = clock if clock is not None else RealClock()
        self._core_v1_api = core_v1_api
        self._store = GenerationStore()
        self._last_rotation_initiation_times: dict[str, str] = {}

        self._initialize(
            secret_names_to_times or {},
            request_timeout=request_timeout,
            cancel_event=cancel_event,
        )

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"SecretsManager(namespace={self.namespace!r}, identity={self.identity!r})"

    def _list_secrets(self, request_timeout: float | None) -> list[V1Secret]:
        """List all secrets owned by this manager instance.

        Raises:
            ClusterConnectionError: If the API call fails.

        """
        label_selector = owned_by_selector(self.identity)
        ic(self.namespace, label_selector)

        kwargs: dict[str, object] = {"label_selector": label_selector}
        if request_timeout is not None:
            kwargs["_request_timeout"] = request_timeout

        try:
            secret_list = self._core_v1_api.list_namespaced_secret(self.namespace, **kwargs)
        except ApiException as e:
            raise ClusterConnectionError(
                f"Failed to list secrets in namespace '{self.namespace}': {e.status} {e.reason}"
            ) from e
        except HTTPError as e:
            raise ClusterConnectionError(
                f"Failed to connect to the Kubernetes cluster: {e}"
            ) from e

        return list(secret_list.items or [])

    def _initialize(
        self,
        secret_names_to_times: Mapping[str, datetime],
        *,
        request_timeout: float | None,
        cancel_event: threading.Event | None,
    ) -> None:
        _check_cancelled(cancel_event)
        secrets = self._list_secrets(request_timeout)
        _check_cancelled(cancel_event)

        newest: dict[str, V1Secret] = {}
        times: dict[str, str] = {}

        # The newest generation per logical name carries the current epoch
        for secret in secrets:
            labels = _labels_of(secret)
            name = labels.get(LABEL_KEY_NAME, "")
            known = newest.get(name)
            if known is None or _created_at(known) < _created_at(secret):
                newest[name] = secret
                times[name] = labels.get(LABEL_KEY_LAST_ROTATION_INITIATION_TIME, "")

        now = self.clock.now()
        for name, secret in newest.items():
            labels = _labels_of(secret)
            issued_at = labels.get(LABEL_KEY_ISSUED_AT_TIME)
            valid_until = labels.get(LABEL_KEY_VALID_UNTIL_TIME)
            if must_renew(issued_at, valid_until, now):
                console.info(
                    f"Preparing secret {console.highlight(f'{self.namespace}/{secret.metadata.name}')} "
                    f"for automatic renewal (issued at {issued_at}, valid until {valid_until})"
                )
                times[name] = unix_time(now)

        for name, instant in secret_names_to_times.items():
            times[name] = unix_time(instant)

        ic(times)
        self._last_rotation_initiation_times = times

    def last_rotation_initiation_time(self, name: str) -> str:
        """Return the rotation epoch label of a logical secret.

        Returns:
            Decimal Unix seconds, or an empty string if no rotation is known.

        """
        return self._last_rotation_initiation_times.get(name, "")

    @property
    def last_rotation_initiation_times(self) -> dict[str, str]:
        """A copy of the rotation epochs of all known logical secrets."""
        return dict(self._last_rotation_initiation_times)

    def add_generation(self, name: str, secret: V1Secret, secret_class: SecretClass) -> None:
        """Register a persisted generation of a logical secret.

        Raises:
            MalformedLabelError: If the rotation label of the secret is
                malformed; nothing is stored in that case.

        """
        self._store.add(name, secret, secret_class)

    def get_generations(self, name: str) -> SecretInfos | None:
        """Return the registered generations of a logical secret, or None."""
        return self._store.get(name)

    def object_meta(
        self,
        config: ConfigInterface,
        *,
        ignore_config_checksum_for_ca_secret_name: bool = False,
        valid_until_time: str | None = None,
        signing_ca_checksum: str | None = None,
        persist: bool | None = None,
        bundle_for: str | None = None,
    ) -> V1ObjectMeta:
        """Compute the metadata of a new generation of ``config``.

        Namespace, identity and rotation epoch are filled in from the
        manager's state; see ``naming.object_meta`` for the other arguments.

        Raises:
            ConfigHashError: If the configuration cannot be hashed.

        """
        return object_meta(
            self.namespace,
            self.identity,
            config,
            ignore_config_checksum_for_ca_secret_name,
            self.last_rotation_initiation_time(config.get_name()),
            valid_until_time=valid_until_time,
            signing_ca_checksum=signing_ca_checksum,
            persist=persist,
            bundle_for=bundle_for,
        )


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise InitializationCancelledError("Secrets manager initialization was cancelled")


def _labels_of(secret: V1Secret) -> dict[str, str]:
    if secret.metadata is None or secret.metadata.labels is None:
        return {}
    return secret.metadata.labels


def _created_at(secret: V1Secret) -> datetime:
    created = secret.metadata.creation_timestamp if secret.metadata is not None else None
    if created is None:
        return _EPOCH_MIN
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created
