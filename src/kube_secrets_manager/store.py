"""In-memory store of secret generations.

The store maps a logical secret name to its current, old and bundle
generations. It is owned by one manager instance, rebuilt on every start
and never persisted.
"""

import dataclasses
import json
import threading
from collections.abc import Mapping

from kubernetes.client import V1Secret

from kube_secrets_manager.hashing import compute_sha256_hex
from kube_secrets_manager.labels import LABEL_KEY_LAST_ROTATION_INITIATION_TIME
from kube_secrets_manager.models import SecretClass, SecretInfo, SecretInfos
from kube_secrets_manager.policy import parse_unix_seconds


def compute_secret_checksum(data: Mapping[str, str] | None) -> str:
    """Compute the checksum of a secret's data.

    The data is serialized as compact JSON with sorted keys. Values are the
    base64 strings Kubernetes uses on the wire, so the checksum covers the
    payload bytes and nothing else of the object.

    Args:
        data: The ``data`` field of a secret.

    Returns:
        Hex encoded SHA-256 digest.

    """
    serialized = json.dumps(dict(data) if data is not None else None, sort_keys=True, separators=(",", ":"))
    return compute_sha256_hex(serialized.encode())


def compute_secret_info(secret: V1Secret) -> SecretInfo:
    """Build the store entry for a secret.

    Raises:
        MalformedLabelError: If the rotation label is not a valid integer.

    """
    labels = (secret.metadata.labels if secret.metadata else None) or {}

    last_rotation_initiation_time = 0
    if value := labels.get(LABEL_KEY_LAST_ROTATION_INITIATION_TIME):
        last_rotation_initiation_time = parse_unix_seconds(value, LABEL_KEY_LAST_ROTATION_INITIATION_TIME)

    return SecretInfo(
        obj=secret,
        data_checksum=compute_secret_checksum(secret.data),
        last_rotation_initiation_time=last_rotation_initiation_time,
    )


class GenerationStore:
    """Concurrency-safe mapping from logical names to their generations.

    A single lock serializes reads and writes. Entries are only reachable
    through ``add`` and ``get``; the returned triples are copies.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._secrets: dict[str, SecretInfos] = {}

    def add(self, name: str, secret: V1Secret, secret_class: SecretClass) -> None:
        """Store a generation in the given slot of a logical secret.

        Overwriting a slot is allowed; no other slot is touched, moving the
        previous ``current`` into ``old`` is up to the caller.

        Args:
            name: Logical secret name.
            secret: The persisted secret object.
            secret_class: Slot to store the generation in.

        Raises:
            MalformedLabelError: If the rotation label of the secret is not
                a valid integer. The store is left unchanged.

        """
        secret_class = SecretClass(secret_class)
        with self._lock:
            info = compute_secret_info(secret)
            infos = self._secrets.setdefault(name, SecretInfos())
            setattr(infos, secret_class.value, info)

    def get(self, name: str) -> SecretInfos | None:
        """Return a copy of the generations of a logical secret, or None."""
        with self._lock:
            infos = self._secrets.get(name)
            return dataclasses.replace(infos) if infos is not None else None

    def names(self) -> list[str]:
        """Return the logical names currently known to the store."""
        with self._lock:
            return sorted(self._secrets)

    def __len__(self) -> int:
        with self._lock:
            return len(self._secrets)

    def __repr__(self) -> str:
        return f"GenerationStore(names={self.names()!r})"
