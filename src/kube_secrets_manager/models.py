"""Data models for kube-secrets-manager.

This module provides the typed structures the generation store is built
from.
"""

from dataclasses import dataclass
from enum import Enum

from kubernetes.client import V1Secret


class SecretClass(str, Enum):
    """Slot a secret generation occupies for its logical name.

    Inherits from str to allow direct use in string contexts
    (e.g., log output, dictionary keys).
    """

    CURRENT = "current"
    OLD = "old"
    BUNDLE = "bundle"


@dataclass(frozen=True)
class SecretInfo:
    """One stored secret generation.

    Attributes:
        obj: The persisted secret object.
        data_checksum: SHA-256 checksum of the object's data at the time it
            was stored.
        last_rotation_initiation_time: Unix seconds recovered from the
            object's rotation label, 0 when the label is empty.

    """

    obj: V1Secret
    data_checksum: str
    last_rotation_initiation_time: int


@dataclass
class SecretInfos:
    """The live generations of one logical secret.

    Attributes:
        current: The active generation.
        old: The generation preceding ``current``, kept during rotation.
        bundle: Aggregate of ``current`` and ``old`` (e.g. a CA bundle).

    """

    current: SecretInfo | None = None
    old: SecretInfo | None = None
    bundle: SecretInfo | None = None

    def get(self, secret_class: SecretClass) -> SecretInfo | None:
        """Return the generation stored in the given slot."""
        return getattr(self, SecretClass(secret_class).value)
