"""Deterministic names and labels for secret generations.

A generated secret is named ``<base>-<config infix>-<rotation suffix>``:

- the 8 hex character infix changes only when the configuration checksum
  or the signing CA checksum changes;
- the 5 hex character suffix changes only when a new rotation is initiated.

Consumers can thus tell a configuration change from a rotation without
decoding the labels. Unsigned CA secrets may keep a name without the infix
for compatibility with components that reference them by name.
"""

from icecream import ic
from kubernetes.client import V1ObjectMeta

from kube_secrets_manager.config import CertificateSecretConfig, ConfigInterface
from kube_secrets_manager.hashing import compute_sha256_hex, structural_hash
from kube_secrets_manager.labels import (
    LABEL_KEY_BUNDLE_FOR,
    LABEL_KEY_CHECKSUM_CONFIG,
    LABEL_KEY_CHECKSUM_SIGNING_CA,
    LABEL_KEY_LAST_ROTATION_INITIATION_TIME,
    LABEL_KEY_MANAGED_BY,
    LABEL_KEY_MANAGER_IDENTITY,
    LABEL_KEY_NAME,
    LABEL_KEY_PERSIST,
    LABEL_KEY_VALID_UNTIL_TIME,
    LABEL_VALUE_SECRETS_MANAGER,
    LABEL_VALUE_TRUE,
)

CONFIG_INFIX_LENGTH = 8
ROTATION_SUFFIX_LENGTH = 5


def object_meta(
    namespace: str,
    manager_identity: str,
    config: ConfigInterface,
    ignore_config_checksum_for_ca_secret_name: bool,
    last_rotation_initiation_time: str,
    valid_until_time: str | None = None,
    signing_ca_checksum: str | None = None,
    persist: bool | None = None,
    bundle_for: str | None = None,
) -> V1ObjectMeta:
    """Compute the object metadata of a secret generation.

    Args:
        namespace: Namespace the secret lives in.
        manager_identity: Identity of the owning manager instance.
        config: Configuration descriptor the data is generated from.
        ignore_config_checksum_for_ca_secret_name: Keep the static name of
            unsigned CA secrets (no configuration infix).
        last_rotation_initiation_time: Rotation epoch label, may be empty.
        valid_until_time: Expiry label of the data, if known.
        signing_ca_checksum: Checksum of the signing CA, if any.
        persist: Mark the generation for long-term retention.
        bundle_for: Logical name of the secret a bundle aggregates.

    Returns:
        Metadata with the computed name, namespace and labels.

    Raises:
        ConfigHashError: If the configuration cannot be hashed.

    """
    config_hash = structural_hash(config)

    labels: dict[str, str] = {
        LABEL_KEY_NAME: config.get_name(),
        LABEL_KEY_MANAGED_BY: LABEL_VALUE_SECRETS_MANAGER,
        LABEL_KEY_MANAGER_IDENTITY: manager_identity,
        LABEL_KEY_CHECKSUM_CONFIG: str(config_hash),
        LABEL_KEY_LAST_ROTATION_INITIATION_TIME: last_rotation_initiation_time,
    }

    if signing_ca_checksum is not None:
        labels[LABEL_KEY_CHECKSUM_SIGNING_CA] = signing_ca_checksum

    if valid_until_time is not None:
        labels[LABEL_KEY_VALID_UNTIL_TIME] = valid_until_time

    if persist:
        labels[LABEL_KEY_PERSIST] = LABEL_VALUE_TRUE

    if bundle_for is not None:
        labels[LABEL_KEY_BUNDLE_FOR] = bundle_for

    return V1ObjectMeta(
        name=compute_secret_name(config, labels, ignore_config_checksum_for_ca_secret_name),
        namespace=namespace,
        labels=labels,
    )


def compute_secret_name(
    config: ConfigInterface,
    labels: dict[str, str],
    ignore_config_checksum_for_ca_secret_name: bool,
) -> str:
    """Derive the object name from the base name and the identity labels.

    Args:
        config: Configuration descriptor providing the base name.
        labels: Labels computed for the generation.
        ignore_config_checksum_for_ca_secret_name: Skip the configuration
            infix for unsigned CA configurations.

    Returns:
        The object name.

    """
    name = config.get_name()

    if not _keeps_static_ca_name(config, ignore_config_checksum_for_ca_secret_name):
        infix = labels.get(LABEL_KEY_CHECKSUM_CONFIG, "") + labels.get(LABEL_KEY_CHECKSUM_SIGNING_CA, "")
        if infix:
            name += "-" + compute_sha256_hex(infix.encode())[:CONFIG_INFIX_LENGTH]

    suffix = labels.get(LABEL_KEY_LAST_ROTATION_INITIATION_TIME, "")
    if suffix:
        name += "-" + compute_sha256_hex(suffix.encode())[:ROTATION_SUFFIX_LENGTH]

    ic(name)
    return name


def _keeps_static_ca_name(config: ConfigInterface, ignore_config_checksum_for_ca_secret_name: bool) -> bool:
    return (
        isinstance(config, CertificateSecretConfig)
        and config.signing_ca is None
        and ignore_config_checksum_for_ca_secret_name
    )
