"""Materialization of secret generations.

Generations are immutable once persisted: every change is expressed as a
new generation with a new name, which keeps the stored checksums and the
label-based renewal decisions valid.
"""

import base64
from collections.abc import Mapping

from kubernetes.client import V1ObjectMeta, V1Secret

from kube_secrets_manager.config import DATA_KEY_CERTIFICATE, DATA_KEY_PRIVATE_KEY

SECRET_TYPE_OPAQUE = "Opaque"
SECRET_TYPE_TLS = "kubernetes.io/tls"


def build_secret(metadata: V1ObjectMeta, data: Mapping[str, bytes | str]) -> V1Secret:
    """Construct the secret object for the given metadata and payload.

    Args:
        metadata: Metadata computed by ``object_meta``.
        data: Payload bytes per data key; strings are UTF-8 encoded.

    Returns:
        An immutable secret whose data holds base64 encoded values.

    """
    return V1Secret(
        api_version="v1",
        kind="Secret",
        metadata=metadata,
        data={key: _encode_value(value) for key, value in data.items()},
        type=secret_type_for_data(data),
        immutable=True,
    )


def secret_type_for_data(data: Mapping[str, bytes | str | None]) -> str:
    """Return the TLS type if the data holds a certificate and its key."""
    if data.get(DATA_KEY_CERTIFICATE) is not None and data.get(DATA_KEY_PRIVATE_KEY) is not None:
        return SECRET_TYPE_TLS
    return SECRET_TYPE_OPAQUE


def _encode_value(value: bytes | str) -> str:
    if isinstance(value, str):
        value = value.encode("utf-8")
    return base64.b64encode(value).decode("ascii")
