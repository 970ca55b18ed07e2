"""kube-secrets-manager: lifecycle management of generated Kubernetes secrets.

This package tracks the generations of managed secrets (certificates, keys,
tokens), decides when a secret is due for automatic renewal, and computes
deterministic names and labels for new generations.

Example usage:
    from kubernetes import client, config
    from kube_secrets_manager import (
        CertificateSecretConfig, CertType, SecretClass, SecretsManager, build_secret,
    )

    config.load_kube_config()
    manager = SecretsManager(client.CoreV1Api(), "shoot--foo", "kube-apiserver")

    meta = manager.object_meta(CertificateSecretConfig(name="ca", cert_type=CertType.CA))
    secret = build_secret(meta, {"ca.crt": ca_pem, "ca.key": key_pem})
    # ... persist the secret, then register it
    manager.add_generation("ca", secret, SecretClass.CURRENT)
"""

__version__ = "0.1.0"

from icecream import ic

# Debug traces stay silent for library callers; the CLI enables them with --debug
ic.disable()

from kube_secrets_manager.clock import Clock, FakeClock, RealClock
from kube_secrets_manager.config import (
    BasicAuthSecretConfig,
    CertificateSecretConfig,
    CertType,
    ETCDEncryptionKeySecretConfig,
    RSASecretConfig,
)
from kube_secrets_manager.exceptions import (
    ClusterConnectionError,
    ConfigHashError,
    InitializationCancelledError,
    MalformedLabelError,
    RotationFileError,
    SecretsManagerError,
)
from kube_secrets_manager.hashing import structural_hash
from kube_secrets_manager.manager import SecretsManager
from kube_secrets_manager.models import SecretClass, SecretInfo, SecretInfos
from kube_secrets_manager.naming import compute_secret_name, object_meta
from kube_secrets_manager.policy import must_renew, unix_time
from kube_secrets_manager.secret import build_secret, secret_type_for_data
from kube_secrets_manager.store import GenerationStore

__all__ = [
    # Version
    "__version__",
    # Classes
    "SecretsManager",
    "GenerationStore",
    "SecretClass",
    "SecretInfo",
    "SecretInfos",
    # Clocks
    "Clock",
    "RealClock",
    "FakeClock",
    # Configuration descriptors
    "CertificateSecretConfig",
    "CertType",
    "RSASecretConfig",
    "BasicAuthSecretConfig",
    "ETCDEncryptionKeySecretConfig",
    # Functions
    "build_secret",
    "compute_secret_name",
    "must_renew",
    "object_meta",
    "secret_type_for_data",
    "structural_hash",
    "unix_time",
    # Exceptions
    "SecretsManagerError",
    "ClusterConnectionError",
    "ConfigHashError",
    "InitializationCancelledError",
    "MalformedLabelError",
    "RotationFileError",
]
