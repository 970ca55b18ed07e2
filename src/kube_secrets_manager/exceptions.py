"""Custom exceptions for kube-secrets-manager.

This module defines the exception hierarchy used throughout the package.
Errors are always propagated to the caller; nothing in the core logs and
swallows them.
"""


class SecretsManagerError(Exception):
    """Base exception for all kube-secrets-manager errors.

    All custom exceptions in this package inherit from this class,
    allowing callers to catch all secrets manager errors with a single
    except clause if desired.
    """

    pass


class ClusterConnectionError(SecretsManagerError):
    """Raised when talking to the Kubernetes API fails.

    This can occur when:
    - The kubeconfig is invalid or missing
    - The cluster is unreachable or the request timed out
    - The API server rejected the list call (RBAC, bad selector)
    """

    pass


class InitializationCancelledError(SecretsManagerError):
    """Raised when the caller cancels manager initialization."""

    pass


class MalformedLabelError(SecretsManagerError, ValueError):
    """Raised when a timestamp label on a secret is not a valid integer.

    Such a label means the persisted state was corrupted externally, so it
    is never silently ignored.
    """

    def __init__(self, label: str, value: str) -> None:
        super().__init__(f"Label '{label}' has malformed value '{value}': expected decimal Unix seconds")
        self.label = label
        self.value = value


class ConfigHashError(SecretsManagerError, TypeError):
    """Raised when a configuration descriptor cannot be hashed structurally."""

    pass


class RotationFileError(SecretsManagerError):
    """Raised when parsing a rotation override file fails.

    This can occur when:
    - The file does not exist
    - The file is not valid YAML
    - The YAML is not a mapping of secret names to timestamps
    """

    pass
