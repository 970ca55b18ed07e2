"""Configuration descriptors for managed secrets.

A descriptor says what a secret's payload should contain. The manager never
looks at the cryptographic settings: it only asks for the logical name and
hashes the descriptor structurally to detect material changes. Generating
the actual payload is left to the caller.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Protocol, runtime_checkable

# Well-known data keys
DATA_KEY_CERTIFICATE = "tls.crt"
DATA_KEY_PRIVATE_KEY = "tls.key"
DATA_KEY_CERTIFICATE_CA = "ca.crt"
DATA_KEY_RSA_PRIVATE_KEY = "id_rsa"
DATA_KEY_SSH_AUTHORIZED_KEYS = "id_rsa.pub"
DATA_KEY_USERNAME = "username"
DATA_KEY_PASSWORD = "password"
DATA_KEY_AUTH = "auth"
DATA_KEY_ENCRYPTION_KEY_NAME = "key"
DATA_KEY_ENCRYPTION_SECRET = "secret"


@runtime_checkable
class ConfigInterface(Protocol):
    """Anything the manager can compute an identity for."""

    def get_name(self) -> str:
        """Return the logical secret name."""


class CertType(str, Enum):
    """Kind of certificate a CertificateSecretConfig describes."""

    CA = "ca"
    SERVER = "server"
    CLIENT = "client"
    SERVER_CLIENT = "both"


class BasicAuthFormat(str, Enum):
    """Encoding of the basic auth data."""

    NORMAL = "normal"
    CSV = "csv"


@dataclass(frozen=True)
class Certificate:
    """A certificate authority that signs other certificates.

    Attributes:
        name: Logical name of the CA secret.
        certificate_pem: PEM encoded CA certificate.
        private_key_pem: PEM encoded CA private key.

    """

    name: str
    certificate_pem: bytes
    private_key_pem: bytes = b""


@dataclass
class CertificateSecretConfig:
    """Configuration of a certificate, either a CA or one signed by a CA."""

    name: str
    common_name: str = ""
    organization: list[str] = field(default_factory=list)
    dns_names: list[str] = field(default_factory=list)
    ip_addresses: list[str] = field(default_factory=list)
    cert_type: CertType | None = None
    signing_ca: Certificate | None = None
    validity: timedelta | None = None
    pkcs: int = 0
    skip_publishing_ca_certificate: bool = False

    def get_name(self) -> str:
        return self.name

    @property
    def is_ca(self) -> bool:
        return self.cert_type == CertType.CA


@dataclass
class RSASecretConfig:
    """Configuration of an RSA private key, optionally used for SSH."""

    name: str
    bits: int = 0
    used_for_ssh: bool = False

    def get_name(self) -> str:
        return self.name


@dataclass
class BasicAuthSecretConfig:
    """Configuration of a generated username/password pair."""

    name: str
    format: BasicAuthFormat | None = None
    username: str = ""
    password_length: int = 0

    def get_name(self) -> str:
        return self.name


@dataclass
class ETCDEncryptionKeySecretConfig:
    """Configuration of an etcd encryption key."""

    name: str
    secret_length: int = 0

    def get_name(self) -> str:
        return self.name
