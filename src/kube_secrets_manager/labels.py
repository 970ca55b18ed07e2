"""Label keys and values stamped on managed secrets.

These labels are the contract other components read: the manager recovers
its state from them on startup, and consumers detect new generations by
looking at them.
"""

# Logical name of the secret, independent of the generated object name
LABEL_KEY_NAME = "name"
# Marks objects owned by this subsystem
LABEL_KEY_MANAGED_BY = "managed-by"
# Identifies the manager instance, several managers may share a namespace
LABEL_KEY_MANAGER_IDENTITY = "manager-identity"
# Decimal structural hash of the configuration used to create the data
LABEL_KEY_CHECKSUM_CONFIG = "checksum-of-config"
# Checksum of the CA that signed the certificate in the data
LABEL_KEY_CHECKSUM_SIGNING_CA = "checksum-of-signing-ca"
# Logical name of the secret a bundle secret aggregates
LABEL_KEY_BUNDLE_FOR = "bundle-for"
# Generation is kept for long-term retention
LABEL_KEY_PERSIST = "persist"
# Unix seconds of when the current rotation cycle was initiated
LABEL_KEY_LAST_ROTATION_INITIATION_TIME = "last-rotation-initiation-time"
# Unix seconds of when the data was issued (a certificate's 'not before')
LABEL_KEY_ISSUED_AT_TIME = "issued-at-time"
# Unix seconds of when the data expires (a certificate's 'not after')
LABEL_KEY_VALID_UNTIL_TIME = "valid-until-time"

LABEL_VALUE_TRUE = "true"
LABEL_VALUE_SECRETS_MANAGER = "secrets-manager"


def owned_by_selector(identity: str) -> str:
    """Build the label selector matching secrets owned by a manager instance.

    Args:
        identity: The manager identity.

    Returns:
        A Kubernetes equality-based label selector string.

    """
    return f"{LABEL_KEY_MANAGED_BY}={LABEL_VALUE_SECRETS_MANAGER},{LABEL_KEY_MANAGER_IDENTITY}={identity}"
