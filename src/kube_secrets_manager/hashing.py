"""Structural hashing of configuration descriptors.

``structural_hash`` reduces a configuration dataclass to a 64-bit unsigned
integer that only changes when a material setting changes:

- dataclass fields are enumerated by name, so declaration order is irrelevant;
- fields holding a zero value (``None``, ``False``, ``0``, ``""``, ``b""``,
  an empty collection or a zero ``timedelta``) are skipped, so adding a new
  optional field with a zero default does not change existing hashes;
- dict entries and set members are order-independent, lists and tuples are
  not;
- enums hash by their value.

The canonical encoding is hashed with SHA-256 and the first 8 bytes are
read as a big-endian integer.
"""

import dataclasses
import hashlib
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from icecream import ic

from kube_secrets_manager.exceptions import ConfigHashError


def compute_sha256_hex(data: bytes) -> str:
    """Return the hex-encoded SHA-256 digest of the given bytes."""
    return hashlib.sha256(data).hexdigest()


def structural_hash(value: Any) -> int:
    """Compute the structural hash of a configuration descriptor.

    Args:
        value: A dataclass instance (or any supported plain value).

    Returns:
        The hash as an unsigned 64-bit integer.

    Raises:
        ConfigHashError: If the value contains something without a
            canonical encoding (functions, arbitrary objects, ...).

    """
    digest = hashlib.sha256(_encode(value)).digest()
    result = int.from_bytes(digest[:8], "big")
    ic(type(value).__name__, result)
    return result


def is_zero(value: Any) -> bool:
    """Tell whether a field value counts as unset for hashing purposes."""
    if value is None:
        return True
    if isinstance(value, Enum):
        return is_zero(value.value)
    if isinstance(value, (bool, int, float)):
        return value == 0
    if isinstance(value, timedelta):
        return value == timedelta(0)
    if isinstance(value, (str, bytes, bytearray, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def _frame(tag: bytes, payload: bytes) -> bytes:
    return tag + len(payload).to_bytes(8, "big") + payload


def _encode(value: Any) -> bytes:
    # bool before int, Enum before its mixed-in base type
    if value is None:
        return _frame(b"n", b"")
    if isinstance(value, Enum):
        return _frame(b"e", _encode(value.value))
    if isinstance(value, bool):
        return _frame(b"b", b"1" if value else b"0")
    if isinstance(value, int):
        return _frame(b"i", str(value).encode())
    if isinstance(value, float):
        return _frame(b"f", repr(value).encode())
    if isinstance(value, str):
        return _frame(b"s", value.encode("utf-8"))
    if isinstance(value, (bytes, bytearray)):
        return _frame(b"y", bytes(value))
    if isinstance(value, datetime):
        return _frame(b"t", value.isoformat().encode())
    if isinstance(value, timedelta):
        micros = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
        return _frame(b"d", str(micros).encode())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _encode_dataclass(value)
    if isinstance(value, dict):
        entries = sorted(_encode(k) + _encode(v) for k, v in value.items())
        return _frame(b"m", b"".join(entries))
    if isinstance(value, (set, frozenset)):
        return _frame(b"u", b"".join(sorted(_encode(item) for item in value)))
    if isinstance(value, (list, tuple)):
        return _frame(b"l", b"".join(_encode(item) for item in value))
    raise ConfigHashError(f"Cannot compute structural hash of value of type '{type(value).__name__}'")


def _encode_dataclass(value: Any) -> bytes:
    parts = [_encode(type(value).__name__)]
    for field in sorted(dataclasses.fields(value), key=lambda f: f.name):
        field_value = getattr(value, field.name)
        if is_zero(field_value):
            continue
        parts.append(_encode(field.name) + _encode(field_value))
    return _frame(b"c", b"".join(parts))
