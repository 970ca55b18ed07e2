"""Rotation override file parsing.

An override file is a YAML mapping from logical secret name to the instant
the rotation of that secret should be considered initiated, e.g.::

    ca: 2024-05-01T12:00:00Z
    kube-apiserver-server: 1714564800
"""

from datetime import date, datetime, timezone
from typing import Any

import yaml

from kube_secrets_manager.exceptions import RotationFileError


def parse_rotation_file(path: str) -> dict[str, datetime]:
    """Parse a rotation override file.

    Args:
        path: Path to the YAML file.

    Returns:
        Logical secret names mapped to aware UTC datetimes. An empty file
        yields an empty mapping.

    Raises:
        RotationFileError: If the file does not exist, contains malformed
            YAML, is not a single mapping, or holds an unparsable time.

    """
    try:
        with open(path) as stream:
            document = yaml.safe_load(stream)
    except FileNotFoundError as err:
        raise RotationFileError(f"Rotation file '{path}' does not exist") from err
    except yaml.YAMLError as err:
        raise RotationFileError(f"Rotation file '{path}' contains malformed YAML: {err}") from err

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise RotationFileError(
            f"Rotation file '{path}' does not contain a YAML mapping of secret names to timestamps"
        )

    return {str(name): _parse_instant(path, str(name), value) for name, value in document.items()}


def _parse_instant(path: str, name: str, value: Any) -> datetime:
    # yaml.safe_load already turns unquoted ISO timestamps into datetimes
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime(value.year, value.month, value.day)
    elif isinstance(value, int) and not isinstance(value, bool):
        try:
            instant = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as err:
            raise RotationFileError(f"Rotation file '{path}': invalid time {value} for '{name}'") from err
    elif isinstance(value, str):
        try:
            instant = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as err:
            raise RotationFileError(f"Rotation file '{path}': invalid time '{value}' for '{name}'") from err
    else:
        raise RotationFileError(f"Rotation file '{path}': invalid time {value!r} for '{name}'")

    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)
