"""Automatic renewal policy.

A secret carrying issuance and expiry labels is renewed once 80% of its
validity has elapsed, or once it expires in less than 10 days, whichever
comes first. Secrets without both labels are never renewed automatically.
"""

import calendar
import re
from datetime import datetime, timedelta, timezone

from kube_secrets_manager.exceptions import MalformedLabelError
from kube_secrets_manager.labels import LABEL_KEY_ISSUED_AT_TIME, LABEL_KEY_VALID_UNTIL_TIME

RENEWAL_THRESHOLD_PERCENT = 80
RENEWAL_WINDOW = timedelta(days=10)

# Same accepted syntax as a base-10 int64 parse: optional sign, digits only
_UNIX_SECONDS_PATTERN = re.compile(r"[+-]?[0-9]+")


def parse_unix_seconds(value: str, label: str) -> int:
    """Parse a decimal Unix timestamp label.

    Raises:
        MalformedLabelError: If the value is not a decimal integer.

    """
    if not _UNIX_SECONDS_PATTERN.fullmatch(value):
        raise MalformedLabelError(label, value)
    return int(value)


def parse_unix_time(value: str, label: str) -> datetime:
    """Parse a decimal Unix timestamp label into an aware UTC datetime.

    Args:
        value: The raw label value.
        label: The label key, used in the error message.

    Returns:
        The timestamp as a timezone-aware UTC datetime.

    Raises:
        MalformedLabelError: If the value is not a decimal integer or is
            out of the representable range.

    """
    seconds = parse_unix_seconds(value, label)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as err:
        raise MalformedLabelError(label, value) from err


def unix_time(instant: datetime) -> str:
    """Render a datetime as decimal Unix seconds.

    Naive datetimes are interpreted as UTC; sub-second precision is dropped.
    """
    return str(calendar.timegm(instant.utctimetuple()))


def must_renew(issued_at: str | None, valid_until: str | None, now: datetime) -> bool:
    """Decide whether a secret must be renewed proactively.

    Args:
        issued_at: Value of the ``issued-at-time`` label, if any.
        valid_until: Value of the ``valid-until-time`` label, if any.
        now: The current instant, taken from the manager's clock.

    Returns:
        True if 80% of the validity has elapsed or the secret expires
        within the renewal window, False otherwise or if either label is
        absent.

    Raises:
        MalformedLabelError: If a present label is not a valid integer.

    """
    if not issued_at or not valid_until:
        return False

    issued_at_time = parse_unix_time(issued_at, LABEL_KEY_ISSUED_AT_TIME)
    valid_until_time = parse_unix_time(valid_until, LABEL_KEY_VALID_UNTIL_TIME)

    validity = int((valid_until_time - issued_at_time).total_seconds())
    renew_at = issued_at_time + timedelta(seconds=_percent_of(validity, RENEWAL_THRESHOLD_PERCENT))

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)

    return now >= renew_at or now >= valid_until_time - RENEWAL_WINDOW


def _percent_of(seconds: int, percent: int) -> int:
    # truncates toward zero, i.e. toward issued-at
    portion = abs(seconds) * percent // 100
    return portion if seconds >= 0 else -portion
