"""Capture-time activity: parse the civil time and derive the UTC instant.

The civil date-time is a wall-clock reading *at* the given offset, so
``UTC = civil - offset``: ``+06:30`` subtracts six and a half hours,
``-05:00`` adds five.  Date boundaries roll over naturally.

Any malformed input raises ``InvalidTimeSpecError``.  All images share
one capture time, so the orchestrator treats this as fatal for the run.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime

from photo_provenance.core.exceptions import InvalidTimeSpecError
from photo_provenance.models.timespec import CivilDateTime, TimeSpec, UtcDateTime, UtcOffset

logger = logging.getLogger("photo_provenance.activities.convert_time")

_DATETIME_RE = re.compile(
    r"^(?P<year>\d{4})[:-](?P<month>\d{2})[:-](?P<day>\d{2})"
    r"[ T](?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})$"
)
_OFFSET_RE = re.compile(r"^(?P<sign>[+-])(?P<hours>\d{2}):?(?P<minutes>\d{2})$")
_SUBSEC_RE = re.compile(r"^\d{1,3}$")

#: Widest offset in use (UTC+14:00, Line Islands).
MAX_OFFSET_HOURS = 14


def parse_civil_datetime(text: str) -> CivilDateTime:
    """Parse ``"YYYY:MM:DD HH:MM:SS"`` (``-`` date separators also accepted).

    Raises:
        InvalidTimeSpecError: If the text is malformed or not a real
            calendar date-time.
    """
    match = _DATETIME_RE.match(text.strip())
    if match is None:
        msg = f"Invalid date-time {text!r}; expected 'YYYY:MM:DD HH:MM:SS'"
        raise InvalidTimeSpecError(msg)
    try:
        value = datetime(**{k: int(v) for k, v in match.groupdict().items()})
    except ValueError as exc:
        msg = f"Invalid date-time {text!r}: {exc}"
        raise InvalidTimeSpecError(msg) from exc
    return CivilDateTime(value=value)


def parse_utc_offset(text: str) -> UtcOffset:
    """Parse a ``"+HH:MM"`` / ``"-HH:MM"`` offset.

    The sign is mandatory and applies to both hours and minutes, so
    ``"-00:30"`` is thirty minutes west of UTC.

    Raises:
        InvalidTimeSpecError: If the offset is malformed or out of range.
    """
    match = _OFFSET_RE.match(text.strip())
    if match is None:
        msg = f"Invalid UTC offset {text!r}; expected '+HH:MM' or '-HH:MM'"
        raise InvalidTimeSpecError(msg)

    hours = int(match["hours"])
    minutes = int(match["minutes"])
    if hours > MAX_OFFSET_HOURS or minutes > 59:
        msg = f"UTC offset {text!r} out of range"
        raise InvalidTimeSpecError(msg)
    if hours == MAX_OFFSET_HOURS and minutes:
        msg = f"UTC offset {text!r} out of range"
        raise InvalidTimeSpecError(msg)

    sign = -1 if match["sign"] == "-" else 1
    return UtcOffset(sign=sign, hours=hours, minutes=minutes)


def parse_subsec(text: str) -> str:
    """Validate a sub-second value (1-3 digits).

    Raises:
        InvalidTimeSpecError: If the value is not 1-3 decimal digits.
    """
    value = text.strip()
    if not _SUBSEC_RE.match(value):
        msg = f"Invalid sub-second value {text!r}; expected 1-3 digits"
        raise InvalidTimeSpecError(msg)
    return value


def parse_time_spec(datetime_text: str, offset_text: str, subsec_text: str) -> TimeSpec:
    """Parse all three capture-time fields into a ``TimeSpec``.

    Raises:
        InvalidTimeSpecError: If any field is malformed.
    """
    return TimeSpec(
        civil=parse_civil_datetime(datetime_text),
        offset=parse_utc_offset(offset_text),
        subsec=parse_subsec(subsec_text),
    )


def to_utc(civil: CivilDateTime, offset: UtcOffset) -> UtcDateTime:
    """Convert a civil date-time at ``offset`` to UTC.

    Args:
        civil: Wall-clock capture time.
        offset: Offset of the wall clock from UTC.

    Returns:
        The UTC instant, with ``date_stamp``/``time_stamp`` ready for the
        GPS tags.

    Raises:
        InvalidTimeSpecError: If the shifted instant falls outside the
            representable calendar range.
    """
    try:
        shifted = civil.value.replace(tzinfo=offset.as_timezone()).astimezone(UTC)
    except OverflowError as exc:
        msg = f"UTC conversion of {civil.exif_text} {offset.exif_text} overflows: {exc}"
        raise InvalidTimeSpecError(msg) from exc
    utc = UtcDateTime(value=shifted)
    logger.debug(
        "Civil time converted | civil=%s | offset=%s | utc=%s %s",
        civil.exif_text,
        offset.exif_text,
        utc.date_stamp,
        utc.time_stamp,
    )
    return utc
