"""Capture-time models.

A run has exactly one capture time: a civil (wall-clock) date-time,
the UTC offset it is expressed in, and a sub-second suffix.  Every image
in the batch shares it.  The UTC instant derived from it feeds the GPS
date/time stamps.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from photo_provenance.core.constants import EXIF_DATE_FORMAT, EXIF_DATETIME_FORMAT, EXIF_TIME_FORMAT


@dataclass(frozen=True, slots=True)
class CivilDateTime:
    """Wall-clock date-time with no zone attached.

    Attributes:
        value: Naive ``datetime`` holding the wall-clock reading.
    """

    value: datetime

    def __post_init__(self) -> None:
        if self.value.tzinfo is not None:
            msg = "CivilDateTime must be naive; attach the offset via UtcOffset"
            raise ValueError(msg)

    @property
    def exif_text(self) -> str:
        """``"YYYY:MM:DD HH:MM:SS"`` rendering used by the date tags."""
        return self.value.strftime(EXIF_DATETIME_FORMAT)


@dataclass(frozen=True, slots=True)
class UtcOffset:
    """Signed hours/minutes offset of civil time from UTC.

    Attributes:
        sign: ``+1`` east of Greenwich, ``-1`` west.
        hours: Hour magnitude.
        minutes: Minute magnitude; carries the same sign as the hours.
    """

    sign: int
    hours: int
    minutes: int

    def __post_init__(self) -> None:
        if self.sign not in (1, -1):
            msg = f"UtcOffset.sign must be +1 or -1, got {self.sign}"
            raise ValueError(msg)

    @property
    def total_seconds(self) -> int:
        """Signed offset in seconds."""
        return self.sign * (self.hours * 3600 + self.minutes * 60)

    @property
    def exif_text(self) -> str:
        """``"+HH:MM"`` rendering used by the offset tags."""
        sign = "-" if self.sign < 0 else "+"
        return f"{sign}{self.hours:02d}:{self.minutes:02d}"

    def as_timezone(self) -> timezone:
        """Return the equivalent fixed-offset ``timezone``."""
        return timezone(timedelta(seconds=self.total_seconds))


@dataclass(frozen=True, slots=True)
class TimeSpec:
    """Run-wide capture time: civil date-time, offset and sub-seconds.

    Attributes:
        civil: Wall-clock capture time.
        offset: Offset of ``civil`` from UTC.
        subsec: Sub-second digits (1-3 characters, ``"0"``-``"999"``).
    """

    civil: CivilDateTime
    offset: UtcOffset
    subsec: str


@dataclass(frozen=True, slots=True)
class UtcDateTime:
    """A UTC instant decomposed into GPS date and time stamps.

    Attributes:
        value: Timezone-aware ``datetime`` in UTC.
    """

    value: datetime

    def __post_init__(self) -> None:
        if self.value.utcoffset() != timedelta(0):
            msg = "UtcDateTime must be timezone-aware UTC"
            raise ValueError(msg)

    @property
    def date_stamp(self) -> str:
        """``GPSDateStamp`` value, ``"YYYY:MM:DD"``."""
        return self.value.strftime(EXIF_DATE_FORMAT)

    @property
    def time_stamp(self) -> str:
        """``GPSTimeStamp`` value, ``"HH:MM:SS"``."""
        return self.value.strftime(EXIF_TIME_FORMAT)
