"""Run configuration loaded from environment variables.

All values have defaults matching the emulated device and the default
capture time.  Environment variables provide site-wide defaults; the
command line overrides individual fields with ``dataclasses.replace``.

Fail-fast validation:
    ``from_env()`` and ``validate()`` raise ``ConfigValidationError`` if
    any value is out of its valid range, and ``time_spec()`` raises
    ``InvalidTimeSpecError`` for a malformed capture time.  Both happen
    before any image is touched.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field

from photo_provenance.core.constants import (
    DEFAULT_AUTO_THRESHOLD,
    DEFAULT_DATETIME,
    DEFAULT_DEVICE_PROFILE,
    DEFAULT_FUZZ_RADIUS_M,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_OFFSET,
    DEFAULT_SUBSEC,
    DeviceProfile,
)
from photo_provenance.core.exceptions import ValidationError
from photo_provenance.models.dimensions import ResizeMode
from photo_provenance.models.timespec import TimeSpec


class ConfigValidationError(ValidationError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Immutable run configuration.

    Loaded once at startup and passed to every pipeline call.

    Attributes:
        datetime_text: Civil capture time, ``"YYYY:MM:DD HH:MM:SS"``.
        offset_text: Offset of the civil time from UTC, ``"+HH:MM"``.
        subsec_text: Sub-second digits for the SubSec tags.
        resize_mode: Requested fit mode (``auto``, ``scale`` or ``crop``).
        auto_threshold: Aspect-ratio distance below which ``auto`` scales.
        fuzz_radius_m: Maximum per-axis location perturbation in metres.
        jpeg_quality: Quality of the resampled JPEG (1-95).
        exiftool_path: ExifTool binary; empty means look it up on ``PATH``.
        seed: Root seed for per-image random streams; ``None`` for entropy.
        use_fixed_location: Use the built-in coordinate instead of a CSV.
        random_filenames: Name outputs ``IMG_XXXX.JPG`` with random digits.
        embed_thumbnail: Embed an EXIF thumbnail in each output.
        set_file_times: Set output atime/mtime to the capture time.
        profile: Emulated device.
    """

    datetime_text: str = DEFAULT_DATETIME
    offset_text: str = DEFAULT_OFFSET
    subsec_text: str = DEFAULT_SUBSEC
    resize_mode: ResizeMode = ResizeMode.AUTO
    auto_threshold: float = DEFAULT_AUTO_THRESHOLD
    fuzz_radius_m: float = DEFAULT_FUZZ_RADIUS_M
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    exiftool_path: str = ""
    seed: int | None = None
    use_fixed_location: bool = False
    random_filenames: bool = False
    embed_thumbnail: bool = True
    set_file_times: bool = True
    profile: DeviceProfile = field(default=DEFAULT_DEVICE_PROFILE)

    @classmethod
    def from_env(cls) -> RunConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is malformed or out of range.
        """
        config = cls(
            datetime_text=os.getenv("PROVENANCE_DATETIME", DEFAULT_DATETIME),
            offset_text=os.getenv("PROVENANCE_OFFSET", DEFAULT_OFFSET),
            subsec_text=os.getenv("PROVENANCE_SUBSEC", DEFAULT_SUBSEC),
            resize_mode=_parse_resize_mode(os.getenv("PROVENANCE_RESIZE_MODE", "auto")),
            auto_threshold=_parse_float(
                "PROVENANCE_AUTO_THRESHOLD", str(DEFAULT_AUTO_THRESHOLD)
            ),
            fuzz_radius_m=_parse_float("PROVENANCE_FUZZ_RADIUS_M", str(DEFAULT_FUZZ_RADIUS_M)),
            jpeg_quality=_parse_int("PROVENANCE_JPEG_QUALITY", str(DEFAULT_JPEG_QUALITY)),
            exiftool_path=os.getenv("PROVENANCE_EXIFTOOL", ""),
            seed=_parse_optional_int("PROVENANCE_SEED"),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration ranges.  Raises ``ConfigValidationError``."""
        _validate(self)

    def time_spec(self) -> TimeSpec:
        """Parse the capture-time fields.

        Raises:
            InvalidTimeSpecError: If any time field is malformed.
        """
        from photo_provenance.activities.convert_time import parse_time_spec

        return parse_time_spec(self.datetime_text, self.offset_text, self.subsec_text)


def _parse_resize_mode(value: str) -> ResizeMode:
    try:
        return ResizeMode(value.strip().lower())
    except ValueError as exc:
        raise ConfigValidationError(
            "PROVENANCE_RESIZE_MODE", value, "must be one of auto, scale, crop"
        ) from exc


def _parse_float(key: str, default: str) -> float:
    raw = os.getenv(key, default)
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigValidationError(key, raw, "must be a number") from exc


def _parse_int(key: str, default: str) -> int:
    raw = os.getenv(key, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigValidationError(key, raw, "must be an integer") from exc


def _parse_optional_int(key: str) -> int | None:
    raw = os.getenv(key, "")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigValidationError(key, raw, "must be an integer") from exc


def _validate(config: RunConfig) -> None:
    if not math.isfinite(config.auto_threshold):
        raise ConfigValidationError(
            "PROVENANCE_AUTO_THRESHOLD",
            config.auto_threshold,
            "must be a finite number",
        )

    if not math.isfinite(config.fuzz_radius_m):
        raise ConfigValidationError(
            "PROVENANCE_FUZZ_RADIUS_M",
            config.fuzz_radius_m,
            "must be a finite number of metres",
        )

    if config.auto_threshold <= 0:
        raise ConfigValidationError(
            "PROVENANCE_AUTO_THRESHOLD",
            config.auto_threshold,
            "must be > 0",
        )

    if config.fuzz_radius_m < 0:
        raise ConfigValidationError(
            "PROVENANCE_FUZZ_RADIUS_M",
            config.fuzz_radius_m,
            "must be >= 0 (metres)",
        )

    if not 1 <= config.jpeg_quality <= 95:
        raise ConfigValidationError(
            "PROVENANCE_JPEG_QUALITY",
            config.jpeg_quality,
            "must be between 1 and 95",
        )

    if config.seed is not None and config.seed < 0:
        raise ConfigValidationError(
            "PROVENANCE_SEED",
            config.seed,
            "must be >= 0",
        )
