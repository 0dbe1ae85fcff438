"""Shared pipeline constants: single source of truth.

Centralises the emulated device profile, the fixed exposure/optics tag
table, GPS group constants, and the built-in fixed capture location.
Tag names are ExifTool tag names; values are given in ExifTool's
numeric (``-n``) form because the tag writer runs in numeric mode.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

# ---------------------------------------------------------------------------
# Device profile
# ---------------------------------------------------------------------------

EXPOSURE_TAGS: Mapping[str, str | int | float] = MappingProxyType(
    {
        "XResolution": 72,
        "YResolution": 72,
        "ResolutionUnit": 2,  # inches
        "Orientation": 1,
        "YCbCrPositioning": 1,
        "FocalLength": 3.85,
        "FNumber": 2.8,
        "ISO": 80,
        "ExposureTime": "1/120",
        "ExposureProgram": 2,
        "MeteringMode": 5,
        "Flash": 16,
        "WhiteBalance": 0,
        "SensingMethod": 2,
        "SceneCaptureType": 0,
        "SceneType": 1,
        "CustomRendered": 0,
        "ExposureMode": 0,
        "DigitalZoomRatio": 1.0,
        "ColorSpace": 1,
        "ExifVersion": "0221",
        "FlashpixVersion": "0100",
        "ComponentsConfiguration": "1 2 3 0",
    }
)
"""Fixed exposure, optics and format tags written to every image."""


@dataclass(frozen=True, slots=True)
class DeviceProfile:
    """Identity and native geometry of the emulated camera.

    Attributes:
        make: ``Make`` tag.
        model: ``Model`` tag.
        software: ``Software`` tag (firmware version).
        host_computer: ``HostComputer`` tag.
        lens_model: ``LensModel`` tag.
        landscape_size: Native ``(width, height)`` canvas for landscape shots.
        portrait_size: Native ``(width, height)`` canvas for portrait shots.
        thumbnail_size: ``(width, height)`` of the embedded EXIF thumbnail.
        exposure_tags: Fixed exposure/optics/format tag table.
    """

    make: str = "Apple"
    model: str = "iPhone 4"
    software: str = "7.1.2"
    host_computer: str = "iPhone OS 7.1.2"
    lens_model: str = "iPhone 4 back camera 3.85mm f/2.8"
    landscape_size: tuple[int, int] = (2592, 1936)
    portrait_size: tuple[int, int] = (1936, 2592)
    thumbnail_size: tuple[int, int] = (192, 144)
    exposure_tags: Mapping[str, str | int | float] = field(default_factory=lambda: EXPOSURE_TAGS)


DEFAULT_DEVICE_PROFILE = DeviceProfile()

# ---------------------------------------------------------------------------
# GPS group constants
# ---------------------------------------------------------------------------

#: Four space-separated bytes, the ``-n`` form of version 2.2.0.0.
GPS_VERSION_ID = "2 2 0 0"
GPS_MAP_DATUM = "WGS-84"
GPS_DOP = 3.5
GPS_PROCESSING_METHOD = "GPS"

#: Prefix shared by every tag in the GPS group.
GPS_TAG_PREFIX = "GPS"

#: Complete GPS tag group; a plan carries all of these or none.
GPS_TAG_NAMES: tuple[str, ...] = (
    "GPSVersionID",
    "GPSLatitudeRef",
    "GPSLatitude",
    "GPSLongitudeRef",
    "GPSLongitude",
    "GPSAltitudeRef",
    "GPSAltitude",
    "GPSDateStamp",
    "GPSTimeStamp",
    "GPSMapDatum",
    "GPSDOP",
    "GPSProcessingMethod",
)

# ---------------------------------------------------------------------------
# Location defaults
# ---------------------------------------------------------------------------

#: Degrees of latitude per metre (1 degree ~ 111,111 m everywhere).
DEGREES_PER_METRE = 1.0 / 111_111

DEFAULT_FUZZ_RADIUS_M = 100.0

#: Built-in fixed capture location used instead of a CSV table.
FIXED_LOCATION_LAT = 22.3000
FIXED_LOCATION_LON = 94.4666
FIXED_LOCATION_ALT_M = 350.0

# ---------------------------------------------------------------------------
# Time defaults (local civil time at the stated offset)
# ---------------------------------------------------------------------------

DEFAULT_DATETIME = "2020:07:22 10:15:30"
DEFAULT_OFFSET = "+06:30"
DEFAULT_SUBSEC = "175"

#: ExifTool date-time layout.
EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"
EXIF_DATE_FORMAT = "%Y:%m:%d"
EXIF_TIME_FORMAT = "%H:%M:%S"

# ---------------------------------------------------------------------------
# Resize defaults
# ---------------------------------------------------------------------------

DEFAULT_AUTO_THRESHOLD = 0.05
DEFAULT_JPEG_QUALITY = 92

# ---------------------------------------------------------------------------
# Output naming
# ---------------------------------------------------------------------------

OUTPUT_NAME_PREFIX = "IMG_"
OUTPUT_NAME_SUFFIX = ".JPG"
OUTPUT_NUMBER_SPACE = 10_000
