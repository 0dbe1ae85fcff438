"""Metadata plan activity: compose the per-image tag mapping.

Combines the device profile, the resize plan, the run-wide capture time
and an optional fuzzed coordinate into one ``MetadataPlan``.  The plan
is opaque to the orchestrator and written verbatim by ``write_tags``.

Tag groups, in write order:

1. Device identity (Make, Model, Software, HostComputer, LensModel)
2. Pixel dimensions of the resized canvas
3. Civil capture time (three identical date tags, offsets, sub-seconds)
4. Fixed exposure/optics/format constants
5. GPS group, only when a coordinate is available, all or nothing

No I/O.
"""

from __future__ import annotations

import logging

from photo_provenance.core.constants import (
    DEFAULT_DEVICE_PROFILE,
    GPS_DOP,
    GPS_MAP_DATUM,
    GPS_PROCESSING_METHOD,
    GPS_VERSION_ID,
    DeviceProfile,
)
from photo_provenance.models.dimensions import ResizePlan
from photo_provenance.models.location import GeoCoordinate
from photo_provenance.models.metadata import MetadataPlan, TagValue
from photo_provenance.models.timespec import TimeSpec, UtcDateTime

logger = logging.getLogger("photo_provenance.activities.build_metadata")


def build_identity_tags(profile: DeviceProfile) -> dict[str, TagValue]:
    """Fixed device-identity tags."""
    return {
        "Make": profile.make,
        "Model": profile.model,
        "Software": profile.software,
        "HostComputer": profile.host_computer,
        "LensModel": profile.lens_model,
    }


def build_dimension_tags(resize: ResizePlan) -> dict[str, TagValue]:
    """EXIF pixel-dimension tags matching the resized canvas."""
    return {
        "EXIF:PixelXDimension": resize.target_width,
        "EXIF:PixelYDimension": resize.target_height,
    }


def build_time_tags(time_spec: TimeSpec) -> dict[str, TagValue]:
    """Civil capture-time tags; the three date tags share one value."""
    civil_text = time_spec.civil.exif_text
    offset_text = time_spec.offset.exif_text
    return {
        "DateTimeOriginal": civil_text,
        "CreateDate": civil_text,
        "ModifyDate": civil_text,
        "OffsetTimeOriginal": offset_text,
        "OffsetTimeDigitized": offset_text,
        "SubSecTimeOriginal": time_spec.subsec,
        "SubSecTimeDigitized": time_spec.subsec,
    }


def build_gps_tags(coordinate: GeoCoordinate, utc: UtcDateTime) -> dict[str, TagValue]:
    """The complete GPS group for one coordinate.

    Hemisphere references come from the signs; magnitudes are absolute.
    ``GPSAltitudeRef`` is 1 below sea level, 0 otherwise.
    """
    return {
        "GPSVersionID": GPS_VERSION_ID,
        "GPSLatitudeRef": "S" if coordinate.latitude < 0 else "N",
        "GPSLatitude": abs(coordinate.latitude),
        "GPSLongitudeRef": "W" if coordinate.longitude < 0 else "E",
        "GPSLongitude": abs(coordinate.longitude),
        "GPSAltitudeRef": 1 if coordinate.altitude_m < 0 else 0,
        "GPSAltitude": abs(coordinate.altitude_m),
        "GPSDateStamp": utc.date_stamp,
        "GPSTimeStamp": utc.time_stamp,
        "GPSMapDatum": GPS_MAP_DATUM,
        "GPSDOP": GPS_DOP,
        "GPSProcessingMethod": GPS_PROCESSING_METHOD,
    }


def build_metadata_plan(
    resize: ResizePlan,
    fuzzed: GeoCoordinate | None,
    utc: UtcDateTime,
    time_spec: TimeSpec,
    *,
    profile: DeviceProfile = DEFAULT_DEVICE_PROFILE,
    source_file: str = "",
) -> MetadataPlan:
    """Build the metadata plan for one image.

    Args:
        resize: Resolved resize plan (supplies the pixel dimensions).
        fuzzed: Capture coordinate, or ``None`` to omit the GPS group.
        utc: UTC instant of the run's capture time.
        time_spec: Run-wide civil time, offset and sub-seconds.
        profile: Emulated device.
        source_file: Input image path, recorded on the plan for tracing.

    Returns:
        An immutable ``MetadataPlan``.
    """
    tags: dict[str, TagValue] = {}
    tags.update(build_identity_tags(profile))
    tags.update(build_dimension_tags(resize))
    tags.update(build_time_tags(time_spec))
    tags.update(profile.exposure_tags)
    if fuzzed is not None:
        tags.update(build_gps_tags(fuzzed, utc))

    plan = MetadataPlan(tags=tags, source_file=source_file)
    logger.debug(
        "Metadata plan built | file=%s | tags=%d | gps=%s",
        source_file,
        len(tags),
        plan.has_gps,
    )
    return plan
