"""Data models and schemas.

Defines the data structures passed between pipeline stages:
- ImageDimensions / ResizePlan: Probed geometry and the chosen canvas fit
- GeoCoordinate / LocationTable: Origin and fuzzed capture locations
- CivilDateTime / UtcOffset / TimeSpec / UtcDateTime: Run-wide capture time
- MetadataPlan: Per-image tag mapping handed to the tag writer
"""

from photo_provenance.models.dimensions import ImageDimensions, ResizeMode, ResizePlan
from photo_provenance.models.location import GeoCoordinate, LocationTable
from photo_provenance.models.metadata import MetadataPlan
from photo_provenance.models.timespec import CivilDateTime, TimeSpec, UtcDateTime, UtcOffset

__all__ = [
    "CivilDateTime",
    "GeoCoordinate",
    "ImageDimensions",
    "LocationTable",
    "MetadataPlan",
    "ResizeMode",
    "ResizePlan",
    "TimeSpec",
    "UtcDateTime",
    "UtcOffset",
]
