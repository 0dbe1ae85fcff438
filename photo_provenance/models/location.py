"""Location models: capture coordinates and the parsed location table.

All coordinates are WGS 84 decimal degrees.  Altitude is metres above
sea level and may be negative.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class GeoCoordinate:
    """A capture location.

    Origin coordinates are range-checked by ``validated()``; fuzzed
    coordinates are built directly and are never clamped, so a fuzz near
    a pole or the antimeridian may fall outside the nominal ranges.

    Attributes:
        latitude: Degrees, nominally in [-90, 90].
        longitude: Degrees, nominally in [-180, 180].
        altitude_m: Metres above sea level (negative below).
    """

    latitude: float
    longitude: float
    altitude_m: float = 0.0

    @classmethod
    def validated(cls, latitude: float, longitude: float, altitude_m: float = 0.0) -> GeoCoordinate:
        """Build an origin coordinate, rejecting out-of-range values.

        Raises:
            ValueError: If latitude or longitude is outside WGS 84 bounds.
        """
        if not -90.0 <= latitude <= 90.0:
            msg = f"Latitude {latitude} outside [-90, 90]"
            raise ValueError(msg)
        if not -180.0 <= longitude <= 180.0:
            msg = f"Longitude {longitude} outside [-180, 180]"
            raise ValueError(msg)
        return cls(latitude=latitude, longitude=longitude, altitude_m=altitude_m)

    def to_dict(self) -> dict[str, float]:
        """Serialise to a plain dict for the batch report."""
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude_m": self.altitude_m,
        }


@dataclass(frozen=True, slots=True)
class LocationTable:
    """Origin candidates parsed from a location CSV.

    Attributes:
        coordinates: Valid rows in file order.
        source_file: Path of the CSV the rows came from.
        rejected_rows: Number of data rows dropped for bad lat/lon.
    """

    coordinates: tuple[GeoCoordinate, ...] = field(default_factory=tuple)
    source_file: str = ""
    rejected_rows: int = 0

    def __len__(self) -> int:
        return len(self.coordinates)
