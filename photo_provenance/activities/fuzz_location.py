"""Location fuzzing activity: perturb an origin within a radius in metres.

Latitude and longitude offsets are sampled independently and uniformly
in ``[-radius, +radius]`` metres, then converted to degrees.  A degree
of latitude is taken as 111,111 m everywhere; a degree of longitude
shrinks with ``cos(latitude)``, evaluated at the *fuzzed* latitude.

The result is not clamped to [-90, 90] / [-180, 180]:
near a pole or the antimeridian the fuzzed value can leave the nominal
range.

Randomness is an explicit ``numpy.random.Generator`` parameter.  When
omitted, each draw gets its own freshly entropy-seeded generator so
that no two calls share a stream.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from photo_provenance.core.constants import DEGREES_PER_METRE
from photo_provenance.models.location import GeoCoordinate

logger = logging.getLogger("photo_provenance.activities.fuzz_location")


def _unit_draw(rng: np.random.Generator | None) -> float:
    """Draw ``u`` uniformly in ``[-1, 1)`` as ``(rand - 0.5) * 2``."""
    generator = rng if rng is not None else np.random.default_rng()
    return (float(generator.random()) - 0.5) * 2


def longitude_degrees_per_metre(latitude: float) -> float:
    """Degrees of longitude per metre at ``latitude``.

    At a pole ``cos(latitude)`` is zero; the latitude constant is used
    there instead of dividing by zero.
    """
    cos_lat = math.cos(math.radians(latitude))
    if cos_lat == 0:
        return DEGREES_PER_METRE
    return DEGREES_PER_METRE / cos_lat


def fuzz_coordinate(
    origin: GeoCoordinate,
    radius_m: float,
    *,
    rng: np.random.Generator | None = None,
) -> GeoCoordinate:
    """Return ``origin`` moved by up to ``radius_m`` metres on each axis.

    Args:
        origin: Source coordinate.
        radius_m: Maximum offset in metres along each axis (>= 0).
        rng: Random source for both draws.  ``None`` draws each axis from
            an independent, freshly seeded generator.

    Returns:
        The fuzzed coordinate; altitude is passed through unchanged.

    Raises:
        ValueError: If ``radius_m`` is negative or not finite.
    """
    if not math.isfinite(radius_m) or radius_m < 0:
        msg = f"Fuzz radius must be a finite number >= 0 metres, got {radius_m}"
        raise ValueError(msg)

    lat_offset_deg = _unit_draw(rng) * radius_m * DEGREES_PER_METRE
    fuzzed_lat = origin.latitude + lat_offset_deg

    deg_per_metre_lon = longitude_degrees_per_metre(fuzzed_lat)
    lon_offset_deg = _unit_draw(rng) * radius_m * deg_per_metre_lon
    fuzzed_lon = origin.longitude + lon_offset_deg

    logger.debug(
        "Coordinate fuzzed | origin=(%.6f, %.6f) | fuzzed=(%.10f, %.10f) | radius=%.1f m",
        origin.latitude,
        origin.longitude,
        fuzzed_lat,
        fuzzed_lon,
        radius_m,
    )

    return GeoCoordinate(
        latitude=fuzzed_lat,
        longitude=fuzzed_lon,
        altitude_m=origin.altitude_m,
    )
