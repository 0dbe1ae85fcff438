"""Location source activity: parse the location CSV and pick an origin.

CSV layout: one header row (skipped), then rows of
``latitude, longitude, elevation_m, ...``.  Blank rows are skipped and
only the first three columns are read.

Each row is parsed explicitly:

- latitude/longitude must be plain signed decimals (``-12.5``, ``96``)
  within WGS 84 range, otherwise the row is rejected;
- an empty or non-numeric elevation is replaced by 0 m with a warning.

A table with no valid rows is an ``InvalidLocationDataError``; the
orchestrator recovers by omitting the GPS group.
"""

from __future__ import annotations

import csv
import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

from photo_provenance.core.exceptions import InvalidElevationError, InvalidLocationDataError
from photo_provenance.models.location import GeoCoordinate, LocationTable

if TYPE_CHECKING:
    import numpy as np

logger = logging.getLogger("photo_provenance.activities.load_locations")

# Plain signed decimal: no exponent, no leading "+", no bare "."
_DECIMAL_RE = re.compile(r"^-?[0-9]+(\.[0-9]+)?$")


def parse_decimal(value: str) -> float | None:
    """Parse a plain signed decimal, returning ``None`` if it is not one."""
    text = value.strip()
    if not _DECIMAL_RE.match(text):
        return None
    return float(text)


def parse_elevation(value: str) -> float:
    """Parse an elevation column.

    Raises:
        InvalidElevationError: If the value is empty or not a plain decimal.
    """
    elevation = parse_decimal(value)
    if elevation is None:
        msg = f"Invalid or empty elevation {value.strip()!r}"
        raise InvalidElevationError(msg)
    return elevation


def parse_location_row(row: list[str], *, line_number: int = 0) -> GeoCoordinate:
    """Parse one CSV data row into an origin coordinate.

    Args:
        row: Raw CSV cells.
        line_number: 1-based line number, for messages.

    Returns:
        A range-checked ``GeoCoordinate``.

    Raises:
        InvalidLocationDataError: If latitude or longitude is missing,
            non-numeric, or out of range.
    """
    cells = [*row, "", "", ""][:3]
    lat_text, lon_text, elev_text = cells

    latitude = parse_decimal(lat_text)
    longitude = parse_decimal(lon_text)
    if latitude is None or longitude is None:
        msg = (
            f"Invalid or empty lat/lon on line {line_number}: "
            f"lat={lat_text.strip()!r}, lon={lon_text.strip()!r}"
        )
        raise InvalidLocationDataError(msg)

    try:
        elevation = parse_elevation(elev_text)
    except InvalidElevationError as exc:
        logger.warning("%s on line %d; using 0 m", exc.message, line_number)
        elevation = 0.0

    try:
        return GeoCoordinate.validated(latitude, longitude, elevation)
    except ValueError as exc:
        msg = f"Out-of-range coordinate on line {line_number}: {exc}"
        raise InvalidLocationDataError(msg) from exc


def load_location_table(csv_path: str | Path) -> LocationTable:
    """Read and validate every data row of a location CSV.

    Args:
        csv_path: Path to the CSV file.

    Returns:
        A ``LocationTable`` holding every valid row in file order.

    Raises:
        InvalidLocationDataError: If the file is missing or unreadable, or
            no data row has a usable latitude/longitude.
    """
    path = Path(csv_path)
    if not path.is_file():
        msg = f"Locations CSV file '{path}' not found"
        raise InvalidLocationDataError(msg, source_file=str(path))

    coordinates: list[GeoCoordinate] = []
    rejected = 0
    try:
        with path.open(newline="", encoding="utf-8-sig") as handle:
            reader = csv.reader(handle)
            next(reader, None)  # header
            for row in reader:
                if not any(cell.strip() for cell in row):
                    continue
                try:
                    coordinates.append(parse_location_row(row, line_number=reader.line_num))
                except InvalidLocationDataError as exc:
                    rejected += 1
                    logger.warning("Skipping location row | file=%s | reason=%s", path, exc.message)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        msg = f"Failed to read locations CSV '{path}': {exc}"
        raise InvalidLocationDataError(msg, source_file=str(path)) from exc

    if not coordinates:
        msg = f"No valid data lines in '{path}'"
        raise InvalidLocationDataError(msg, source_file=str(path))

    logger.info(
        "Location table loaded | file=%s | rows=%d | rejected=%d",
        path,
        len(coordinates),
        rejected,
    )
    return LocationTable(
        coordinates=tuple(coordinates), source_file=str(path), rejected_rows=rejected
    )


def select_origin(table: LocationTable, rng: np.random.Generator) -> GeoCoordinate:
    """Pick one origin uniformly at random from the table.

    Raises:
        InvalidLocationDataError: If the table is empty.
    """
    if not table.coordinates:
        msg = "Location table is empty"
        raise InvalidLocationDataError(msg, source_file=table.source_file)
    index = int(rng.integers(len(table.coordinates)))
    return table.coordinates[index]
