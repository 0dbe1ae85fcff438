"""Shared pytest fixtures for the photo provenance test suite."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from PIL import Image

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Undo handlers and ``propagate=False`` left behind by CLI runs."""
    yield
    logger = logging.getLogger("photo_provenance")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Image fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a small solid-colour image into ``tmp_path``."""

    def _make(
        name: str = "input.png",
        size: tuple[int, int] = (30, 20),
        color: tuple[int, int, int] = (200, 40, 40),
        fmt: str | None = None,
    ) -> Path:
        path = tmp_path / name
        Image.new("RGB", size, color).save(path, format=fmt)
        return path

    return _make


@pytest.fixture()
def not_an_image(tmp_path: Path) -> Path:
    """A file with an image extension but text content."""
    path = tmp_path / "notes.jpg"
    path.write_text("this is not an image", encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Location CSV fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def write_csv(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory writing CSV text into ``tmp_path``."""

    def _write(text: str, name: str = "locations.csv") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def single_row_csv(write_csv: Callable[[str, str], Path]) -> Path:
    """Header plus one data row (Yangon-area coordinate, 20 m)."""
    return write_csv("latitude,longitude,elevation_m\n16.8,96.15,20\n", "single.csv")


# ---------------------------------------------------------------------------
# ExifTool fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def exiftool_helper() -> MagicMock:
    """A stand-in ``ExifToolHelper`` that records calls and writes nothing."""
    helper = MagicMock(name="ExifToolHelper")
    helper.set_tags.return_value = ""
    helper.execute.return_value = ""
    return helper
