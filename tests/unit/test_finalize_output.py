"""Unit tests for thumbnail embedding and file timestamps."""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

from exiftool.exceptions import ExifToolException
from PIL import Image

from photo_provenance.activities.finalize_output import (
    apply_file_timestamps,
    embed_thumbnail,
    render_thumbnail,
)
from photo_provenance.models.timespec import CivilDateTime

MakeImage = Callable[..., Path]


class TestRenderThumbnail:
    """Thumbnail rendering."""

    def test_exact_size_jpeg(self, make_image: MakeImage, tmp_path: Path) -> None:
        source = make_image(size=(300, 100))
        dest = render_thumbnail(source, tmp_path / "thumb.jpg", (192, 144))
        with Image.open(dest) as thumb:
            assert thumb.size == (192, 144)
            assert thumb.format == "JPEG"


class TestEmbedThumbnail:
    """Embedding through the ExifTool helper."""

    def test_runs_exiftool_with_thumbnail_arg(
        self, make_image: MakeImage, exiftool_helper: MagicMock
    ) -> None:
        target = make_image("out.jpg", size=(64, 48), fmt="JPEG")

        assert embed_thumbnail(target, (16, 12), helper=exiftool_helper) is True

        args = exiftool_helper.execute.call_args.args
        assert args[0] == "-overwrite_original"
        assert any(a.startswith("-ThumbnailImage<=") for a in args)
        assert args[-1] == str(target)

    def test_exiftool_failure_is_swallowed_with_false(
        self, make_image: MakeImage, exiftool_helper: MagicMock
    ) -> None:
        target = make_image("out.jpg", size=(64, 48), fmt="JPEG")
        exiftool_helper.execute.side_effect = ExifToolException("no thumbnail")
        assert embed_thumbnail(target, (16, 12), helper=exiftool_helper) is False

    def test_unreadable_image_returns_false(
        self, not_an_image: Path, exiftool_helper: MagicMock
    ) -> None:
        assert embed_thumbnail(not_an_image, (16, 12), helper=exiftool_helper) is False
        exiftool_helper.execute.assert_not_called()


class TestApplyFileTimestamps:
    """atime/mtime follow the civil capture time."""

    def test_sets_mtime_and_atime(self, make_image: MakeImage) -> None:
        target = make_image()
        civil = CivilDateTime(value=datetime(2020, 7, 22, 10, 15, 30))

        stamp = apply_file_timestamps(target, civil)

        stat = os.stat(target)
        assert stamp == civil.value.timestamp()
        assert stat.st_mtime == stamp
        assert stat.st_atime == stamp
        assert datetime.fromtimestamp(stat.st_mtime) == civil.value
