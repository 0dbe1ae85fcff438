"""Tests for the batch orchestrator.

Images are real (tiny Pillow files); ExifTool is a mock, so the tests
check what would be written rather than reading tags back.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from PIL import Image

from photo_provenance.core.config import ConfigValidationError, RunConfig
from photo_provenance.core.constants import DeviceProfile
from photo_provenance.core.exceptions import InvalidTimeSpecError, ToolUnavailableError
from photo_provenance.models.dimensions import ImageDimensions, ResizeMode
from photo_provenance.orchestrators.batch import (
    FIXED_LOCATION,
    plan_image,
    prepare_run,
    resolve_location,
    run_batch,
)

MakeImage = Callable[..., Path]

SMALL_PROFILE_SIZE = (64, 48)


def _config(**overrides: Any) -> RunConfig:
    """Run config with thumbnails and file times off unless requested."""
    base: dict[str, Any] = {"embed_thumbnail": False, "set_file_times": False, "seed": 1234}
    base.update(overrides)
    return RunConfig(**base)


def _written_tags(helper: MagicMock, call_index: int = 0) -> dict[str, Any]:
    return helper.set_tags.call_args_list[call_index].args[1]


def _rngs(seed: int = 0) -> dict[str, np.random.Generator]:
    return {
        "selection_rng": np.random.default_rng(seed),
        "fuzz_rng": np.random.default_rng(seed + 1),
    }


# ===========================================================================
# Run setup
# ===========================================================================


class TestPrepareRun:
    """Run-wide state and fatal errors."""

    def test_utc_derived_once(self, single_row_csv: Path) -> None:
        run = prepare_run(_config(), locations_csv=single_row_csv)
        assert run.utc.date_stamp == "2020:07:22"
        assert run.utc.time_stamp == "03:45:30"
        assert run.locations is not None
        assert len(run.locations) == 1

    def test_invalid_time_is_fatal(self) -> None:
        with pytest.raises(InvalidTimeSpecError):
            prepare_run(_config(offset_text="+6"))

    def test_invalid_config_is_fatal(self) -> None:
        with pytest.raises(ConfigValidationError):
            prepare_run(_config(jpeg_quality=0))

    def test_bad_csv_degrades(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="photo_provenance.orchestrators.batch"):
            run = prepare_run(_config(), locations_csv=tmp_path / "absent.csv")
        assert run.locations is None
        assert "not found" in run.location_error
        assert "GPS tags will be skipped" in caplog.text

    def test_no_csv(self) -> None:
        run = prepare_run(_config())
        assert run.locations is None
        assert run.location_error

    def test_fixed_location_ignores_csv(self, single_row_csv: Path) -> None:
        run = prepare_run(_config(use_fixed_location=True), locations_csv=single_row_csv)
        assert run.locations is None
        assert run.location_error == ""


# ===========================================================================
# Per-image planning
# ===========================================================================


class TestPlanning:
    """Location resolution and plan assembly without I/O."""

    def test_zero_radius_uses_origin_exactly(self, single_row_csv: Path) -> None:
        run = prepare_run(_config(fuzz_radius_m=0.0), locations_csv=single_row_csv)
        coord = resolve_location(run, **_rngs())
        assert coord is not None
        assert (coord.latitude, coord.longitude, coord.altitude_m) == (16.8, 96.15, 20.0)

    def test_fixed_location_not_fuzzed(self) -> None:
        run = prepare_run(_config(use_fixed_location=True, fuzz_radius_m=500.0))
        assert resolve_location(run, **_rngs()) is FIXED_LOCATION
        assert (FIXED_LOCATION.latitude, FIXED_LOCATION.longitude) == (22.3, 94.4666)

    def test_missing_table_omits_gps(self) -> None:
        run = prepare_run(_config())
        assert resolve_location(run, **_rngs()) is None

    def test_three_by_two_plan(self, single_row_csv: Path) -> None:
        run = prepare_run(_config(fuzz_radius_m=0.0), locations_csv=single_row_csv)
        plan = plan_image("in.png", ImageDimensions(3000, 2000), run, **_rngs())

        assert plan.resize.mode is ResizeMode.CROP
        assert plan.resize.size == (2592, 1936)
        tags = plan.metadata.tags
        assert tags["EXIF:PixelXDimension"] == 2592
        assert tags["EXIF:PixelYDimension"] == 1936
        assert tags["GPSLatitude"] == 16.8
        assert tags["GPSLongitude"] == 96.15
        assert tags["GPSAltitudeRef"] == 0
        assert tags["GPSDateStamp"] == "2020:07:22"
        assert tags["GPSTimeStamp"] == "03:45:30"

    def test_zero_height_plan_crops(self) -> None:
        run = prepare_run(_config())
        plan = plan_image("flat.png", ImageDimensions(10, 0), run, **_rngs())
        assert plan.resize.mode is ResizeMode.CROP
        assert not plan.metadata.has_gps


# ===========================================================================
# Whole batch
# ===========================================================================


@pytest.fixture()
def small_canvas() -> DeviceProfile:
    """A device profile with a tiny canvas so resampling stays fast."""
    return DeviceProfile(
        landscape_size=SMALL_PROFILE_SIZE,
        portrait_size=(SMALL_PROFILE_SIZE[1], SMALL_PROFILE_SIZE[0]),
        thumbnail_size=(16, 12),
    )


class TestRunBatch:
    """End-to-end behaviour with a mocked ExifTool."""

    def test_single_image_success(
        self,
        make_image: MakeImage,
        single_row_csv: Path,
        exiftool_helper: MagicMock,
        small_canvas: DeviceProfile,
        tmp_path: Path,
    ) -> None:
        source = make_image(size=(90, 60))
        out_dir = tmp_path / "out"
        config = _config(fuzz_radius_m=0.0, profile=small_canvas)

        result = run_batch(
            [source],
            config,
            locations_csv=single_row_csv,
            output_dir=out_dir,
            helper=exiftool_helper,
        )

        assert result["total"] == 1
        assert result["succeeded"] == 1
        assert result["failed"] == 0
        outcome = result["outcomes"][0]
        assert outcome["status"] == "succeeded"
        assert outcome["gps"] is True
        output = Path(outcome["output_file"])
        assert output.parent == out_dir
        assert output.name.startswith("IMG_") and output.suffix == ".JPG"
        with Image.open(output) as img:
            assert img.size == SMALL_PROFILE_SIZE

        tags = _written_tags(exiftool_helper)
        assert list(tags)[:2] == ["All", "XMP:All"]
        assert tags["GPSLatitude"] == 16.8
        assert tags["GPSAltitudeRef"] == 0
        assert tags["EXIF:PixelXDimension"] == SMALL_PROFILE_SIZE[0]

    def test_source_is_left_untouched(
        self,
        make_image: MakeImage,
        exiftool_helper: MagicMock,
        small_canvas: DeviceProfile,
        tmp_path: Path,
    ) -> None:
        source = make_image(size=(90, 60))
        before = source.read_bytes()
        run_batch(
            [source],
            _config(use_fixed_location=True, profile=small_canvas),
            output_dir=tmp_path / "out",
            helper=exiftool_helper,
        )
        assert source.read_bytes() == before

    def test_sequential_names_for_multiple_inputs(
        self,
        make_image: MakeImage,
        exiftool_helper: MagicMock,
        small_canvas: DeviceProfile,
        tmp_path: Path,
    ) -> None:
        sources = [make_image(f"in{i}.png", size=(40, 30)) for i in range(3)]
        result = run_batch(
            sources,
            _config(use_fixed_location=True, profile=small_canvas),
            output_dir=tmp_path / "out",
            helper=exiftool_helper,
        )
        names = [Path(o["output_file"]).name for o in result["outcomes"]]
        assert names == ["IMG_0001.JPG", "IMG_0002.JPG", "IMG_0003.JPG"]

    def test_random_names_are_unique(
        self,
        make_image: MakeImage,
        exiftool_helper: MagicMock,
        small_canvas: DeviceProfile,
        tmp_path: Path,
    ) -> None:
        sources = [make_image(f"in{i}.png", size=(40, 30)) for i in range(5)]
        result = run_batch(
            sources,
            _config(use_fixed_location=True, random_filenames=True, profile=small_canvas),
            output_dir=tmp_path / "out",
            helper=exiftool_helper,
        )
        names = [Path(o["output_file"]).name for o in result["outcomes"]]
        assert len(set(names)) == 5

    def test_output_beside_input_without_output_dir(
        self,
        make_image: MakeImage,
        exiftool_helper: MagicMock,
        small_canvas: DeviceProfile,
        tmp_path: Path,
    ) -> None:
        source = make_image(size=(40, 30))
        result = run_batch(
            [source], _config(use_fixed_location=True, profile=small_canvas), helper=exiftool_helper
        )
        assert Path(result["outcomes"][0]["output_file"]).parent == tmp_path

    def test_failing_image_is_isolated(
        self,
        make_image: MakeImage,
        not_an_image: Path,
        exiftool_helper: MagicMock,
        small_canvas: DeviceProfile,
        tmp_path: Path,
    ) -> None:
        good_a = make_image("a.png", size=(40, 30))
        good_b = make_image("b.png", size=(30, 40))
        result = run_batch(
            [good_a, not_an_image, good_b],
            _config(use_fixed_location=True, profile=small_canvas),
            output_dir=tmp_path / "out",
            helper=exiftool_helper,
        )
        assert result["total"] == 3
        assert result["succeeded"] == 2
        assert result["failed"] == 1
        failed = result["outcomes"][1]
        assert failed["status"] == "failed"
        assert failed["error"]["code"] == "INVALID_DIMENSIONS"
        assert failed["output_file"] == ""
        assert exiftool_helper.set_tags.call_count == 2

    def test_oversized_image_is_isolated(
        self,
        make_image: MakeImage,
        exiftool_helper: MagicMock,
        small_canvas: DeviceProfile,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        oversized = make_image("big.png", size=(100, 100))
        regular = make_image("ok.png", size=(20, 20))
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

        result = run_batch(
            [oversized, regular],
            _config(use_fixed_location=True, profile=small_canvas),
            output_dir=tmp_path / "out",
            helper=exiftool_helper,
        )

        assert [o["status"] for o in result["outcomes"]] == ["failed", "succeeded"]
        assert result["outcomes"][0]["error"]["code"] == "INVALID_DIMENSIONS"
        assert exiftool_helper.set_tags.call_count == 1

    def test_tag_write_failure_is_isolated(
        self,
        make_image: MakeImage,
        exiftool_helper: MagicMock,
        small_canvas: DeviceProfile,
        tmp_path: Path,
    ) -> None:
        from exiftool.exceptions import ExifToolException

        exiftool_helper.set_tags.side_effect = [ExifToolException("locked"), ""]
        sources = [make_image("a.png", size=(40, 30)), make_image("b.png", size=(40, 30))]
        result = run_batch(
            sources,
            _config(use_fixed_location=True, profile=small_canvas),
            output_dir=tmp_path / "out",
            helper=exiftool_helper,
        )
        assert [o["status"] for o in result["outcomes"]] == ["failed", "succeeded"]
        assert result["outcomes"][0]["error"]["stage"] == "write_tags"

    def test_missing_csv_still_processes_without_gps(
        self,
        make_image: MakeImage,
        exiftool_helper: MagicMock,
        small_canvas: DeviceProfile,
        tmp_path: Path,
    ) -> None:
        result = run_batch(
            [make_image(size=(40, 30))],
            _config(profile=small_canvas),
            locations_csv=tmp_path / "absent.csv",
            output_dir=tmp_path / "out",
            helper=exiftool_helper,
        )
        assert result["succeeded"] == 1
        assert result["outcomes"][0]["gps"] is False
        assert not any(k.startswith("GPS") for k in _written_tags(exiftool_helper))

    def test_invalid_time_aborts_before_any_image(
        self, make_image: MakeImage, exiftool_helper: MagicMock
    ) -> None:
        with pytest.raises(InvalidTimeSpecError):
            run_batch(
                [make_image()],
                _config(datetime_text="2020:02:30 00:00:00", use_fixed_location=True),
                helper=exiftool_helper,
            )
        exiftool_helper.set_tags.assert_not_called()

    def test_thumbnail_and_file_times(
        self,
        make_image: MakeImage,
        exiftool_helper: MagicMock,
        small_canvas: DeviceProfile,
        tmp_path: Path,
    ) -> None:
        config = _config(
            use_fixed_location=True,
            embed_thumbnail=True,
            set_file_times=True,
            profile=small_canvas,
        )
        result = run_batch(
            [make_image(size=(40, 30))], config, output_dir=tmp_path / "out", helper=exiftool_helper
        )
        output = Path(result["outcomes"][0]["output_file"])
        exiftool_helper.execute.assert_called_once()
        assert datetime.fromtimestamp(output.stat().st_mtime) == datetime(2020, 7, 22, 10, 15, 30)

    def test_seeded_runs_fuzz_identically(
        self,
        make_image: MakeImage,
        single_row_csv: Path,
        small_canvas: DeviceProfile,
        tmp_path: Path,
    ) -> None:
        sources = [make_image(f"in{i}.png", size=(40, 30)) for i in range(2)]
        latitudes = []
        for attempt in range(2):
            helper = MagicMock()
            run_batch(
                sources,
                _config(profile=small_canvas, seed=99),
                locations_csv=single_row_csv,
                output_dir=tmp_path / f"out{attempt}",
                helper=helper,
            )
            latitudes.append([_written_tags(helper, i)["GPSLatitude"] for i in range(2)])
        assert latitudes[0] == latitudes[1]
        # images within a run draw from independent streams
        assert latitudes[0][0] != latitudes[0][1]

    def test_exiftool_unavailable_is_fatal(self, make_image: MakeImage) -> None:
        with patch(
            "photo_provenance.orchestrators.batch.open_exiftool",
            side_effect=FileNotFoundError("exiftool"),
        ):
            with pytest.raises(ToolUnavailableError):
                run_batch([make_image()], _config(use_fixed_location=True))
