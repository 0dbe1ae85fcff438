"""Batch orchestrator for the provenance pipeline.

Coordinates one run over a list of input images:

1. **Run setup** (fatal on error): validate ``RunConfig``, parse the
   shared capture time, derive its UTC instant, load the location CSV.
2. **Per image** (isolated): probe dimensions, plan the resize, resolve
   and fuzz a location, build the metadata plan, resample, write tags,
   embed the thumbnail, move to the output name, set file times.
3. **Report**: one outcome per input, success or failure.

A failing image is logged and recorded; its siblings still run.  A
location problem only drops the GPS group for that image.

Randomness: the run owns a ``numpy.random.SeedSequence``.  Each image
gets its own spawned children for location selection and fuzzing, so
images are never correlated and a seeded run is reproducible.
"""

from __future__ import annotations

import contextlib
import logging
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, TypedDict

import numpy as np
from exiftool.exceptions import ExifToolException

from photo_provenance.activities.build_metadata import build_metadata_plan
from photo_provenance.activities.convert_time import to_utc
from photo_provenance.activities.finalize_output import apply_file_timestamps, embed_thumbnail
from photo_provenance.activities.fuzz_location import fuzz_coordinate
from photo_provenance.activities.load_locations import load_location_table, select_origin
from photo_provenance.activities.plan_resize import plan_resize
from photo_provenance.activities.resample_image import probe_dimensions, resample_image
from photo_provenance.activities.write_tags import open_exiftool, write_tags
from photo_provenance.core.constants import (
    FIXED_LOCATION_ALT_M,
    FIXED_LOCATION_LAT,
    FIXED_LOCATION_LON,
    OUTPUT_NUMBER_SPACE,
)
from photo_provenance.core.exceptions import (
    ExternalToolError,
    InvalidLocationDataError,
    ProvenanceError,
    ToolUnavailableError,
)
from photo_provenance.models.location import GeoCoordinate, LocationTable
from photo_provenance.utils.output_names import (
    build_output_path,
    format_output_name,
    random_output_name,
    use_random_names,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    import exiftool

    from photo_provenance.core.config import RunConfig
    from photo_provenance.models.dimensions import ImageDimensions, ResizePlan
    from photo_provenance.models.metadata import MetadataPlan
    from photo_provenance.models.timespec import TimeSpec, UtcDateTime

logger = logging.getLogger("photo_provenance.orchestrators.batch")

FIXED_LOCATION = GeoCoordinate(
    latitude=FIXED_LOCATION_LAT,
    longitude=FIXED_LOCATION_LON,
    altitude_m=FIXED_LOCATION_ALT_M,
)


# ---------------------------------------------------------------------------
# Result contracts
# ---------------------------------------------------------------------------


class ImageOutcome(TypedDict):
    """Per-image entry of the batch report."""

    source_file: str
    output_file: str
    status: str
    resize: dict[str, object]
    gps: bool
    error: dict[str, object]


class BatchResult(TypedDict):
    """Output contract for ``run_batch``."""

    total: int
    succeeded: int
    failed: int
    duration_seconds: float
    outcomes: list[ImageOutcome]


@dataclass(frozen=True, slots=True)
class RunContext:
    """Run-wide, read-only state shared by every image.

    Attributes:
        config: Validated run configuration.
        time_spec: Parsed capture time.
        utc: UTC instant of the capture time.
        locations: Parsed location table, or ``None`` when using the fixed
            location or when the CSV could not be used.
        location_error: Why the CSV could not be used (empty if it could).
    """

    config: RunConfig
    time_spec: TimeSpec
    utc: UtcDateTime
    locations: LocationTable | None = None
    location_error: str = ""


@dataclass(frozen=True, slots=True)
class ImagePlan:
    """Everything decided for one image before any pixel or tag is written.

    Attributes:
        source_file: Input image path.
        dimensions: Probed source dimensions.
        resize: Resolved resize plan.
        location: Capture coordinate, or ``None`` when GPS is omitted.
        metadata: Tag mapping for the writer.
    """

    source_file: str
    dimensions: ImageDimensions
    resize: ResizePlan
    location: GeoCoordinate | None
    metadata: MetadataPlan


@dataclass(slots=True)
class _ImageStreams:
    """Independent random streams for one image."""

    selection: np.random.Generator
    fuzz: np.random.Generator

    @classmethod
    def spawn(cls, seed_sequence: np.random.SeedSequence) -> _ImageStreams:
        selection_seq, fuzz_seq = seed_sequence.spawn(2)
        return cls(
            selection=np.random.default_rng(selection_seq),
            fuzz=np.random.default_rng(fuzz_seq),
        )


@dataclass(slots=True)
class _Naming:
    """Output name allocator for one batch.  Random names never repeat."""

    random_names: bool
    rng: np.random.Generator
    counter: int = 1
    issued: set[str] = field(default_factory=set)

    def next_name(self) -> str:
        if self.random_names:
            if len(self.issued) >= OUTPUT_NUMBER_SPACE:
                msg = "Random output name space exhausted"
                raise ExternalToolError(msg, stage="output_names")
            name = random_output_name(self.rng)
            while name in self.issued:
                name = random_output_name(self.rng)
        else:
            name = format_output_name(self.counter)
            self.counter += 1
        self.issued.add(name)
        return name


# ---------------------------------------------------------------------------
# Run setup
# ---------------------------------------------------------------------------


def prepare_run(config: RunConfig, *, locations_csv: str | Path | None = None) -> RunContext:
    """Validate configuration and resolve all run-wide state.

    Args:
        config: Run configuration.
        locations_csv: Location CSV; ignored when ``config.use_fixed_location``.

    Returns:
        A ``RunContext`` shared by every image.

    Raises:
        ConfigValidationError: If a configuration value is out of range.
        InvalidTimeSpecError: If the capture time is malformed.
    """
    config.validate()
    time_spec = config.time_spec()
    utc = to_utc(time_spec.civil, time_spec.offset)

    logger.info(
        "Run prepared | civil=%s | offset=%s | utc=%s %s | resize_mode=%s | fixed_location=%s",
        time_spec.civil.exif_text,
        time_spec.offset.exif_text,
        utc.date_stamp,
        utc.time_stamp,
        config.resize_mode.value,
        config.use_fixed_location,
    )

    if config.use_fixed_location:
        return RunContext(config=config, time_spec=time_spec, utc=utc)

    if locations_csv is None:
        return RunContext(
            config=config,
            time_spec=time_spec,
            utc=utc,
            location_error="No locations CSV given",
        )

    try:
        table = load_location_table(locations_csv)
    except InvalidLocationDataError as exc:
        logger.warning("%s. GPS tags will be skipped for every image.", exc.message)
        return RunContext(config=config, time_spec=time_spec, utc=utc, location_error=exc.message)

    return RunContext(config=config, time_spec=time_spec, utc=utc, locations=table)


# ---------------------------------------------------------------------------
# Per-image planning
# ---------------------------------------------------------------------------


def resolve_location(
    run: RunContext,
    *,
    selection_rng: np.random.Generator,
    fuzz_rng: np.random.Generator,
    source_file: str = "",
) -> GeoCoordinate | None:
    """Pick the capture coordinate for one image, or ``None`` to omit GPS.

    The fixed location is used as-is.  A CSV origin is chosen at random
    and fuzzed by ``config.fuzz_radius_m``.
    """
    if run.config.use_fixed_location:
        logger.info("Using fixed location | file=%s", source_file)
        return FIXED_LOCATION

    if run.locations is None:
        logger.warning(
            "Skipping GPS tags, coordinates not available | file=%s | reason=%s",
            source_file,
            run.location_error,
        )
        return None

    try:
        origin = select_origin(run.locations, selection_rng)
    except InvalidLocationDataError as exc:
        logger.warning("Skipping GPS tags | file=%s | reason=%s", source_file, exc.message)
        return None

    fuzzed = fuzz_coordinate(origin, run.config.fuzz_radius_m, rng=fuzz_rng)
    logger.info(
        "Location resolved | file=%s | origin=(%.6f, %.6f, %.1f) | fuzzed=(%.10f, %.10f)",
        source_file,
        origin.latitude,
        origin.longitude,
        origin.altitude_m,
        fuzzed.latitude,
        fuzzed.longitude,
    )
    return fuzzed


def plan_image(
    source: str | Path,
    dims: ImageDimensions,
    run: RunContext,
    *,
    selection_rng: np.random.Generator,
    fuzz_rng: np.random.Generator,
) -> ImagePlan:
    """Decide resize, location and tags for one image.  No I/O.

    Args:
        source: Input image path.
        dims: Probed source dimensions.
        run: Run-wide state.
        selection_rng: Random source for picking the CSV origin.
        fuzz_rng: Random source for the coordinate fuzz.

    Returns:
        The complete ``ImagePlan``.
    """
    config = run.config
    source_file = str(source)
    resize = plan_resize(
        dims,
        config.resize_mode,
        landscape_target=config.profile.landscape_size,
        portrait_target=config.profile.portrait_size,
        auto_threshold=config.auto_threshold,
    )
    location = resolve_location(
        run,
        selection_rng=selection_rng,
        fuzz_rng=fuzz_rng,
        source_file=source_file,
    )
    metadata = build_metadata_plan(
        resize,
        location,
        run.utc,
        run.time_spec,
        profile=config.profile,
        source_file=source_file,
    )
    logger.info(
        "Image planned | file=%s | dims=%dx%d | mode=%s | target=%dx%d | gps=%s",
        source_file,
        dims.width,
        dims.height,
        resize.mode.value,
        resize.target_width,
        resize.target_height,
        metadata.has_gps,
    )
    return ImagePlan(
        source_file=source_file,
        dimensions=dims,
        resize=resize,
        location=location,
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Per-image execution
# ---------------------------------------------------------------------------


def process_image(
    source: str | Path,
    run: RunContext,
    *,
    streams: _ImageStreams,
    naming: _Naming,
    workdir: Path,
    helper: exiftool.ExifToolHelper,
    output_dir: str | Path | None = None,
) -> ImageOutcome:
    """Run one image through the pipeline.

    Raises:
        ProvenanceError: Any per-image failure; the caller decides whether
            to continue.
    """
    config = run.config
    dims = probe_dimensions(source)
    plan = plan_image(
        source,
        dims,
        run,
        selection_rng=streams.selection,
        fuzz_rng=streams.fuzz,
    )

    name = naming.next_name()
    output_path = build_output_path(source, name, output_dir)
    working_path = workdir / f"processing_{name}"

    resample_image(source, working_path, plan.resize, quality=config.jpeg_quality)
    write_tags(working_path, plan.metadata, helper=helper)
    if config.embed_thumbnail:
        embed_thumbnail(working_path, config.profile.thumbnail_size, helper=helper)

    try:
        shutil.move(working_path, output_path)
        if config.set_file_times:
            apply_file_timestamps(output_path, run.time_spec.civil)
    except OSError as exc:
        msg = f"Failed to finalise output '{output_path}': {exc}"
        raise ExternalToolError(msg, stage="finalize_output", source_file=plan.source_file) from exc

    logger.info("Image complete | file=%s | output=%s", plan.source_file, output_path)
    return ImageOutcome(
        source_file=plan.source_file,
        output_file=str(output_path),
        status="succeeded",
        resize=plan.resize.to_dict(),
        gps=plan.metadata.has_gps,
        error={},
    )


def _failed_outcome(source: str | Path, exc: ProvenanceError) -> ImageOutcome:
    return ImageOutcome(
        source_file=str(source),
        output_file="",
        status="failed",
        resize={},
        gps=False,
        error=exc.to_error_dict(),
    )


def run_batch(
    inputs: Sequence[str | Path],
    config: RunConfig,
    *,
    locations_csv: str | Path | None = None,
    output_dir: str | Path | None = None,
    helper: exiftool.ExifToolHelper | None = None,
) -> BatchResult:
    """Process a batch of images with one shared capture record.

    Args:
        inputs: Input image paths, processed in order.
        config: Run configuration.
        locations_csv: Location CSV (unless ``config.use_fixed_location``).
        output_dir: Output directory; created if missing.  ``None`` writes
            each output beside its input.
        helper: Running ``ExifToolHelper``; one is started when ``None``.

    Returns:
        A ``BatchResult`` with one outcome per input.

    Raises:
        ConfigValidationError: If the configuration is invalid.
        InvalidTimeSpecError: If the capture time is malformed.
        ToolUnavailableError: If ExifTool cannot be started.
    """
    run = prepare_run(config, locations_csv=locations_csv)

    if output_dir is not None:
        Path(output_dir).mkdir(parents=True, exist_ok=True)

    root_seq = np.random.SeedSequence(config.seed)
    naming_seq, *image_seqs = root_seq.spawn(len(inputs) + 1)
    naming = _Naming(
        random_names=use_random_names(
            random_filenames=config.random_filenames,
            input_count=len(inputs),
        ),
        rng=np.random.default_rng(naming_seq),
    )

    start_time = time.monotonic()
    outcomes: list[ImageOutcome] = []

    with tempfile.TemporaryDirectory(prefix="provenance_") as tmp, _exiftool_session(
        helper, config.exiftool_path
    ) as et:
        workdir = Path(tmp)
        for source, image_seq in zip(inputs, image_seqs, strict=True):
            logger.info("Processing input file | file=%s", source)
            try:
                outcome = process_image(
                    source,
                    run,
                    streams=_ImageStreams.spawn(image_seq),
                    naming=naming,
                    workdir=workdir,
                    helper=et,
                    output_dir=output_dir,
                )
            except ProvenanceError as exc:
                if not exc.recoverable:
                    raise
                logger.error(
                    "Image failed, skipping | file=%s | stage=%s | code=%s | error=%s",
                    source,
                    exc.stage,
                    exc.code,
                    exc.message,
                )
                outcome = _failed_outcome(source, exc)
            outcomes.append(outcome)

    duration = time.monotonic() - start_time
    succeeded = sum(1 for o in outcomes if o["status"] == "succeeded")
    logger.info(
        "Batch complete | total=%d | succeeded=%d | failed=%d | duration=%.2fs",
        len(outcomes),
        succeeded,
        len(outcomes) - succeeded,
        duration,
    )
    return BatchResult(
        total=len(outcomes),
        succeeded=succeeded,
        failed=len(outcomes) - succeeded,
        duration_seconds=round(duration, 3),
        outcomes=outcomes,
    )


@contextlib.contextmanager
def _exiftool_session(
    helper: exiftool.ExifToolHelper | None,
    executable: str,
) -> Iterator[exiftool.ExifToolHelper]:
    """Use the caller's helper, or start one for the batch and stop it after."""
    if helper is not None:
        yield helper
        return

    try:
        owned = open_exiftool(executable)
    except (OSError, ExifToolException) as exc:
        msg = f"ExifTool could not be started: {exc}"
        raise ToolUnavailableError(msg) from exc

    with owned:
        yield owned
