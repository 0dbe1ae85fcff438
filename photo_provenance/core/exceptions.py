"""Unified exception taxonomy for the provenance pipeline.

Every domain exception inherits from ``ProvenanceError`` and carries
structured context fields so the batch orchestrator can make one
consistent decision per failure: skip the image, degrade the output,
or abort the run.

Taxonomy categories
-------------------
- ``ValidationError``  : run configuration or input contract violations.
- ``RecoverableError`` : per-image failures; the batch continues.
- ``FatalError``       : failures that must abort the whole run.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for the batch report and logging.
"""

from __future__ import annotations


class ProvenanceError(Exception):
    """Base exception for all pipeline-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Pipeline stage where the error occurred
            (e.g. ``"plan_resize"``, ``"write_tags"``).
        code: Machine-readable error code (e.g. ``"TAG_WRITE_FAILED"``).
        recoverable: Whether the batch may continue past this error.
        source_file: Input image the error relates to, if any.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        recoverable: bool = False,
        source_file: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.recoverable = recoverable
        self.source_file = source_file
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, RecoverableError):
            return "recoverable"
        if isinstance(self, FatalError):
            return "fatal"
        return "recoverable" if self.recoverable else "fatal"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "recoverable": self.recoverable,
            "source_file": self.source_file,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(ProvenanceError):
    """Configuration or input validation failure. Aborts the run."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class RecoverableError(ProvenanceError):
    """Per-image failure. The image is skipped or degraded, the batch goes on."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class FatalError(ProvenanceError):
    """Unrecoverable run-level failure."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


class InvalidDimensionsError(RecoverableError):
    """Input is not a readable image, or its dimensions are unusable."""

    default_stage = "probe_dimensions"
    default_code = "INVALID_DIMENSIONS"


class InvalidLocationDataError(RecoverableError):
    """Location source is missing, empty, or holds no usable coordinate.

    Recovered by omitting the GPS tag group for the affected image.
    """

    default_stage = "load_locations"
    default_code = "INVALID_LOCATION_DATA"


class InvalidElevationError(RecoverableError):
    """Elevation column is empty or non-numeric. Recovered by using 0 m."""

    default_stage = "load_locations"
    default_code = "INVALID_ELEVATION"


class InvalidTimeSpecError(ValidationError):
    """Civil date-time, UTC offset, or sub-second value is malformed.

    All images share one time specification, so this aborts the run.
    """

    default_stage = "convert_time"
    default_code = "INVALID_TIME_SPEC"


class ExternalToolError(RecoverableError):
    """The image resampler or the tag writer failed for one image."""

    default_stage = "external_tool"
    default_code = "EXTERNAL_TOOL_FAILED"


class ToolUnavailableError(FatalError):
    """A required external tool (ExifTool) could not be started."""

    default_stage = "startup"
    default_code = "TOOL_UNAVAILABLE"
