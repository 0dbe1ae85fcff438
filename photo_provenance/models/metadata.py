"""Pydantic model for the per-image metadata plan.

A metadata plan is the complete tag mapping written to one output
image: ExifTool tag name to value.  It is built fresh per image by the
``build_metadata`` activity and handed unmodified to the tag writer.

The GPS group is atomic: a plan either carries every tag listed in
``GPS_TAG_NAMES`` or none of them.  The model enforces this on
construction, so a half-populated plan can never reach the writer.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from photo_provenance.core.constants import GPS_TAG_NAMES, GPS_TAG_PREFIX

TagValue = str | int | float


class MetadataPlan(BaseModel):
    """Immutable tag mapping for one output image.

    Attributes:
        tags: ExifTool tag name to value, in write order.
        source_file: Input image the plan was built for (traceability only;
            never written as a tag).
    """

    tags: dict[str, TagValue] = Field(default_factory=dict)
    source_file: str = ""

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_gps_group(self) -> MetadataPlan:
        present = {name for name in self.tags if name.startswith(GPS_TAG_PREFIX)}
        if present and present != set(GPS_TAG_NAMES):
            missing = sorted(set(GPS_TAG_NAMES) - present)
            extra = sorted(present - set(GPS_TAG_NAMES))
            msg = (
                "GPS tag group must be complete or absent "
                f"(missing={missing}, unexpected={extra})"
            )
            raise ValueError(msg)
        return self

    @property
    def has_gps(self) -> bool:
        """True when the GPS tag group is present."""
        return any(name.startswith(GPS_TAG_PREFIX) for name in self.tags)

    def gps_tags(self) -> dict[str, TagValue]:
        """Return only the GPS group (empty when absent)."""
        return {k: v for k, v in self.tags.items() if k.startswith(GPS_TAG_PREFIX)}

    def to_exiftool_tags(self) -> dict[str, TagValue]:
        """Return a fresh copy of the tag mapping for ``ExifToolHelper.set_tags``."""
        return dict(self.tags)

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dict for the batch report."""
        return self.model_dump()  # type: ignore[return-value]
