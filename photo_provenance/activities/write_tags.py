"""Tag writing activity: strip existing metadata and apply a plan with ExifTool.

One ``set_tags`` call per image: the ``All`` and ``XMP:All`` clears come
first in the same command, so ExifTool removes every pre-existing tag
before the plan's tags are written.  ExifTool runs in numeric mode
(``-n``), which is why plan values are numeric where ExifTool expects
numbers (``GPSAltitudeRef=0``, ``ResolutionUnit=2``).

A single ``ExifToolHelper`` process can be shared across a batch; pass
it as ``helper``.  Without one, a short-lived process is started for the
call.
"""

from __future__ import annotations

import logging
from pathlib import Path

import exiftool
from exiftool.exceptions import ExifToolException

from photo_provenance.core.exceptions import ExternalToolError
from photo_provenance.models.metadata import MetadataPlan, TagValue

logger = logging.getLogger("photo_provenance.activities.write_tags")

#: Clears applied ahead of the plan's tags.
STRIP_ALL_TAGS: dict[str, TagValue] = {"All": "", "XMP:All": ""}

#: Per-write parameters (common args ``-G -n`` come from the helper).
WRITE_PARAMS: list[str] = ["-overwrite_original"]


def open_exiftool(executable: str = "") -> exiftool.ExifToolHelper:
    """Create an ``ExifToolHelper`` in numeric mode.

    Args:
        executable: Path to the ``exiftool`` binary; empty uses ``PATH``.
    """
    return exiftool.ExifToolHelper(
        executable=executable or None,
        common_args=["-G", "-n"],
    )


def build_write_tags(plan: MetadataPlan) -> dict[str, TagValue]:
    """Return the full tag mapping for one write: clears, then the plan."""
    tags: dict[str, TagValue] = dict(STRIP_ALL_TAGS)
    tags.update(plan.to_exiftool_tags())
    return tags


def write_tags(
    path: str | Path,
    plan: MetadataPlan,
    *,
    helper: exiftool.ExifToolHelper | None = None,
    executable: str = "",
) -> None:
    """Replace all metadata of ``path`` with the plan's tags.

    Args:
        path: JPEG to rewrite in place.
        plan: Metadata plan for this image.
        helper: Running ``ExifToolHelper`` to reuse across a batch.
        executable: ExifTool binary, used only when ``helper`` is ``None``.

    Raises:
        ExternalToolError: If ExifTool is missing or the write fails.
    """
    target = str(path)
    tags = build_write_tags(plan)
    try:
        if helper is not None:
            helper.set_tags([target], tags, params=WRITE_PARAMS)
        else:
            with open_exiftool(executable) as et:
                et.set_tags([target], tags, params=WRITE_PARAMS)
    except (ExifToolException, OSError) as exc:
        msg = f"Failed to write metadata to '{target}': {exc}"
        raise ExternalToolError(msg, stage="write_tags", source_file=plan.source_file) from exc

    logger.info(
        "Metadata applied | file=%s | tags=%d | gps_tags=%d",
        target,
        len(plan.tags),
        len(plan.gps_tags()),
    )
