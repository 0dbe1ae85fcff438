"""Output finalisation activity: thumbnail embedding and file timestamps.

Runs after the tag write, on the output file itself:

1. Render a centre-filled thumbnail of the processed image with Pillow
   and embed it as the EXIF ``ThumbnailImage``.
2. Set the file's access and modification times to the civil capture
   time, read as host-local wall-clock time (as ``touch -t`` does).

A thumbnail failure is logged and leaves the output without a
thumbnail; it never fails the image.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import exiftool
from exiftool.exceptions import ExifToolException
from PIL import Image, ImageOps, UnidentifiedImageError

from photo_provenance.models.timespec import CivilDateTime

logger = logging.getLogger("photo_provenance.activities.finalize_output")

THUMBNAIL_QUALITY = 85


def render_thumbnail(source: str | Path, destination: str | Path, size: tuple[int, int]) -> Path:
    """Write a ``size`` JPEG thumbnail of ``source``, filled and centre-cropped.

    The thumbnail carries no metadata of its own.
    """
    dest = Path(destination)
    with Image.open(source) as img:
        thumb = ImageOps.fit(img.convert("RGB"), size, method=Image.Resampling.LANCZOS)
    thumb.save(dest, format="JPEG", quality=THUMBNAIL_QUALITY)
    return dest


def embed_thumbnail(
    path: str | Path,
    size: tuple[int, int],
    *,
    helper: exiftool.ExifToolHelper,
) -> bool:
    """Embed a thumbnail of ``path`` into its own EXIF block.

    Args:
        path: Processed output JPEG.
        size: Thumbnail ``(width, height)``.
        helper: Running ``ExifToolHelper``.

    Returns:
        True if the thumbnail was embedded, False if it was skipped.
    """
    target = Path(path)
    with tempfile.TemporaryDirectory(prefix="provenance_thumb_") as tmp:
        thumb_path = Path(tmp) / "thumbnail.jpg"
        try:
            render_thumbnail(target, thumb_path, size)
            helper.execute(
                "-overwrite_original",
                "-m",
                f"-ThumbnailImage<={thumb_path}",
                str(target),
            )
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            ExifToolException,
        ) as exc:
            logger.warning("Failed to embed thumbnail | file=%s | error=%s", target, exc)
            return False

    logger.debug("Thumbnail embedded | file=%s | size=%dx%d", target, *size)
    return True


def apply_file_timestamps(path: str | Path, civil: CivilDateTime) -> float:
    """Set atime/mtime of ``path`` to the civil capture time.

    The inode change time (ctime) cannot be set and keeps the real
    processing time.

    Returns:
        The POSIX timestamp that was applied.
    """
    stamp = civil.value.timestamp()
    os.utime(path, (stamp, stamp))
    logger.debug("File timestamps updated | file=%s | time=%s", path, civil.exif_text)
    return stamp
