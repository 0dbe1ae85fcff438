"""Image resampling activity: probe and fit pixels with Pillow.

Two fit modes onto an exact device canvas:

- **scale**: resize to fit inside the canvas, then pad to the exact
  size with the image centred (nothing is cropped);
- **crop**: resize to fill the canvas, then centre-crop the overflow.

Output is always an RGB baseline JPEG so the tag writer receives a
uniform container regardless of the input format.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from photo_provenance.core.constants import DEFAULT_JPEG_QUALITY
from photo_provenance.core.exceptions import ExternalToolError, InvalidDimensionsError
from photo_provenance.models.dimensions import ImageDimensions, ResizeMode, ResizePlan

logger = logging.getLogger("photo_provenance.activities.resample_image")

#: Padding colour for ``scale`` mode.
PAD_COLOR = (0, 0, 0)
_CENTER = (0.5, 0.5)


def probe_dimensions(path: str | Path) -> ImageDimensions:
    """Read the pixel dimensions of an image file.

    Raises:
        InvalidDimensionsError: If the file is missing, not a readable image,
            or larger than Pillow's decompression-bomb limit.
    """
    source = Path(path)
    if not source.is_file():
        msg = f"Input file '{source}' not found"
        raise InvalidDimensionsError(msg, source_file=str(source))
    try:
        with Image.open(source) as img:
            width, height = img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        msg = f"Input file '{source}' does not appear to be a valid image: {exc}"
        raise InvalidDimensionsError(msg, source_file=str(source)) from exc
    return ImageDimensions(width=width, height=height)


def fit_image(img: Image.Image, plan: ResizePlan) -> Image.Image:
    """Return ``img`` fitted to the plan's canvas (pure, in memory)."""
    if img.mode != "RGB":
        img = img.convert("RGB")
    if plan.mode is ResizeMode.SCALE:
        return ImageOps.pad(
            img,
            plan.size,
            method=Image.Resampling.LANCZOS,
            color=PAD_COLOR,
            centering=_CENTER,
        )
    return ImageOps.fit(
        img,
        plan.size,
        method=Image.Resampling.LANCZOS,
        centering=_CENTER,
    )


def resample_image(
    source: str | Path,
    destination: str | Path,
    plan: ResizePlan,
    *,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> Path:
    """Fit ``source`` onto the plan's canvas and save it as JPEG.

    Args:
        source: Input image path.
        destination: Output JPEG path (may equal ``source``).
        plan: Resolved resize plan.
        quality: JPEG quality (1-95).

    Returns:
        The destination path.

    Raises:
        ExternalToolError: If the image cannot be read, resampled or saved.
    """
    src = Path(source)
    dest = Path(destination)
    logger.info(
        "Resampling image | file=%s | mode=%s | target=%dx%d",
        src,
        plan.mode.value,
        plan.target_width,
        plan.target_height,
    )
    try:
        with Image.open(src) as img:
            img.load()
            fitted = fit_image(img, plan)
        fitted.save(dest, format="JPEG", quality=quality)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        msg = f"Failed to resample '{src}' to {plan.target_width}x{plan.target_height}: {exc}"
        raise ExternalToolError(msg, stage="resample_image", source_file=str(src)) from exc
    return dest
