"""Resize planning activity: fit an arbitrary image onto the device canvas.

Picks the landscape or portrait canvas from the source orientation and
resolves a requested fit mode to a concrete one.  ``auto`` compares the
source and target aspect ratios: a near match is scaled (fit and pad),
anything else is cropped (fill and centre-crop).

Pure function of its inputs; pixel work happens in ``resample_image``.
"""

from __future__ import annotations

import logging

from photo_provenance.core.constants import DEFAULT_AUTO_THRESHOLD
from photo_provenance.models.dimensions import ImageDimensions, ResizeMode, ResizePlan

logger = logging.getLogger("photo_provenance.activities.plan_resize")


def select_canvas(
    dims: ImageDimensions,
    *,
    landscape_target: tuple[int, int],
    portrait_target: tuple[int, int],
) -> tuple[int, int]:
    """Return the ``(width, height)`` canvas matching the source orientation.

    Portrait only when strictly taller than wide; a square image gets
    the landscape canvas.
    """
    return portrait_target if dims.is_portrait else landscape_target


def aspect_ratio_distance(dims: ImageDimensions, target: tuple[int, int]) -> float:
    """Absolute difference between source and target width/height ratios.

    Raises:
        ZeroDivisionError: If either height is zero.
    """
    current_ar = dims.width / dims.height
    target_ar = target[0] / target[1]
    return abs(current_ar - target_ar)


def resolve_mode(
    dims: ImageDimensions,
    requested_mode: ResizeMode,
    target: tuple[int, int],
    *,
    auto_threshold: float = DEFAULT_AUTO_THRESHOLD,
) -> ResizeMode:
    """Resolve ``requested_mode`` to ``SCALE`` or ``CROP``.

    Args:
        dims: Source image dimensions.
        requested_mode: Mode asked for by the caller.
        target: Chosen ``(width, height)`` canvas.
        auto_threshold: ``auto`` scales when the aspect-ratio distance is
            strictly below this value.

    Returns:
        A concrete mode, never ``ResizeMode.AUTO``.
    """
    if requested_mode is not ResizeMode.AUTO:
        return requested_mode

    if dims.height == 0:
        logger.warning(
            "Image height is 0; cannot compute aspect ratio, defaulting to crop | dims=%dx%d",
            dims.width,
            dims.height,
        )
        return ResizeMode.CROP

    diff = aspect_ratio_distance(dims, target)
    resolved = ResizeMode.SCALE if diff < auto_threshold else ResizeMode.CROP
    logger.debug(
        "Auto resize resolved | dims=%dx%d | target=%dx%d | diff=%.5f | threshold=%.5f | mode=%s",
        dims.width,
        dims.height,
        target[0],
        target[1],
        diff,
        auto_threshold,
        resolved.value,
    )
    return resolved


def plan_resize(
    dims: ImageDimensions,
    requested_mode: ResizeMode,
    *,
    landscape_target: tuple[int, int],
    portrait_target: tuple[int, int],
    auto_threshold: float = DEFAULT_AUTO_THRESHOLD,
) -> ResizePlan:
    """Build the resize plan for one image.

    Args:
        dims: Probed source dimensions.
        requested_mode: ``AUTO``, ``SCALE`` or ``CROP``.
        landscape_target: ``(width, height)`` canvas for landscape sources.
        portrait_target: ``(width, height)`` canvas for portrait sources.
        auto_threshold: Aspect-ratio distance below which ``AUTO`` scales.

    Returns:
        A ``ResizePlan`` with the chosen canvas and a concrete mode.
    """
    target = select_canvas(
        dims,
        landscape_target=landscape_target,
        portrait_target=portrait_target,
    )
    mode = resolve_mode(dims, requested_mode, target, auto_threshold=auto_threshold)
    return ResizePlan(target_width=target[0], target_height=target[1], mode=mode)
