"""Image geometry models: probed dimensions and the resolved resize plan."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class ResizeMode(enum.StrEnum):
    """How a source image is fitted onto the device canvas.

    ``AUTO`` is only ever a *requested* mode; the planner resolves it to
    ``SCALE`` or ``CROP`` before a ``ResizePlan`` is built.
    """

    AUTO = "auto"
    SCALE = "scale"
    CROP = "crop"


@dataclass(frozen=True, slots=True)
class ImageDimensions:
    """Pixel dimensions of a source image.

    Attributes:
        width: Width in pixels.
        height: Height in pixels.
    """

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            msg = f"Image dimensions must be non-negative, got {self.width}x{self.height}"
            raise ValueError(msg)

    @property
    def is_portrait(self) -> bool:
        """True when strictly taller than wide (square counts as landscape)."""
        return self.height > self.width


@dataclass(frozen=True, slots=True)
class ResizePlan:
    """Resolved canvas fit for one image.

    Attributes:
        target_width: Exact output width in pixels.
        target_height: Exact output height in pixels.
        mode: ``ResizeMode.SCALE`` (fit and pad) or ``ResizeMode.CROP``
            (fill and centre-crop).  Never ``ResizeMode.AUTO``.
    """

    target_width: int
    target_height: int
    mode: ResizeMode

    def __post_init__(self) -> None:
        if self.mode is ResizeMode.AUTO:
            msg = "ResizePlan.mode must be resolved to scale or crop, got auto"
            raise ValueError(msg)
        if self.target_width <= 0 or self.target_height <= 0:
            msg = (
                "ResizePlan target must be positive, got "
                f"{self.target_width}x{self.target_height}"
            )
            raise ValueError(msg)

    @property
    def size(self) -> tuple[int, int]:
        """Target canvas as a ``(width, height)`` tuple."""
        return (self.target_width, self.target_height)

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dict for the batch report."""
        return {
            "target_width": self.target_width,
            "target_height": self.target_height,
            "mode": self.mode.value,
        }
