"""Output file naming for processed images.

Outputs mimic camera-roll names: ``IMG_0001.JPG``, ``IMG_0002.JPG`` ...
in batch order, or ``IMG_XXXX.JPG`` with four random digits.  A
single-image run always gets a random name, since ``IMG_0001`` on its
own looks staged.

Outputs land in the requested output directory, or beside the input
file when none is given.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from photo_provenance.core.constants import (
    OUTPUT_NAME_PREFIX,
    OUTPUT_NAME_SUFFIX,
    OUTPUT_NUMBER_SPACE,
)

if TYPE_CHECKING:
    import numpy as np


def format_output_name(number: int) -> str:
    """Render ``IMG_NNNN.JPG`` for ``number`` in ``[0, 9999]``.

    Raises:
        ValueError: If ``number`` is outside the four-digit range.
    """
    if not 0 <= number < OUTPUT_NUMBER_SPACE:
        msg = f"Output number must be in [0, {OUTPUT_NUMBER_SPACE - 1}], got {number}"
        raise ValueError(msg)
    return f"{OUTPUT_NAME_PREFIX}{number:04d}{OUTPUT_NAME_SUFFIX}"


def random_output_name(rng: np.random.Generator) -> str:
    """Render ``IMG_XXXX.JPG`` with four random digits."""
    return format_output_name(int(rng.integers(OUTPUT_NUMBER_SPACE)))


def use_random_names(*, random_filenames: bool, input_count: int) -> bool:
    """Random names when requested, or when the batch is a single image."""
    return random_filenames or input_count == 1


def build_output_path(source: str | Path, name: str, output_dir: str | Path | None = None) -> Path:
    """Place ``name`` in ``output_dir``, or beside ``source`` if none is given."""
    directory = Path(output_dir) if output_dir else Path(source).parent
    return directory / name
