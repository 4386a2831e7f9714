"""Writing rendered images to PNG and reading them back.

Rendered images are already clamped to [0, 1], so export only applies an
optional gamma curve and quantizes to 8 bits.

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from whitted.preview.export import save_png
    >>> image = scene.render(320, 240)
    >>> save_png(image, "output.png")
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from whitted.core.image import Image

PathLike = Union[str, Path]


def save_png(image: Image, filepath: PathLike, *, gamma: float = 1.0) -> None:
    """Save a rendered image as a PNG file.

    The top row of the file is the top of the view (y = +1).

    Args:
        image: The rendered Image.
        filepath: Output file path (should end in .png).
        gamma: Gamma correction value (1.0 writes linear values unchanged).

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    pil_image = PILImage.fromarray(image.to_uint8(gamma=gamma), mode="RGB")
    pil_image.save(filepath)


def save_png_from_array(
    image: npt.NDArray[np.floating],
    filepath: PathLike,
    *,
    gamma: float = 1.0,
) -> None:
    """Save a top-row-first (H, W, 3) float array in [0, 1] as a PNG file."""
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    processed = np.clip(np.asarray(image, dtype=np.float32), 0.0, 1.0)
    if gamma != 1.0:
        processed = np.power(processed, 1.0 / gamma)

    # Convert to 8-bit
    image_uint8 = (processed * 255.0 + 0.5).astype(np.uint8)

    # Save using Pillow
    pil_image = PILImage.fromarray(image_uint8, mode="RGB")
    pil_image.save(filepath)


def load_png(filepath: PathLike) -> npt.NDArray[np.float32]:
    """Load a PNG as a top-row-first (H, W, 3) float array in [0, 1]."""
    with PILImage.open(Path(filepath)) as pil_image:
        return np.asarray(pil_image.convert("RGB"), dtype=np.float32) / 255.0


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Root mean squared difference between two equally shaped float images.

    Used by tests to compare renders against reference PNGs.

    Raises:
        ValueError: If the shapes differ.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(np.square(diff))))
