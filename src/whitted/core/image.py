"""In-memory RGB image buffer produced by a render.

The buffer is indexed the way the renderer walks the view plane: pixel
(i, j) is column i counted from the left and row j counted from the bottom,
so pixel (0, 0) corresponds to normalized view coordinate (-1, -1). Values
are clamped to [0, 1] when written; the integrator itself never clamps.

Example:
    >>> image = Image(4, 3)
    >>> image.set_pixel(0, 0, (1.5, 0.25, -1.0))
    >>> image.get_pixel(0, 0)
    (1.0, 0.25, 0.0)
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt


class Image:
    """A width x height grid of RGB pixels stored as float32.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Create a black image.

        Raises:
            ValueError: If either dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        self._width = width
        self._height = height
        # Column-major (i, j) layout matching the render kernel
        self._pixels = np.zeros((width, height, 3), dtype=np.float32)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    def _check_bounds(self, i: int, j: int) -> None:
        if not (0 <= i < self._width and 0 <= j < self._height):
            raise IndexError(
                f"Pixel ({i}, {j}) outside image of size {self._width}x{self._height}"
            )

    def set_pixel(self, i: int, j: int, color: Sequence[float]) -> None:
        """Write one pixel, clamping each channel to [0, 1].

        Non-finite channels are written as 0.

        Raises:
            IndexError: If (i, j) is outside the image.
        """
        self._check_bounds(i, j)
        rgb = np.nan_to_num(np.asarray(color, dtype=np.float32), nan=0.0, posinf=0.0, neginf=0.0)
        self._pixels[i, j] = np.clip(rgb, 0.0, 1.0)

    def get_pixel(self, i: int, j: int) -> tuple[float, float, float]:
        """Read one pixel.

        Raises:
            IndexError: If (i, j) is outside the image.
        """
        self._check_bounds(i, j)
        r, g, b = self._pixels[i, j]
        return float(r), float(g), float(b)

    def set_pixels(self, colors: npt.NDArray[np.floating]) -> None:
        """Write every pixel from a (width, height, 3) array, clamping to [0, 1].

        Raises:
            ValueError: If the array shape does not match the image.
        """
        expected = (self._width, self._height, 3)
        if colors.shape != expected:
            raise ValueError(f"Pixel array shape {colors.shape} does not match {expected}")
        rgb = np.nan_to_num(colors.astype(np.float32), nan=0.0, posinf=0.0, neginf=0.0)
        self._pixels[...] = np.clip(rgb, 0.0, 1.0)

    def to_numpy(self) -> npt.NDArray[np.float32]:
        """Return the image as a top-row-first (height, width, 3) array.

        This is the layout Pillow and most image tools expect.
        """
        image = np.transpose(self._pixels, (1, 0, 2))
        return np.flipud(image).copy()

    def to_uint8(self, gamma: float = 1.0) -> npt.NDArray[np.uint8]:
        """Convert to an 8-bit (height, width, 3) array with optional gamma."""
        image = self.to_numpy()
        if gamma != 1.0:
            image = np.power(image, 1.0 / gamma)
        return (image * 255.0 + 0.5).astype(np.uint8)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Image):
            return NotImplemented
        return bool(np.array_equal(self._pixels, other._pixels))

    def __repr__(self) -> str:
        return f"Image(width={self._width}, height={self._height})"
