"""Surface textures that modulate a material's ambient and diffuse color.

Two texture kinds are supported:

    CheckerTexture: procedural two-color checkerboard in (u, v)
    ImageTexture: RGB image loaded with Pillow, tiled over (u, v)

Image texels of every registered texture are packed into one shared atlas
field; each texture records its offset and size. Textures are registered
while the scene is set up and only read by kernels afterwards.

Example:
    >>> checker = CheckerTexture(color_a=(1, 1, 1), color_b=(0.1, 0.1, 0.1), scale=8.0)
    >>> texture_id = add_texture(checker)
    >>> # Use sample_texture(texture_id, uv) within a Taichi kernel
"""

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Union

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm
from PIL import Image as PILImage

vec2 = tm.vec2
vec3 = tm.vec3


class TextureKind(IntEnum):
    """Enumeration of supported texture kinds."""

    CHECKER = 0
    IMAGE = 1


# Maximum number of textures and total image texels across all textures
MAX_TEXTURES = 64
MAX_TEXELS = 1 << 20

# Texture id meaning "no texture"
NO_TEXTURE = -1


@dataclass(frozen=True)
class CheckerTexture:
    """Procedural checkerboard.

    Attributes:
        color_a: Color of the (even) cells.
        color_b: Color of the (odd) cells.
        scale: Number of cells per unit of texture coordinate.
    """

    color_a: tuple[float, float, float] = (1.0, 1.0, 1.0)
    color_b: tuple[float, float, float] = (0.0, 0.0, 0.0)
    scale: float = 8.0

    def __post_init__(self) -> None:
        if self.scale <= 0.0:
            raise ValueError(f"Checker scale must be positive, got {self.scale}")


@dataclass(frozen=True)
class ImageTexture:
    """Image file mapped over [0, 1]^2 and repeated outside it.

    Attributes:
        path: Path to any image format Pillow can read.
    """

    path: str

    def load(self) -> npt.NDArray[np.float32]:
        """Read the image as a bottom-row-first (height, width, 3) float array.

        Raises:
            ValueError: If the file cannot be read as an image.
        """
        try:
            with PILImage.open(Path(self.path)) as pil_image:
                rgb = np.asarray(pil_image.convert("RGB"), dtype=np.float32) / 255.0
        except OSError as e:
            raise ValueError(f"Cannot load texture image {self.path!r}: {e}") from e
        return np.ascontiguousarray(np.flipud(rgb))


Texture = Union[CheckerTexture, ImageTexture]

# =============================================================================
# Taichi Fields for Texture Storage
# =============================================================================

texture_kinds = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_color_a = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXTURES)
texture_color_b = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXTURES)
texture_scales = ti.field(dtype=ti.f32, shape=MAX_TEXTURES)
texture_offsets = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_widths = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_heights = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
num_textures = ti.field(dtype=ti.i32, shape=())

texel_atlas = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXELS)
num_texels = ti.field(dtype=ti.i32, shape=())


def clear_textures() -> None:
    """Remove all registered textures."""
    num_textures[None] = 0
    num_texels[None] = 0


def get_texture_count() -> int:
    """Get the number of registered textures."""
    return int(num_textures[None])


@ti.kernel
def _upload_texels(offset: ti.i32, count: ti.i32, data: ti.types.ndarray(dtype=ti.f32, ndim=2)):
    for k in range(count):
        texel_atlas[offset + k] = vec3(data[k, 0], data[k, 1], data[k, 2])


def add_texture(texture: Texture) -> int:
    """Register a texture and return its id.

    Image textures are read from disk here.

    Raises:
        RuntimeError: If the texture or texel capacity is exceeded.
        ValueError: If an image texture cannot be loaded.
        TypeError: If texture is not a supported texture description.
    """
    idx = num_textures[None]
    if idx >= MAX_TEXTURES:
        raise RuntimeError(f"Maximum number of textures ({MAX_TEXTURES}) exceeded")

    if isinstance(texture, CheckerTexture):
        texture_kinds[idx] = int(TextureKind.CHECKER)
        texture_color_a[idx] = texture.color_a
        texture_color_b[idx] = texture.color_b
        texture_scales[idx] = texture.scale
    elif isinstance(texture, ImageTexture):
        pixels = texture.load()
        height, width = pixels.shape[:2]
        offset = num_texels[None]
        if offset + width * height > MAX_TEXELS:
            raise RuntimeError(
                f"Texture {texture.path!r} ({width}x{height}) exceeds remaining texel "
                f"capacity ({MAX_TEXELS - offset} of {MAX_TEXELS})"
            )
        _upload_texels(offset, width * height, pixels.reshape(-1, 3))
        texture_kinds[idx] = int(TextureKind.IMAGE)
        texture_offsets[idx] = offset
        texture_widths[idx] = width
        texture_heights[idx] = height
        num_texels[None] = offset + width * height
    else:
        raise TypeError(f"Unsupported texture type: {type(texture).__name__}")

    num_textures[None] = idx + 1
    return idx


@ti.func
def _sample_checker(texture_id: ti.i32, uv: vec2) -> vec3:
    scale = texture_scales[texture_id]
    cell = ti.cast(tm.floor(uv.x * scale), ti.i32) + ti.cast(tm.floor(uv.y * scale), ti.i32)
    color = texture_color_a[texture_id]
    if (cell & 1) == 1:
        color = texture_color_b[texture_id]
    return color


@ti.func
def _sample_image(texture_id: ti.i32, uv: vec2) -> vec3:
    width = texture_widths[texture_id]
    height = texture_heights[texture_id]
    # Wrap into [0, 1) so the image tiles
    u = uv.x - tm.floor(uv.x)
    v = uv.y - tm.floor(uv.y)
    x = tm.clamp(ti.cast(u * width, ti.i32), 0, width - 1)
    y = tm.clamp(ti.cast(v * height, ti.i32), 0, height - 1)
    return texel_atlas[texture_offsets[texture_id] + y * width + x]


@ti.func
def sample_texture(texture_id: ti.i32, uv: vec2) -> vec3:
    """Look up a texture's color multiplier at texture coordinates uv.

    Args:
        texture_id: Registered texture id, or NO_TEXTURE.
        uv: Surface texture coordinates.

    Returns:
        The texture color, or white when texture_id is NO_TEXTURE so the
        material's own coefficients pass through unchanged.
    """
    color = vec3(1.0, 1.0, 1.0)
    if texture_id >= 0:
        if texture_kinds[texture_id] == int(TextureKind.CHECKER):
            color = _sample_checker(texture_id, uv)
        else:
            color = _sample_image(texture_id, uv)
    return color
