"""Whitted-style recursive ray tracing integrator.

This module implements the per-pixel rendering kernel: for every pixel a
primary ray is cast from the camera, and at each hit the color is

    sum over lights of Phong(light) with shadow tint
    + kr * color of the mirror-reflected ray
    + kt * color of the refracted ray

down to a fixed recursion depth. A ray that misses every shape, or that is
cast beyond the depth limit, returns the background color.

Recursion runs as a loop over a small fixed-size work stack inside
`cast_ray`, since Taichi functions cannot call themselves at runtime. The
depth limit is an ordinary kernel argument, so changing it does not
recompile the kernels. Colors are not clamped during recursion; clamping to
[0, 1] happens only when pixels are written into the Image.

Key features:
    - Phong direct lighting from point and directional lights
    - Shadow rays with transparency tint
    - Mirror reflection and Snell refraction (total internal reflection
      contributes nothing)
    - Self-intersection avoidance with an epsilon ray offset
    - Column-batched parallel rendering with progress reporting

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.camera.camera import Camera
    >>> from whitted.core.integrator import RenderConfig, render_image
    >>> # ... populate the scene fields (see whitted.scene.manager.Scene) ...
    >>> image = render_image(Camera(eye=(0, 0, 5), look_at=(0, 0, 0)), 320, 240)
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

import taichi as ti
import taichi.math as tm

from whitted.camera.camera import Camera, pixel_ray, setup_camera
from whitted.core.image import Image
from whitted.core.ray import is_nonzero, reflect, refract, safe_normalize
from whitted.materials.material import material_iors, material_kr, material_kt
from whitted.scene.intersection import SceneHit, intersect_scene, shadow_tint
from whitted.scene.lights import compute_light, light_vector, num_lights

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum recursion depth for reflected/refracted rays
MAX_DEPTH = 3

# Largest max_depth the per-ray work stack can hold
MAX_RECURSION_DEPTH = 8

# Work stack entries per ray: one pending sibling per level plus the newest pair
STACK_SIZE = MAX_RECURSION_DEPTH + 2

# Default minimum t for intersections, also the secondary-ray offset
EPSILON = 1e-4

# Upper bound on t for closest-hit queries
T_MAX = 1e10

# Default background color returned by rays that hit nothing
BACKGROUND_COLOR = (0.0, 0.0, 0.0)

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Callback receives (columns_done, total_columns)
ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class RenderConfig:
    """Parameters fixed for one render pass.

    Attributes:
        max_depth: Deepest recursion level that is still shaded. With 0
            only primary rays are shaded and no reflection or refraction
            is traced. At most MAX_RECURSION_DEPTH.
        epsilon: Minimum accepted t and offset applied to secondary ray
            origins to avoid self-intersection.
        background: Color of rays that hit nothing.
        verbose: Log progress while rendering.
        batch_columns: Image columns rendered per kernel launch; progress
            is reported between launches.

    Raises:
        ValueError: If any parameter is out of range.
    """

    max_depth: int = MAX_DEPTH
    epsilon: float = EPSILON
    background: tuple[float, float, float] = BACKGROUND_COLOR
    verbose: bool = False
    batch_columns: int = 64

    def __post_init__(self) -> None:
        if not 0 <= self.max_depth <= MAX_RECURSION_DEPTH:
            raise ValueError(
                f"max_depth must be in [0, {MAX_RECURSION_DEPTH}], got {self.max_depth}"
            )
        if not self.epsilon > 0.0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")
        if len(self.background) != 3 or any(c < 0.0 for c in self.background):
            raise ValueError(f"background must be a non-negative RGB triple, got {self.background}")
        if self.batch_columns <= 0:
            raise ValueError(f"batch_columns must be positive, got {self.batch_columns}")


# =============================================================================
# Render Target
# =============================================================================

_background = ti.Vector.field(3, dtype=ti.f32, shape=())

# Unclamped color per pixel (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))


def set_background(color: tuple[float, float, float]) -> None:
    """Set the color returned by rays that hit nothing."""
    _background[None] = list(color)


# =============================================================================
# Shading
# =============================================================================


@ti.func
def shade_direct(hit: SceneHit, direction: vec3, epsilon: ti.f32) -> vec3:
    """Sum the Phong contribution of every light at a hit.

    For each light a shadow ray is sent from the hit point toward the light;
    its tint scales the light's diffuse and specular terms.

    Args:
        hit: The intersection being shaded.
        direction: Direction of the ray that produced the hit.
        epsilon: Minimum t for shadow-ray intersections.

    Returns:
        The direct illumination at the hit (unclamped).
    """
    color = vec3(0.0, 0.0, 0.0)
    to_viewer = safe_normalize(-direction)
    for li in range(num_lights[None]):
        to_light, max_t, atten = light_vector(li, hit.point)
        tint = shadow_tint(hit.point, to_light, max_t, epsilon)
        color += compute_light(
            li, hit.material_id, hit.normal, hit.uv, to_light, to_viewer, atten, tint
        )
    return color


@ti.func
def _store_vec(rows: ti.template(), slot: ti.i32, value: vec3):
    """Write value into row `slot` of a local (STACK_SIZE, 3) matrix."""
    for s in ti.static(range(STACK_SIZE)):
        if s == slot:
            for c in ti.static(range(3)):
                rows[s, c] = value[c]


@ti.func
def _load_vec(rows: ti.template(), slot: ti.i32) -> vec3:
    value = vec3(0.0, 0.0, 0.0)
    for s in ti.static(range(STACK_SIZE)):
        if s == slot:
            value = vec3(rows[s, 0], rows[s, 1], rows[s, 2])
    return value


@ti.func
def _store_level(levels: ti.template(), slot: ti.i32, level: ti.i32):
    for s in ti.static(range(STACK_SIZE)):
        if s == slot:
            levels[s] = level


@ti.func
def _load_level(levels: ti.template(), slot: ti.i32) -> ti.i32:
    level = 0
    for s in ti.static(range(STACK_SIZE)):
        if s == slot:
            level = levels[s]
    return level


@ti.func
def cast_ray(
    origin: vec3,
    direction: vec3,
    epsilon: ti.f32,
    depth: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Compute the color seen along a ray at a given recursion depth.

    Terminal cases return the background: depth beyond max_depth, or no
    shape hit. Otherwise the hit is lit directly, then a reflection ray
    (weighted by kr) and a refraction ray (weighted by kt, only for
    materials with an index of refraction) are cast one level deeper.

    The recursion runs as a loop over a depth-first work stack of
    (origin, direction, weight, level) entries. Each entry adds weight
    times its shaded color to the result, so the sum equals the recursive
    definition. A hit pushes at most two children and every pending entry
    but the newest sits on a distinct level, so STACK_SIZE entries cover
    any max_depth up to MAX_RECURSION_DEPTH.

    Args:
        origin: Ray origin.
        direction: Unit ray direction.
        epsilon: Minimum t and secondary-ray offset.
        depth: Recursion depth the ray is cast at.
        max_depth: Deepest level that is shaded.

    Returns:
        The unclamped RGB color along the ray.
    """
    background = _background[None]
    color = vec3(0.0, 0.0, 0.0)

    origins = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
    directions = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
    weights = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
    levels = ti.Vector.zero(ti.i32, STACK_SIZE)
    top = 0

    if depth > max_depth:
        color = background
    else:
        _store_vec(origins, 0, origin)
        _store_vec(directions, 0, direction)
        _store_vec(weights, 0, vec3(1.0, 1.0, 1.0))
        _store_level(levels, 0, depth)
        top = 1

    while top > 0:
        top -= 1
        ray_origin = _load_vec(origins, top)
        ray_dir = _load_vec(directions, top)
        weight = _load_vec(weights, top)
        level = _load_level(levels, top)

        hit = intersect_scene(ray_origin, ray_dir, epsilon, T_MAX)

        if hit.hit == 0:
            color += weight * background
        else:
            color += weight * shade_direct(hit, ray_dir, epsilon)
            mat = hit.material_id

            # Mirror reflection, offset off the surface along the normal
            kr = material_kr[mat]
            if is_nonzero(kr):
                if level + 1 > max_depth:
                    color += weight * kr * background
                elif top < STACK_SIZE:
                    _store_vec(origins, top, hit.point + epsilon * hit.normal)
                    _store_vec(directions, top, safe_normalize(reflect(ray_dir, hit.normal)))
                    _store_vec(weights, top, weight * kr)
                    _store_level(levels, top, level + 1)
                    top += 1

            # Refraction, offset into the surface
            kt = material_kt[mat]
            ior = material_iors[mat]
            if is_nonzero(kt) and ior > 0.0:
                # Entering: n_air / n_material; leaving: n_material / n_air
                eta = ior
                if hit.front_face == 1:
                    eta = 1.0 / ior
                refracted_dir, ok = refract(ray_dir, hit.normal, eta)
                if ok == 1:
                    if level + 1 > max_depth:
                        color += weight * kt * background
                    elif top < STACK_SIZE:
                        _store_vec(origins, top, hit.point - epsilon * hit.normal)
                        _store_vec(directions, top, safe_normalize(refracted_dir))
                        _store_vec(weights, top, weight * kt)
                        _store_level(levels, top, level + 1)
                        top += 1

    return color



# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.func
def _normalized_coordinate(index: ti.i32, size: ti.i32) -> ti.f32:
    """Map pixel index 0..size-1 onto [-1, 1] (a single pixel maps to 0)."""
    coord = 0.0
    if size > 1:
        coord = ti.cast(index, ti.f32) / ti.cast(size - 1, ti.f32) * 2.0 - 1.0
    return coord


@ti.kernel
def _render_columns(
    col_start: ti.i32,
    col_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    epsilon: ti.f32,
    max_depth: ti.i32,
):
    """Trace every pixel of columns [col_start, col_end).

    Each pixel is independent and writes only its own buffer cell, so the
    outer loop is parallelized by Taichi.
    """
    for i, j in ti.ndrange((col_start, col_end), height):
        x = _normalized_coordinate(i, width)
        y = _normalized_coordinate(j, height)
        ray = pixel_ray(x, y)
        color = cast_ray(ray.origin, ray.direction, epsilon, 0, max_depth)

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _color_buffer[i, j] = color


@ti.kernel
def _trace_single(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    epsilon: ti.f32,
    depth: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Evaluate cast_ray for one ray. Used for testing and debugging."""
    direction = safe_normalize(vec3(dx, dy, dz))
    return cast_ray(vec3(ox, oy, oz), direction, epsilon, depth, max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    config: Optional[RenderConfig] = None,
    depth: int = 0,
) -> tuple[float, float, float]:
    """Compute the color along a single world-space ray.

    The scene fields must already be populated.

    Args:
        origin: Ray origin.
        direction: Ray direction (normalized here).
        config: Render parameters; defaults to RenderConfig().
        depth: Recursion depth to start at.

    Returns:
        Tuple of (R, G, B) values, unclamped.

    Raises:
        ValueError: If depth is negative.
    """
    config = config or RenderConfig()
    if depth < 0:
        raise ValueError(f"depth must be non-negative, got {depth}")
    set_background(config.background)
    color = _trace_single(
        float(origin[0]),
        float(origin[1]),
        float(origin[2]),
        float(direction[0]),
        float(direction[1]),
        float(direction[2]),
        config.epsilon,
        depth,
        config.max_depth,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(
    camera: Camera,
    width: int,
    height: int,
    config: Optional[RenderConfig] = None,
    callback: Optional[ProgressCallback] = None,
) -> Image:
    """Render the populated scene fields through a camera.

    Columns are rendered in batches of config.batch_columns; after each
    batch progress is logged (when config.verbose) and passed to callback.

    Args:
        camera: The camera to render through.
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).
        config: Render parameters; defaults to RenderConfig().
        callback: Optional progress callback receiving
            (columns_done, total_columns).

    Returns:
        The rendered Image.

    Raises:
        ValueError: If the dimensions are out of range or the camera is
            degenerate.
    """
    config = config or RenderConfig()
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    setup_camera(camera, width, height)
    set_background(config.background)

    col = 0
    while col < width:
        col_end = min(col + config.batch_columns, width)
        _render_columns(col, col_end, width, height, config.epsilon, config.max_depth)
        col = col_end

        if config.verbose:
            logger.info("Rendering %d%%", int(100.0 * col / width))
        if callback is not None:
            callback(col, width)

    image = Image(width, height)
    image.set_pixels(_color_buffer.to_numpy()[:width, :height, :])

    if config.verbose:
        logger.info("Done rendering %dx%d", width, height)

    return image
