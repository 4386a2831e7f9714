"""Perspective camera generating primary rays from normalized pixel coordinates.

The camera is described by an eye point, a point it looks at, an up vector
and a vertical field of view. From these it builds an orthonormal basis
(u, v, w):

    w: points from look_at back toward the eye (opposite view direction)
    u: points right in the image plane
    v: points up in the image plane

Primary rays are requested with normalized device coordinates
(x, y) in [-1, 1] x [-1, 1]: (-1, -1) is the bottom-left corner of the view
plane, (1, 1) the top-right.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.camera.camera import Camera, setup_camera, pixel_ray
    >>>
    >>> camera = Camera(eye=(0.0, 0.0, 5.0), look_at=(0.0, 0.0, 0.0), fov=45.0)
    >>> setup_camera(camera, 640, 480)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = pixel_ray(0.0, 0.0)  # Ray through the image center
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from whitted.core.ray import Ray, make_ray, vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for a perspective camera.

    Attributes:
        eye: Camera position in world space (x, y, z).
        look_at: Point the camera is looking at in world space (x, y, z).
        up: Approximate up direction (need not be perpendicular to the view).
        fov: Vertical field of view in degrees, in (0, 180).

    Raises:
        ValueError: If fov is out of range.
    """

    eye: tuple[float, float, float] = (0.0, 0.0, 0.0)
    look_at: tuple[float, float, float] = (0.0, 0.0, -1.0)
    up: tuple[float, float, float] = (0.0, 1.0, 0.0)
    fov: float = 45.0

    def __post_init__(self) -> None:
        if not 0.0 < self.fov < 180.0:
            raise ValueError(f"Camera fov must be in (0, 180) degrees, got {self.fov}")

    def basis(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Compute the orthonormal (u, v, w) basis.

        Raises:
            ValueError: If eye and look_at coincide or up is parallel to the
                view direction.
        """
        eye = np.array(self.eye, dtype=np.float64)
        look_at = np.array(self.look_at, dtype=np.float64)
        up = np.array(self.up, dtype=np.float64)

        w = eye - look_at
        w_norm = np.linalg.norm(w)
        if w_norm < 1e-12:
            raise ValueError("Camera eye and look_at must differ")
        w = w / w_norm

        u = np.cross(up, w)
        u_norm = np.linalg.norm(u)
        if u_norm < 1e-12:
            raise ValueError("Camera up vector must not be parallel to the view direction")
        u = u / u_norm

        v = np.cross(w, u)
        return u, v, w


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_eye = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Half extents of the view plane at unit distance
_half_width = ti.field(dtype=ti.f32, shape=())
_half_height = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per render)
# =============================================================================


def setup_camera(camera: Camera, width: int, height: int) -> None:
    """Initialize camera state for an image resolution.

    Computes the camera basis and the view-plane extents. The vertical
    extent follows the field of view; the horizontal extent follows the
    image aspect ratio so pixels stay square.

    Args:
        camera: Camera configuration.
        width: Image width in pixels.
        height: Image height in pixels.

    Raises:
        ValueError: If the camera basis is degenerate or the size is not
            positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    u, v, w = camera.basis()
    half_height = math.tan(math.radians(camera.fov) / 2.0)
    aspect = width / height

    _camera_eye[None] = list(camera.eye)
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _half_height[None] = half_height
    _half_width[None] = aspect * half_height


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def pixel_ray(x: ti.f32, y: ti.f32) -> Ray:
    """Generate the primary ray through normalized view coordinates (x, y).

    Pure function of the camera fields: the same (x, y) always yields the
    same ray.

    Args:
        x: Horizontal coordinate in [-1, 1] (left to right).
        y: Vertical coordinate in [-1, 1] (bottom to top).

    Returns:
        A Ray from the eye with a unit direction through the view plane.
    """
    direction = (
        -_camera_w[None]
        + x * _half_width[None] * _camera_u[None]
        + y * _half_height[None] * _camera_v[None]
    )
    return make_ray(_camera_eye[None], tm.normalize(direction))


@ti.func
def get_camera_eye() -> vec3:
    """Get the camera position in world space."""
    return _camera_eye[None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, ...]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with eye, u, v, w and the view-plane half extents.
    """

    def _vec(field: ti.MatrixField) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "eye": _vec(_camera_eye),
        "u": _vec(_camera_u),
        "v": _vec(_camera_v),
        "w": _vec(_camera_w),
        "half_extent": (float(_half_width[None]), float(_half_height[None])),
    }
