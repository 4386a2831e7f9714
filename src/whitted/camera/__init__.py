"""Camera module for view setup and primary ray generation.

Components:
    camera: Perspective camera with look-at positioning

Camera responsibilities:
    - Build an orthonormal basis from eye, look-at point and up vector
    - Size the view plane from the vertical field of view and image aspect
    - Map normalized coordinates (x, y) in [-1, 1]^2 to world-space rays

Ray generation is a Taichi function so every pixel's primary ray is
created inside the parallel render kernel.
"""

from .camera import (
    Camera,
    get_camera_eye,
    get_camera_info,
    pixel_ray,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "pixel_ray",
    "get_camera_eye",
    "get_camera_info",
]
