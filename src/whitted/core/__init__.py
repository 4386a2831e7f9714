"""Core rendering module.

Components:
    ray: Ray data structure and vector helpers for Taichi functions
    transform: 4x4 affine transforms and the scene-construction stack
    image: RGB image buffer produced by a render
    integrator: Whitted recursive ray tracing kernels

The integrator performs recursive ray tracing: at every hit it sums Phong
direct lighting with shadow tints and spawns mirror-reflected and refracted
rays down to a fixed depth.

All per-pixel work runs in Taichi kernels.
"""

from .image import Image
from .ray import (
    Ray,
    is_nonzero,
    make_ray,
    ray_at,
    reflect,
    refract,
    safe_normalize,
    tangent_frame,
    transform_point,
    transform_vector,
    vec3,
)
from .transform import (
    TransformStack,
    affine_inverse,
    identity,
    normal_matrix,
    rotation,
    scaling,
    translation,
)

# Note: integrator is NOT imported here, since importing it creates Taichi fields
# and pulls in the scene modules. Import directly from whitted.core.integrator.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "safe_normalize",
    "is_nonzero",
    "reflect",
    "refract",
    "transform_point",
    "transform_vector",
    "tangent_frame",
    "Image",
    "TransformStack",
    "identity",
    "translation",
    "scaling",
    "rotation",
    "affine_inverse",
    "normal_matrix",
]
