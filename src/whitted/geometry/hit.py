"""Local-space hit record shared by all shape intersection routines.

Every shape kind solves its intersection in its own local coordinate frame
and reports the result as a LocalHit. The scene layer carries the record
back to world space using the shape's cached matrices.
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

vec2 = tm.vec2
vec3 = tm.vec3


class ShapeKind(IntEnum):
    """Closed set of shape kinds understood by the intersection dispatcher."""

    SPHERE = 0
    PLANE = 1
    DISK = 2
    BOX = 3
    TRIANGLE = 4
    CYLINDER = 5


@ti.dataclass
class LocalHit:
    """Record of a ray-shape intersection in the shape's local space.

    Attributes:
        hit: Whether the ray intersected the shape (1 if hit, 0 if miss).
        t: The ray parameter of the nearest valid hit. Because rays are
            carried into local space without renormalizing the direction,
            this is also the world-space parameter. Only valid if hit == 1.
        normal: The outward geometric normal in local space (unit length).
            Only valid if hit == 1.
        uv: Surface parametrization used for texture lookup.
    """

    hit: ti.i32
    t: ti.f32
    normal: vec3
    uv: vec2


@ti.func
def make_miss() -> LocalHit:
    """Create a LocalHit indicating no intersection."""
    return LocalHit(hit=0, t=0.0, normal=vec3(0.0, 0.0, 0.0), uv=vec2(0.0, 0.0))
