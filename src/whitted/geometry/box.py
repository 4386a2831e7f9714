"""Axis-aligned box primitive (slab method).

Boxes are axis-aligned in their local space; rotated or sheared boxes come
from the shape's world transform.

Example:
    >>> from whitted.geometry.box import Box
    >>> cube = Box(min_corner=(-1.0, -1.0, -1.0), max_corner=(1.0, 1.0, 1.0))
"""

from dataclasses import dataclass
from typing import ClassVar

import taichi as ti
import taichi.math as tm

from whitted.geometry.hit import LocalHit, ShapeKind, make_miss

vec2 = tm.vec2
vec3 = tm.vec3

# Direction components smaller than this are treated as parallel to a slab
PARALLEL_EPSILON = 1e-12

# Stand-in for an unbounded slab interval
SLAB_INFINITY = 1e30


@dataclass(frozen=True)
class Box:
    """An axis-aligned box spanning min_corner to max_corner."""

    min_corner: tuple[float, float, float] = (-1.0, -1.0, -1.0)
    max_corner: tuple[float, float, float] = (1.0, 1.0, 1.0)

    kind: ClassVar[ShapeKind] = ShapeKind.BOX

    def __post_init__(self) -> None:
        for lo, hi in zip(self.min_corner, self.max_corner):
            if not lo < hi:
                raise ValueError(
                    f"Box min_corner {self.min_corner} must be below max_corner {self.max_corner}"
                )

    def pack(self):
        return self.min_corner, self.max_corner, (0.0, 0.0, 0.0), 0.0


@ti.func
def _face_uv(rel: vec3, axis: ti.i32) -> vec2:
    """Face-local texture coordinates from the hit position relative to the box."""
    uv = vec2(rel.x, rel.y)
    if axis == 0:
        uv = vec2(rel.z, rel.y)
    elif axis == 1:
        uv = vec2(rel.x, rel.z)
    return uv


@ti.func
def hit_box(
    ray_origin: vec3,
    ray_direction: vec3,
    min_corner: vec3,
    max_corner: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> LocalHit:
    """Test for ray-box intersection.

    Intersects the ray with the three pairs of axis-aligned slabs and keeps
    the overlap [t_near, t_far]. The entry point t_near is used when it is
    in range; otherwise (ray starting inside the box) the exit t_far is.

    Returns:
        A LocalHit whose normal is the outward normal of the face hit.
    """
    t_near = -SLAB_INFINITY
    t_far = SLAB_INFINITY
    near_axis = 0
    far_axis = 0
    near_sign = -1.0
    far_sign = 1.0
    missed = 0

    for k in ti.static(range(3)):
        if ti.abs(ray_direction[k]) < PARALLEL_EPSILON:
            if ray_origin[k] < min_corner[k] or ray_origin[k] > max_corner[k]:
                missed = 1
        else:
            inv = 1.0 / ray_direction[k]
            t0 = (min_corner[k] - ray_origin[k]) * inv
            t1 = (max_corner[k] - ray_origin[k]) * inv
            # Outward normal sign of the face crossed at t0
            s0 = -1.0
            if t0 > t1:
                temp = t0
                t0 = t1
                t1 = temp
                s0 = 1.0
            if t0 > t_near:
                t_near = t0
                near_axis = k
                near_sign = s0
            if t1 < t_far:
                t_far = t1
                far_axis = k
                far_sign = -s0

    result = make_miss()

    if missed == 0 and t_near <= t_far:
        t = 0.0
        axis = -1
        sign = 0.0
        if t_near > t_min and t_near < t_max:
            t = t_near
            axis = near_axis
            sign = near_sign
        elif t_far > t_min and t_far < t_max:
            t = t_far
            axis = far_axis
            sign = far_sign

        if axis >= 0:
            normal = vec3(0.0, 0.0, 0.0)
            for k in ti.static(range(3)):
                if axis == k:
                    normal[k] = sign
            hit_point = ray_origin + t * ray_direction
            rel = (hit_point - min_corner) / (max_corner - min_corner)
            result = LocalHit(hit=1, t=t, normal=normal, uv=_face_uv(rel, axis))

    return result
