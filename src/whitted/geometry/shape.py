"""Uniform intersection interface over the closed set of shape kinds.

Shapes are stored in the scene as a kind tag plus a generic parameter block
(three vectors and a scalar). `intersect_local` dispatches on the tag to the
kind's own local-space routine, so the scene never needs to know how any
particular shape is solved.

Parameter block layout per kind:

    ========  =============  =============  =========  ======
    kind      p0             p1             p2         s0
    ========  =============  =============  =========  ======
    SPHERE    center         -              -          radius
    PLANE     point          normal         -          -
    DISK      center         normal         -          radius
    BOX       min corner     max corner     -          -
    TRIANGLE  vertex a       vertex b       vertex c   -
    CYLINDER  (ymin, ymax,   -              -          radius
              capped)
    ========  =============  =============  =========  ======
"""

from typing import Union

import taichi as ti
import taichi.math as tm

from whitted.geometry.box import Box, hit_box
from whitted.geometry.cylinder import Cylinder, hit_cylinder
from whitted.geometry.hit import LocalHit, ShapeKind, make_miss
from whitted.geometry.planar import Disk, Plane, Triangle, hit_disk, hit_plane, hit_triangle
from whitted.geometry.sphere import Sphere, hit_sphere

vec3 = tm.vec3

Shape = Union[Sphere, Plane, Disk, Box, Triangle, Cylinder]

SHAPE_TYPES = (Sphere, Plane, Disk, Box, Triangle, Cylinder)


def is_shape(obj: object) -> bool:
    """Check whether obj is one of the supported shape descriptions."""
    return isinstance(obj, SHAPE_TYPES)


@ti.func
def intersect_local(
    kind: ti.i32,
    p0: vec3,
    p1: vec3,
    p2: vec3,
    s0: ti.f32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> LocalHit:
    """Intersect a local-space ray with a shape given by kind and parameters.

    Args:
        kind: The ShapeKind tag.
        p0: First vector parameter.
        p1: Second vector parameter.
        p2: Third vector parameter.
        s0: Scalar parameter.
        ray_origin: Ray origin in the shape's local space.
        ray_direction: Ray direction in the shape's local space.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        The nearest LocalHit in (t_min, t_max), or a miss record. Unknown
        kinds never hit.
    """
    rec = make_miss()
    if kind == int(ShapeKind.SPHERE):
        rec = hit_sphere(ray_origin, ray_direction, p0, s0, t_min, t_max)
    elif kind == int(ShapeKind.PLANE):
        rec = hit_plane(ray_origin, ray_direction, p0, p1, t_min, t_max)
    elif kind == int(ShapeKind.DISK):
        rec = hit_disk(ray_origin, ray_direction, p0, p1, s0, t_min, t_max)
    elif kind == int(ShapeKind.BOX):
        rec = hit_box(ray_origin, ray_direction, p0, p1, t_min, t_max)
    elif kind == int(ShapeKind.TRIANGLE):
        rec = hit_triangle(ray_origin, ray_direction, p0, p1, p2, t_min, t_max)
    elif kind == int(ShapeKind.CYLINDER):
        rec = hit_cylinder(ray_origin, ray_direction, s0, p0, t_min, t_max)
    return rec
