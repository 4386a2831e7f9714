"""Geometry module for shape primitives and their intersection routines.

Components:
    hit: Local-space hit record and the ShapeKind tag
    sphere: Sphere primitive with robust ray-sphere intersection
    planar: Infinite plane, disk and triangle primitives
    box: Axis-aligned box (slab method)
    cylinder: Finite y-axis cylinder with optional end caps
    shape: Uniform intersect_local dispatcher over all kinds

Every primitive is described on the Python side by a small frozen
dataclass and intersected in its own local space by a Taichi function:

    rec = intersect_local(kind, p0, p1, p2, s0, origin, direction, t_min, t_max)

The scene layer carries rays into local space and hits back to world space.
"""

from .box import Box, hit_box
from .cylinder import Cylinder, hit_cylinder
from .hit import LocalHit, ShapeKind, make_miss
from .planar import Disk, Plane, Triangle, hit_disk, hit_plane, hit_triangle
from .shape import SHAPE_TYPES, Shape, intersect_local, is_shape
from .sphere import Sphere, hit_sphere

__all__ = [
    "ShapeKind",
    "LocalHit",
    "make_miss",
    "Shape",
    "SHAPE_TYPES",
    "is_shape",
    "intersect_local",
    "Sphere",
    "hit_sphere",
    "Plane",
    "hit_plane",
    "Disk",
    "hit_disk",
    "Triangle",
    "hit_triangle",
    "Box",
    "hit_box",
    "Cylinder",
    "hit_cylinder",
]
