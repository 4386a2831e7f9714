"""Flat primitives: infinite plane, disk and triangle.

All three share the ray-plane solve
    t = dot(point - origin, n) / dot(d, n)
and differ only in the bounds check applied to the hit point. Rays parallel
to the surface never hit.

Example:
    >>> from whitted.geometry.planar import Plane, Disk, Triangle
    >>> floor = Plane(point=(0.0, -1.0, 0.0), normal=(0.0, 1.0, 0.0))
    >>> coaster = Disk(center=(0.0, 0.0, 0.0), normal=(0.0, 1.0, 0.0), radius=0.5)
    >>> tri = Triangle(a=(0.0, 0.0, 0.0), b=(1.0, 0.0, 0.0), c=(0.0, 1.0, 0.0))
"""

import math
from dataclasses import dataclass
from typing import ClassVar

import taichi as ti
import taichi.math as tm

from whitted.core.ray import safe_normalize, tangent_frame
from whitted.geometry.hit import LocalHit, ShapeKind, make_miss

vec2 = tm.vec2
vec3 = tm.vec3

# Below this |dot(d, n)| the ray is treated as parallel to the plane
PARALLEL_EPSILON = 1e-8


def _unit(v: tuple[float, float, float], what: str) -> tuple[float, float, float]:
    length = math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])
    if length < 1e-12:
        raise ValueError(f"{what} must be non-zero")
    return (v[0] / length, v[1] / length, v[2] / length)


@dataclass(frozen=True)
class Plane:
    """An infinite plane through a point with a given normal."""

    point: tuple[float, float, float] = (0.0, 0.0, 0.0)
    normal: tuple[float, float, float] = (0.0, 1.0, 0.0)

    kind: ClassVar[ShapeKind] = ShapeKind.PLANE

    def __post_init__(self) -> None:
        object.__setattr__(self, "normal", _unit(self.normal, "Plane normal"))

    def pack(self):
        return self.point, self.normal, (0.0, 0.0, 0.0), 0.0


@dataclass(frozen=True)
class Disk:
    """A flat disk: the part of a plane within radius of its center."""

    center: tuple[float, float, float] = (0.0, 0.0, 0.0)
    normal: tuple[float, float, float] = (0.0, 1.0, 0.0)
    radius: float = 1.0

    kind: ClassVar[ShapeKind] = ShapeKind.DISK

    def __post_init__(self) -> None:
        if self.radius <= 0.0:
            raise ValueError(f"Disk radius must be positive, got {self.radius}")
        object.__setattr__(self, "normal", _unit(self.normal, "Disk normal"))

    def pack(self):
        return self.center, self.normal, (0.0, 0.0, 0.0), self.radius


@dataclass(frozen=True)
class Triangle:
    """A triangle given by three vertices; the normal follows (b - a) x (c - a)."""

    a: tuple[float, float, float]
    b: tuple[float, float, float]
    c: tuple[float, float, float]

    kind: ClassVar[ShapeKind] = ShapeKind.TRIANGLE

    def __post_init__(self) -> None:
        e1 = [self.b[k] - self.a[k] for k in range(3)]
        e2 = [self.c[k] - self.a[k] for k in range(3)]
        n = (
            e1[1] * e2[2] - e1[2] * e2[1],
            e1[2] * e2[0] - e1[0] * e2[2],
            e1[0] * e2[1] - e1[1] * e2[0],
        )
        _unit(n, "Triangle area")

    def pack(self):
        return self.a, self.b, self.c, 0.0


@ti.func
def _planar_uv(offset: vec3, normal: vec3) -> vec2:
    """Coordinates of an in-plane offset in a tangent frame of the plane."""
    tangent, bitangent = tangent_frame(normal)
    return vec2(tm.dot(offset, tangent), tm.dot(offset, bitangent))


@ti.func
def hit_plane(
    ray_origin: vec3,
    ray_direction: vec3,
    point: vec3,
    normal: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> LocalHit:
    """Test for ray-plane intersection.

    Texture coordinates are the hit point's offset from `point` measured in
    a tangent frame of the plane (unbounded, so textures tile).
    """
    denom = tm.dot(ray_direction, normal)
    result = make_miss()

    if ti.abs(denom) > PARALLEL_EPSILON:
        t = tm.dot(point - ray_origin, normal) / denom
        if t > t_min and t < t_max:
            hit_point = ray_origin + t * ray_direction
            result = LocalHit(hit=1, t=t, normal=normal, uv=_planar_uv(hit_point - point, normal))

    return result


@ti.func
def hit_disk(
    ray_origin: vec3,
    ray_direction: vec3,
    center: vec3,
    normal: vec3,
    radius: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> LocalHit:
    """Test for ray-disk intersection.

    Texture coordinates map the disk's bounding square onto [0, 1]^2.
    """
    denom = tm.dot(ray_direction, normal)
    result = make_miss()

    if ti.abs(denom) > PARALLEL_EPSILON:
        t = tm.dot(center - ray_origin, normal) / denom
        if t > t_min and t < t_max:
            offset = ray_origin + t * ray_direction - center
            if tm.dot(offset, offset) <= radius * radius:
                uv = _planar_uv(offset, normal) / (2.0 * radius) + vec2(0.5, 0.5)
                result = LocalHit(hit=1, t=t, normal=normal, uv=uv)

    return result


@ti.func
def hit_triangle(
    ray_origin: vec3,
    ray_direction: vec3,
    a: vec3,
    b: vec3,
    c: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> LocalHit:
    """Test for ray-triangle intersection (Moller-Trumbore).

    Texture coordinates are the barycentric weights of b and c.
    """
    e1 = b - a
    e2 = c - a
    p = tm.cross(ray_direction, e2)
    det = tm.dot(e1, p)
    result = make_miss()

    if ti.abs(det) > PARALLEL_EPSILON:
        inv_det = 1.0 / det
        s = ray_origin - a
        u = tm.dot(s, p) * inv_det
        if u >= 0.0 and u <= 1.0:
            q = tm.cross(s, e1)
            v = tm.dot(ray_direction, q) * inv_det
            if v >= 0.0 and u + v <= 1.0:
                t = tm.dot(e2, q) * inv_det
                if t > t_min and t < t_max:
                    normal = safe_normalize(tm.cross(e1, e2))
                    result = LocalHit(hit=1, t=t, normal=normal, uv=vec2(u, v))

    return result
