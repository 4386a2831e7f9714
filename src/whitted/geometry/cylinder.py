"""Finite cylinder primitive around the local y-axis.

The cylinder has radius `radius` and spans y_min <= y <= y_max. With
`capped` set, the two end disks are part of the surface; otherwise the tube
is open and rays can see its inside.

Example:
    >>> from whitted.geometry.cylinder import Cylinder
    >>> pillar = Cylinder(radius=0.25, y_min=0.0, y_max=2.0)
"""

from dataclasses import dataclass
from typing import ClassVar

import taichi as ti
import taichi.math as tm

from whitted.geometry.hit import LocalHit, ShapeKind, make_miss

vec2 = tm.vec2
vec3 = tm.vec3

PARALLEL_EPSILON = 1e-12


@dataclass(frozen=True)
class Cylinder:
    """A y-axis cylinder of given radius between y_min and y_max."""

    radius: float = 1.0
    y_min: float = -1.0
    y_max: float = 1.0
    capped: bool = True

    kind: ClassVar[ShapeKind] = ShapeKind.CYLINDER

    def __post_init__(self) -> None:
        if self.radius <= 0.0:
            raise ValueError(f"Cylinder radius must be positive, got {self.radius}")
        if not self.y_min < self.y_max:
            raise ValueError(f"Cylinder y_min {self.y_min} must be below y_max {self.y_max}")

    def pack(self):
        extent = (self.y_min, self.y_max, 1.0 if self.capped else 0.0)
        return extent, (0.0, 0.0, 0.0), (0.0, 0.0, 0.0), self.radius


@ti.func
def hit_cylinder(
    ray_origin: vec3,
    ray_direction: vec3,
    radius: ti.f32,
    extent: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> LocalHit:
    """Test for ray-cylinder intersection.

    Solves the side-wall quadratic (x^2 + z^2 = r^2) restricted to the y
    range, then the two cap planes, and keeps the nearest candidate.

    Args:
        ray_origin: The starting point of the ray (local space).
        ray_direction: The direction of the ray (local space).
        radius: The cylinder radius.
        extent: (y_min, y_max, capped) packed into a vector.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A LocalHit with the outward normal of the surface hit.
    """
    y_min = extent.x
    y_max = extent.y
    height = y_max - y_min

    best_t = t_max
    found = 0
    best_normal = vec3(0.0, 0.0, 0.0)
    best_uv = vec2(0.0, 0.0)

    # Side wall
    a = ray_direction.x * ray_direction.x + ray_direction.z * ray_direction.z
    if a > PARALLEL_EPSILON:
        h = ray_origin.x * ray_direction.x + ray_origin.z * ray_direction.z
        c = ray_origin.x * ray_origin.x + ray_origin.z * ray_origin.z - radius * radius
        discriminant = h * h - a * c
        if discriminant >= 0.0:
            sqrt_d = ti.sqrt(discriminant)
            for root in ti.static(range(2)):
                t = (-h - sqrt_d) / a
                if ti.static(root == 1):
                    t = (-h + sqrt_d) / a
                if t > t_min and t < best_t:
                    p = ray_origin + t * ray_direction
                    if p.y >= y_min and p.y <= y_max:
                        best_t = t
                        found = 1
                        best_normal = vec3(p.x / radius, 0.0, p.z / radius)
                        u = 0.5 + tm.atan2(p.z, p.x) / (2.0 * tm.pi)
                        best_uv = vec2(u, (p.y - y_min) / height)

    # End caps
    if extent.z > 0.5 and ti.abs(ray_direction.y) > PARALLEL_EPSILON:
        for cap in ti.static(range(2)):
            cap_y = y_min
            cap_sign = -1.0
            if ti.static(cap == 1):
                cap_y = y_max
                cap_sign = 1.0
            t = (cap_y - ray_origin.y) / ray_direction.y
            if t > t_min and t < best_t:
                p = ray_origin + t * ray_direction
                if p.x * p.x + p.z * p.z <= radius * radius:
                    best_t = t
                    found = 1
                    best_normal = vec3(0.0, cap_sign, 0.0)
                    best_uv = vec2(p.x, p.z) / (2.0 * radius) + vec2(0.5, 0.5)

    result = make_miss()
    if found == 1:
        result = LocalHit(hit=1, t=best_t, normal=best_normal, uv=best_uv)
    return result
