"""Sphere primitive.

Ray-sphere hits are found with the cancellation-free form of the quadratic
formula (Ray Tracing Gems, ch. 7): one root is computed as q / a with
q = -(h + sign(h) sqrt(disc)) and the other as c / q, so neither root
subtracts two nearly equal numbers. This matters for secondary rays that
start a distance epsilon from the surface.

Example:
    >>> from whitted.geometry.sphere import Sphere
    >>> unit = Sphere()
    >>> ball = Sphere(center=(0.0, 1.0, -3.0), radius=0.5)
"""

from dataclasses import dataclass
from typing import ClassVar

import taichi as ti
import taichi.math as tm

from whitted.geometry.hit import LocalHit, ShapeKind, make_miss

vec2 = tm.vec2
vec3 = tm.vec3


@dataclass(frozen=True)
class Sphere:
    """Sphere in its shape's local space.

    Attributes:
        center: Local-space center.
        radius: Radius, strictly positive.
    """

    center: tuple[float, float, float] = (0.0, 0.0, 0.0)
    radius: float = 1.0

    kind: ClassVar[ShapeKind] = ShapeKind.SPHERE

    def __post_init__(self) -> None:
        if self.radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")

    def pack(self):
        """Return the (p0, p1, p2, s0) parameter block stored in shape fields."""
        return self.center, (0.0, 0.0, 0.0), (0.0, 0.0, 0.0), self.radius


@ti.func
def _stable_roots(a: ti.f32, h: ti.f32, c: ti.f32, root_disc: ti.f32):
    """Both roots of a t^2 + 2 h t + c = 0, smallest first.

    root_disc is sqrt(h^2 - a c), already known to be real.
    """
    q = -h - ti.select(h < 0.0, -root_disc, root_disc)

    near = 0.0
    far = 0.0
    if ti.abs(q) < 1e-10:
        # h and the discriminant both vanish
        near = (-h - root_disc) / a
        far = (-h + root_disc) / a
    else:
        near = q / a
        far = c / q

    return ti.min(near, far), ti.max(near, far)


@ti.func
def sphere_uv(n: vec3) -> vec2:
    """Spherical (longitude, latitude) coordinates of a unit outward normal."""
    u = 0.5 + tm.atan2(n.z, n.x) / (2.0 * tm.pi)
    v = 0.5 + tm.asin(tm.clamp(n.y, -1.0, 1.0)) / tm.pi
    return vec2(u, v)


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    center: vec3,
    radius: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> LocalHit:
    """Closest intersection of a ray with a sphere inside (t_min, t_max).

    With oc = origin - center the hit condition |oc + t d|^2 = r^2 is the
    quadratic a t^2 + 2 h t + c = 0 for a = d.d, h = d.oc and
    c = oc.oc - r^2. The near root wins unless it is outside the interval,
    in which case the far root is tried; a ray starting inside the sphere
    therefore hits the far wall.

    Args:
        ray_origin: Local-space origin.
        ray_direction: Local-space direction, any non-zero length.
        center: Sphere center.
        radius: Sphere radius.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        A LocalHit carrying the outward unit normal, or a miss.
    """
    oc = ray_origin - center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - radius * radius
    disc = h * h - a * c

    result = make_miss()

    if disc >= 0.0 and a > 0.0:
        near, far = _stable_roots(a, h, c, ti.sqrt(disc))

        t = near
        if not (t_min < t < t_max):
            t = far

        if t_min < t < t_max:
            p = ray_origin + ray_direction * t
            n = (p - center) / radius
            result = LocalHit(hit=1, t=t, normal=n, uv=sphere_uv(n))

    return result
