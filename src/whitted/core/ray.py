"""Ray type and the vector helpers shared by intersection, shading and tracing.

Everything here is a Taichi function so it can run inside render kernels.
Directions passed to the intersection code are not required to be unit
length (rays carried into a shape's local space are scaled), so no helper
here assumes they are.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> @ti.kernel
    ... def probe() -> ti.f32:
    ...     r = make_ray(vec3(0.0, 1.0, 0.0), vec3(0.0, 0.0, -1.0))
    ...     return ray_at(r, 4.0).z  # -4.0
"""

import taichi as ti
import taichi.math as tm

# Type aliases using Taichi's math module
vec2 = tm.vec2
vec3 = tm.vec3
vec4 = tm.vec4
mat3 = tm.mat3
mat4 = tm.mat4

# Lengths below this are treated as zero
ZERO_LENGTH = 1e-12


@ti.dataclass
class Ray:
    """Half-line origin + t * direction, t >= 0.

    Attributes:
        origin: Where the ray starts.
        direction: Propagation direction. Primary and secondary rays are
            normalized before they are cast.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Point reached after travelling t along the ray."""
    return ray.origin + ray.direction * t


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Helpers
# =============================================================================


@ti.func
def safe_normalize(v: vec3) -> vec3:
    """Normalize a vector, mapping zero-length input to the zero vector.

    Unlike tm.normalize, this never divides by zero, so degenerate normals
    or directions cannot leak NaN into the image.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the direction of v, or (0, 0, 0).
    """
    unit = vec3(0.0, 0.0, 0.0)
    n = tm.length(v)
    if n > ZERO_LENGTH:
        unit = v / n
    return unit


@ti.func
def is_nonzero(v: vec3) -> ti.i32:
    """1 if any channel of a (non-negative) coefficient is positive, else 0."""
    result = 0
    if v.x > 0.0 or v.y > 0.0 or v.z > 0.0:
        result = 1
    return result


@ti.func
def reflect(d: vec3, n: vec3) -> vec3:
    """Mirror direction d about the unit normal n: d - 2 (d . n) n."""
    return d - 2.0 * tm.dot(d, n) * n


@ti.func
def refract(d: vec3, n: vec3, eta: ti.f32):
    """Bend unit direction d through a surface with Snell's law.

    Args:
        d: Unit direction arriving at the surface.
        n: Unit normal on the side d arrives from (d . n <= 0).
        eta: n_from / n_to, the ratio of refractive indices across the
            boundary.

    Returns:
        A tuple (direction, ok). ok is 0 on total internal reflection, in
        which case direction is the zero vector.
    """
    cos_in = -tm.dot(d, n)
    k = 1.0 - eta * eta * (1.0 - cos_in * cos_in)
    bent = vec3(0.0, 0.0, 0.0)
    ok = 0
    if k >= 0.0:
        bent = eta * d + (eta * cos_in - ti.sqrt(k)) * n
        ok = 1
    return bent, ok


@ti.func
def transform_point(m: mat4, p: vec3) -> vec3:
    """Apply a 4x4 affine matrix to a point (w = 1)."""
    h = m @ vec4(p.x, p.y, p.z, 1.0)
    return vec3(h[0], h[1], h[2])


@ti.func
def transform_vector(m: mat4, v: vec3) -> vec3:
    """Apply the linear part of a 4x4 matrix to a direction (w = 0)."""
    h = m @ vec4(v.x, v.y, v.z, 0.0)
    return vec3(h[0], h[1], h[2])


@ti.func
def tangent_frame(n: vec3):
    """Two unit vectors spanning the plane perpendicular to unit normal n.

    Planar shapes use them as texture axes. The frame depends only on n, so
    every point of a plane gets the same axes.

    Returns:
        A tuple (tangent, bitangent) with tangent x bitangent = n.
    """
    helper = vec3(0.0, 1.0, 0.0)
    if ti.abs(n.y) > 0.9:
        helper = vec3(0.0, 0.0, 1.0)
    tangent = safe_normalize(tm.cross(helper, n))
    bitangent = tm.cross(n, tangent)
    return tangent, bitangent
