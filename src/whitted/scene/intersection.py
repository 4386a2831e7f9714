"""Scene-level ray intersection and shadow tint queries.

This module stores every shape of the scene in Taichi fields and provides
the two scene queries the integrator needs:

    intersect_scene: closest hit along a ray, with material and world-space
        hit point, normal and texture coordinates
    shadow_tint: per-channel fraction of light that survives the trip along
        a shadow ray, the product of the transmission (Kt) of every shape
        crossed

Each shape is stored as a kind tag and generic parameter block (see
whitted.geometry.shape) plus two cached matrices: the inverse world matrix,
which carries world rays into the shape's local space, and the normal
matrix, which carries local normals back out. The scan is linear; there is
no acceleration structure.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> import numpy as np
    >>> from whitted.geometry import Sphere
    >>> from whitted.scene.intersection import add_shape, clear_scene
    >>> clear_scene()
    >>> add_shape(Sphere((0, 0, -3), 1.0), np.eye(4), material_id=0)
    >>> # Use intersect_scene / shadow_tint within a Taichi kernel
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from whitted.core.ray import (
    is_nonzero,
    safe_normalize,
    transform_point,
    transform_vector,
)
from whitted.core.transform import affine_inverse, normal_matrix
from whitted.geometry.hit import ShapeKind
from whitted.geometry.shape import Shape, intersect_local
from whitted.materials.material import material_kt

vec2 = tm.vec2
vec3 = tm.vec3


@ti.dataclass
class SceneHit:
    """Record of a ray-scene intersection in world space.

    Attributes:
        hit: Whether the ray intersected any shape (1 if hit, 0 if miss).
        t: The ray parameter of the closest hit. Only valid if hit == 1.
        point: The world-space hit point. Only valid if hit == 1.
        normal: The world-space unit normal, oriented to face the incoming
            ray. Only valid if hit == 1.
        front_face: 1 if the ray arrived from the outside of the surface
            (against the outward normal), 0 if from the inside.
        uv: Texture coordinates at the hit point.
        shape_index: Index of the hit shape, -1 on a miss.
        material_id: Material id of the hit shape, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    uv: vec2
    shape_index: ti.i32
    material_id: ti.i32


# Maximum number of shapes supported in the scene
MAX_SHAPES = 4096

# Shape storage: Structure of Arrays layout
shape_kinds = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_p0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_p1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_p2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_s0 = ti.field(dtype=ti.f32, shape=MAX_SHAPES)
shape_material_ids = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
# World-to-local matrix (inverse of the shape's world transform)
shape_inverse = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_SHAPES)
# Local-to-world normal matrix (inverse-transpose of the linear part)
shape_normal_matrix = ti.Matrix.field(3, 3, dtype=ti.f32, shape=MAX_SHAPES)
num_shapes = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all shapes from the scene.

    Resets the shape count to zero. The field data is overwritten when new
    shapes are added.
    """
    num_shapes[None] = 0


def get_shape_count() -> int:
    """Get the number of shapes in the scene."""
    return int(num_shapes[None])


def add_shape(shape: Shape, world: npt.ArrayLike, material_id: int = 0) -> int:
    """Add a shape to the scene.

    Args:
        shape: The local-space shape description.
        world: The shape's 4x4 local-to-world matrix.
        material_id: The material id to associate with this shape.

    Returns:
        The index of the added shape.

    Raises:
        RuntimeError: If the maximum number of shapes is exceeded.
        ValueError: If the world matrix is singular.
    """
    idx = num_shapes[None]
    if idx >= MAX_SHAPES:
        raise RuntimeError(f"Maximum number of shapes ({MAX_SHAPES}) exceeded")

    world = np.asarray(world, dtype=np.float64)
    inverse = affine_inverse(world)
    p0, p1, p2, s0 = shape.pack()

    shape_kinds[idx] = int(shape.kind)
    shape_p0[idx] = p0
    shape_p1[idx] = p1
    shape_p2[idx] = p2
    shape_s0[idx] = s0
    shape_material_ids[idx] = material_id
    shape_inverse[idx] = inverse.tolist()
    shape_normal_matrix[idx] = normal_matrix(world).tolist()
    num_shapes[None] = idx + 1
    return idx


def get_shape_kind(index: int) -> ShapeKind:
    """Get the kind of a stored shape (Python-side)."""
    return ShapeKind(int(shape_kinds[index]))


@ti.func
def _make_miss_record() -> SceneHit:
    """Create a SceneHit indicating no intersection."""
    return SceneHit(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        uv=vec2(0.0, 0.0),
        shape_index=-1,
        material_id=-1,
    )


@ti.func
def _intersect_shape(i: ti.i32, ray_origin: vec3, ray_direction: vec3, t_min: ti.f32, t_max: ti.f32):
    """Intersect a world-space ray with shape i in the shape's local space.

    The direction is transformed but not renormalized, so the returned t is
    valid along the world-space ray as well.
    """
    m = shape_inverse[i]
    local_origin = transform_point(m, ray_origin)
    local_direction = transform_vector(m, ray_direction)
    return intersect_local(
        shape_kinds[i],
        shape_p0[i],
        shape_p1[i],
        shape_p2[i],
        shape_s0[i],
        local_origin,
        local_direction,
        t_min,
        t_max,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHit:
    """Find the closest shape hit along a ray.

    Tests every shape in the scene, tracking the closest hit with
    t in (t_min, t_max). When two shapes report the same t, the one stored
    first wins.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        t_min: Minimum t value to consider a valid hit (the scene epsilon).
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A SceneHit for the closest intersection, or a miss record if no
        shape was hit.
    """
    closest_t = t_max
    result = _make_miss_record()

    n_shapes = num_shapes[None]
    for i in range(n_shapes):
        rec = _intersect_shape(i, ray_origin, ray_direction, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            world_normal = safe_normalize(shape_normal_matrix[i] @ rec.normal)
            front_face = 1
            if tm.dot(ray_direction, world_normal) > 0.0:
                # Ray is inside the surface, hitting its back face
                front_face = 0
                world_normal = -world_normal
            result = SceneHit(
                hit=1,
                t=rec.t,
                point=ray_origin + rec.t * ray_direction,
                normal=world_normal,
                front_face=front_face,
                uv=rec.uv,
                shape_index=i,
                material_id=shape_material_ids[i],
            )

    return result


@ti.func
def shadow_tint(
    ray_origin: vec3,
    ray_direction: vec3,
    max_t: ti.f32,
    t_min: ti.f32,
) -> vec3:
    """Compute how much light survives along a shadow ray.

    Every shape crossed strictly between t_min and max_t multiplies the
    running tint by its material's transmission coefficient Kt: opaque
    shapes (Kt = 0) block the light, fully transparent ones (Kt = 1) leave
    it unchanged. Each shape counts once however many times the ray crosses
    it. Scanning stops once the tint reaches zero.

    Args:
        ray_origin: The surface point being lit.
        ray_direction: Unit direction toward the light.
        max_t: Distance to a point light, or a very large value for a
            directional light.
        t_min: Minimum t value (the scene epsilon).

    Returns:
        The tint in [0, 1] per channel: (1, 1, 1) for an unobstructed light,
        (0, 0, 0) for a fully blocked one.
    """
    tint = vec3(1.0, 1.0, 1.0)

    n_shapes = num_shapes[None]
    for i in range(n_shapes):
        if is_nonzero(tint):
            rec = _intersect_shape(i, ray_origin, ray_direction, t_min, max_t)
            if rec.hit == 1:
                tint *= material_kt[shape_material_ids[i]]

    return tint
