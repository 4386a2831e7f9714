"""Point and directional light sources.

A light is either positional (it sits at `position` and its intensity falls
off with distance as 1 / (Kc + Kl*D + Kq*D^2)) or directional (it shines
along `direction` from infinitely far away with no falloff). Exactly one of
the two is set.

Lights are transformed into world space once, when they are added to the
scene, and stored in Taichi fields for the shading kernels.

Example:
    >>> sun = Light(direction=(0.0, -1.0, -1.0))
    >>> bulb = Light(position=(0.0, 4.0, 0.0), color=(1.0, 0.9, 0.8),
    ...              attenuation=(1.0, 0.0, 0.05))
"""

import math
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from whitted.core.ray import safe_normalize
from whitted.core.transform import apply_point, apply_vector
from whitted.materials.material import (
    material_ka,
    material_kd,
    material_ks,
    material_shininess,
    material_texture_ids,
)
from whitted.materials.phong import attenuation_factor, phong
from whitted.materials.texture import sample_texture

vec2 = tm.vec2
vec3 = tm.vec3

# Maximum number of lights in a scene
MAX_LIGHTS = 64

# Shadow-ray length used for directional lights
DIRECTIONAL_MAX_T = 1e10


@dataclass(frozen=True)
class Light:
    """A point or directional light.

    Attributes:
        position: Location of a point light, or None.
        direction: Direction a directional light shines in, or None.
            Normalized on construction.
        color: Light color (non-negative RGB). Also the ambient color.
        attenuation: (Kc, Kl, Kq) falloff coefficients for point lights.

    Raises:
        ValueError: If both or neither of position/direction are given, if
            direction has zero length, or if color/attenuation are negative.
    """

    position: Optional[tuple[float, float, float]] = None
    direction: Optional[tuple[float, float, float]] = None
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    attenuation: tuple[float, float, float] = (1.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        if (self.position is None) == (self.direction is None):
            raise ValueError("A light needs exactly one of position or direction")
        if self.direction is not None:
            dx, dy, dz = self.direction
            length = math.sqrt(dx * dx + dy * dy + dz * dz)
            if length < 1e-12:
                raise ValueError("Light direction must be non-zero")
            object.__setattr__(self, "direction", (dx / length, dy / length, dz / length))
        if any(c < 0.0 for c in self.color):
            raise ValueError(f"Light color must be non-negative, got {self.color}")
        if any(k < 0.0 for k in self.attenuation):
            raise ValueError(f"Light attenuation must be non-negative, got {self.attenuation}")

    @property
    def is_directional(self) -> bool:
        """Whether this light is directional rather than positional."""
        return self.direction is not None

    def transformed(self, matrix: npt.ArrayLike) -> "Light":
        """Return a copy of this light carried by an affine transform.

        Positions transform as points; directions by the linear part only
        and are renormalized.
        """
        m = np.asarray(matrix, dtype=np.float64)
        if self.is_directional:
            return replace(self, direction=apply_vector(m, self.direction))
        return replace(self, position=apply_point(m, self.position))


# =============================================================================
# Taichi Fields for Light Storage
# =============================================================================

light_is_directional = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_directions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_attenuations = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Remove all lights."""
    num_lights[None] = 0


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


def add_light(light: Light) -> int:
    """Store a world-space light.

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    if light.is_directional:
        light_is_directional[idx] = 1
        light_directions[idx] = light.direction
        light_positions[idx] = (0.0, 0.0, 0.0)
    else:
        light_is_directional[idx] = 0
        light_positions[idx] = light.position
        light_directions[idx] = (0.0, 0.0, 0.0)
    light_colors[idx] = light.color
    light_attenuations[idx] = light.attenuation
    num_lights[None] = idx + 1
    return idx


@ti.func
def light_vector(light_index: ti.i32, point: vec3):
    """Geometry of a light as seen from a surface point.

    Args:
        light_index: Index of the light.
        point: World-space surface point.

    Returns:
        A tuple (to_light, max_t, attenuation): the unit vector toward the
        light, the shadow-ray length (distance to a point light, or
        DIRECTIONAL_MAX_T), and the distance attenuation factor (1 for
        directional lights).
    """
    to_light = vec3(0.0, 0.0, 0.0)
    max_t = DIRECTIONAL_MAX_T
    atten = 1.0
    if light_is_directional[light_index] == 1:
        to_light = -light_directions[light_index]
    else:
        offset = light_positions[light_index] - point
        distance = tm.length(offset)
        to_light = safe_normalize(offset)
        max_t = distance
        k = light_attenuations[light_index]
        atten = attenuation_factor(k.x, k.y, k.z, distance)
    return to_light, max_t, atten


@ti.func
def compute_light(
    light_index: ti.i32,
    material_id: ti.i32,
    normal: vec3,
    uv: vec2,
    to_light: vec3,
    to_viewer: vec3,
    attenuation: ti.f32,
    tint: vec3,
) -> vec3:
    """Color contributed by one light at an intersection.

    Applies the Phong model with the hit material's coefficients; the
    material texture, if any, modulates the ambient and diffuse terms.

    Args:
        light_index: Index of the light.
        material_id: Material of the surface hit.
        normal: Unit world-space normal facing the viewer.
        uv: Texture coordinates of the hit.
        to_light: Unit vector toward the light (from light_vector).
        to_viewer: Unit vector back toward the ray origin.
        attenuation: Distance attenuation (from light_vector).
        tint: Shadow tint for this light.

    Returns:
        The light's ambient + diffuse + specular contribution.
    """
    texel = sample_texture(material_texture_ids[material_id], uv)
    return phong(
        material_ka[material_id] * texel,
        material_kd[material_id] * texel,
        material_ks[material_id],
        material_shininess[material_id],
        light_colors[light_index],
        normal,
        to_light,
        to_viewer,
        attenuation,
        tint,
    )
