"""Phong material description and the GPU-side material registry.

A Material carries the reflectance coefficients used by the Phong model
plus the weights that drive recursive reflection and refraction:

    ka: ambient reflectance (RGB)
    kd: diffuse reflectance (RGB)
    ks: specular reflectance (RGB)
    kr: reflectivity, weight of the mirror-reflected ray (RGB)
    kt: transmission in [0, 1], weight of the refracted ray and the shadow tint
        applied to light passing through the object (RGB)
    shininess: Phong exponent
    ior: index of refraction; None disables refracted rays
    texture: optional texture multiplying ka and kd

Materials are registered into Structure-of-Arrays Taichi fields indexed by
material id. The scene keeps id 0 for its "default" material.

Example:
    >>> red = Material("red", kd=(1.0, 0.0, 0.0))
    >>> glass = Material("glass", ks=(1, 1, 1), shininess=200, kt=(0.9, 0.9, 0.9), ior=1.5)
    >>> material_id = add_material(red)
"""

import math
from dataclasses import dataclass
from typing import Optional

import taichi as ti
import taichi.math as tm

from whitted.materials.texture import NO_TEXTURE, Texture

vec3 = tm.vec3

RGB = tuple[float, float, float]

BLACK: RGB = (0.0, 0.0, 0.0)

# Name of the standing material used when a shape names none
DEFAULT_MATERIAL_NAME = "default"

# Maximum number of materials in a scene
MAX_MATERIALS = 256

# Stored in material_iors when a material does not refract
NO_IOR = 0.0


@dataclass(frozen=True)
class Material:
    """Surface reflectance description for the Phong model.

    Raises:
        ValueError: On construction, if any coefficient is negative or not
            finite, if shininess is negative, or if ior is not positive.
    """

    name: str
    ka: RGB = BLACK
    kd: RGB = BLACK
    ks: RGB = BLACK
    kr: RGB = BLACK
    kt: RGB = BLACK
    shininess: float = 1.0
    ior: Optional[float] = None
    texture: Optional[Texture] = None

    def __post_init__(self) -> None:
        for label in ("ka", "kd", "ks", "kr", "kt"):
            coefficient = getattr(self, label)
            if len(coefficient) != 3:
                raise ValueError(f"Material {self.name!r}: {label} must have 3 components")
            if any(not math.isfinite(c) or c < 0.0 for c in coefficient):
                raise ValueError(
                    f"Material {self.name!r}: {label} components must be non-negative, "
                    f"got {coefficient}"
                )
        if any(c > 1.0 for c in self.kt):
            raise ValueError(
                f"Material {self.name!r}: kt components must not exceed 1, got {self.kt}"
            )
        if not math.isfinite(self.shininess) or self.shininess < 0.0:
            raise ValueError(
                f"Material {self.name!r}: shininess must be non-negative, got {self.shininess}"
            )
        if self.ior is not None and not self.ior > 0.0:
            raise ValueError(f"Material {self.name!r}: ior must be positive, got {self.ior}")

    @property
    def reflective(self) -> bool:
        """Whether this material spawns reflection rays."""
        return any(c > 0.0 for c in self.kr)

    @property
    def refractive(self) -> bool:
        """Whether this material spawns refraction rays."""
        return self.ior is not None and any(c > 0.0 for c in self.kt)


def default_material() -> Material:
    """The material shapes get when they do not name one: plain grey diffuse."""
    return Material(DEFAULT_MATERIAL_NAME, ka=(0.1, 0.1, 0.1), kd=(0.8, 0.8, 0.8))


# =============================================================================
# Taichi Fields for Material Storage
# =============================================================================

material_ka = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_kd = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_ks = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_kr = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_kt = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_shininess = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_iors = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_texture_ids = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials from the registry."""
    num_materials[None] = 0


def get_material_count() -> int:
    """Get the number of registered materials."""
    return int(num_materials[None])


def add_material(material: Material, texture_id: int = NO_TEXTURE) -> int:
    """Add a material to the registry.

    Args:
        material: The material to store.
        texture_id: Id of the material's registered texture, if any.

    Returns:
        The material id (index into the material fields).

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
    material_ka[idx] = material.ka
    material_kd[idx] = material.kd
    material_ks[idx] = material.ks
    material_kr[idx] = material.kr
    material_kt[idx] = material.kt
    material_shininess[idx] = material.shininess
    material_iors[idx] = NO_IOR if material.ior is None else material.ior
    material_texture_ids[idx] = texture_id
    num_materials[None] = idx + 1
    return idx


def get_material_kt(material_id: int) -> tuple[float, float, float]:
    """Get the transmission coefficient of a stored material (Python-side)."""
    kt = material_kt[material_id]
    return (float(kt[0]), float(kt[1]), float(kt[2]))
