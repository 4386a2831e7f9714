"""Materials module for surface reflectance and textures.

Components:
    material: Phong Material description and the material registry fields
    phong: Phong reflection model and light attenuation
    texture: Checker and image textures modulating ambient/diffuse color

Each material provides the coefficients consumed by the Whitted integrator:
    - ka, kd, ks and shininess for direct Phong lighting
    - kr for the mirror-reflected ray
    - kt (with ior) for the refracted ray and for shadow tinting

Note: importing this package creates Taichi fields, so Taichi must be
initialized first.
"""

from .material import (
    DEFAULT_MATERIAL_NAME,
    MAX_MATERIALS,
    Material,
    add_material,
    clear_materials,
    default_material,
    get_material_count,
    get_material_kt,
)
from .phong import attenuation_factor, phong
from .texture import (
    MAX_TEXELS,
    MAX_TEXTURES,
    NO_TEXTURE,
    CheckerTexture,
    ImageTexture,
    TextureKind,
    add_texture,
    clear_textures,
    get_texture_count,
    sample_texture,
)

__all__ = [
    # Material
    "Material",
    "DEFAULT_MATERIAL_NAME",
    "MAX_MATERIALS",
    "default_material",
    "add_material",
    "clear_materials",
    "get_material_count",
    "get_material_kt",
    # Phong
    "phong",
    "attenuation_factor",
    # Textures
    "CheckerTexture",
    "ImageTexture",
    "TextureKind",
    "NO_TEXTURE",
    "MAX_TEXTURES",
    "MAX_TEXELS",
    "add_texture",
    "clear_textures",
    "get_texture_count",
    "sample_texture",
]
