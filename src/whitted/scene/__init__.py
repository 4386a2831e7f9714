"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Shape storage fields, closest-hit and shadow-tint queries
    lights: Point and directional lights and their Phong contribution
    manager: Scene container owning shapes, materials, lights and camera
    builder: Hierarchical scene construction with a transform stack

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for shape parameters
    - Per-shape cached inverse world and normal matrices
    - Contiguous material id arrays

Note: importing this package creates Taichi fields, so Taichi must be
initialized first.
"""

from .builder import SceneBuilder
from .intersection import (
    MAX_SHAPES,
    SceneHit,
    add_shape,
    clear_scene,
    get_shape_count,
    get_shape_kind,
    intersect_scene,
    shadow_tint,
)
from .lights import (
    MAX_LIGHTS,
    Light,
    add_light,
    clear_lights,
    compute_light,
    get_light_count,
    light_vector,
)
from .manager import Group, Scene, ShapeInfo, render

__all__ = [
    # Intersection module
    "SceneHit",
    "MAX_SHAPES",
    "add_shape",
    "clear_scene",
    "get_shape_count",
    "get_shape_kind",
    "intersect_scene",
    "shadow_tint",
    # Lights module
    "Light",
    "MAX_LIGHTS",
    "add_light",
    "clear_lights",
    "get_light_count",
    "light_vector",
    "compute_light",
    # Manager module
    "Scene",
    "ShapeInfo",
    "Group",
    "render",
    # Builder module
    "SceneBuilder",
]
