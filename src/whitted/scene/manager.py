"""Scene container coordinating shapes, materials, lights and the camera.

The Scene is the Python-side owner of everything that will be rendered.
Shapes, lights and materials are collected in plain Python structures while
the scene is being built; `setup()` then uploads them into the Taichi
fields read by the rendering kernels. Because those fields are module-level,
only one scene is resident at a time: rendering a scene re-uploads it if
another scene was set up in between.

The Scene maintains:
- Materials by name, with the "default" material always present at id 0
- Shapes with their material name, world matrix and hierarchy group
- World-space lights
- The camera and the render configuration

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.geometry import Sphere
    >>> from whitted.materials import Material
    >>> from whitted.scene.lights import Light
    >>> from whitted.scene.manager import Scene
    >>> scene = Scene()
    >>> scene.add_material(Material("red", ka=(0.1, 0, 0), kd=(1, 0, 0)))
    >>> scene.add_shape(Sphere((0, 0, -5), 1.0), material="red")
    >>> scene.add_light(Light(direction=(0, 0, -1)))
    >>> scene.setup()
    >>> image = scene.render(64, 64)
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

import numpy as np
import numpy.typing as npt

from whitted.camera.camera import Camera
from whitted.core.image import Image
from whitted.core.integrator import ProgressCallback, RenderConfig, render_image, trace_ray
from whitted.core.transform import affine_inverse, identity
from whitted.geometry.shape import Shape, is_shape
from whitted.materials.material import (
    DEFAULT_MATERIAL_NAME,
    Material,
    add_material,
    clear_materials,
    default_material,
)
from whitted.materials.texture import NO_TEXTURE, add_texture, clear_textures
from whitted.scene.intersection import add_shape, clear_scene
from whitted.scene.lights import Light, add_light, clear_lights

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Group:
    """A node of the modelling hierarchy.

    Attributes:
        name: The group's name (need not be unique).
        parent: The enclosing group, None for the scene root.
        children: Groups opened inside this one, in order.
    """

    name: str
    parent: Optional["Group"] = None
    children: list["Group"] = field(default_factory=list)

    @property
    def path(self) -> str:
        """Slash-separated names from the root down to this group."""
        names = []
        node: Optional[Group] = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return "/".join(reversed(names))


@dataclass
class ShapeInfo:
    """Information about a shape in the scene.

    Attributes:
        shape: The local-space shape description.
        material: Name of the shape's material.
        world: The 4x4 local-to-world matrix.
        group: The hierarchy group the shape was added in.
    """

    shape: Shape
    material: str
    world: npt.NDArray[np.float64]
    group: Group


class Scene:
    """Everything needed to render an image.

    Attributes:
        config: Render configuration used when render() is given none.
        camera: The camera, or None until set (setup() installs a default).
        materials: Materials by name, in registration order.
        shapes: ShapeInfo for every shape, in the order added.
        lights: World-space lights.
        root: Root of the group hierarchy.
    """

    # Scene whose data currently occupies the Taichi fields
    _resident: Optional["Scene"] = None

    def __init__(self, config: Optional[RenderConfig] = None) -> None:
        """Initialize an empty scene holding only the default material."""
        self.config = config or RenderConfig()
        self.camera: Optional[Camera] = None
        self.materials: dict[str, Material] = {DEFAULT_MATERIAL_NAME: default_material()}
        self.shapes: list[ShapeInfo] = []
        self.lights: list[Light] = []
        self.root = Group("root")
        self._material_ids: dict[str, int] = {}
        self._ready = False

    def clear(self) -> None:
        """Remove all shapes, lights and non-default materials."""
        self.camera = None
        self.materials = {DEFAULT_MATERIAL_NAME: default_material()}
        self.shapes.clear()
        self.lights.clear()
        self.root = Group("root")
        self._material_ids.clear()
        self._ready = False

    @property
    def is_ready(self) -> bool:
        """Whether setup() has run since the scene was last modified."""
        return self._ready

    # =========================================================================
    # Materials
    # =========================================================================

    def add_material(self, material: Material) -> None:
        """Register a material under its name.

        A material with the same name replaces the earlier one, including
        the default material.
        """
        if material.name in self.materials:
            logger.debug("Replacing material %r", material.name)
        self.materials[material.name] = material
        self._ready = False

    def get_material(self, name: Optional[str] = None) -> Material:
        """Resolve a material name.

        Args:
            name: The material name. None or "" selects the default material.

        Returns:
            The named material.

        Raises:
            ValueError: If a non-empty name is not registered.
        """
        if not name:
            return self.materials[DEFAULT_MATERIAL_NAME]
        try:
            return self.materials[name]
        except KeyError:
            raise ValueError(f"Undefined material {name!r}") from None

    def get_material_id(self, name: Optional[str] = None) -> int:
        """Get the field index a material was uploaded to by setup().

        Raises:
            RuntimeError: If the scene has not been set up.
            ValueError: If the material is not registered.
        """
        self._require_ready()
        return self._material_ids[self.get_material(name).name]

    # =========================================================================
    # Shapes, Lights and Camera
    # =========================================================================

    def add_shape(
        self,
        shape: Shape,
        material: Optional[str] = None,
        world: Optional[npt.ArrayLike] = None,
        group: Optional[Group] = None,
    ) -> ShapeInfo:
        """Add a shape to the scene.

        Args:
            shape: The local-space shape description.
            material: Material name; None or "" uses the default material.
            world: 4x4 local-to-world matrix. Defaults to the identity.
            group: Hierarchy group. Defaults to the scene root.

        Returns:
            The ShapeInfo recorded for the shape.

        Raises:
            TypeError: If shape is not a supported shape description.
            ValueError: If the material is undefined or the world matrix is
                singular.
        """
        if not is_shape(shape):
            raise TypeError(f"Unsupported shape type: {type(shape).__name__}")
        resolved = self.get_material(material)
        world_matrix = identity() if world is None else np.array(world, dtype=np.float64)
        if world_matrix.shape != (4, 4):
            raise ValueError(f"World matrix must be 4x4, got shape {world_matrix.shape}")
        affine_inverse(world_matrix)

        info = ShapeInfo(
            shape=shape,
            material=resolved.name,
            world=world_matrix,
            group=group if group is not None else self.root,
        )
        self.shapes.append(info)
        self._ready = False
        return info

    def add_light(self, light: Light) -> None:
        """Add a world-space light."""
        self.lights.append(light)
        self._ready = False

    def set_camera(self, camera: Camera) -> None:
        """Set the camera used for rendering."""
        self.camera = camera
        self._ready = False

    def shapes_in(self, group: Group) -> list[ShapeInfo]:
        """Shapes added directly in a group (not in its subgroups)."""
        return [info for info in self.shapes if info.group is group]

    # =========================================================================
    # Setup and Rendering
    # =========================================================================

    def setup(self) -> None:
        """Prepare the scene for rendering.

        Installs the default camera when none was set, loads material
        textures, and uploads materials, shapes and lights into the Taichi
        fields.

        Raises:
            ValueError: If a material texture cannot be loaded, or a shape
                refers to a material that was never registered.
            RuntimeError: If a field capacity is exceeded.
        """
        if self.camera is None:
            self.camera = Camera()
            logger.debug("No camera set, using default %s", self.camera)
        for info in self.shapes:
            self.get_material(info.material)

        self._upload()
        self._ready = True

    def _upload(self) -> None:
        """Write this scene into the Taichi fields."""
        # Fields are emptied below; a failed upload must not leave another
        # scene believing it is still resident
        Scene._resident = None
        clear_scene()
        clear_materials()
        clear_lights()
        clear_textures()
        self._material_ids.clear()

        # Default first so it always lands at id 0
        names = [DEFAULT_MATERIAL_NAME] + [n for n in self.materials if n != DEFAULT_MATERIAL_NAME]
        for name in names:
            material = self.materials[name]
            texture_id = NO_TEXTURE
            if material.texture is not None:
                texture_id = add_texture(material.texture)
            self._material_ids[name] = add_material(material, texture_id)

        for info in self.shapes:
            add_shape(info.shape, info.world, self._material_ids[info.material])

        for light in self.lights:
            add_light(light)

        Scene._resident = self
        logger.debug(
            "Scene uploaded: %d materials, %d shapes, %d lights",
            len(self._material_ids),
            len(self.shapes),
            len(self.lights),
        )

    def _require_ready(self) -> None:
        if not self._ready:
            raise RuntimeError("Scene.setup() must be called after modifying the scene")
        if Scene._resident is not self:
            self._upload()

    def trace(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        depth: int = 0,
        config: Optional[RenderConfig] = None,
    ) -> tuple[float, float, float]:
        """Compute the unclamped color seen along one world-space ray.

        Raises:
            RuntimeError: If the scene has not been set up.
        """
        self._require_ready()
        return trace_ray(origin, direction, config or self.config, depth)

    def render(
        self,
        width: int,
        height: int,
        verbose: bool = False,
        config: Optional[RenderConfig] = None,
        callback: Optional[ProgressCallback] = None,
    ) -> Image:
        """Render the scene into a new image.

        Pixel (i, j) is shaded with the primary ray through normalized
        coordinates x = i/(width-1)*2-1, y = j/(height-1)*2-1. Rendering
        the same unmodified scene twice gives identical images.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.
            verbose: Log progress (overrides config.verbose when True).
            config: Render configuration. Defaults to self.config.
            callback: Optional progress callback receiving
                (columns_done, total_columns).

        Returns:
            The rendered Image.

        Raises:
            RuntimeError: If the scene has not been set up.
            ValueError: If the image dimensions are invalid.
        """
        self._require_ready()
        config = config or self.config
        if verbose and not config.verbose:
            config = replace(config, verbose=True)
        camera = self.camera
        if camera is None:
            raise RuntimeError("Scene has no camera; call Scene.setup() first")
        return render_image(camera, width, height, config, callback)


def render(scene: Scene, width: int, height: int, verbose: bool = False) -> Image:
    """Render a scene, running setup() first if it has not been run."""
    if not scene.is_ready:
        scene.setup()
    return scene.render(width, height, verbose=verbose)
