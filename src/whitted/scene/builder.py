"""Hierarchical scene construction with a transform stack.

SceneBuilder is the programmatic equivalent of a scene description file. It
keeps a TransformStack whose top is applied to every shape and light as it
is added, and a current hierarchy group that begin_group()/end_group() move
down and up. Each shape captures the transform in effect when it was added;
later changes to the stack do not affect it.

Example:
    >>> builder = SceneBuilder()
    >>> builder.add_material(Material("chrome", ks=(1, 1, 1), kr=(0.8, 0.8, 0.8)))
    >>> builder.push()
    >>> builder.translate(0.0, 0.0, -5.0)
    >>> builder.add_shape(Sphere(), material="chrome")
    >>> builder.pop()
    >>> builder.add_light(Light(position=(5.0, 5.0, 0.0)))
    >>> scene = builder.build()
"""

import logging
from collections.abc import Sequence
from typing import Optional

import numpy.typing as npt

from whitted.camera.camera import Camera
from whitted.core.integrator import RenderConfig
from whitted.core.transform import Matrix4, TransformStack
from whitted.geometry.shape import Shape
from whitted.materials.material import Material
from whitted.scene.lights import Light
from whitted.scene.manager import Group, Scene, ShapeInfo

logger = logging.getLogger(__name__)


class SceneBuilder:
    """Incrementally builds a Scene.

    Attributes:
        scene: The scene under construction.
        transforms: The transform stack. Its top is the current transform.
        group: The current hierarchy group.
    """

    def __init__(self, config: Optional[RenderConfig] = None) -> None:
        self.scene = Scene(config)
        self.transforms = TransformStack()
        self.group: Group = self.scene.root
        self._built = False

    def _check_open(self) -> None:
        if self._built:
            raise RuntimeError("SceneBuilder has already built its scene")

    # =========================================================================
    # Transform Stack
    # =========================================================================

    def push(self) -> None:
        """Save the current transform."""
        self._check_open()
        self.transforms.push()

    def pop(self) -> None:
        """Restore the transform saved by the matching push().

        Raises:
            RuntimeError: If there is no matching push().
        """
        self._check_open()
        self.transforms.pop()

    def load_identity(self) -> None:
        self._check_open()
        self.transforms.load_identity()

    def multiply(self, matrix: npt.ArrayLike) -> None:
        self._check_open()
        self.transforms.multiply(matrix)

    def translate(self, x: float, y: float, z: float) -> None:
        self._check_open()
        self.transforms.translate(x, y, z)

    def scale(self, x: float, y: float, z: float) -> None:
        self._check_open()
        self.transforms.scale(x, y, z)

    def rotate(self, axis: Sequence[float], degrees: float) -> None:
        self._check_open()
        self.transforms.rotate(axis, degrees)

    @property
    def current_transform(self) -> Matrix4:
        """A copy of the transform applied to the next shape or light."""
        return self.transforms.peek()

    # =========================================================================
    # Scene Content
    # =========================================================================

    def add_material(self, material: Material) -> None:
        """Register a material (a repeated name replaces the earlier one)."""
        self._check_open()
        self.scene.add_material(material)

    def add_shape(self, shape: Shape, material: Optional[str] = None) -> ShapeInfo:
        """Add a shape under the current transform and group.

        Raises:
            ValueError: If the material is undefined or the current
                transform is singular.
        """
        self._check_open()
        return self.scene.add_shape(
            shape,
            material=material,
            world=self.transforms.peek(),
            group=self.group,
        )

    def add_light(self, light: Light) -> Light:
        """Add a light carried into world space by the current transform."""
        self._check_open()
        world_light = light.transformed(self.transforms.peek())
        self.scene.add_light(world_light)
        return world_light

    def set_camera(self, camera: Camera) -> None:
        self._check_open()
        self.scene.set_camera(camera)

    # =========================================================================
    # Hierarchy
    # =========================================================================

    def begin_group(self, name: str = "group") -> Group:
        """Open a child group of the current group and make it current."""
        self._check_open()
        child = Group(name, parent=self.group)
        self.group.children.append(child)
        self.group = child
        return child

    def end_group(self) -> Group:
        """Close the current group and return to its parent.

        Raises:
            RuntimeError: If the current group is the root.
        """
        self._check_open()
        if self.group.parent is None:
            raise RuntimeError("end_group() without a matching begin_group()")
        closed = self.group
        self.group = self.group.parent
        return closed

    def build(self) -> Scene:
        """Finish construction and set the scene up for rendering.

        Open groups are closed implicitly. The builder cannot be used
        afterwards.
        """
        self._check_open()
        if self.group is not self.scene.root:
            logger.warning("Closing unterminated group %r", self.group.path)
        self.scene.setup()
        self._built = True
        self.transforms = TransformStack()
        self.group = self.scene.root
        return self.scene
