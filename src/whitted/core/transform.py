"""Affine transform helpers and the scene-construction transform stack.

Transforms are plain 4x4 NumPy arrays on the Python side. They are composed
while the scene is being built and then uploaded once into Taichi fields as
each shape's inverse world matrix and normal matrix; nothing here runs
inside a kernel.

Example:
    >>> stack = TransformStack()
    >>> stack.push()
    >>> stack.translate(0.0, 1.0, -5.0)
    >>> stack.scale(2.0, 2.0, 2.0)
    >>> world = stack.peek()
    >>> stack.pop()
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

Matrix4 = npt.NDArray[np.float64]

# Determinants smaller than this make a transform non-invertible
SINGULAR_DETERMINANT = 1e-12


def identity() -> Matrix4:
    """Return a fresh 4x4 identity matrix."""
    return np.eye(4, dtype=np.float64)


def translation(x: float, y: float, z: float) -> Matrix4:
    """Build a translation matrix."""
    m = identity()
    m[:3, 3] = (x, y, z)
    return m


def scaling(x: float, y: float, z: float) -> Matrix4:
    """Build a (possibly non-uniform) scale matrix."""
    return np.diag([x, y, z, 1.0]).astype(np.float64)


def rotation(axis: Sequence[float], degrees: float) -> Matrix4:
    """Build a rotation matrix about an arbitrary axis.

    Uses the Rodrigues formula; the axis need not be normalized.

    Args:
        axis: The rotation axis (x, y, z).
        degrees: The rotation angle in degrees (counter-clockwise when
            looking down the axis toward the origin).

    Returns:
        The 4x4 rotation matrix.

    Raises:
        ValueError: If the axis has zero length.
    """
    a = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(a)
    if norm < 1e-12:
        raise ValueError("Rotation axis must be non-zero")
    x, y, z = a / norm
    theta = math.radians(degrees)
    c, s = math.cos(theta), math.sin(theta)
    t = 1.0 - c

    m = identity()
    m[:3, :3] = [
        [t * x * x + c, t * x * y - s * z, t * x * z + s * y],
        [t * x * y + s * z, t * y * y + c, t * y * z - s * x],
        [t * x * z - s * y, t * y * z + s * x, t * z * z + c],
    ]
    return m


def affine_inverse(m: Matrix4) -> Matrix4:
    """Invert an affine 4x4 matrix.

    Raises:
        ValueError: If the linear part is singular (e.g. a zero scale).
    """
    if abs(np.linalg.det(m[:3, :3])) < SINGULAR_DETERMINANT:
        raise ValueError("Transform is singular and cannot be inverted")
    return np.linalg.inv(m)


def normal_matrix(m: Matrix4) -> npt.NDArray[np.float64]:
    """Compute the matrix that carries local normals to world space.

    This is the inverse-transpose of the linear 3x3 part of the
    local-to-world matrix, which keeps normals perpendicular to surfaces
    under non-uniform scale.
    """
    return affine_inverse(m)[:3, :3].T.copy()


def apply_point(m: Matrix4, p: Sequence[float]) -> tuple[float, float, float]:
    """Transform a point by an affine matrix."""
    h = m @ np.array([p[0], p[1], p[2], 1.0])
    return float(h[0]), float(h[1]), float(h[2])


def apply_vector(m: Matrix4, v: Sequence[float]) -> tuple[float, float, float]:
    """Transform a direction by the linear part of an affine matrix."""
    h = m[:3, :3] @ np.array([v[0], v[1], v[2]], dtype=np.float64)
    return float(h[0]), float(h[1]), float(h[2])


class TransformStack:
    """Stack of cumulative transforms used while a scene is being built.

    The stack is never empty: its bottom entry is the identity. Every
    modifying operation post-multiplies the top of the stack, so the most
    recently specified transform is applied to geometry first, as in a
    classic OpenGL-style modelling hierarchy.
    """

    def __init__(self) -> None:
        self._stack: list[Matrix4] = [identity()]

    def __len__(self) -> int:
        return len(self._stack)

    def peek(self) -> Matrix4:
        """Return a copy of the current cumulative transform."""
        return self._stack[-1].copy()

    def push(self) -> None:
        """Duplicate the top of the stack."""
        self._stack.append(self._stack[-1].copy())

    def pop(self) -> Matrix4:
        """Remove and return the top of the stack.

        Raises:
            RuntimeError: If only the bottom (identity) entry remains.
        """
        if len(self._stack) == 1:
            raise RuntimeError("Cannot pop the bottom of the transform stack")
        return self._stack.pop()

    def load_identity(self) -> None:
        """Replace the top of the stack with the identity."""
        self._stack[-1] = identity()

    def multiply(self, m: Matrix4) -> None:
        """Post-multiply the top of the stack by m."""
        self._stack[-1] = self._stack[-1] @ np.asarray(m, dtype=np.float64)

    def translate(self, x: float, y: float, z: float) -> None:
        self.multiply(translation(x, y, z))

    def scale(self, x: float, y: float, z: float) -> None:
        self.multiply(scaling(x, y, z))

    def rotate(self, axis: Sequence[float], degrees: float) -> None:
        self.multiply(rotation(axis, degrees))
