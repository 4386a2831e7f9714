"""Pytest configuration for ray tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so the fields are created after ti.init
    from whitted.materials.material import clear_materials
    from whitted.materials.texture import clear_textures
    from whitted.scene.intersection import clear_scene
    from whitted.scene.lights import clear_lights
    from whitted.scene.manager import Scene

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_lights()
        clear_textures()
        # No scene owns the fields any more
        Scene._resident = None

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def vec3_result():
    """A scalar-shaped vec3 field for reading results out of test kernels."""
    return ti.Vector.field(3, dtype=ti.f32, shape=())
