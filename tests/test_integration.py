"""Integration tests for the end-to-end rendering pipeline.

These tests build scenes through the public API, render them at low
resolution and check the images against closed-form expectations.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import logging
import math

import numpy as np
import pytest

SIZE = 33


def _red_sphere_scene(config=None):
    """One diffuse red sphere on the view axis, lit head-on by a directional light."""
    from whitted.geometry import Sphere
    from whitted.materials import Material
    from whitted.scene.builder import SceneBuilder
    from whitted.scene.lights import Light

    builder = SceneBuilder(config)
    builder.add_material(Material("red", ka=(0.0, 0.0, 0.0), kd=(1.0, 0.0, 0.0)))
    builder.push()
    builder.translate(0.0, 0.0, -5.0)
    builder.add_shape(Sphere(), material="red")
    builder.pop()
    builder.add_light(Light(direction=(0.0, 0.0, -1.0), color=(1.0, 1.0, 1.0)))
    return builder.build()


def _expected_red(i, j, size):
    """Closed-form red value of pixel (i, j), or None near the silhouette."""
    half = math.tan(math.radians(45.0) / 2.0)
    x = i / (size - 1) * 2.0 - 1.0
    y = j / (size - 1) * 2.0 - 1.0
    d = np.array([x * half, y * half, -1.0])
    d /= np.linalg.norm(d)
    center = np.array([0.0, 0.0, -5.0])
    b = float(np.dot(d, center))
    disc = b * b - (float(np.dot(center, center)) - 1.0)
    if abs(disc) < 0.05:
        return None
    if disc < 0.0:
        return 0.0
    t = b - math.sqrt(disc)
    normal = t * d - center
    # Light shines along -z, so N.L is the normal's z component
    return max(0.0, float(normal[2]))


class TestRedSphere:
    """The single red sphere scenario."""

    def test_red_where_sphere_projects_background_elsewhere(self):
        scene = _red_sphere_scene()
        image = scene.render(SIZE, SIZE)

        hits = 0
        for i in range(SIZE):
            for j in range(SIZE):
                r, g, b = image.get_pixel(i, j)
                assert g == 0.0 and b == 0.0
                expected = _expected_red(i, j, SIZE)
                if expected is None:
                    continue
                assert r == pytest.approx(expected, abs=1e-3), (i, j)
                hits += expected > 0.0
        assert hits > 0

    def test_center_pixel_fully_lit(self):
        scene = _red_sphere_scene()
        image = scene.render(SIZE, SIZE)
        center = SIZE // 2
        assert image.get_pixel(center, center) == pytest.approx((1.0, 0.0, 0.0), abs=1e-5)
        assert image.get_pixel(0, 0) == (0.0, 0.0, 0.0)
        assert image.get_pixel(SIZE - 1, SIZE - 1) == (0.0, 0.0, 0.0)

    def test_background_color(self):
        from whitted.core.integrator import RenderConfig

        scene = _red_sphere_scene(RenderConfig(background=(0.0, 0.0, 0.5)))
        image = scene.render(SIZE, SIZE)
        assert image.get_pixel(0, 0) == pytest.approx((0.0, 0.0, 0.5))

    def test_single_pixel_image_looks_down_the_axis(self):
        scene = _red_sphere_scene()
        image = scene.render(1, 1)
        assert image.get_pixel(0, 0) == pytest.approx((1.0, 0.0, 0.0), abs=1e-5)

    def test_non_square_image(self):
        scene = _red_sphere_scene()
        image = scene.render(40, 20)
        array = image.to_numpy()
        assert array.shape == (20, 40, 3)
        # Symmetric scene renders symmetrically
        np.testing.assert_allclose(array, array[:, ::-1], atol=1e-5)
        np.testing.assert_allclose(array, array[::-1, :], atol=1e-5)


class TestRenderBehavior:
    """Pipeline properties independent of scene content."""

    def test_render_is_idempotent(self):
        scene = _red_sphere_scene()
        first = scene.render(SIZE, SIZE)
        second = scene.render(SIZE, SIZE)
        assert first == second
        np.testing.assert_array_equal(first.to_numpy(), second.to_numpy())

    def test_progress_callback(self):
        from whitted.core.integrator import RenderConfig

        scene = _red_sphere_scene(RenderConfig(batch_columns=8))
        progress = []
        scene.render(SIZE, 5, callback=lambda done, total: progress.append((done, total)))
        assert progress == [(8, SIZE), (16, SIZE), (24, SIZE), (32, SIZE), (SIZE, SIZE)]

    def test_verbose_logs_progress(self, caplog):
        scene = _red_sphere_scene()
        with caplog.at_level(logging.INFO, logger="whitted.core.integrator"):
            scene.render(8, 8, verbose=True)
        messages = [record.getMessage() for record in caplog.records]
        assert "Rendering 100%" in messages
        assert any(message.startswith("Done rendering") for message in messages)

    def test_quiet_by_default(self, caplog):
        scene = _red_sphere_scene()
        with caplog.at_level(logging.INFO, logger="whitted.core.integrator"):
            scene.render(8, 8)
        assert not [r for r in caplog.records if r.name == "whitted.core.integrator"]

    def test_mirror_sees_the_scene(self):
        """A mirror sphere beside the red sphere picks up some red."""
        from whitted.camera import Camera
        from whitted.geometry import Plane, Sphere
        from whitted.materials import CheckerTexture, Material
        from whitted.scene.builder import SceneBuilder
        from whitted.scene.lights import Light

        builder = SceneBuilder()
        builder.set_camera(Camera(eye=(0.0, 1.0, 6.0), look_at=(0.0, 0.0, 0.0)))
        builder.add_material(Material("red", ka=(0.1, 0.0, 0.0), kd=(0.9, 0.0, 0.0)))
        builder.add_material(Material("mirror", ks=(0.5, 0.5, 0.5), shininess=50, kr=(0.9, 0.9, 0.9)))
        builder.add_material(
            Material(
                "floor",
                ka=(0.1, 0.1, 0.1),
                kd=(0.6, 0.6, 0.6),
                texture=CheckerTexture((1.0, 1.0, 1.0), (0.2, 0.2, 0.2), scale=1.0),
            )
        )
        builder.add_shape(Sphere((-1.1, 0.0, 0.0), 1.0), material="red")
        builder.add_shape(Sphere((1.1, 0.0, 0.0), 1.0), material="mirror")
        builder.add_shape(Plane((0.0, -1.0, 0.0), (0.0, 1.0, 0.0)), material="floor")
        builder.add_light(Light(position=(0.0, 5.0, 5.0)))
        scene = builder.build()

        image = scene.render(48, 32).to_numpy()
        right_half = image[:, 24:]
        # Reddish pixels in the mirror half come only from reflection
        reddish = (right_half[..., 0] > right_half[..., 1] + 0.1).sum()
        assert reddish > 0
        assert np.isfinite(image).all()
