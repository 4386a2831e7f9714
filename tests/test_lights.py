"""Unit tests for lights and Phong shading.

Tests cover:
- Light validation and transforms
- The Phong model terms
- Point light attenuation and directional light geometry
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestLight:
    """Tests for the Light description."""

    def test_needs_exactly_one_of_position_or_direction(self):
        from whitted.scene.lights import Light

        with pytest.raises(ValueError):
            Light()
        with pytest.raises(ValueError):
            Light(position=(0.0, 0.0, 0.0), direction=(0.0, -1.0, 0.0))

    def test_direction_is_normalized(self):
        from whitted.scene.lights import Light

        light = Light(direction=(0.0, -3.0, 4.0))
        assert light.is_directional
        assert light.direction == pytest.approx((0.0, -0.6, 0.8))

    def test_negative_color_raises(self):
        from whitted.scene.lights import Light

        with pytest.raises(ValueError):
            Light(position=(0.0, 0.0, 0.0), color=(1.0, -1.0, 1.0))

    def test_transformed(self):
        from whitted.core.transform import rotation, translation
        from whitted.scene.lights import Light

        m = translation(0.0, 5.0, 0.0) @ rotation((0.0, 0.0, 1.0), 90.0)
        point = Light(position=(1.0, 0.0, 0.0)).transformed(m)
        sun = Light(direction=(1.0, 0.0, 0.0)).transformed(m)
        assert point.position == pytest.approx((0.0, 6.0, 0.0), abs=1e-12)
        # Directions ignore translation
        assert sun.direction == pytest.approx((0.0, 1.0, 0.0), abs=1e-12)


def _phong(normal, to_light, to_viewer, attenuation=1.0, tint=(1.0, 1.0, 1.0)):
    """Evaluate phong() with ka=0.1, kd=0.5, ks=0.4, shininess=10 and white light."""
    from whitted.materials.phong import phong, vec3

    inputs = ti.Vector.field(3, dtype=ti.f32, shape=4)
    for k, v in enumerate((normal, to_light, to_viewer, tint)):
        inputs[k] = v
    result = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel():
        result[None] = phong(
            vec3(0.1),
            vec3(0.5),
            vec3(0.4),
            10.0,
            vec3(1.0),
            inputs[0],
            inputs[1],
            inputs[2],
            attenuation,
            inputs[3],
        )

    test_kernel()
    return result[None][0]


class TestPhong:
    """Tests for the Phong model."""

    def test_all_terms_head_on(self):
        up = (0.0, 0.0, 1.0)
        assert _phong(up, up, up) == pytest.approx(0.1 + 0.5 + 0.4)

    def test_light_behind_surface_leaves_ambient(self):
        assert _phong((0.0, 0.0, 1.0), (0.0, 0.0, -1.0), (0.0, 0.0, 1.0)) == pytest.approx(0.1)

    def test_full_shadow_leaves_ambient(self):
        up = (0.0, 0.0, 1.0)
        assert _phong(up, up, up, tint=(0.0, 0.0, 0.0)) == pytest.approx(0.1)

    def test_attenuation_scales_diffuse_and_specular_only(self):
        up = (0.0, 0.0, 1.0)
        assert _phong(up, up, up, attenuation=0.5) == pytest.approx(0.1 + 0.5 * 0.9)

    def test_diffuse_follows_cosine(self):
        """Viewing from the mirror direction's far side isolates the diffuse term."""
        s = math.sin(math.radians(60.0))
        c = math.cos(math.radians(60.0))
        value = _phong((0.0, 0.0, 1.0), (s, 0.0, c), (s, 0.0, c))
        # R = (-s, 0, c) so R.V = c*c - s*s < 0: no highlight
        assert value == pytest.approx(0.1 + 0.5 * c, abs=1e-6)

    @pytest.mark.parametrize(
        "kc, kl, kq, distance, expected",
        [
            (1.0, 0.0, 0.0, 10.0, 1.0),
            (1.0, 0.5, 0.25, 2.0, 1.0 / 3.0),
            (0.0, 0.0, 1.0, 4.0, 1.0 / 16.0),
            (0.0, 0.0, 0.0, 1.0, 0.0),
        ],
    )
    def test_attenuation_factor(self, kc, kl, kq, distance, expected):
        from whitted.materials.phong import attenuation_factor

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = attenuation_factor(kc, kl, kq, distance)

        test_kernel()
        assert result[None] == pytest.approx(expected)


class TestLightFields:
    """Tests for light storage and light_vector."""

    def _light_vector(self, index, point):
        from whitted.scene.lights import light_vector

        p = ti.Vector.field(3, dtype=ti.f32, shape=())
        p[None] = point
        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        max_t = ti.field(dtype=ti.f32, shape=())
        atten = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            to_light, t, a = light_vector(index, p[None])
            direction[None] = to_light
            max_t[None] = t
            atten[None] = a

        test_kernel()
        d = direction[None]
        return (d[0], d[1], d[2]), max_t[None], atten[None]

    def test_point_light(self):
        from whitted.scene.lights import Light, add_light, get_light_count

        index = add_light(Light(position=(0.0, 4.0, 0.0), attenuation=(1.0, 0.0, 1.0)))
        assert get_light_count() == 1
        to_light, max_t, atten = self._light_vector(index, (0.0, 1.0, 0.0))
        assert to_light == pytest.approx((0.0, 1.0, 0.0))
        assert max_t == pytest.approx(3.0)
        assert atten == pytest.approx(1.0 / 10.0)

    def test_directional_light_ignores_distance(self):
        from whitted.scene.lights import DIRECTIONAL_MAX_T, Light, add_light

        index = add_light(Light(direction=(0.0, -1.0, 0.0), attenuation=(1.0, 1.0, 1.0)))
        near = self._light_vector(index, (0.0, 0.0, 0.0))
        far = self._light_vector(index, (0.0, -1000.0, 50.0))
        assert near[0] == pytest.approx((0.0, 1.0, 0.0))
        assert near[2] == far[2] == pytest.approx(1.0)
        assert near[1] == pytest.approx(DIRECTIONAL_MAX_T, rel=1e-6)

    def test_capacity(self):
        from whitted.scene.lights import MAX_LIGHTS, Light, add_light

        for k in range(MAX_LIGHTS):
            add_light(Light(position=(float(k), 0.0, 0.0)))
        with pytest.raises(RuntimeError):
            add_light(Light(position=(0.0, 0.0, 0.0)))

    def test_compute_light_uses_material_texture(self):
        """Texture color multiplies ambient and diffuse, not specular."""
        from whitted.materials.material import Material, add_material
        from whitted.materials.texture import CheckerTexture, add_texture
        from whitted.scene.lights import Light, add_light, compute_light, vec2, vec3

        tex = add_texture(CheckerTexture((0.5, 0.5, 0.5), (0.5, 0.5, 0.5)))
        mat = add_material(Material("t", ka=(0.2, 0.2, 0.2), kd=(0.6, 0.6, 0.6)), texture_id=tex)
        index = add_light(Light(direction=(0.0, 0.0, -1.0)))
        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            up = vec3(0.0, 0.0, 1.0)
            result[None] = compute_light(
                index, mat, up, vec2(0.1, 0.1), up, up, 1.0, vec3(1.0, 1.0, 1.0)
            )

        test_kernel()
        assert result[None][0] == pytest.approx(0.5 * (0.2 + 0.6))


def test_light_vector_unit_length_for_any_point():
    """to_light is always a unit vector for point lights away from the point."""
    from whitted.scene.lights import Light, add_light, light_vector

    add_light(Light(position=(3.0, -2.0, 7.0)))
    points = ti.Vector.field(3, dtype=ti.f32, shape=8)
    lengths = ti.field(dtype=ti.f32, shape=8)
    rng = np.random.default_rng(0)
    points.from_numpy(rng.uniform(-5.0, 5.0, size=(8, 3)).astype(np.float32))

    @ti.kernel
    def test_kernel():
        for i in range(8):
            to_light, _, _ = light_vector(0, points[i])
            lengths[i] = to_light.norm()

    test_kernel()
    np.testing.assert_allclose(lengths.to_numpy(), 1.0, atol=1e-5)
