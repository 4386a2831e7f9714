"""Unit tests for ray utilities.

Tests cover:
- Ray construction and evaluation
- Safe normalization of zero-length vectors
- Reflection and refraction (including total internal reflection)
- Affine point and vector transforms
"""

import math

import pytest
import taichi as ti


class TestRay:
    """Tests for the Ray dataclass."""

    def test_ray_at(self, vec3_result):
        """Test evaluating P(t) = O + tD."""
        from whitted.core.ray import make_ray, ray_at, vec3

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 2.0, 3.0), vec3(0.0, 0.0, -1.0))
            vec3_result[None] = ray_at(ray, 2.5)

        test_kernel()
        p = vec3_result[None]
        assert p[0] == pytest.approx(1.0)
        assert p[1] == pytest.approx(2.0)
        assert p[2] == pytest.approx(0.5)


class TestSafeNormalize:
    """Tests for safe_normalize."""

    def test_normalizes_vector(self, vec3_result):
        from whitted.core.ray import safe_normalize, vec3

        @ti.kernel
        def test_kernel():
            vec3_result[None] = safe_normalize(vec3(3.0, 0.0, 4.0))

        test_kernel()
        v = vec3_result[None]
        assert v[0] == pytest.approx(0.6, abs=1e-6)
        assert v[1] == pytest.approx(0.0, abs=1e-6)
        assert v[2] == pytest.approx(0.8, abs=1e-6)

    def test_zero_vector_stays_zero(self, vec3_result):
        """A zero-length vector must not produce NaN."""
        from whitted.core.ray import safe_normalize, vec3

        @ti.kernel
        def test_kernel():
            vec3_result[None] = safe_normalize(vec3(0.0, 0.0, 0.0))

        test_kernel()
        v = vec3_result[None]
        for c in range(3):
            assert not math.isnan(v[c])
            assert v[c] == 0.0

    def test_is_nonzero(self):
        from whitted.core.ray import is_nonzero, vec3

        result = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            result[0] = is_nonzero(vec3(0.0, 0.0, 0.0))
            result[1] = is_nonzero(vec3(0.0, 0.1, 0.0))
            result[2] = is_nonzero(vec3(1.0, 1.0, 1.0))

        test_kernel()
        assert result[0] == 0
        assert result[1] == 1
        assert result[2] == 1


class TestReflectRefract:
    """Tests for reflection and Snell refraction."""

    def test_reflect(self, vec3_result):
        """A 45 degree ray bounces off a floor symmetrically."""
        from whitted.core.ray import reflect, vec3

        @ti.kernel
        def test_kernel():
            vec3_result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = vec3_result[None]
        assert r[0] == pytest.approx(1.0)
        assert r[1] == pytest.approx(1.0)
        assert r[2] == pytest.approx(0.0)

    def test_refract_normal_incidence(self, vec3_result):
        """Straight-on rays are not bent, whatever the index ratio."""
        from whitted.core.ray import refract, vec3

        ok = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, flag = refract(vec3(0.0, 0.0, -1.0), vec3(0.0, 0.0, 1.0), 1.0 / 1.5)
            vec3_result[None] = d
            ok[None] = flag

        test_kernel()
        assert ok[None] == 1
        d = vec3_result[None]
        assert d[0] == pytest.approx(0.0, abs=1e-6)
        assert d[1] == pytest.approx(0.0, abs=1e-6)
        assert d[2] == pytest.approx(-1.0, abs=1e-6)

    def test_refract_obeys_snell(self, vec3_result):
        """sin(theta_t) = eta * sin(theta_i) and the result is unit length."""
        from whitted.core.ray import refract, vec3

        ok = ti.field(dtype=ti.i32, shape=())
        s = math.sin(math.radians(30.0))
        c = math.cos(math.radians(30.0))

        @ti.kernel
        def test_kernel():
            d, flag = refract(vec3(s, 0.0, -c), vec3(0.0, 0.0, 1.0), 1.0 / 1.5)
            vec3_result[None] = d
            ok[None] = flag

        test_kernel()
        assert ok[None] == 1
        d = vec3_result[None]
        assert d[0] == pytest.approx(s / 1.5, abs=1e-5)
        assert math.sqrt(d[0] ** 2 + d[1] ** 2 + d[2] ** 2) == pytest.approx(1.0, abs=1e-5)

    def test_total_internal_reflection(self, vec3_result):
        """Leaving glass at a grazing angle reports failure and no direction."""
        from whitted.core.ray import refract, vec3

        ok = ti.field(dtype=ti.i32, shape=())
        s = math.sin(math.radians(60.0))
        c = math.cos(math.radians(60.0))

        @ti.kernel
        def test_kernel():
            d, flag = refract(vec3(s, 0.0, -c), vec3(0.0, 0.0, 1.0), 1.5)
            vec3_result[None] = d
            ok[None] = flag

        test_kernel()
        assert ok[None] == 0
        d = vec3_result[None]
        assert d[0] == 0.0 and d[1] == 0.0 and d[2] == 0.0


class TestMatrixTransforms:
    """Tests for transform_point and transform_vector in kernels."""

    def test_point_and_vector(self):
        from whitted.core.ray import transform_point, transform_vector, vec3
        from whitted.core.transform import translation

        m = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())
        m[None] = translation(1.0, 2.0, 3.0).tolist()
        point = ti.Vector.field(3, dtype=ti.f32, shape=())
        vector = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            point[None] = transform_point(m[None], vec3(1.0, 1.0, 1.0))
            vector[None] = transform_vector(m[None], vec3(1.0, 1.0, 1.0))

        test_kernel()
        p = point[None]
        v = vector[None]
        # Points are translated, vectors are not
        assert (p[0], p[1], p[2]) == pytest.approx((2.0, 3.0, 4.0))
        assert (v[0], v[1], v[2]) == pytest.approx((1.0, 1.0, 1.0))
