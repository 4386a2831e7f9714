"""Unit tests for axis-aligned box intersection (via the shape dispatch)."""

import pytest
import taichi as ti


def _intersect(shape, origin, direction, t_min=1e-4, t_max=1e10):
    """Intersect a packed shape through intersect_local; return (hit, t, normal)."""
    from whitted.geometry.shape import intersect_local

    p0, p1, p2, s0 = shape.pack()
    inputs = ti.Vector.field(3, dtype=ti.f32, shape=5)
    for k, v in enumerate((p0, p1, p2, origin, direction)):
        inputs[k] = v
    kind = int(shape.kind)
    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel():
        rec = intersect_local(
            kind, inputs[0], inputs[1], inputs[2], s0, inputs[3], inputs[4], t_min, t_max
        )
        hit[None] = rec.hit
        t_val[None] = rec.t
        normal[None] = rec.normal

    test_kernel()
    n = normal[None]
    return hit[None], t_val[None], (n[0], n[1], n[2])


class TestBoxBasics:
    def test_inverted_corners_raise(self):
        from whitted.geometry.box import Box

        with pytest.raises(ValueError):
            Box((0.0, 0.0, 0.0), (1.0, -1.0, 1.0))


class TestBoxIntersection:
    """Tests for the slab test."""

    @pytest.mark.parametrize(
        "origin, direction, expected_normal",
        [
            ((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 1.0)),
            ((0.0, 0.0, -5.0), (0.0, 0.0, 1.0), (0.0, 0.0, -1.0)),
            ((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0), (1.0, 0.0, 0.0)),
            ((0.0, -5.0, 0.0), (0.0, 1.0, 0.0), (0.0, -1.0, 0.0)),
        ],
    )
    def test_face_hits(self, origin, direction, expected_normal):
        from whitted.geometry.box import Box

        hit, t, normal = _intersect(Box(), origin, direction)
        assert hit == 1
        assert t == pytest.approx(4.0, abs=1e-5)
        assert normal == pytest.approx(expected_normal)

    def test_miss(self):
        from whitted.geometry.box import Box

        hit, _, _ = _intersect(Box(), (3.0, 0.0, 5.0), (0.0, 0.0, -1.0))
        assert hit == 0

    def test_parallel_outside_slab_misses(self):
        from whitted.geometry.box import Box

        hit, _, _ = _intersect(Box(), (0.0, 2.0, 5.0), (0.0, 0.0, -1.0))
        assert hit == 0

    def test_from_inside_hits_exit_face(self):
        from whitted.geometry.box import Box

        hit, t, normal = _intersect(Box(), (0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        assert hit == 1
        assert t == pytest.approx(1.0, abs=1e-5)
        assert normal == pytest.approx((1.0, 0.0, 0.0))

    def test_offset_box(self):
        from whitted.geometry.box import Box

        box = Box((1.0, 1.0, 1.0), (2.0, 3.0, 4.0))
        hit, t, normal = _intersect(box, (1.5, 2.0, 10.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert t == pytest.approx(6.0, abs=1e-5)
        assert normal == pytest.approx((0.0, 0.0, 1.0))
