"""Unit tests for the Image buffer."""

import math

import numpy as np
import pytest


class TestImage:
    """Tests for pixel access, clamping and layout conversion."""

    def test_new_image_is_black(self):
        from whitted.core.image import Image

        image = Image(3, 2)
        assert image.width == 3
        assert image.height == 2
        assert image.get_pixel(2, 1) == (0.0, 0.0, 0.0)

    @pytest.mark.parametrize("size", [(0, 4), (4, 0), (-1, 1)])
    def test_invalid_size(self, size):
        from whitted.core.image import Image

        with pytest.raises(ValueError):
            Image(*size)

    def test_set_pixel_clamps(self):
        from whitted.core.image import Image

        image = Image(2, 2)
        image.set_pixel(1, 0, (1.5, 0.25, -3.0))
        assert image.get_pixel(1, 0) == pytest.approx((1.0, 0.25, 0.0))

    def test_set_pixel_replaces_nan(self):
        from whitted.core.image import Image

        image = Image(1, 1)
        image.set_pixel(0, 0, (math.nan, math.inf, 0.5))
        assert image.get_pixel(0, 0) == pytest.approx((0.0, 0.0, 0.5))

    def test_out_of_bounds(self):
        from whitted.core.image import Image

        image = Image(2, 2)
        with pytest.raises(IndexError):
            image.set_pixel(2, 0, (1.0, 1.0, 1.0))
        with pytest.raises(IndexError):
            image.get_pixel(0, -1)

    def test_to_numpy_puts_bottom_row_last(self):
        """Pixel (0, 0) is the bottom-left corner of the picture."""
        from whitted.core.image import Image

        image = Image(3, 2)
        image.set_pixel(0, 0, (1.0, 0.0, 0.0))
        image.set_pixel(2, 1, (0.0, 0.0, 1.0))
        array = image.to_numpy()
        assert array.shape == (2, 3, 3)
        np.testing.assert_array_equal(array[1, 0], [1.0, 0.0, 0.0])
        np.testing.assert_array_equal(array[0, 2], [0.0, 0.0, 1.0])

    def test_to_uint8(self):
        from whitted.core.image import Image

        image = Image(1, 1)
        image.set_pixel(0, 0, (1.0, 0.5, 0.0))
        assert image.to_uint8()[0, 0].tolist() == [255, 128, 0]

    def test_set_pixels_shape_mismatch(self):
        from whitted.core.image import Image

        image = Image(2, 3)
        with pytest.raises(ValueError, match="does not match"):
            image.set_pixels(np.zeros((3, 2, 3), dtype=np.float32))

    def test_equality(self):
        from whitted.core.image import Image

        a = Image(2, 2)
        b = Image(2, 2)
        assert a == b
        b.set_pixel(0, 0, (0.1, 0.1, 0.1))
        assert a != b
