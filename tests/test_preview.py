"""Unit tests for image export.

Tests cover:
- Gamma encoding
- Conversion to 8-bit
- PNG writing
- RMSE comparison
"""

import logging

import numpy as np
import pytest
from PIL import Image


class TestGamma:
    """Tests for apply_gamma."""

    def test_gamma_1_no_change(self):
        from pathtracer.preview.export import apply_gamma

        image = np.array([[[0.0, 0.25, 0.5]]], dtype=np.float32)
        assert np.allclose(apply_gamma(image, 1.0), image)

    def test_gamma_brightens_midtones(self):
        from pathtracer.preview.export import apply_gamma

        result = apply_gamma(np.full((1, 1, 3), 0.5, dtype=np.float32), 2.2)
        assert np.allclose(result, 0.5 ** (1.0 / 2.2), atol=1e-6)

    def test_clamps_out_of_range(self):
        from pathtracer.preview.export import apply_gamma

        image = np.array([[[-0.5, 1.5, 1.0]]], dtype=np.float32)
        assert np.allclose(apply_gamma(image, 2.2), [[[0.0, 1.0, 1.0]]])

    @pytest.mark.parametrize("gamma", [0.0, -1.0])
    def test_invalid_gamma(self, gamma):
        from pathtracer.preview.export import apply_gamma

        with pytest.raises(ValueError, match="gamma"):
            apply_gamma(np.zeros((1, 1, 3), dtype=np.float32), gamma)


class TestUint8:
    """Tests for image_to_uint8."""

    def test_black_and_white(self):
        from pathtracer.preview.export import image_to_uint8

        image = np.array([[[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]]], dtype=np.float32)
        result = image_to_uint8(image)
        assert result.dtype == np.uint8
        assert result[0, 0].tolist() == [0, 0, 0]
        assert result[0, 1].tolist() == [255, 255, 255]

    def test_linear_rounding(self):
        from pathtracer.preview.export import image_to_uint8

        result = image_to_uint8(np.full((1, 1, 3), 0.5, dtype=np.float32), gamma=1.0)
        assert result[0, 0, 0] == 128


class TestSavePng:
    """Tests for save_png."""

    def test_writes_rgb_png(self, tmp_path, caplog):
        from pathtracer.preview.export import save_png

        image = np.zeros((5, 7, 3), dtype=np.float32)
        image[0, 0] = (1.0, 0.0, 0.0)
        path = tmp_path / "out.png"
        with caplog.at_level(logging.INFO, logger="pathtracer.preview.export"):
            save_png(image, path)

        with Image.open(path) as img:
            assert img.size == (7, 5)
            assert img.mode == "RGB"
            assert img.getpixel((0, 0)) == (255, 0, 0)
        assert "Wrote 7x5 image" in caplog.text

    def test_rejects_wrong_shape(self, tmp_path):
        from pathtracer.preview.export import save_png

        with pytest.raises(ValueError, match="shape"):
            save_png(np.zeros((4, 4), dtype=np.float32), tmp_path / "bad.png")


class TestRmse:
    """Tests for compute_rmse."""

    def test_identical_images(self):
        from pathtracer.preview.export import compute_rmse

        image = np.random.default_rng(0).random((4, 4, 3))
        assert compute_rmse(image, image) == 0.0

    def test_different_images(self):
        from pathtracer.preview.export import compute_rmse

        a = np.zeros((2, 2, 3))
        b = np.full((2, 2, 3), 0.5)
        assert abs(compute_rmse(a, b) - 0.5) < 1e-12

    def test_shape_mismatch(self):
        from pathtracer.preview.export import compute_rmse

        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((3, 2, 3)))
