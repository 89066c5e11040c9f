"""Unit tests for the progressive renderer.

Tests cover:
- Initialization, reset and resize
- Batched rendering with callbacks and the generator interface
- Image retrieval and saving
"""

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def lit_scene():
    """A lit sphere on a floor in front of the default camera."""
    from pathtracer.camera.pinhole import PinholeCamera, setup_camera
    from pathtracer.geometry.transform import Transform
    from pathtracer.materials.blinn_phong import Material
    from pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    scene.add_plane("floor", Transform(position=(0.0, -1.0, 0.0)), Material(kd=(0.5, 0.5, 0.5)))
    scene.add_sphere("ball", Transform(position=(0.0, 0.0, -3.0)), Material(kd=(0.7, 0.2, 0.2)))
    scene.add_point_light("key", (2.0, 4.0, 0.0), 1.0)
    setup_camera(PinholeCamera(aspect_ratio=1.5))
    return scene


class TestProgressiveRendererInit:
    """Tests for construction, reset and resize."""

    def test_init_creates_render_target(self):
        from pathtracer.core.integrator import get_image_dimensions
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(12, 8)
        assert renderer.width == 12
        assert renderer.height == 8
        assert renderer.sample_count == 0
        assert get_image_dimensions() == (12, 8)

    def test_init_applies_settings(self):
        from pathtracer.core.integrator import RenderSettings, get_render_settings
        from pathtracer.core.progressive import ProgressiveRenderer

        ProgressiveRenderer(4, 4, RenderSettings(max_recursion_depth=1, seed=4))
        assert get_render_settings().max_recursion_depth == 1
        assert get_render_settings().seed == 4

    def test_init_rejects_oversized_dimensions(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(4096, 16)

    def test_reset_clears_samples_and_pixels(self, lit_scene):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(12, 8)
        renderer.render(2)
        assert renderer.get_image_numpy().max() > 0.0
        renderer.reset()
        assert renderer.sample_count == 0
        assert renderer.get_image_numpy().max() == 0.0

    def test_resize(self, lit_scene):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(12, 8)
        renderer.render(1)
        renderer.resize(6, 5)
        assert (renderer.width, renderer.height) == (6, 5)
        assert renderer.sample_count == 0
        assert renderer.get_image_numpy().shape == (5, 6, 3)


class TestProgressiveRendering:
    """Tests for render and render_progressive."""

    def test_render_accumulates_samples(self, lit_scene):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(12, 8)
        renderer.render(3)
        renderer.render(2)
        assert renderer.sample_count == 5

    @pytest.mark.parametrize("num_samples", [0, -3])
    def test_render_with_no_samples_does_nothing(self, num_samples):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(4, 4)
        renderer.render(num_samples)
        assert renderer.sample_count == 0

    def test_callback_receives_progress(self, lit_scene):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(12, 8)
        renderer.render(2)
        calls = []
        renderer.render(7, batch_size=3, callback=lambda cur, total: calls.append((cur, total)))
        assert calls == [(5, 9), (8, 9), (9, 9)]

    def test_generator_is_interruptible(self, lit_scene):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(12, 8)
        for current, _ in renderer.render_progressive(100, batch_size=2):
            if current >= 4:
                break
        assert renderer.sample_count == 4

    def test_invalid_batch_size(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(4, 4)
        with pytest.raises(ValueError, match="batch_size"):
            list(renderer.render_progressive(4, batch_size=0))


class TestImageOutput:
    """Tests for image retrieval and saving."""

    def test_get_image_numpy(self, lit_scene):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(12, 8)
        renderer.render(2)
        image = renderer.get_image_numpy()
        assert image.shape == (8, 12, 3)
        assert image.dtype == np.float32
        assert 0.0 <= image.min() and image.max() <= 1.0

    def test_gamma_brightens(self, lit_scene):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(12, 8)
        renderer.render(2)
        linear = renderer.get_image_numpy()
        encoded = renderer.get_image_numpy(gamma=2.2)
        assert np.all(encoded >= linear - 1e-6)

    def test_save_image(self, lit_scene, tmp_path):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(12, 8)
        renderer.render(1)
        path = tmp_path / "out.png"
        renderer.save_image(path)
        with Image.open(path) as img:
            assert img.size == (12, 8)
            assert img.mode == "RGB"

    def test_repr_shows_state(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(4, 3)
        assert repr(renderer) == "ProgressiveRenderer(width=4, height=3, samples=0)"
