"""Progressive renderer for iterative sample accumulation.

Wraps the integrator's render target with batching, progress callbacks and a
generator interface, so a caller can refine an image in steps and stop at any
point.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>> from pathtracer.scene.loader import build_scene_from_file
    >>> from pathtracer.scene.manager import SceneManager
    >>> from pathtracer.camera.pinhole import setup_camera
    >>>
    >>> camera = build_scene_from_file("scene.txt", SceneManager(), aspect_ratio=1.0)
    >>> setup_camera(camera)
    >>> renderer = ProgressiveRenderer(256, 256)
    >>> renderer.render(64, batch_size=8)
    >>> renderer.save_image("scene.png")
"""

from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from pathtracer.core.integrator import (
    RenderSettings,
    clear_render_target,
    configure_integrator,
    get_normalized_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from pathtracer.preview.export import DEFAULT_GAMMA, apply_gamma, save_png

# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer owns the image size; the pixels live in the integrator's
    Taichi fields, so only one renderer is active at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int, settings: RenderSettings | None = None) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            settings: Integrator settings to apply; the current ones are
                kept if omitted.

        Raises:
            ValueError: If dimensions are invalid.
        """
        if settings is not None:
            configure_integrator(settings)
        self._width = width
        self._height = height
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def sample_count(self) -> int:
        """Number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Discard accumulated samples, keeping the image size."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Change the image size and discard accumulated samples."""
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples in batches, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples
        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add num_samples samples per pixel.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Called after each batch with
                (current_total_samples, target_total_samples).
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the image as a (height, width, 3) float32 array in [0, 1].

        Args:
            gamma: Gamma correction value. Default 1.0 (linear).
        """
        return apply_gamma(get_normalized_image_numpy(), gamma)

    def save_image(self, filepath: str | Path, gamma: float = DEFAULT_GAMMA) -> None:
        """Save the image as an 8-bit PNG."""
        save_png(get_normalized_image_numpy(), filepath, gamma=gamma)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
