"""Image output utilities.

Example:
    >>> from pathtracer.preview import save_png
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(256, 256)
    >>> renderer.render(16)
    >>> save_png(renderer.get_image_numpy(), "output.png", gamma=2.2)
"""

from pathtracer.preview.export import (
    DEFAULT_GAMMA,
    apply_gamma,
    compute_rmse,
    image_to_uint8,
    save_png,
)

__all__ = [
    "DEFAULT_GAMMA",
    "apply_gamma",
    "image_to_uint8",
    "save_png",
    "compute_rmse",
]
