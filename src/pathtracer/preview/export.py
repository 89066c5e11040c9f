"""Image export utilities for rendered images.

Rendered images are linear RGB in [0, 1]. Export gamma-encodes them
(default 2.2, an approximation of sRGB) and writes 8-bit PNGs with Pillow.

Example:
    >>> from pathtracer.preview.export import save_png
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(256, 256)
    >>> renderer.render(16)
    >>> save_png(renderer.get_image_numpy(), "output.png")
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

DEFAULT_GAMMA = 2.2


def apply_gamma(image: npt.NDArray[np.float32], gamma: float = DEFAULT_GAMMA) -> npt.NDArray[np.float32]:
    """Clamp to [0, 1] and raise to 1 / gamma.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    clamped = np.clip(image, 0.0, 1.0)
    if gamma == 1.0:
        return clamped.astype(np.float32)
    return np.power(clamped, 1.0 / gamma).astype(np.float32)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to gamma-encoded 8-bit.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value (default 2.2).

    Returns:
        Array of shape (H, W, 3) with dtype uint8.
    """
    encoded = apply_gamma(image, gamma)
    return np.rint(encoded * 255.0).astype(np.uint8)


def save_png(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Save a linear image as an 8-bit PNG.

    Args:
        image: Linear image array of shape (H, W, 3), top row first.
        filepath: Output file path.
        gamma: Gamma correction value (default 2.2).

    Raises:
        ValueError: If the image is not (H, W, 3) or gamma is not positive.
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")

    PILImage.fromarray(image_to_uint8(image, gamma=gamma)).save(filepath)
    logger.info("Wrote %dx%d image to %s", image.shape[1], image.shape[0], filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
