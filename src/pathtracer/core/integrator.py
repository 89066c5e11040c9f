"""Recursive Blinn-Phong path tracer.

compute_ray_color estimates the radiance arriving along a ray. At the
nearest hit it adds
    - the surface emission, on camera rays and mirror-reflected rays only
      (diffuse bounces already see emitters through direct lighting);
    - a mirror reflection, weighted by ks * reflective;
    - Blinn-Phong direct lighting from every unshadowed light, weighted by
      1 - reflective;
    - one cosine-weighted global-illumination bounce, weighted by kd;
and clamps the sum to [0, 1] per channel.

Taichi functions cannot recurse at runtime, so the recursion is unrolled at
compile time: depth and max_depth are template arguments and each level is
compiled as its own copy of the function. Both bounce kinds share a single
recursive call site inside a two-iteration loop, so the generated code grows
linearly with the maximum depth. max_recursion_depth is bounded to
MAX_RECURSION_DEPTH_LIMIT for that reason.

Randomness is an explicit per-path state (see core.ray), seeded from the
render seed, the pixel and the sample index, so a render is reproducible.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import (
    ...     RenderSettings, configure_integrator, render_image, setup_render_target
    ... )
    >>> configure_integrator(RenderSettings(max_recursion_depth=3, seed=7))
    >>> setup_render_target(320, 240)
    >>> render_image(num_samples=16)
"""

import logging
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.camera.pinhole import get_ray_jittered
from pathtracer.core.ray import init_rng, reflect, sample_hemisphere
from pathtracer.materials.blinn_phong import (
    material_kd,
    material_ke,
    material_ks,
    material_reflective,
    shade_blinn_phong,
)
from pathtracer.materials.lambertian import lambertian_bounce_weight
from pathtracer.scene.intersection import (
    RAY_EPSILON,
    T_MAX,
    is_point_in_shadow,
    nearest_hit,
    object_material_ids,
)
from pathtracer.scene.lights import num_lights, sample_light

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Reflectivity below this is treated as 0, above 1 - this as 1
REFLECTIVE_THRESHOLD = 1e-3

# Every recursion level is compiled in, so the depth is capped
MAX_RECURSION_DEPTH_LIMIT = 16

DEFAULT_MAX_RECURSION_DEPTH = 3


# =============================================================================
# Integrator Settings
# =============================================================================


@dataclass
class RenderSettings:
    """Scene-wide parameters of the integrator.

    Attributes:
        max_recursion_depth: Deepest recursion level that is still shaded;
            rays at a greater depth return the background colour.
        background_color: Radiance of rays that escape the scene.
        seed: Global random seed. Equal seeds give equal images.
    """

    max_recursion_depth: int = DEFAULT_MAX_RECURSION_DEPTH
    background_color: tuple[float, float, float] = (0.0, 0.0, 0.0)
    seed: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.max_recursion_depth <= MAX_RECURSION_DEPTH_LIMIT:
            raise ValueError(
                f"max_recursion_depth must be in [0, {MAX_RECURSION_DEPTH_LIMIT}], "
                f"got {self.max_recursion_depth}"
            )
        if any(not 0.0 <= c <= 1.0 for c in self.background_color):
            raise ValueError(f"background_color channels must be in [0, 1], got {self.background_color}")
        if not 0 <= self.seed < 2**32:
            raise ValueError(f"seed must fit in 32 unsigned bits, got {self.seed}")


_settings = RenderSettings()

_background_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_seed = ti.field(dtype=ti.u32, shape=())


def configure_integrator(settings: RenderSettings) -> None:
    """Apply integrator settings for subsequent renders and traces."""
    global _settings
    _settings = settings
    _background_color[None] = list(settings.background_color)
    _seed[None] = settings.seed


def get_render_settings() -> RenderSettings:
    """Get the settings currently in effect."""
    return _settings


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color accumulation buffer and per-pixel sample count
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Recursive Radiance
# =============================================================================


@ti.func
def compute_ray_color(
    origin: vec3,
    direction: vec3,
    depth: ti.template(),
    max_depth: ti.template(),
    specular_ray: ti.i32,
    rng: ti.u32,
):
    """Estimate the radiance arriving at origin from direction.

    Args:
        origin: World-space ray origin.
        direction: World-space unit ray direction.
        depth: Recursion level of this ray (0 for camera rays).
        max_depth: Deepest level that is still shaded.
        specular_ray: 1 if the ray comes from a mirror reflection.
        rng: Current random state.

    Returns:
        A tuple (color, new_state); each channel of color is in [0, 1].
    """
    state = rng
    color = _background_color[None]

    if ti.static(depth <= max_depth):
        rec = nearest_hit(origin, direction, RAY_EPSILON, T_MAX)

        if rec.hit == 1:
            point = rec.point
            normal = rec.normal
            mat = object_material_ids[rec.object_id]
            kd = material_kd[mat]
            ks = material_ks[mat]
            reflective = material_reflective[mat]

            color = vec3(0.0, 0.0, 0.0)

            if ti.static(depth == 0):
                color += material_ke[mat]
            else:
                if specular_ray == 1:
                    color += material_ke[mat]

            # Direct lighting; the sampled light position serves both the
            # shadow test and the shading
            if reflective < 1.0 - REFLECTIVE_THRESHOLD:
                for light in range(num_lights[None]):
                    light_pos, radiance, owner, state = sample_light(light, state)
                    if is_point_in_shadow(point, light_pos, owner) == 0:
                        color += (1.0 - reflective) * shade_blinn_phong(
                            mat, direction, point, normal, light_pos, radiance
                        )

            # Bounce 0 is the mirror reflection, bounce 1 global illumination
            for bounce in range(2):
                next_direction = vec3(0.0, 0.0, 0.0)
                weight = vec3(0.0, 0.0, 0.0)
                next_specular = 0
                trace = 0

                if bounce == 0:
                    if reflective > REFLECTIVE_THRESHOLD:
                        next_direction = reflect(direction, normal)
                        weight = ks * reflective
                        next_specular = 1
                        trace = 1
                else:
                    next_direction, state = sample_hemisphere(normal, state)
                    weight = lambertian_bounce_weight(kd)
                    trace = 1

                if trace == 1:
                    bounce_color, state = compute_ray_color(
                        point, next_direction, depth + 1, max_depth, next_specular, state
                    )
                    color += weight * bounce_color

            color = tm.clamp(color, 0.0, 1.0)

    return color, state


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.template()):
    """Trace one camera path per pixel and fold it into the running average."""
    for i, j in ti.ndrange(width, height):
        pixel_index = ti.cast(j * width + i, ti.u32)
        sample_index = ti.cast(_sample_count[i, j], ti.u32)
        state = init_rng(_seed[None], pixel_index, sample_index)

        ray, state = get_ray_jittered(i, j, width, height, state)
        color, state = compute_ray_color(ray.origin, ray.direction, 0, max_depth, 0, state)

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _sample_count[i, j] += 1
        n = _sample_count[i, j]

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


_probe_color = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _trace_single_ray(
    origin: vec3,
    direction: vec3,
    sample_index: ti.u32,
    max_depth: ti.template(),
):
    # Single-iteration outer loop keeps the scene loops serial
    for _ in range(1):
        state = init_rng(_seed[None], ti.cast(0, ti.u32), sample_index)
        color, state = compute_ray_color(origin, tm.normalize(direction), 0, max_depth, 0, state)
        _probe_color[None] = color


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.u32,
    max_depth: ti.template(),
):
    for _ in range(1):
        pixel_index = ti.cast(pixel_j * width + pixel_i, ti.u32)
        state = init_rng(_seed[None], pixel_index, sample_index)
        ray, state = get_ray_jittered(pixel_i, pixel_j, width, height, state)
        color, state = compute_ray_color(ray.origin, ray.direction, 0, max_depth, 0, state)
        _probe_color[None] = color


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    sample_index: int = 0,
) -> tuple[float, float, float]:
    """Compute the colour seen along one world-space ray.

    Does not need a render target or a camera.

    Args:
        origin: Ray origin.
        direction: Ray direction; normalized before tracing.
        sample_index: Selects the random stream, together with the seed.

    Returns:
        Tuple of (R, G, B), each in [0, 1].
    """
    _trace_single_ray(vec3(*origin), vec3(*direction), sample_index, _settings.max_recursion_depth)
    color = _probe_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def render_sample(pixel_i: int, pixel_j: int, sample_index: int = 0) -> tuple[float, float, float]:
    """Render a single camera sample for a specific pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        sample_index: Index of the sample within the pixel.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    _render_single_pixel(
        pixel_i, pixel_j, width, height, sample_index, _settings.max_recursion_depth
    )
    color = _probe_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1) -> None:
    """Accumulate num_samples more samples into every pixel.

    Can be called repeatedly to refine the image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    logger.debug(
        "Rendering %d spp at %dx%d, max depth %d",
        num_samples,
        width,
        height,
        _settings.max_recursion_depth,
    )
    for _ in range(num_samples):
        _render_one_spp(width, height, _settings.max_recursion_depth)


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def get_normalized_image_numpy() -> np.ndarray:
    """Get the rendered image as a NumPy array.

    Returns:
        Array of shape (height, width, 3), dtype float32, values in [0, 1],
        first row at the top of the image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    image = _color_buffer.to_numpy()[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (Taichi uses bottom-left origin, images use top-left)
    image = np.flipud(image)

    return np.clip(image, 0.0, 1.0).astype(np.float32)
