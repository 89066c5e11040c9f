"""Core rendering module.

Components:
    ray: Ray structure, vector helpers, random source, hemisphere sampling
    integrator: Recursive radiance estimate, render target, render kernels
    progressive: Batched progressive rendering on top of the integrator
"""

from .ray import (
    Ray,
    cross,
    dot,
    init_rng,
    length,
    make_ray,
    next_random,
    normalize,
    ray_at,
    reflect,
    rotate_to_normal,
    sample_hemisphere,
    transform_direction,
    transform_point,
    vec3,
)

# integrator and progressive are NOT imported here to avoid circular imports.
# Import them directly from pathtracer.core.integrator / pathtracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "transform_point",
    "transform_direction",
    "init_rng",
    "next_random",
    "rotate_to_normal",
    "sample_hemisphere",
]
