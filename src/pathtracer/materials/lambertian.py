"""Lambertian BRDF used for the global-illumination bounce.

The Lambertian BRDF is constant over all direction pairs:
    f_r(wi, wo) = kd / pi

Indirect light is sampled with a cosine-weighted hemisphere distribution,
    pdf(wi) = cos(theta) / pi
so the one-sample estimator f_r * L * cos(theta) / pdf reduces to
    (kd / pi) * pi * L = kd * L.
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def eval_lambertian(kd: vec3) -> vec3:
    """Evaluate the Lambertian BRDF kd / pi (without the cosine term)."""
    return kd / tm.pi


@ti.func
def lambertian_bounce_weight(kd: vec3) -> vec3:
    """Throughput of one cosine-weighted Lambertian bounce.

    Multiplies the BRDF by the reciprocal of the pdf's normalizing factor
    (pi). cos(theta) appears in both the rendering equation and the pdf and
    cancels, so it is not applied here.

    Args:
        kd: Diffuse coefficient (RGB).

    Returns:
        kd, as BRDF * pi.
    """
    return eval_lambertian(kd) * tm.pi
