"""Infinite plane primitive.

A scene-object plane is the local y = 0 plane with normal +y. Rotation and
translation come from the object's transform; scale only matters through the
normal matrix.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.plane import hit_plane
    >>> # Use hit_plane(origin, direction, t_min, t_max) within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from .sphere import HitRecord, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rays closer to parallel than this never hit the plane
PARALLEL_EPSILON = 1e-8


@ti.func
def hit_plane(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for intersection with the local y = 0 plane.

    Solves origin.y + t * direction.y = 0.

    Args:
        ray_origin: The starting point of the ray (local frame).
        ray_direction: The direction of the ray (local frame, any length).
        t_min: Hits at or below this parameter are ignored.
        t_max: Hits at or beyond this parameter are ignored.

    Returns:
        A HitRecord whose normal is +y or -y, whichever faces the ray.
    """
    result = make_miss_record()

    if ti.abs(ray_direction.y) > PARALLEL_EPSILON:
        t = -ray_origin.y / ray_direction.y
        if t > t_min and t < t_max:
            result.hit = 1
            result.t = t
            result.point = ray_origin + t * ray_direction
            if ray_direction.y > 0.0:
                # Approaching from below
                result.front_face = 0
                result.normal = vec3(0.0, -1.0, 0.0)
            else:
                result.front_face = 1
                result.normal = vec3(0.0, 1.0, 0.0)

    return result
