"""Triangle primitive used by triangle meshes.

Intersection uses the Moller-Trumbore algorithm, which solves for the ray
parameter and the barycentric coordinates in one pass without computing the
triangle's plane explicitly.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.triangle import Triangle, hit_triangle
    >>> # Use hit_triangle(origin, direction, tri, t_min, t_max) in a kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import cross, dot, next_random, normalize

from .sphere import HitRecord, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Determinant threshold below which the ray counts as parallel
DETERMINANT_EPSILON = 1e-10


@ti.dataclass
class Triangle:
    """A triangle given by its three vertices, wound counter-clockwise.

    The geometric normal is normalize(cross(v1 - v0, v2 - v0)).
    """

    v0: vec3
    v1: vec3
    v2: vec3


@ti.func
def hit_triangle(
    ray_origin: vec3,
    ray_direction: vec3,
    tri: Triangle,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Moller-Trumbore ray-triangle intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        tri: The triangle to test.
        t_min: Hits at or below this parameter are ignored.
        t_max: Hits at or beyond this parameter are ignored.

    Returns:
        A HitRecord; the normal faces the incoming ray.
    """
    result = make_miss_record()

    edge1 = tri.v1 - tri.v0
    edge2 = tri.v2 - tri.v0
    p = cross(ray_direction, edge2)
    det = dot(edge1, p)

    if ti.abs(det) > DETERMINANT_EPSILON:
        inv_det = 1.0 / det
        s = ray_origin - tri.v0
        u = dot(s, p) * inv_det
        if u >= 0.0 and u <= 1.0:
            q = cross(s, edge1)
            v = dot(ray_direction, q) * inv_det
            if v >= 0.0 and u + v <= 1.0:
                t = dot(edge2, q) * inv_det
                if t > t_min and t < t_max:
                    normal = normalize(cross(edge1, edge2))
                    result.hit = 1
                    result.t = t
                    result.point = ray_origin + t * ray_direction
                    if dot(ray_direction, normal) > 0.0:
                        result.front_face = 0
                        result.normal = -normal
                    else:
                        result.front_face = 1
                        result.normal = normal

    return result


@ti.func
def sample_triangle_surface(tri: Triangle, state: ti.u32):
    """Pick a uniformly distributed point on the triangle.

    Uses the square-root warp b0 = 1 - sqrt(a), b1 = b * sqrt(a).

    Returns:
        A tuple (point, new_state).
    """
    a, s = next_random(state)
    b, s2 = next_random(s)
    sqrt_a = ti.sqrt(a)
    b0 = 1.0 - sqrt_a
    b1 = b * sqrt_a
    point = b0 * tri.v0 + b1 * tri.v1 + (1.0 - b0 - b1) * tri.v2
    return point, s2
