"""Square primitive built on a general ray-quad intersection.

A scene-object square is the unit square lying in its local y = 0 plane,
centred on the origin (x and z in [-0.5, 0.5]) with normal +y. Its size and
placement come from the object's transform.

The underlying Quad is a parallelogram with corner Q and edges u, v, spanning
Q, Q+u, Q+v, Q+u+v. Intersection is the parametric plane test:
1. Find where the ray meets the quad's plane.
2. Express the hit in (alpha, beta) edge coordinates and bounds-check them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.square import hit_quad, unit_square
    >>> # Use hit_quad(origin, direction, unit_square(), t_min, t_max) in a kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import next_random

from .sphere import HitRecord, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Local-frame layout of the unit square. cross(u, v) = +y.
SQUARE_CORNER = (-0.5, 0.0, -0.5)
SQUARE_EDGE_U = (0.0, 0.0, 1.0)
SQUARE_EDGE_V = (1.0, 0.0, 0.0)


@ti.dataclass
class Quad:
    """A parallelogram defined by a corner point and two edge vectors.

    Attributes:
        Q: The corner point of the quad (vec3).
        u: Edge vector from Q to adjacent corner (vec3).
        v: Edge vector from Q to other adjacent corner (vec3).
    """

    Q: vec3
    u: vec3
    v: vec3


@ti.func
def unit_square() -> Quad:
    """The local-frame quad of a square scene object."""
    return Quad(
        Q=vec3(SQUARE_CORNER[0], SQUARE_CORNER[1], SQUARE_CORNER[2]),
        u=vec3(SQUARE_EDGE_U[0], SQUARE_EDGE_U[1], SQUARE_EDGE_U[2]),
        v=vec3(SQUARE_EDGE_V[0], SQUARE_EDGE_V[1], SQUARE_EDGE_V[2]),
    )


@ti.func
def _compute_quad_frame(quad: Quad):
    """Compute the quad's plane and the helpers for its edge coordinates.

    With n = u x v (unnormalized), the vectors
        w_u = (v x n) / dot(n, n),  w_v = (n x u) / dot(n, n)
    satisfy alpha = dot(w_u, P - Q) and beta = dot(w_v, P - Q).

    Returns:
        Tuple of (normal, d, w_u, w_v); d is the plane constant dot(normal, Q).
    """
    n = tm.cross(quad.u, quad.v)
    normal = tm.normalize(n)
    d = tm.dot(normal, quad.Q)

    n_dot_n = tm.dot(n, n)

    # Degenerate quad (u parallel to v) never reports a hit
    w_u = vec3(0.0, 0.0, 0.0)
    w_v = vec3(0.0, 0.0, 0.0)

    if n_dot_n > 1e-10:
        w_u = tm.cross(quad.v, n) / n_dot_n
        w_v = tm.cross(n, quad.u) / n_dot_n

    return normal, d, w_u, w_v


@ti.func
def hit_quad(
    ray_origin: vec3,
    ray_direction: vec3,
    quad: Quad,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-quad intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        quad: The quad to test intersection against.
        t_min: Hits at or below this parameter are ignored.
        t_max: Hits at or beyond this parameter are ignored.

    Returns:
        A HitRecord; check the hit field.
    """
    normal, d, w_u, w_v = _compute_quad_frame(quad)
    denom = tm.dot(normal, ray_direction)

    result = make_miss_record()

    # Rays parallel to the plane never hit
    if ti.abs(denom) > 1e-8:
        t = (d - tm.dot(normal, ray_origin)) / denom

        if t > t_min and t < t_max:
            hit_point = ray_origin + t * ray_direction
            p_minus_q = hit_point - quad.Q
            alpha = tm.dot(w_u, p_minus_q)
            beta = tm.dot(w_v, p_minus_q)

            if alpha >= 0.0 and alpha <= 1.0 and beta >= 0.0 and beta <= 1.0:
                result.hit = 1
                result.t = t
                result.point = hit_point
                if denom > 0.0:
                    result.front_face = 0
                    result.normal = -normal
                else:
                    result.front_face = 1
                    result.normal = normal

    return result


@ti.func
def sample_quad_surface(quad: Quad, state: ti.u32):
    """Pick a uniformly distributed point on the quad.

    Returns:
        A tuple (point, new_state).
    """
    a, s = next_random(state)
    b, s2 = next_random(s)
    return quad.Q + a * quad.u + b * quad.v, s2
