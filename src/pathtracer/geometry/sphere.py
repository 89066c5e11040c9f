"""Sphere primitive with robust ray-sphere intersection.

Scene objects are unit spheres centred at the origin of their local frame;
position, rotation and (possibly non-uniform) scale come from the object's
transform. The intersection routine itself accepts any centre and radius.

The roots are found with the robust quadratic formula from Ray Tracing Gems,
which avoids catastrophic cancellation when b^2 is nearly equal to 4ac.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, 0), radius=1.0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import next_random

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection in the primitive's frame.

    Shared by every primitive type.

    Attributes:
        hit: 1 if the ray intersected the primitive inside (t_min, t_max).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit surface normal, flipped to face the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the ray hit the outward-facing side, 0 otherwise.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 with the numerically stable formulation.

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray, fall back to the textbook formula
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Solves |ray_origin + t * ray_direction - center|^2 = radius^2 in the
    half-b form a*t^2 + 2*h*t + c = 0 with
    a = dot(d, d), h = dot(d, oc), c = dot(oc, oc) - r^2, oc = origin - center.
    The direction does not need to be normalized, which lets callers pass
    rays transformed into a scaled local frame.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        sphere: The sphere to test intersection against.
        t_min: Hits at or below this parameter are ignored.
        t_max: Hits at or beyond this parameter are ignored.

    Returns:
        A HitRecord; check the hit field.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    result = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        # Nearest root inside the open interval
        t = t0
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            hit_point = ray_origin + t * ray_direction
            outward_normal = (hit_point - sphere.center) / sphere.radius

            result.hit = 1
            result.t = t
            result.point = hit_point
            if tm.dot(ray_direction, outward_normal) > 0.0:
                result.front_face = 0
                result.normal = -outward_normal
            else:
                result.front_face = 1
                result.normal = outward_normal

    return result


@ti.func
def sample_sphere_surface(sphere: Sphere, state: ti.u32):
    """Pick a uniformly distributed point on the sphere's surface.

    Args:
        sphere: The sphere to sample.
        state: Current random state.

    Returns:
        A tuple (point, new_state).
    """
    u, s = next_random(state)
    v, s2 = next_random(s)
    z = 1.0 - 2.0 * u
    r = ti.sqrt(ti.max(0.0, 1.0 - z * z))
    phi = 2.0 * tm.pi * v
    direction = vec3(r * ti.cos(phi), r * ti.sin(phi), z)
    return sphere.center + sphere.radius * direction, s2
