"""Ray data structure, vector utilities and random sampling for path tracing.

This module provides the fundamental Ray dataclass, the vector helpers used by
the shading code, and the stochastic building blocks of the Monte Carlo
estimator:

- An explicit per-path random state (xorshift32 seeded through a Wang hash).
  Every stochastic function takes the state and returns the advanced state, so
  a render is reproducible from its seed and no generator is shared between
  parallel pixels.
- Cosine-weighted hemisphere sampling about an arbitrary normal.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type aliases using Taichi's math module
vec3 = tm.vec3
vec4 = tm.vec4
mat4 = tm.mat4

# Canonical up axis of the hemisphere sampler's local frame
HEMISPHERE_UP = (0.0, 1.0, 0.0)

# Tolerance on dot(up, normal) for treating a normal as (anti-)parallel to up
PARALLEL_EPSILON = 1e-6

# Wang hash constants
_WANG_XOR = 61
_WANG_MUL_A = 9
_WANG_MUL_B = 0x27D4EB2D

# Odd multipliers used to mix seed, pixel and sample into one hash key
_SEED_MIX = 1973
_PIXEL_MIX = 9277
_SAMPLE_MIX = 26699

# 24-bit mantissa scale for converting random bits to [0, 1)
_MANTISSA_MASK = 0xFFFFFF
_MANTISSA_SCALE = 1.0 / 16777216.0


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). World-space rays
            are normalized; rays transformed into an object's local frame are
            not, so that the parameter t means the same distance in both.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length."""
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def transform_point(matrix: mat4, p: vec3) -> vec3:
    """Apply a 4x4 affine transform to a point (w = 1)."""
    h = matrix @ vec4(p.x, p.y, p.z, 1.0)
    return vec3(h.x, h.y, h.z)


@ti.func
def transform_direction(matrix: mat4, d: vec3) -> vec3:
    """Apply a 4x4 affine transform to a direction (w = 0).

    The result is not renormalized.
    """
    h = matrix @ vec4(d.x, d.y, d.z, 0.0)
    return vec3(h.x, h.y, h.z)


# =============================================================================
# Random Source
# =============================================================================


@ti.func
def wang_hash(key: ti.u32) -> ti.u32:
    """Scramble a 32-bit key with Thomas Wang's integer hash."""
    x = key
    x = (x ^ ti.cast(_WANG_XOR, ti.u32)) ^ (x >> ti.cast(16, ti.u32))
    x = x * ti.cast(_WANG_MUL_A, ti.u32)
    x = x ^ (x >> ti.cast(4, ti.u32))
    x = x * ti.cast(_WANG_MUL_B, ti.u32)
    x = x ^ (x >> ti.cast(15, ti.u32))
    return x


@ti.func
def init_rng(seed: ti.u32, pixel_index: ti.u32, sample_index: ti.u32) -> ti.u32:
    """Derive the initial random state for one path.

    Distinct (seed, pixel, sample) triples give decorrelated streams; the same
    triple always gives the same stream.

    Args:
        seed: Global render seed.
        pixel_index: Flattened pixel index.
        sample_index: Index of the sample within the pixel.

    Returns:
        A non-zero xorshift32 state.
    """
    key = (
        seed * ti.cast(_SEED_MIX, ti.u32)
        + pixel_index * ti.cast(_PIXEL_MIX, ti.u32)
        + sample_index * ti.cast(_SAMPLE_MIX, ti.u32)
    )
    state = wang_hash(wang_hash(key) ^ seed)
    if state == ti.cast(0, ti.u32):
        state = ti.cast(1, ti.u32)
    return state


@ti.func
def next_random(state: ti.u32):
    """Draw a uniform float in [0, 1) and advance the random state.

    Args:
        state: Current xorshift32 state (must be non-zero).

    Returns:
        A tuple (value, new_state).
    """
    x = state
    x = x ^ (x << ti.cast(13, ti.u32))
    x = x ^ (x >> ti.cast(17, ti.u32))
    x = x ^ (x << ti.cast(5, ti.u32))
    value = ti.cast(x & ti.cast(_MANTISSA_MASK, ti.u32), ti.f32) * _MANTISSA_SCALE
    return value, x


# =============================================================================
# Hemisphere Sampling
# =============================================================================


@ti.func
def cosine_direction_from_samples(u: ti.f32, v: ti.f32) -> vec3:
    """Map two uniform samples to a cosine-weighted direction about +y.

    Points are drawn uniformly on the unit disk and projected up onto the
    hemisphere, which gives PDF = cos(theta) / pi.

    Args:
        u: Uniform sample in [0, 1), controls the polar angle.
        v: Uniform sample in [0, 1), controls the azimuth.

    Returns:
        A unit direction in the canonical frame whose up axis is (0, 1, 0).
    """
    r = ti.sqrt(u)
    theta = 2.0 * tm.pi * v
    return vec3(r * ti.cos(theta), ti.sqrt(ti.max(0.0, 1.0 - u)), r * ti.sin(theta))


@ti.func
def rotate_to_normal(local_dir: vec3, normal: vec3) -> vec3:
    """Rotate a direction from the canonical +y frame into a normal's frame.

    Rotates by the angle between (0, 1, 0) and the normal about their cross
    product (Rodrigues' formula). Parallel normals leave the direction
    unchanged; anti-parallel normals negate it.

    Args:
        local_dir: Direction expressed about the canonical up axis.
        normal: Target unit normal.

    Returns:
        The rotated direction.
    """
    up = vec3(HEMISPHERE_UP[0], HEMISPHERE_UP[1], HEMISPHERE_UP[2])
    cos_angle = tm.dot(up, normal)
    result = local_dir

    if cos_angle <= -1.0 + PARALLEL_EPSILON:
        result = -local_dir
    elif cos_angle < 1.0 - PARALLEL_EPSILON:
        axis = tm.cross(up, normal)
        sin_angle = tm.length(axis)
        axis = axis / sin_angle
        result = (
            local_dir * cos_angle
            + tm.cross(axis, local_dir) * sin_angle
            + axis * tm.dot(axis, local_dir) * (1.0 - cos_angle)
        )

    return result


@ti.func
def sample_hemisphere(normal: vec3, state: ti.u32):
    """Cosine-weighted random direction in the hemisphere about a normal.

    Args:
        normal: The unit surface normal.
        state: Current random state.

    Returns:
        A tuple (direction, new_state). dot(direction, normal) >= 0.
    """
    u, s = next_random(state)
    v, s2 = next_random(s)
    direction = rotate_to_normal(cosine_direction_from_samples(u, v), normal)
    return direction, s2
