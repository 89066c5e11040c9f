"""Scene object registry and scene-level ray queries.

Every scene object is a canonical primitive in its own local frame plus a
local-to-world matrix. The registry stores, per object, the shape tag, the
matrix, its inverse (world to local, for rays) and its inverse transpose (for
normals), the material index, and for meshes the range of triangles it owns.
Triangles of all meshes share one pool of vertex fields.

Rays are moved into an object's local frame without renormalizing the
direction, so the parameter t found there is the same distance along the
world ray. That lets the nearest-hit search shrink t_max across objects of
different scale.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> import numpy as np
    >>> from pathtracer.scene.intersection import SHAPE_SPHERE, add_object, clear_scene
    >>> clear_scene()
    >>> add_object(SHAPE_SPHERE, np.eye(4), material_id=0)
    >>> # Use nearest_hit / is_point_in_shadow within a Taichi kernel
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import next_random, transform_direction, transform_point
from pathtracer.geometry.plane import hit_plane
from pathtracer.geometry.sphere import (
    HitRecord,
    Sphere,
    hit_sphere,
    make_miss_record,
    sample_sphere_surface,
)
from pathtracer.geometry.square import hit_quad, sample_quad_surface, unit_square
from pathtracer.geometry.triangle import Triangle, hit_triangle, sample_triangle_surface
from pathtracer.geometry.transform import normal_matrix

# Type aliases using Taichi's math module
vec3 = tm.vec3
vec4 = tm.vec4

# Shape tags
SHAPE_SPHERE = 0
SHAPE_PLANE = 1
SHAPE_SQUARE = 2
SHAPE_TRIANGLE_MESH = 3

# Minimum hit distance; keeps secondary rays off the surface they start on
RAY_EPSILON = 1e-4

# Upper bound for primary and secondary ray searches
T_MAX = 1e10


@ti.dataclass
class SceneHitRecord:
    """Nearest intersection of a ray with the scene.

    Attributes:
        hit: 1 if any object was hit, 0 otherwise.
        t: Distance along the world ray. Only valid if hit == 1.
        point: World-space hit point, origin + t * direction.
        normal: World-space unit normal facing the incoming ray.
        local_normal: The same normal in the object's local frame.
        object_id: Registry index of the hit object, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    local_normal: vec3
    object_id: ti.i32


# Maximum number of objects and mesh triangles supported in the scene
MAX_OBJECTS = 1024
MAX_TRIANGLES = 65536

# Object storage: Structure of Arrays layout
object_shapes = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_to_world = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_OBJECTS)
object_to_local = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_OBJECTS)
object_normal_matrices = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_OBJECTS)
object_material_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_triangle_starts = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_triangle_counts = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())

# Triangle pool shared by all meshes, in local mesh coordinates
triangle_v0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_v1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_v2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all objects and triangles.

    Only the counts are reset; stale field data is overwritten by later adds.
    """
    num_objects[None] = 0
    num_triangles[None] = 0


def add_triangles(triangles: npt.ArrayLike) -> tuple[int, int]:
    """Append mesh triangles to the shared pool.

    Args:
        triangles: Array of shape (n, 3, 3), three local-frame vertices each.

    Returns:
        Tuple of (first triangle index, triangle count).

    Raises:
        ValueError: If the array has the wrong shape or is empty.
        RuntimeError: If the triangle pool would overflow.
    """
    tris = np.asarray(triangles, dtype=np.float32)
    if tris.ndim != 3 or tris.shape[1:] != (3, 3):
        raise ValueError(f"Expected triangles of shape (n, 3, 3), got {tris.shape}")
    if len(tris) == 0:
        raise ValueError("A mesh needs at least one triangle")

    start = num_triangles[None]
    if start + len(tris) > MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")

    for k, (a, b, c) in enumerate(tris):
        triangle_v0[start + k] = vec3(*a.tolist())
        triangle_v1[start + k] = vec3(*b.tolist())
        triangle_v2[start + k] = vec3(*c.tolist())
    num_triangles[None] = start + len(tris)
    return start, len(tris)


def add_object(
    shape: int,
    local_to_world: npt.ArrayLike,
    material_id: int = 0,
    triangle_start: int = 0,
    triangle_count: int = 0,
) -> int:
    """Add an object to the scene.

    The world-to-local and normal matrices are derived here, once.

    Args:
        shape: One of the SHAPE_* tags.
        local_to_world: 4x4 placement matrix.
        material_id: Index into the material registry.
        triangle_start: First triangle of a mesh in the shared pool.
        triangle_count: Number of triangles of a mesh.

    Returns:
        The index of the added object.

    Raises:
        ValueError: If the shape tag, matrix or triangle range is invalid.
        RuntimeError: If the maximum number of objects is exceeded.
    """
    if shape not in (SHAPE_SPHERE, SHAPE_PLANE, SHAPE_SQUARE, SHAPE_TRIANGLE_MESH):
        raise ValueError(f"Unknown shape tag {shape}")
    if shape == SHAPE_TRIANGLE_MESH and triangle_count <= 0:
        raise ValueError("A triangle mesh object needs a non-empty triangle range")

    matrix = np.asarray(local_to_world, dtype=np.float64)
    if matrix.shape != (4, 4):
        raise ValueError(f"Expected a 4x4 matrix, got shape {matrix.shape}")
    try:
        inverse = np.linalg.inv(matrix)
    except np.linalg.LinAlgError as e:
        raise ValueError("Object transform is not invertible") from e

    idx = num_objects[None]
    if idx >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")

    object_shapes[idx] = shape
    object_to_world[idx] = ti.Matrix(matrix.tolist())
    object_to_local[idx] = ti.Matrix(inverse.tolist())
    object_normal_matrices[idx] = ti.Matrix(normal_matrix(matrix).tolist())
    object_material_ids[idx] = material_id
    object_triangle_starts[idx] = triangle_start
    object_triangle_counts[idx] = triangle_count
    num_objects[None] = idx + 1
    return idx


def get_object_count() -> int:
    """Get the number of objects in the scene."""
    return int(num_objects[None])


def get_triangle_count() -> int:
    """Get the number of triangles in the shared pool."""
    return int(num_triangles[None])


@ti.func
def _hit_mesh(
    obj: ti.i32,
    local_origin: vec3,
    local_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Nearest hit among the triangles owned by a mesh object."""
    start = object_triangle_starts[obj]
    count = object_triangle_counts[obj]

    closest_t = t_max
    result = hit_triangle(
        local_origin,
        local_direction,
        Triangle(v0=triangle_v0[start], v1=triangle_v1[start], v2=triangle_v2[start]),
        t_min,
        closest_t,
    )
    if result.hit == 1:
        closest_t = result.t

    for k in range(start + 1, start + count):
        tri = Triangle(v0=triangle_v0[k], v1=triangle_v1[k], v2=triangle_v2[k])
        rec = hit_triangle(local_origin, local_direction, tri, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result


@ti.func
def intersect_object(
    obj: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect a world-space ray with one object, in its local frame.

    Args:
        obj: Object index.
        ray_origin: World-space ray origin.
        ray_direction: World-space ray direction.
        t_min: Hits at or below this distance are ignored.
        t_max: Hits at or beyond this distance are ignored.

    Returns:
        A HitRecord with local-frame point and normal; t is the world distance.
    """
    to_local = object_to_local[obj]
    local_origin = transform_point(to_local, ray_origin)
    local_direction = transform_direction(to_local, ray_direction)

    shape = object_shapes[obj]
    result = make_miss_record()

    if shape == SHAPE_SPHERE:
        unit = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
        result = hit_sphere(local_origin, local_direction, unit, t_min, t_max)
    elif shape == SHAPE_SQUARE:
        result = hit_quad(local_origin, local_direction, unit_square(), t_min, t_max)
    elif shape == SHAPE_PLANE:
        result = hit_plane(local_origin, local_direction, t_min, t_max)
    elif shape == SHAPE_TRIANGLE_MESH:
        result = _hit_mesh(obj, local_origin, local_direction, t_min, t_max)

    return result


@ti.func
def world_normal(obj: ti.i32, local_normal: vec3) -> vec3:
    """Carry a local normal to world space with the object's normal matrix."""
    n = object_normal_matrices[obj] @ vec4(local_normal.x, local_normal.y, local_normal.z, 0.0)
    return tm.normalize(vec3(n.x, n.y, n.z))


@ti.func
def nearest_hit(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the closest object along a ray.

    Objects are tested in registry order and t_max shrinks to the best t so
    far, so on an exact tie the earlier object wins.

    Args:
        ray_origin: World-space ray origin.
        ray_direction: World-space unit ray direction.
        t_min: Minimum distance of a valid hit.
        t_max: Maximum distance of a valid hit.

    Returns:
        A SceneHitRecord; object_id is -1 on a miss.
    """
    closest_t = t_max
    hit_id = -1
    local_n = vec3(0.0, 0.0, 0.0)

    for obj in range(num_objects[None]):
        rec = intersect_object(obj, ray_origin, ray_direction, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            hit_id = obj
            local_n = rec.normal

    result = SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        local_normal=vec3(0.0, 0.0, 0.0),
        object_id=-1,
    )
    if hit_id >= 0:
        result.hit = 1
        result.t = closest_t
        result.point = ray_origin + closest_t * ray_direction
        result.local_normal = local_n
        result.normal = world_normal(hit_id, local_n)
        result.object_id = hit_id

    return result


@ti.func
def is_point_in_shadow(point: vec3, light_position: vec3, owner: ti.i32) -> ti.i32:
    """Test whether anything blocks the segment from a point to a light.

    The object the light belongs to (owner, -1 for none) never occludes its
    own light. Objects after the first occluder are not tested.

    Args:
        point: World-space shading point.
        light_position: World-space light position.
        owner: Index of the light's object, or -1.

    Returns:
        1 if an occluder lies strictly between the point and the light.
    """
    to_light = light_position - point
    distance = tm.length(to_light)

    in_shadow = 0
    if distance > RAY_EPSILON:
        direction = to_light / distance
        for obj in range(num_objects[None]):
            # Taichi has no break in ti.func loops; skip once shadowed
            if in_shadow == 0 and obj != owner:
                rec = intersect_object(obj, point, direction, RAY_EPSILON, distance)
                if rec.hit == 1:
                    in_shadow = 1

    return in_shadow


@ti.func
def sample_object_surface(obj: ti.i32, state: ti.u32):
    """Pick a random world-space point on an object's surface.

    Spheres, squares and mesh triangles are sampled uniformly in their local
    frame. A plane has no finite area, so its object origin is returned.

    Args:
        obj: Object index.
        state: Current random state.

    Returns:
        A tuple (point, new_state).
    """
    shape = object_shapes[obj]
    local_point = vec3(0.0, 0.0, 0.0)
    s = state

    if shape == SHAPE_SPHERE:
        unit = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
        local_point, s = sample_sphere_surface(unit, s)
    elif shape == SHAPE_SQUARE:
        local_point, s = sample_quad_surface(unit_square(), s)
    elif shape == SHAPE_TRIANGLE_MESH:
        count = object_triangle_counts[obj]
        u, s1 = next_random(s)
        k = object_triangle_starts[obj] + ti.min(ti.cast(u * count, ti.i32), count - 1)
        tri = Triangle(v0=triangle_v0[k], v1=triangle_v1[k], v2=triangle_v2[k])
        local_point, s = sample_triangle_surface(tri, s1)

    return transform_point(object_to_world[obj], local_point), s
