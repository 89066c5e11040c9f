"""Geometry module for shape primitives and transforms.

Components:
    sphere: Sphere primitive and the shared HitRecord
    plane: Infinite y = 0 plane
    square: Parallelogram primitive and the unit square of scene objects
    triangle: Moller-Trumbore triangle used by meshes
    transform: Host-side T @ R @ S placement matrices (NumPy)
    mesh: Wavefront OBJ loading

Intersection routines are Taichi functions working in the primitive's local
frame. They only report hits strictly inside (t_min, t_max), and their
normals face the incoming ray.
"""

from .mesh import load_obj, parse_obj
from .plane import hit_plane
from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, sample_sphere_surface
from .square import Quad, hit_quad, sample_quad_surface, unit_square
from .transform import Transform, normal_matrix, rotation_matrix, scale_matrix, translation_matrix
from .triangle import Triangle, hit_triangle, sample_triangle_surface

__all__ = [
    "HitRecord",
    "make_miss_record",
    "Sphere",
    "hit_sphere",
    "sample_sphere_surface",
    "hit_plane",
    "Quad",
    "hit_quad",
    "unit_square",
    "sample_quad_surface",
    "Triangle",
    "hit_triangle",
    "sample_triangle_surface",
    "Transform",
    "translation_matrix",
    "rotation_matrix",
    "scale_matrix",
    "normal_matrix",
    "load_obj",
    "parse_obj",
]
