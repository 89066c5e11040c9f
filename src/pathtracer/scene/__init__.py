"""Scene module: object and light registries, scene building and loading.

Components:
    intersection: Object registry, nearest-hit search and shadow test
    lights: Point and emissive light registry
    manager: SceneManager, the host-side scene builder
    loader: Scene description file parsing
"""

from .intersection import (
    MAX_OBJECTS,
    MAX_TRIANGLES,
    RAY_EPSILON,
    T_MAX,
    SceneHitRecord,
    clear_scene,
    get_object_count,
    is_point_in_shadow,
    nearest_hit,
)
from .lights import MAX_LIGHTS, clear_lights, get_light_count, sample_light
from .loader import build_scene_from_file
from .manager import LightInfo, LightType, ObjectInfo, SceneManager, ShapeType

__all__ = [
    "SceneHitRecord",
    "nearest_hit",
    "is_point_in_shadow",
    "clear_scene",
    "get_object_count",
    "MAX_OBJECTS",
    "MAX_TRIANGLES",
    "RAY_EPSILON",
    "T_MAX",
    "sample_light",
    "clear_lights",
    "get_light_count",
    "MAX_LIGHTS",
    "SceneManager",
    "ShapeType",
    "LightType",
    "ObjectInfo",
    "LightInfo",
    "build_scene_from_file",
]
