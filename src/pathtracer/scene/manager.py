"""Scene manager coordinating objects, materials and lights.

The SceneManager is the host-side API for building a scene. Each call
uploads to the Taichi field registries (objects, triangles, materials,
lights) and keeps a Python-side record of what was added, so scenes can be
inspected by name after construction.

Any object whose material has a non-zero emission is also registered as an
emissive light named "<object name>_EmissiveLight".

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> from pathtracer.geometry.transform import Transform
    >>> from pathtracer.materials.blinn_phong import Material
    >>> scene = SceneManager()
    >>> scene.add_sphere("ball", Transform(position=(0, 1, -3)), Material(kd=(0.8, 0.2, 0.2)))
    >>> scene.add_plane("floor", Transform(), Material(kd=(0.5, 0.5, 0.5)))
    >>> scene.add_point_light("key", position=(0, 5, 0), intensity=1.0)
"""

import logging
from dataclasses import dataclass
from enum import IntEnum

import numpy as np
import numpy.typing as npt

from pathtracer.geometry.transform import Transform
from pathtracer.materials.blinn_phong import Material, add_material, clear_materials
from pathtracer.scene.intersection import (
    MAX_OBJECTS,
    SHAPE_PLANE,
    SHAPE_SPHERE,
    SHAPE_SQUARE,
    SHAPE_TRIANGLE_MESH,
    add_object,
    add_triangles,
    clear_scene,
    get_object_count,
)
from pathtracer.scene.lights import (
    LIGHT_EMISSIVE,
    LIGHT_POINT,
    MAX_LIGHTS,
    add_emissive_light,
    add_point_light,
    clear_lights,
    get_light_count,
)

logger = logging.getLogger(__name__)

EMISSIVE_LIGHT_SUFFIX = "_EmissiveLight"


class ShapeType(IntEnum):
    """Closed set of primitive shapes, matching the registry's shape tags."""

    SPHERE = SHAPE_SPHERE
    PLANE = SHAPE_PLANE
    SQUARE = SHAPE_SQUARE
    TRIANGLE_MESH = SHAPE_TRIANGLE_MESH


class LightType(IntEnum):
    """Kinds of light source."""

    POINT = LIGHT_POINT
    EMISSIVE = LIGHT_EMISSIVE


@dataclass
class ObjectInfo:
    """Information about an object in the scene.

    Attributes:
        object_index: The index in the object registry.
        name: The object's name.
        shape: The primitive shape.
        transform: Placement of the object.
        material: The object's material.
        material_id: The index in the material registry.
        triangle_count: Number of triangles (meshes only).
    """

    object_index: int
    name: str
    shape: ShapeType
    transform: Transform
    material: Material
    material_id: int
    triangle_count: int = 0


@dataclass
class LightInfo:
    """Information about a light in the scene.

    Attributes:
        light_index: The index in the light registry.
        name: The light's name.
        light_type: Point or emissive.
        intensity: Scalar brightness (1 for emissive lights).
        color: RGB colour.
        position: Position of a point light, None for emissive lights.
        owner: Index of the emitting object, -1 for point lights.
    """

    light_index: int
    name: str
    light_type: LightType
    intensity: float
    color: tuple[float, float, float]
    position: tuple[float, float, float] | None = None
    owner: int = -1


class SceneManager:
    """Host-side scene builder.

    Attributes:
        objects: ObjectInfo for every object, in registry order.
        lights: LightInfo for every light, in registry order.
    """

    def __init__(self) -> None:
        """Initialize an empty scene, clearing every registry."""
        self.objects: list[ObjectInfo] = []
        self.lights: list[LightInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_materials()
        clear_lights()
        self.objects.clear()
        self.lights.clear()

    def clear(self) -> None:
        """Remove all objects, materials and lights."""
        self._clear_all()

    # =========================================================================
    # Objects
    # =========================================================================

    def add_object(
        self,
        name: str,
        shape: ShapeType,
        transform: Transform | None = None,
        material: Material | None = None,
        triangles: npt.ArrayLike | None = None,
    ) -> int:
        """Add an object to the scene.

        Args:
            name: Object name.
            shape: Primitive shape.
            transform: Placement; identity by default.
            material: Surface material; the default material if omitted.
            triangles: Array of shape (n, 3, 3), required for meshes.

        Returns:
            The index of the added object.

        Raises:
            ValueError: If a mesh has no triangles or a non-mesh has some.
            RuntimeError: If a registry is full.
        """
        shape = ShapeType(shape)
        transform = transform or Transform()
        material = material or Material()

        if shape == ShapeType.TRIANGLE_MESH and triangles is None:
            raise ValueError(f"Triangle mesh {name!r} needs triangles")
        if shape != ShapeType.TRIANGLE_MESH and triangles is not None:
            raise ValueError(f"Only triangle meshes take triangles, {name!r} is {shape.name}")
        if get_object_count() >= MAX_OBJECTS:
            raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
        if material.is_emissive and get_light_count() >= MAX_LIGHTS:
            raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")

        triangle_start, triangle_count = 0, 0
        if triangles is not None:
            triangle_start, triangle_count = add_triangles(np.asarray(triangles))

        material_id = add_material(material)
        object_index = add_object(
            int(shape),
            transform.matrix(),
            material_id,
            triangle_start,
            triangle_count,
        )
        self.objects.append(
            ObjectInfo(
                object_index=object_index,
                name=name,
                shape=shape,
                transform=transform,
                material=material,
                material_id=material_id,
                triangle_count=triangle_count,
            )
        )

        if material.is_emissive:
            light_index = add_emissive_light(object_index, material.ke)
            self.lights.append(
                LightInfo(
                    light_index=light_index,
                    name=name + EMISSIVE_LIGHT_SUFFIX,
                    light_type=LightType.EMISSIVE,
                    intensity=1.0,
                    color=material.ke,
                    owner=object_index,
                )
            )
            logger.debug("Registered %s as an emissive light", name)

        return object_index

    def add_sphere(
        self,
        name: str,
        transform: Transform | None = None,
        material: Material | None = None,
    ) -> int:
        """Add a unit sphere placed by the transform."""
        return self.add_object(name, ShapeType.SPHERE, transform, material)

    def add_plane(
        self,
        name: str,
        transform: Transform | None = None,
        material: Material | None = None,
    ) -> int:
        """Add the infinite y = 0 plane placed by the transform."""
        return self.add_object(name, ShapeType.PLANE, transform, material)

    def add_square(
        self,
        name: str,
        transform: Transform | None = None,
        material: Material | None = None,
    ) -> int:
        """Add the unit square (y = 0, x and z in [-0.5, 0.5]) placed by the transform."""
        return self.add_object(name, ShapeType.SQUARE, transform, material)

    def add_triangle_mesh(
        self,
        name: str,
        triangles: npt.ArrayLike,
        transform: Transform | None = None,
        material: Material | None = None,
    ) -> int:
        """Add a triangle mesh given in its local coordinates."""
        return self.add_object(name, ShapeType.TRIANGLE_MESH, transform, material, triangles)

    def get_object_count(self) -> int:
        """Get the number of objects in the scene."""
        return len(self.objects)

    def get_object_info(self, name: str) -> ObjectInfo | None:
        """Get the first object with the given name, or None."""
        for info in self.objects:
            if info.name == name:
                return info
        return None

    # =========================================================================
    # Lights
    # =========================================================================

    def add_point_light(
        self,
        name: str,
        position: tuple[float, float, float],
        intensity: float,
        color: tuple[float, float, float] = (1.0, 1.0, 1.0),
    ) -> int:
        """Add a point light.

        Returns:
            The index of the added light.

        Raises:
            ValueError: If the intensity is negative.
            RuntimeError: If the maximum number of lights is exceeded.
        """
        light_index = add_point_light(position, intensity, color)
        self.lights.append(
            LightInfo(
                light_index=light_index,
                name=name,
                light_type=LightType.POINT,
                intensity=intensity,
                color=color,
                position=position,
            )
        )
        return light_index

    def get_light_count(self) -> int:
        """Get the number of lights, emissive ones included."""
        return len(self.lights)

    def get_light_info(self, name: str) -> LightInfo | None:
        """Get the first light with the given name, or None."""
        for info in self.lights:
            if info.name == name:
                return info
        return None
