"""Light registry: point lights and emissive-surface lights.

A point light sits at a fixed position. An emissive light is a view over a
scene object with non-zero emission: each time it is sampled it returns a
fresh random point on that object's surface, its colour is the object's
emission and its intensity is 1. Both kinds record the index of the object
that owns them (-1 for point lights) so the shadow test can ignore it.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.scene.intersection import sample_object_surface

# Type alias for 3D vectors
vec3 = tm.vec3

# Light kind tags
LIGHT_POINT = 0
LIGHT_EMISSIVE = 1

MAX_LIGHTS = 256

light_types = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_intensities = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_owners = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Remove all lights."""
    num_lights[None] = 0


def _next_light_index() -> int:
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    return idx


def add_point_light(
    position: tuple[float, float, float],
    intensity: float,
    color: tuple[float, float, float] = (1.0, 1.0, 1.0),
) -> int:
    """Add a point light.

    Args:
        position: World-space position.
        intensity: Scalar brightness, >= 0.
        color: RGB colour, white by default.

    Returns:
        The index of the added light.

    Raises:
        ValueError: If the intensity is negative.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    if intensity < 0.0:
        raise ValueError(f"Light intensity must be non-negative, got {intensity}")
    idx = _next_light_index()
    light_types[idx] = LIGHT_POINT
    light_positions[idx] = vec3(*position)
    light_intensities[idx] = intensity
    light_colors[idx] = vec3(*color)
    light_owners[idx] = -1
    num_lights[None] = idx + 1
    return idx


def add_emissive_light(object_index: int, emission: tuple[float, float, float]) -> int:
    """Register an emissive object as a light.

    Args:
        object_index: Registry index of the emitting object.
        emission: The object's emitted colour.

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = _next_light_index()
    light_types[idx] = LIGHT_EMISSIVE
    light_positions[idx] = vec3(0.0, 0.0, 0.0)
    light_intensities[idx] = 1.0
    light_colors[idx] = vec3(*emission)
    light_owners[idx] = object_index
    num_lights[None] = idx + 1
    return idx


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


@ti.func
def sample_light(light: ti.i32, state: ti.u32):
    """Sample a light's position and radiance.

    Args:
        light: Light index.
        state: Current random state.

    Returns:
        A tuple (position, radiance, owner, new_state); radiance is
        colour * intensity and owner is -1 for point lights.
    """
    position = light_positions[light]
    owner = light_owners[light]
    s = state

    if light_types[light] == LIGHT_EMISSIVE:
        position, s = sample_object_surface(owner, s)

    radiance = light_colors[light] * light_intensities[light]
    return position, radiance, owner, s
