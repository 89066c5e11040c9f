"""Blinn-Phong surface material.

Every scene object owns one material with:
    kd: diffuse coefficient (RGB)
    ks: specular coefficient (RGB), also the tint of mirror reflections
    ke: emitted colour (RGB); non-zero makes the object an emissive light
    reflective: fraction of mirror reflection in [0, 1]
    specular_exp: Blinn-Phong highlight exponent

Direct lighting from one light is

    radiance * (kd * max(0, L.N) + ks * max(0, H.N) ^ specular_exp)

with L the unit vector to the light and H the normalized half vector between
L and the direction back to the viewer. Emission is never added here; the
integrator handles it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.blinn_phong import Material, add_material
    >>> idx = add_material(Material(kd=(0.8, 0.2, 0.2), reflective=0.1))
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3

# Half vectors shorter than this (light exactly behind the viewer) give no highlight
HALF_VECTOR_EPSILON = 1e-8


@dataclass(frozen=True)
class Material:
    """Host-side description of a Blinn-Phong material.

    Attributes:
        kd: Diffuse coefficient (RGB), components >= 0.
        ks: Specular coefficient (RGB), components >= 0.
        ke: Emissive colour (RGB), components >= 0.
        reflective: Mirror reflectivity in [0, 1]. 0 is fully diffuse.
        specular_exp: Width of the specular highlight, >= 0.
    """

    kd: tuple[float, float, float] = (1.0, 1.0, 1.0)
    ks: tuple[float, float, float] = (1.0, 1.0, 1.0)
    ke: tuple[float, float, float] = (0.0, 0.0, 0.0)
    reflective: float = 0.0
    specular_exp: float = 100.0

    def __post_init__(self) -> None:
        for name in ("kd", "ks", "ke"):
            color = getattr(self, name)
            if len(color) != 3:
                raise ValueError(f"{name} must have 3 components, got {len(color)}")
            for i, component in enumerate(color):
                if component < 0.0:
                    raise ValueError(f"{name} component {i} = {component} is negative")
        if not 0.0 <= self.reflective <= 1.0:
            raise ValueError(f"reflective = {self.reflective} is outside [0, 1]")
        if self.specular_exp < 0.0:
            raise ValueError(f"specular_exp = {self.specular_exp} is negative")

    @property
    def is_emissive(self) -> bool:
        """True if the material emits light."""
        return any(c > 0.0 for c in self.ke)


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_MATERIALS = 1024

material_kd = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_ks = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_ke = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_reflective = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_specular_exp = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Forget all registered materials."""
    num_materials[None] = 0


def add_material(material: Material) -> int:
    """Upload a material to the GPU-side registry.

    Args:
        material: The material to store.

    Returns:
        The material index.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_kd[idx] = vec3(*material.kd)
    material_ks[idx] = vec3(*material.ks)
    material_ke[idx] = vec3(*material.ke)
    material_reflective[idx] = material.reflective
    material_specular_exp[idx] = material.specular_exp
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of registered materials."""
    return int(num_materials[None])


@ti.func
def shade_blinn_phong(
    material_idx: ti.i32,
    view_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    light_position: vec3,
    light_radiance: vec3,
) -> vec3:
    """Blinn-Phong diffuse + specular contribution of one light.

    Args:
        material_idx: Index of the material in the registry.
        view_direction: Direction of the incoming ray (towards the surface).
        hit_point: World-space shading point.
        normal: World-space unit normal.
        light_position: World-space light position.
        light_radiance: Light colour scaled by its intensity.

    Returns:
        The reflected radiance (RGB). No ambient or emissive term.
    """
    kd = material_kd[material_idx]
    ks = material_ks[material_idx]
    specular_exp = material_specular_exp[material_idx]

    light_vec = tm.normalize(light_position - hit_point)
    diffuse = kd * ti.max(0.0, tm.dot(light_vec, normal))

    specular = vec3(0.0, 0.0, 0.0)
    half_vec = -view_direction + light_vec
    half_len = tm.length(half_vec)
    if half_len > HALF_VECTOR_EPSILON:
        half_vec = half_vec / half_len
        specular = ks * ti.pow(ti.max(0.0, tm.dot(half_vec, normal)), specular_exp)

    return light_radiance * (diffuse + specular)
