"""Materials module.

Components:
    blinn_phong: Material description, registry and Blinn-Phong shading
    lambertian: Lambertian BRDF for the global-illumination bounce
"""

from .blinn_phong import (
    MAX_MATERIALS,
    Material,
    add_material,
    clear_materials,
    get_material_count,
    shade_blinn_phong,
)
from .lambertian import eval_lambertian, lambertian_bounce_weight

__all__ = [
    "Material",
    "MAX_MATERIALS",
    "add_material",
    "clear_materials",
    "get_material_count",
    "shade_blinn_phong",
    "eval_lambertian",
    "lambertian_bounce_weight",
]
