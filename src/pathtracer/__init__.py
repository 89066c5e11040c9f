"""Recursive Blinn-Phong path tracer built on Taichi.

Scenes of spheres, planes, squares and triangle meshes are lit by point lights
and emissive objects. Each camera ray's colour combines emission, mirror
reflection, shadowed Blinn-Phong direct lighting and one cosine-weighted
global-illumination bounce per hit, recursively up to a fixed depth.

Subpackages:
    core: Rays, random sampling, the recursive integrator and rendering loop
    geometry: Primitives, transforms and OBJ loading
    materials: Blinn-Phong and Lambertian shading
    scene: Object and light registries, scene builder and file loader
    camera: Pinhole camera
    preview: PNG export
"""

__version__ = "0.1.0"
