"""Materials module for scattering models.

This module implements the analytic material models used by the shading loop:

Components:
    lambertian: Diffuse scattering about the normal (never absorbs)
    metal: Mirror reflection with fuzz, absorbed below the surface
    dielectric: Glass-like reflection/refraction with Schlick reflectance

Each material provides:
    - scatter_*(): Sample an outgoing direction and attenuation
    - scatter_*_with(): The same computation with the random input supplied
      by the caller
    - A type-specific registry (add/clear/count and kernel getters)

All scattering is implemented as Taichi functions for kernel execution.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    reflectance,
    scatter_dielectric,
    scatter_dielectric_with,
    will_reflect,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_with,
)
from .metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_with,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_with",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_albedo",
    "get_lambertian_material_count",
    # Metal
    "scatter_metal",
    "scatter_metal_with",
    "add_metal_material",
    "clamp_fuzz",
    "clear_metal_materials",
    "get_metal_albedo",
    "get_metal_fuzz",
    "get_metal_material_count",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_with",
    "will_reflect",
    "reflectance",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_ior",
    "get_dielectric_material_count",
]
