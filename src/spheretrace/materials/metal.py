"""Metal (specular reflective) material implementation.

The incoming direction is mirrored about the surface normal:
    R = I - 2(I . N)N

The reflected vector is normalized and then perturbed by a random unit
vector scaled by the fuzz factor, which models microfacet roughness.
A fuzz of 0 gives a perfect mirror and fuzz is never larger than 1.

If the perturbed direction no longer points away from the surface
(dot(scattered, normal) <= 0) the ray is absorbed. This happens for
grazing incidence combined with a large fuzz.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal
    >>> # )
"""

import logging

import taichi as ti
import taichi.math as tm

from src.spheretrace.core.ray import random_unit_vector, reflect

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal_with(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    offset: vec3,
):
    """Reflect about the normal and perturb with a caller-supplied offset.

    This is the deterministic core of scatter_metal(); tests use it to
    inject the random unit vector.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The fuzz factor in [0, 1].
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing against the incident ray.
        offset: A unit vector scaled by fuzz and added to the reflection.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        did_scatter is 1 if the scattered direction points away from the
        surface and 0 if the ray is absorbed.
    """
    reflected = tm.normalize(reflect(incident_direction, normal))
    scattered_direction = reflected + fuzz * offset

    did_scatter = 1
    if tm.dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0

    return scattered_direction, albedo, did_scatter


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
):
    """Compute the scattered ray direction for a metal material.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The fuzz factor in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    return scatter_metal_with(albedo, fuzz, incident_direction, normal, random_unit_vector())


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 256

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz factor into [0, 1], logging when it changes."""
    clamped = min(max(float(fuzz), 0.0), 1.0)
    if clamped != fuzz:
        logger.warning("Metal fuzz %s clamped to %s", fuzz, clamped)
    return clamped


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component should be in [0, 1].
        fuzz: The fuzz factor. Default is 0 (perfect mirror).
            Values are clamped to [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = clamp_fuzz(fuzz)
    num_metal_materials[None] = idx + 1
    logger.debug("Registered metal material %d with albedo %s", idx, albedo)
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]
