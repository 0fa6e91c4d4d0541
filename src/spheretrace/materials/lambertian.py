"""Lambertian (ideal diffuse) material implementation.

The scattered direction is the surface normal plus a random unit vector,
which produces a cosine-weighted distribution of directions about the
normal. The attenuation is the albedo, unconditionally: a Lambertian
surface never absorbs the ray outright.

If the random unit vector almost exactly cancels the normal, the sum is
degenerate (near zero in every component) and the normal itself is used
as the scattered direction.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_lambertian(albedo, normal)
"""

import logging

import taichi as ti
import taichi.math as tm

from src.spheretrace.core.ray import near_zero, random_unit_vector

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian_with(albedo: vec3, normal: vec3, offset: vec3):
    """Scatter about a normal using a caller-supplied unit offset.

    This is the deterministic core of scatter_lambertian(); tests use it
    to inject the random unit vector.

    Args:
        albedo: The diffuse reflectance color (RGB).
        normal: The unit surface normal at the hit point.
        offset: A unit vector to add to the normal.

    Returns:
        A tuple of (scattered_direction, attenuation). The direction is
        normal + offset, or the normal itself if that sum is degenerate.
    """
    scattered_direction = normal + offset
    if near_zero(scattered_direction):
        scattered_direction = normal
    return scattered_direction, albedo


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Sample a scattered ray direction for a Lambertian material.

    Args:
        albedo: The diffuse reflectance color (RGB).
        normal: The unit surface normal at the hit point.

    Returns:
        A tuple of (scattered_direction, attenuation). The scattered
        direction is not normalized; attenuation equals the albedo.
    """
    return scatter_lambertian_with(albedo, normal, random_unit_vector())


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 512

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.

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

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    logger.debug("Registered Lambertian material %d with albedo %s", idx, albedo)
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]
