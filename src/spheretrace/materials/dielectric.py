"""Dielectric (glass/water) material implementation.

Dielectrics both reflect and refract. At each hit:
    - The ratio of indices is 1/ior when entering (front face) and ior
      when leaving the medium.
    - If ratio * sin(theta) > 1, refraction is impossible and the ray is
      reflected (total internal reflection).
    - Otherwise a uniform draw in [0, 1) is compared against Schlick's
      reflectance; below it the ray reflects, above it the ray refracts.

Dielectrics never absorb: the attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face
    >>> # )
"""

import logging

import taichi as ti
import taichi.math as tm

from src.spheretrace.core.ray import (
    reflect,
    refract,
    schlick_reflectance,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def _refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def _incident_cosines(unit_direction: vec3, normal: vec3):
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = tm.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))
    return cos_theta, sin_theta


@ti.func
def will_reflect(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Return 1 if total internal reflection is unavoidable for this hit."""
    ratio = _refraction_ratio(ior, front_face)
    _, sin_theta = _incident_cosines(tm.normalize(incident_direction), normal)
    return 1 if ratio * sin_theta > 1.0 else 0


@ti.func
def reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f32:
    """Schlick reflectance probability for this hit."""
    ratio = _refraction_ratio(ior, front_face)
    cos_theta, _ = _incident_cosines(tm.normalize(incident_direction), normal)
    return schlick_reflectance(cos_theta, ratio)


@ti.func
def scatter_dielectric_with(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    draw: ti.f32,
):
    """Choose reflection or refraction using a caller-supplied draw.

    This is the deterministic core of scatter_dielectric(); tests use it
    to pin the random value.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing against the incident ray.
        front_face: 1 if the ray enters the material, 0 if it leaves it.
        draw: Uniform value in [0, 1) compared with the reflectance.

    Returns:
        A tuple of (scattered_direction, attenuation). The direction is
        unit length; the attenuation is always (1, 1, 1).
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    unit_direction = tm.normalize(incident_direction)

    cannot_refract = will_reflect(ior, unit_direction, normal, front_face)
    reflect_probability = reflectance(ior, unit_direction, normal, front_face)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract == 1 or draw < reflect_probability:
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(
            unit_direction, normal, _refraction_ratio(ior, front_face)
        )

    return scattered_direction, attenuation


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Compute the scattered ray direction for a dielectric material.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal.
        front_face: 1 if the ray enters the material, 0 if it leaves it.

    Returns:
        A tuple of (scattered_direction, attenuation). Dielectrics always
        scatter.
    """
    return scatter_dielectric_with(
        ior, incident_direction, normal, front_face, ti.random(ti.f32)
    )


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass). Must be
            positive; values below 1 describe a thinner medium enclosed
            by a denser one.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is not positive.
    """
    if not ior > 0.0:
        raise ValueError(f"Index of refraction = {ior} must be positive.")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    logger.debug("Registered dielectric material %d with ior %s", idx, ior)
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]
