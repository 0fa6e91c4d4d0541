"""Scene-level closest-hit intersection testing.

This module stores the scene's spheres in Taichi fields and provides the
aggregate hit test used by the shading loop. Each sphere carries a unified
material ID; several spheres may share the same ID.

The aggregate keeps the upper bound of the search interval at the closest
accepted t, so a sphere tested later can only replace the current hit
with a strictly nearer one. The result therefore does not depend on the
order in which spheres were added.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.scene.intersection import (
    ...     add_sphere, intersect_scene, clear_scene
    ... )
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import logging

import taichi as ti
import taichi.math as tm

from src.spheretrace.core.ray import Interval, make_interval
from src.spheretrace.geometry.sphere import HitRecord, Sphere, hit_sphere

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: 1 if the ray intersected any sphere, 0 on a miss.
        t: The ray parameter of the closest intersection.
        point: The closest intersection point.
        normal: Unit normal oriented against the incoming ray.
        front_face: 1 if the ray arrived from outside the surface.
        material_id: The material ID of the hit sphere, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all spheres from the scene.

    Resets the sphere count to zero. The field data is overwritten when
    new spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. Negative values are clamped to 0.
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    if radius < 0.0:
        logger.warning("Sphere radius %s clamped to 0", radius)
        radius = 0.0
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def _hit_record_to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    ray_t: Interval,
) -> SceneHitRecord:
    """Find the closest sphere hit within an interval.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        ray_t: The interval of acceptable t values.

    Returns:
        A SceneHitRecord for the hit with the smallest t inside ray_t, or
        a miss record if no sphere was hit.
    """
    closest_so_far = ray_t.t_max
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(
            ray_origin, ray_direction, sphere, make_interval(ray_t.t_min, closest_so_far)
        )
        if rec.hit == 1:
            closest_so_far = rec.t
            result = _hit_record_to_scene_hit_record(rec, sphere_material_ids[i])

    return result
