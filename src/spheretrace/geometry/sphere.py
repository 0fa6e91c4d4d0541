"""Sphere primitive with ray-sphere intersection.

This module provides the Sphere and HitRecord dataclasses and the
intersection routine used by the scene aggregate.

The intersection solves |origin + t*direction - center|^2 = radius^2 in
half-coefficient form:
    a = |direction|^2
    h = dot(direction, center - origin)
    c = |center - origin|^2 - radius^2
    discriminant = h^2 - a*c

The nearer root (h - sqrt(discriminant)) / a is tried first, then the
farther one. A root is accepted only if it lies strictly inside the query
interval.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.geometry.sphere import make_sphere, hit_sphere
    >>> # Inside a kernel:
    >>> # sphere = make_sphere(vec3(0, 0, -1), 0.5)
    >>> # rec = hit_sphere(origin, direction, sphere, make_interval(1e-4, tm.inf))
"""

import taichi as ti
import taichi.math as tm

from src.spheretrace.core.ray import Interval, interval_surrounds

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (non-negative float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: 1 if the ray intersected the sphere, 0 on a miss.
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit surface normal, always oriented against the incoming
            ray. Only valid if hit == 1.
        front_face: 1 if the ray arrived from outside the surface (the
            normal is the outward normal), 0 if it arrived from inside.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a unit outward normal against the incoming ray.

    Args:
        ray_direction: The incoming ray direction.
        outward_normal: The geometric normal pointing out of the surface
            (must be unit length).

    Returns:
        A tuple (front_face, normal). If dot(direction, outward) < 0 the
        ray is outside: front_face=1 and normal is the outward normal.
        Otherwise front_face=0 and normal is the negated outward normal.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return front_face, normal


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    ray_t: Interval,
) -> HitRecord:
    """Test for ray-sphere intersection within an interval.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be
            normalized). A zero-length direction, or a sphere of zero
            radius, is reported as a miss.
        sphere: The sphere to test intersection against.
        ray_t: The open interval of acceptable t values.

    Returns:
        A HitRecord for the closest intersection inside ray_t. Check the
        hit field to determine whether an intersection occurred.
    """
    oc = sphere.center - ray_origin
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if a > 0.0 and sphere.radius > 0.0 and discriminant >= 0.0:
        sqrtd = ti.sqrt(discriminant)

        root = (h - sqrtd) / a
        valid = interval_surrounds(ray_t, root)
        if not valid:
            root = (h + sqrtd) / a
            valid = interval_surrounds(ray_t, root)

        if valid:
            did_hit = 1
            hit_t = root
            hit_point = ray_origin + root * ray_direction
            outward_normal = (hit_point - sphere.center) / sphere.radius
            is_front_face, hit_normal = set_face_normal(ray_direction, outward_normal)

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere inside a kernel, clamping the radius to >= 0."""
    return Sphere(center=center, radius=tm.max(radius, 0.0))
