"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, hit records and ray-sphere intersection

All intersection routines are implemented as Taichi functions (@ti.func)
so they can be evaluated per pixel inside the render kernels.

Ray-object intersection follows the pattern:
    record = hit_sphere(ray_origin, ray_direction, sphere, ray_t)
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_sphere, set_face_normal

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "set_face_normal",
]
