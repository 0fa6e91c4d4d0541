"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray and Interval structures, vector and sampling utilities
    integrator: The ray_color shading loop, background gradient and
        render target accumulation
    progressive: ProgressiveRenderer wrapper for batched sampling

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Interval,
    Ray,
    cross,
    dot,
    empty_interval,
    interval_clamp,
    interval_contains,
    interval_size,
    interval_surrounds,
    length,
    length_squared,
    make_interval,
    make_ray,
    near_zero,
    new_ray,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    sample_square,
    schlick_reflectance,
    universe_interval,
    vec3,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from src.spheretrace.core.integrator or src.spheretrace.core.progressive.

__all__ = [
    "Ray",
    "Interval",
    "ray_at",
    "make_ray",
    "new_ray",
    "make_interval",
    "empty_interval",
    "universe_interval",
    "interval_size",
    "interval_contains",
    "interval_surrounds",
    "interval_clamp",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "sample_square",
]
