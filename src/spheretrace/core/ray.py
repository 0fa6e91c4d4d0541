"""Ray and interval data structures with vector utilities.

This module provides the Ray and Interval dataclasses together with the
vector and random-sampling helpers used by the intersection and shading
code. Everything except `new_ray` is designed to be called from inside
Taichi kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> ray = new_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
    >>> # Inside a kernel:
    >>> # point = ray_at(ray, 2.0)
    >>> # if interval_surrounds(make_interval(1e-4, tm.inf), t): ...
"""

import math

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components below this magnitude are treated as zero by near_zero()
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Need not be
            normalized, but must not be zero-length.
    """

    origin: vec3
    direction: vec3


@ti.dataclass
class Interval:
    """A range of parametric distances [min, max].

    The empty interval has t_min=+inf and t_max=-inf, so it contains nothing
    and has negative size.
    """

    t_min: ti.f32
    t_max: ti.f32


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point origin + t * direction along the ray."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


def new_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> Ray:
    """Create a ray from Python, rejecting degenerate directions.

    A zero-length direction would make the sphere quadratic divide by
    zero, so it is refused here rather than inside the kernels.

    Args:
        origin: Ray origin as (x, y, z).
        direction: Ray direction as (x, y, z).

    Returns:
        A new Ray instance.

    Raises:
        ValueError: If the direction has zero length or is not finite.
    """
    norm_sq = sum(float(c) * float(c) for c in direction)
    if not math.isfinite(norm_sq) or norm_sq == 0.0:
        raise ValueError(f"Ray direction {tuple(direction)} must be finite and non-zero")
    return Ray(
        origin=vec3(origin[0], origin[1], origin[2]),
        direction=vec3(direction[0], direction[1], direction[2]),
    )


# =============================================================================
# Interval Operations
# =============================================================================


@ti.func
def make_interval(t_min: ti.f32, t_max: ti.f32) -> Interval:
    """Create an interval [t_min, t_max]."""
    return Interval(t_min=t_min, t_max=t_max)


@ti.func
def empty_interval() -> Interval:
    """Return the interval that contains no value."""
    return Interval(t_min=tm.inf, t_max=-tm.inf)


@ti.func
def universe_interval() -> Interval:
    """Return the interval spanning the whole real line."""
    return Interval(t_min=-tm.inf, t_max=tm.inf)


@ti.func
def interval_size(interval: Interval) -> ti.f32:
    return interval.t_max - interval.t_min


@ti.func
def interval_contains(interval: Interval, x: ti.f32) -> ti.i32:
    """Check whether min <= x <= max (closed interval)."""
    return interval.t_min <= x and x <= interval.t_max


@ti.func
def interval_surrounds(interval: Interval, x: ti.f32) -> ti.i32:
    """Check whether min < x < max (open interval)."""
    return interval.t_min < x and x < interval.t_max


@ti.func
def interval_clamp(interval: Interval, x: ti.f32) -> ti.f32:
    result = x
    if x < interval.t_min:
        result = interval.t_min
    elif x > interval.t_max:
        result = interval.t_max
    return result


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector (no square root)."""
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal: d - 2*dot(d,n)*n."""
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface using Snell's law.

    Args:
        incident: The incoming direction (unit length).
        normal: The surface normal, facing against the incident ray.
        eta: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction. Callers check for total internal
        reflection first; the absolute value keeps the result non-zero
        when round-off pushes the parallel term slightly negative near
        the critical angle.
    """
    cos_i = tm.min(-tm.dot(incident, normal), 1.0)
    r_out_perp = eta * (incident + cos_i * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - tm.dot(r_out_perp, r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, ratio: ti.f32) -> ti.f32:
    """Schlick's polynomial approximation of Fresnel reflectance.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ratio: Ratio of refractive indices across the boundary.

    Returns:
        r0 + (1 - r0) * (1 - cosine)^5 with r0 = ((1 - ratio) / (1 + ratio))^2.
    """
    r0 = ((1.0 - ratio) / (1.0 + ratio)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if every component of v is below NEAR_ZERO_EPSILON in magnitude."""
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities
# =============================================================================


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit sphere by rejection sampling."""
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            p = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
            )
            # Reject points too close to the origin so normalization is stable
            lensq = length_squared(p)
            if 1e-20 < lensq and lensq <= 1.0:
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    return normalize(random_in_unit_sphere())


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point (x, y, 0) inside the unit disk.

    Used for thin-lens (depth of field) origin sampling.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):
        if not found:
            p = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    return p


@ti.func
def sample_square() -> vec3:
    """Random offset in the [-0.5, 0.5) x [-0.5, 0.5) unit square."""
    return vec3(ti.random(ti.f32) - 0.5, ti.random(ti.f32) - 0.5, 0.0)
