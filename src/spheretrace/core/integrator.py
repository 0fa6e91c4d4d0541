"""Shading engine and render target for the sphere ray tracer.

This module ties scene intersection and material scattering together in
ray_color(), the per-ray color evaluation, and accumulates per-pixel
samples into a preallocated render target.

Color evaluation follows a bounded bounce loop:
    1. With no bounces left the result is black.
    2. Find the closest hit in [T_MIN, T_MAX). T_MIN is slightly above
       zero so a scattered ray does not immediately re-hit the surface it
       left (shadow acne).
    3. On a hit, scatter according to the hit's material. Absorption ends
       the path with black; otherwise the attenuation multiplies into the
       path throughput and the scattered ray is followed.
    4. On a miss, the path ends with throughput times the background sky
       gradient.

Taichi functions cannot recurse, so the loop carries the product of
attenuations instead of multiplying on the way back up. Running out of
bounces without escaping gives black, the same as reaching depth 0.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.spheretrace.core.integrator import render_image, setup_render_target
    >>> from src.spheretrace.scene.presets import create_three_spheres_scene
    >>> from src.spheretrace.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> render_image(num_samples=100, max_depth=50)
"""

import logging
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.spheretrace.camera.thin_lens import get_ray_jittered
from src.spheretrace.core.ray import make_interval, new_ray
from src.spheretrace.materials.dielectric import get_dielectric_ior, scatter_dielectric
from src.spheretrace.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from src.spheretrace.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from src.spheretrace.scene.intersection import intersect_scene
from src.spheretrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default bounce limit per camera ray
DEFAULT_MAX_DEPTH = 10

# Search interval for every intersection query
T_MIN = 1e-4
T_MAX = tm.inf

# Background gradient endpoints
HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
ZENITH_COLOR = vec3(0.5, 0.7, 1.0)


# =============================================================================
# Render Settings
# =============================================================================


@dataclass
class RenderSettings:
    """Image and sampling parameters for a render.

    Attributes:
        image_width: Output width in pixels.
        aspect_ratio: Width divided by height.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of bounces per camera ray.
    """

    image_width: int = 400
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 10
    max_depth: int = DEFAULT_MAX_DEPTH

    @property
    def image_height(self) -> int:
        """Image height derived from width and aspect ratio (at least 1)."""
        return max(1, int(self.image_width / self.aspect_ratio))

    def validate(self) -> None:
        """Check that the settings describe a renderable image.

        Raises:
            ValueError: If any size, count or ratio is not positive, or the
                image exceeds the render target capacity.
        """
        if self.image_width <= 0:
            raise ValueError(f"image_width = {self.image_width} must be positive")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio = {self.aspect_ratio} must be positive")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel = {self.samples_per_pixel} must be positive")
        if self.max_depth <= 0:
            raise ValueError(f"max_depth = {self.max_depth} must be positive")
        if self.image_width > MAX_IMAGE_WIDTH or self.image_height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.image_width}x{self.image_height}) exceed maximum "
                f"supported ({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color accumulation buffer (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers. The buffers
    are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT so resizing
    never recompiles kernels.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()
    logger.debug("Render target set to %dx%d", width, height)


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the color buffer.

    Note: This returns the full preallocated buffer. Use get_image_dimensions()
    to determine the active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_sample_count() -> "ti.ScalarField":
    """Get the per-pixel sample count field.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _sample_count


# =============================================================================
# Background and Material Dispatch
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky gradient seen by a ray that escapes the scene.

    Blends linearly from white at the horizon (unit direction y = -1) to
    sky blue at the zenith (y = +1).

    Args:
        direction: The ray direction (any non-zero length).

    Returns:
        The background color for that direction.
    """
    unit_direction = tm.normalize(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - a) * HORIZON_COLOR + a * ZENITH_COLOR


@ti.func
def scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the scattering model of a material.

    Args:
        material_id: The unified material ID of the hit sphere.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal, facing against the incident ray.
        front_face: 1 if the ray hit the outside of the surface.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). An
        unknown material ID absorbs the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation = scatter_lambertian(albedo, normal)
        did_scatter = 1

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation = scatter_dielectric(
            ior, incident_direction, normal, front_face
        )
        did_scatter = 1

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Shading Loop
# =============================================================================


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    """Compute the color seen along a ray.

    Args:
        origin: The ray origin.
        direction: The ray direction (non-zero).
        max_depth: Maximum number of surface interactions. 0 or less
            returns black.

    Returns:
        The linear-space color carried back along the ray.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction

    # Taichi doesn't support break in ti.func loops
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, make_interval(T_MIN, T_MAX))

            if rec.hit == 0:
                color = throughput * background_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = scatter_material(
                    rec.material_id, ray_direction, rec.normal, rec.front_face
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    return color


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    return ray_color(origin, direction, max_depth)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[float, float, float]:
    """Evaluate ray_color for a single ray from Python.

    Args:
        origin: Ray origin as (x, y, z).
        direction: Ray direction as (x, y, z).
        max_depth: Maximum number of bounces.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        ValueError: If the direction has zero length or is not finite.
    """
    ray = new_ray(origin, direction)
    color = _trace_ray_kernel(ray.origin, ray.direction, max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32):
    """Trace one jittered camera ray per pixel and accumulate it."""
    for i, j in ti.ndrange(width, height):
        ray = get_ray_jittered(i, j, width, height)
        color = ray_color(ray.origin, ray.direction, max_depth)

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _sample_count[i, j] += 1
        n = _sample_count[i, j]
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, max_depth: ti.i32
) -> vec3:
    ray = get_ray_jittered(pixel_i, pixel_j, width, height)
    return ray_color(ray.origin, ray.direction, max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_sample(
    pixel_i: int, pixel_j: int, max_depth: int = DEFAULT_MAX_DEPTH
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum number of bounces.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height, max_depth)

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    """Render the image with the specified number of samples per pixel.

    Progressively accumulates samples into the color buffer. Can be called
    multiple times to add more samples.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Maximum number of bounces per camera ray.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    logger.debug("Rendering %d spp at %dx%d (max_depth=%d)", num_samples, width, height, max_depth)

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth)


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_normalized_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    Returns the linear color buffer clamped to [0, 1] with shape
    (height, width, 3), top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (Taichi uses bottom-left origin, images use top-left)
    image = np.flipud(image)

    image = np.clip(image, 0.0, 1.0)

    return image.astype(np.float32)
