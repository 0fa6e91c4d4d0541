"""Thin-lens camera model for ray generation with optional depth of field.

The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- Jittered sub-pixel sampling for anti-aliasing
- Defocus blur: ray origins sampled on a lens disk when defocus_angle > 0

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits at focus_dist in front of the camera, so everything on
that plane is in perfect focus. With defocus_angle = 0 the camera is a
pinhole and focus_dist only scales the viewport.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.camera.thin_lens import CameraConfig, setup_camera
    >>>
    >>> camera = CameraConfig(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=16.0 / 9.0,
    ...     defocus_angle=0.6,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera)
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.spheretrace.core.ray import Ray, make_ray, random_in_unit_disk, sample_square, vec3

logger = logging.getLogger(__name__)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class CameraConfig:
    """Configuration for a thin-lens camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation.
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
        defocus_angle: Variation angle of rays through each pixel, in
            degrees. 0 disables depth of field.
        focus_dist: Distance from lookfrom to the plane of perfect focus.
    """

    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 90.0
    aspect_ratio: float = 16.0 / 9.0
    defocus_angle: float = 0.0
    focus_dist: float = 10.0

    def validate(self) -> None:
        """Check the configuration for degenerate values.

        Raises:
            ValueError: If the view direction is zero, vup is parallel to
                the view direction, or a scalar parameter is out of range.
        """
        view = np.subtract(self.lookfrom, self.lookat)
        if np.linalg.norm(view) == 0.0:
            raise ValueError("lookfrom and lookat must be different points")
        if np.linalg.norm(np.cross(self.vup, view)) == 0.0:
            raise ValueError("vup must not be parallel to the view direction")
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov = {self.vfov} must be in (0, 180) degrees")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio = {self.aspect_ratio} must be positive")
        if self.focus_dist <= 0.0:
            raise ValueError(f"focus_dist = {self.focus_dist} must be positive")
        if self.defocus_angle < 0.0:
            raise ValueError(f"defocus_angle = {self.defocus_angle} must be non-negative")


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # Lower-left of viewport

# Lens disk radius vectors (zero when defocus is disabled)
_defocus_disk_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_disk_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_enabled = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: CameraConfig) -> None:
    """Initialize camera state from configuration.

    Computes the camera basis, the viewport at focus_dist and the lens
    disk vectors. This must be called before rendering.

    Args:
        camera: Camera configuration with position, orientation, FOV and lens.

    Raises:
        ValueError: If the configuration is degenerate.
    """
    camera.validate()

    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)

    viewport_height = 2.0 * h * camera.focus_dist
    viewport_width = camera.aspect_ratio * viewport_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float32)
    lookat = np.array(camera.lookat, dtype=np.float32)
    vup = np.array(camera.vup, dtype=np.float32)

    w = lookfrom - lookat
    w = w / np.linalg.norm(w)

    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)

    v = np.cross(w, u)

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()

    horizontal = viewport_width * u
    vertical = viewport_height * v

    # Origin - focus_dist*w (move forward) - horizontal/2 (left) - vertical/2 (down)
    lower_left = lookfrom - camera.focus_dist * w - horizontal / 2.0 - vertical / 2.0

    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()

    defocus_radius = camera.focus_dist * math.tan(math.radians(camera.defocus_angle / 2.0))
    _defocus_disk_u[None] = (defocus_radius * u).tolist()
    _defocus_disk_v[None] = (defocus_radius * v).tolist()
    _defocus_enabled[None] = 1 if camera.defocus_angle > 0.0 else 0

    logger.debug(
        "Camera at %s looking at %s (vfov=%.1f, defocus=%.2f, focus=%.2f)",
        camera.lookfrom,
        camera.lookat,
        camera.vfov,
        camera.defocus_angle,
        camera.focus_dist,
    )


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def defocus_disk_sample() -> vec3:
    """Return a random point on the camera's lens disk."""
    p = random_in_unit_disk()
    return _camera_origin[None] + p.x * _defocus_disk_u[None] + p.y * _defocus_disk_v[None]


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    The coordinates are normalized:
    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    When defocus is enabled the origin is sampled on the lens disk;
    otherwise it is the camera center.

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A Ray with a unit direction toward the viewport point.
    """
    point_on_viewport = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )

    origin = _camera_origin[None]
    if _defocus_enabled[None] == 1:
        origin = defocus_disk_sample()
    direction = tm.normalize(point_on_viewport - origin)

    return make_ray(origin, direction)


@ti.func
def get_ray_jittered(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate a jittered ray for anti-aliasing.

    The sample point is the pixel center offset by a random amount in
    [-0.5, 0.5) along each image axis.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray through a random point inside the pixel.
    """
    offset = sample_square()
    s = (ti.cast(pixel_i, ti.f32) + 0.5 + offset.x) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + 0.5 + offset.y) / ti.cast(height, ti.f32)
    return get_ray(s, t)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left,
        defocus_u and defocus_v.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
        "defocus_u": _defocus_disk_u,
        "defocus_v": _defocus_disk_v,
    }
    info = {}
    for name, field in fields.items():
        vec = field[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info
