"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at camera with vertical FOV, pixel jitter and
        optional lens-disk depth of field

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    CameraConfig,
    defocus_disk_sample,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "CameraConfig",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "defocus_disk_sample",
    "get_camera_info",
]
