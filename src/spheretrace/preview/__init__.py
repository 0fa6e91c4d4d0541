"""Preview module for output and visualization.

Components:
    display: Gamma encoding and Matplotlib-based preview
    export: PNG and plain-text PPM export

Example:
    >>> from src.spheretrace.preview import save_image, show_preview
    >>> from src.spheretrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> show_preview(renderer)
    >>> save_image(renderer.get_image_numpy(), "output.png")
"""

from src.spheretrace.preview.display import (
    linear_to_gamma,
    process_image_for_display,
    show_preview,
)
from src.spheretrace.preview.export import (
    image_to_uint8,
    save_image,
    save_png,
    save_ppm,
)

__all__ = [
    # Display functions
    "linear_to_gamma",
    "process_image_for_display",
    "show_preview",
    # Export functions
    "image_to_uint8",
    "save_png",
    "save_ppm",
    "save_image",
]
