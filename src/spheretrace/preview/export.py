"""Image export utilities for rendered images.

All functions take a linear image of shape (H, W, 3), top row first,
and gamma encode it before quantizing to bytes.

Supported formats:
    - PNG (8-bit via Pillow)
    - PPM (plain-text P3, one "r g b" line per pixel)

Example:
    >>> from src.spheretrace.preview.export import save_image
    >>> from src.spheretrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> save_image(renderer.get_image_numpy(), "output.ppm")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.spheretrace.preview.display import linear_to_gamma

logger = logging.getLogger(__name__)

# Components are clamped below 1 so that x256 never reaches 256
_MAX_INTENSITY = 0.999


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma_correct: bool = True,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit values.

    Each component is gamma encoded, clamped to [0, 0.999] and scaled by
    256, so 1.0 maps to 255 and every byte value covers an equal share
    of [0, 1).

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma_correct: Apply gamma 2 encoding first.

    Returns:
        Array of the same shape with dtype uint8.
    """
    result = np.asarray(image, dtype=np.float32)
    if gamma_correct:
        result = linear_to_gamma(result)
    result = np.clip(result, 0.0, _MAX_INTENSITY)
    return (result * 256.0).astype(np.uint8)


def save_png(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma_correct: bool = True,
) -> None:
    """Save a linear image as an 8-bit PNG file.

    Args:
        image: Linear image array of shape (H, W, 3).
        filepath: Output file path.
        gamma_correct: Apply gamma 2 encoding before quantizing.
    """
    image_uint8 = image_to_uint8(image, gamma_correct=gamma_correct)
    PILImage.fromarray(image_uint8).save(filepath)
    logger.info("Saved %dx%d PNG to %s", image_uint8.shape[1], image_uint8.shape[0], filepath)


def save_ppm(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma_correct: bool = True,
) -> None:
    """Save a linear image as a plain-text PPM (P3) file.

    The header is "P3", then "width height", then "255". Pixels follow
    one per line, top row first and left to right within a row.

    Args:
        image: Linear image array of shape (H, W, 3).
        filepath: Output file path.
        gamma_correct: Apply gamma 2 encoding before quantizing.
    """
    image_uint8 = image_to_uint8(image, gamma_correct=gamma_correct)
    height, width = image_uint8.shape[:2]

    lines = [f"P3\n{width} {height}\n255"]
    lines.extend(f"{r} {g} {b}" for r, g, b in image_uint8.reshape(-1, 3))

    Path(filepath).write_text("\n".join(lines) + "\n", encoding="ascii")
    logger.info("Saved %dx%d PPM to %s", width, height, filepath)


def save_image(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma_correct: bool = True,
) -> None:
    """Save a linear image, choosing the format from the file extension.

    Args:
        image: Linear image array of shape (H, W, 3).
        filepath: Output path ending in .png or .ppm.
        gamma_correct: Apply gamma 2 encoding before quantizing.

    Raises:
        ValueError: If the extension is neither .png nor .ppm.
    """
    suffix = Path(filepath).suffix.lower()
    if suffix == ".png":
        save_png(image, filepath, gamma_correct=gamma_correct)
    elif suffix == ".ppm":
        save_ppm(image, filepath, gamma_correct=gamma_correct)
    else:
        raise ValueError(f"Unsupported image format '{suffix}' (use .png or .ppm)")
