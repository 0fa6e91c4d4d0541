"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Progressive rendering that refines over time
- Batch rendering (multiple SPP in one call)
- Progress callbacks and a generator form for UI updates
- Easy reset and re-render functionality

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.spheretrace.core.progressive import ProgressiveRenderer
    >>> from src.spheretrace.scene.presets import create_three_spheres_scene
    >>> from src.spheretrace.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(400, 225, max_depth=50)
    >>> renderer.render(100)
    >>> image = renderer.get_image_numpy()
"""

import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from src.spheretrace.core.integrator import (
    DEFAULT_MAX_DEPTH,
    clear_render_target,
    get_image,
    get_normalized_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from src.spheretrace.preview.display import linear_to_gamma
from src.spheretrace.preview.export import image_to_uint8, save_image

logger = logging.getLogger(__name__)

# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps its own width, height and bounce limit and
    delegates to the global integrator buffers (which are Taichi fields).

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum number of bounces per camera ray.
    """

    def __init__(self, width: int, height: int, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            max_depth: Maximum number of bounces per camera ray.

        Raises:
            ValueError: If dimensions are not positive or exceed the
                maximum supported size, or max_depth is not positive.
        """
        self.max_depth = max_depth
        self._width = width
        self._height = height
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @max_depth.setter
    def max_depth(self, value: int) -> None:
        if value <= 0:
            raise ValueError(f"max_depth = {value} must be positive")
        self._max_depth = value

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulator without changing the image dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Raises:
            ValueError: If dimensions are not supported.
        """
        self._width = width
        self._height = height
        setup_render_target(width, height)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_samples <= 0:
            return

        batch_size = max(1, batch_size)
        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self.max_depth)
            remaining -= batch
            current = self.sample_count
            logger.info("Rendered %d/%d samples per pixel", current, target_samples)
            yield (current, target_samples)

    def get_image(self) -> Any:
        """Get the raw Taichi color buffer field (full preallocated size)."""
        return get_image()

    def get_image_numpy(self, gamma_correct: bool = False) -> npt.NDArray[np.float32]:
        """Get the rendered image as a NumPy array.

        Args:
            gamma_correct: Apply gamma 2 (square root) for display.
                Default False returns linear values.

        Returns:
            NumPy array of shape (height, width, 3) with values in [0, 1].
        """
        image = get_normalized_image_numpy()

        if gamma_correct:
            image = linear_to_gamma(image)

        return image

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the gamma-corrected image as an 8-bit NumPy array."""
        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str | Path) -> None:
        """Save the rendered image as PNG or PPM based on the extension.

        Raises:
            ValueError: If the file extension is not supported.
        """
        save_image(self.get_image_numpy(), filepath)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"max_depth={self.max_depth}, samples={self.sample_count})"
        )
