"""Matplotlib-based preview display for rendered images.

The renderer produces linear-space colors. For display they are encoded
with gamma 2 (the square root of each component) and clamped to [0, 1].

Example:
    >>> from src.spheretrace.preview.display import show_preview
    >>> from src.spheretrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from src.spheretrace.core.progressive import ProgressiveRenderer


def linear_to_gamma(
    image: npt.NDArray[np.float32],
) -> npt.NDArray[np.float32]:
    """Encode linear values with gamma 2.

    Positive components become their square root; zero and negative
    components become 0.

    Args:
        image: Linear image array of any shape.

    Returns:
        Gamma encoded array of the same shape.
    """
    image = np.asarray(image, dtype=np.float32)
    return np.sqrt(np.maximum(image, 0.0)).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    gamma_correct: bool = True,
) -> npt.NDArray[np.float32]:
    """Prepare a linear image for display.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma_correct: Apply gamma 2 encoding before clamping.

    Returns:
        Image in the [0, 1] range.
    """
    result = np.asarray(image, dtype=np.float32)

    if gamma_correct:
        result = linear_to_gamma(result)

    return np.clip(result, 0.0, 1.0).astype(np.float32)


def show_preview(
    renderer: ProgressiveRenderer,
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 4.5),
    block: bool = True,
) -> None:
    """Display the current render as a Matplotlib figure.

    Args:
        renderer: The ProgressiveRenderer instance to display.
        title: Custom title (default shows sample count).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(renderer.get_image_numpy())

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = f"Render Preview - {renderer.sample_count} SPP"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
