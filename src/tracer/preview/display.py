"""Matplotlib-based display for rendered buffers.

Example:
    >>> from tracer.preview.display import show_render
    >>> show_render(buffer, 200, 100, title="Demo scene")
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from tracer.preview.export import BufferLike, buffer_to_rgb_array


def show_image(
    image: npt.NDArray[np.uint8] | npt.NDArray[np.float32],
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 4.5),
    block: bool = True,
) -> None:
    """Display a top-row-first RGB image in a Matplotlib figure.

    Args:
        image: Array of shape (H, W, 3), uint8 or float in [0, 1].
        title: Optional figure title.
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until the figure is closed.
    """
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(image)
    ax.axis("off")
    if title is not None:
        ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)


def show_render(
    buffer: BufferLike,
    width: int,
    height: int,
    channel_order: str = "bgra",
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 4.5),
    block: bool = True,
) -> None:
    """Display a render buffer.

    Rows are flipped and channels reordered so the image appears upright.

    Args:
        buffer: Flat buffer from the renderer.
        width: Image width in pixels.
        height: Image height in pixels.
        channel_order: Channel order of buffer.
        title: Custom title (defaults to the image size).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until the figure is closed.
    """
    rgb = buffer_to_rgb_array(buffer, width, height, channel_order)
    if title is None:
        title = f"Render - {width}x{height}"
    show_image(rgb, title=title, figsize=figsize, block=block)
