"""Preview module for output and visualization.

Components:
    export: TGA and PNG writers for render buffers
    display: Matplotlib-based static display
    interactive: Taichi GGUI fly-through preview with frame blending

Example:
    >>> from tracer.preview import save_png, show_render, write_tga
    >>> write_tga("output.tga", 200, 100, buffer)
    >>> save_png("output.png", 200, 100, buffer)
    >>> show_render(buffer, 200, 100)

The interactive preview declares Taichi fields when instantiated; import it
directly once ti.init() has run:
    >>> from tracer.preview.interactive import InteractivePreview
"""

from tracer.preview.display import show_image, show_render
from tracer.preview.export import (
    TGA_HEADER_SIZE,
    buffer_to_rgb_array,
    read_tga_header,
    save_png,
    save_png_from_array,
    tga_header,
    to_bgra,
    write_tga,
)

__all__ = [
    # Display functions
    "show_render",
    "show_image",
    # Export functions
    "write_tga",
    "save_png",
    "save_png_from_array",
    "buffer_to_rgb_array",
    "to_bgra",
    "tga_header",
    "read_tga_header",
    "TGA_HEADER_SIZE",
]
