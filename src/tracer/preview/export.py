"""Image export for rendered pixel buffers.

Supported formats:
    - TGA (uncompressed 32-bit true color, raw BGRA rows bottom-to-top)
    - PNG (8-bit RGB via Pillow)

The renderer's buffer already matches the TGA layout, so write_tga() emits an
18-byte header followed by the buffer as-is (after a channel swap for RGBA
input). PNG export flips the rows to top-to-bottom and drops alpha.

Example:
    >>> from tracer.preview.export import save_png, write_tga
    >>> write_tga("output.tga", 200, 100, buffer)
    >>> save_png("output.png", 200, 100, buffer)
"""

import logging
import os
import struct

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

TGA_HEADER_SIZE = 18

# Image type 2: uncompressed true color
TGA_IMAGE_TYPE_TRUE_COLOR = 2
TGA_BITS_PER_PIXEL = 32

# Descriptor 0: bottom-left origin, no alpha bits declared
TGA_DESCRIPTOR = 0

BufferLike = bytes | bytearray | memoryview | npt.NDArray[np.uint8]


def tga_header(width: int, height: int) -> bytes:
    """Build the 18-byte TGA header for a 32-bit image.

    Layout: ID length 0, no color map, image type 2, five zero color-map
    bytes, zero x/y origin, little-endian width and height, 32 bits
    per pixel, descriptor 0.
    """
    return struct.pack(
        "<BBBHHBHHHHBB",
        0,  # ID length
        0,  # color map type
        TGA_IMAGE_TYPE_TRUE_COLOR,
        0,  # color map first entry
        0,  # color map length
        0,  # color map entry size
        0,  # x origin
        0,  # y origin
        width,
        height,
        TGA_BITS_PER_PIXEL,
        TGA_DESCRIPTOR,
    )


def _as_pixel_array(
    buffer: BufferLike, width: int, height: int
) -> npt.NDArray[np.uint8]:
    """View a flat 4-byte-per-pixel buffer as a (height, width, 4) array.

    Raises:
        ValueError: If the dimensions are non-positive or the buffer length
            does not match width * height * 4.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    if isinstance(buffer, np.ndarray):
        data = np.asarray(buffer, dtype=np.uint8).reshape(-1)
    else:
        data = np.frombuffer(bytes(buffer), dtype=np.uint8)

    expected = width * height * 4
    if data.size != expected:
        raise ValueError(
            f"Buffer holds {data.size} bytes, expected {expected} for {width}x{height} RGBA/BGRA"
        )
    return data.reshape(height, width, 4)


def _check_channel_order(channel_order: str) -> None:
    if channel_order not in ("bgra", "rgba"):
        raise ValueError(f"Unknown channel order {channel_order!r}; expected 'bgra' or 'rgba'")


def to_bgra(
    buffer: BufferLike, width: int, height: int, channel_order: str = "bgra"
) -> npt.NDArray[np.uint8]:
    """Return a BGRA copy of a pixel buffer. The input is never modified."""
    _check_channel_order(channel_order)
    pixels = _as_pixel_array(buffer, width, height)
    if channel_order == "rgba":
        return pixels[:, :, [2, 1, 0, 3]].copy()
    return pixels.copy()


def buffer_to_rgb_array(
    buffer: BufferLike, width: int, height: int, channel_order: str = "bgra"
) -> npt.NDArray[np.uint8]:
    """Convert a render buffer to a top-row-first RGB image array.

    Args:
        buffer: Flat buffer from the renderer (rows bottom-to-top).
        width: Image width in pixels.
        height: Image height in pixels.
        channel_order: Channel order of buffer.

    Returns:
        uint8 array of shape (height, width, 3), row 0 at the top.
    """
    _check_channel_order(channel_order)
    pixels = _as_pixel_array(buffer, width, height)
    if channel_order == "bgra":
        rgb = pixels[:, :, [2, 1, 0]]
    else:
        rgb = pixels[:, :, :3]
    return np.ascontiguousarray(np.flipud(rgb))


def write_tga(
    path: str | os.PathLike[str],
    width: int,
    height: int,
    buffer: BufferLike,
    channel_order: str = "bgra",
) -> None:
    """Write a render buffer as an uncompressed 32-bit TGA file.

    Args:
        path: Output file path.
        width: Image width in pixels (< 65536).
        height: Image height in pixels (< 65536).
        buffer: Flat buffer from the renderer (rows bottom-to-top).
        channel_order: Channel order of buffer; RGBA is swapped to BGRA on
            a copy.

    Raises:
        ValueError: If the buffer does not match the dimensions.
        OSError: If the file cannot be written.
    """
    if width > 0xFFFF or height > 0xFFFF:
        raise ValueError(f"TGA dimensions are limited to 65535, got {width}x{height}")
    bgra = to_bgra(buffer, width, height, channel_order)

    with open(path, "wb") as f:
        f.write(tga_header(width, height))
        f.write(bgra.tobytes())

    logger.info("Wrote %dx%d TGA to %s", width, height, path)


def save_png(
    path: str | os.PathLike[str],
    width: int,
    height: int,
    buffer: BufferLike,
    channel_order: str = "bgra",
) -> None:
    """Save a render buffer as an 8-bit RGB PNG via Pillow.

    Raises:
        ValueError: If the buffer does not match the dimensions.
        OSError: If the file cannot be written.
    """
    rgb = buffer_to_rgb_array(buffer, width, height, channel_order)
    pil_image = PILImage.fromarray(rgb)
    pil_image.save(path)

    logger.info("Wrote %dx%d PNG to %s", width, height, path)


def save_png_from_array(image: npt.NDArray[np.floating], path: str | os.PathLike[str]) -> None:
    """Save a display-space float image as a PNG.

    Args:
        image: Array of shape (H, W, 3) in [0, 1], row 0 at the bottom (as
            produced by ProgressiveRenderer).
        path: Output file path.
    """
    image_uint8 = (np.clip(image, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
    pil_image = PILImage.fromarray(np.ascontiguousarray(np.flipud(image_uint8)))
    pil_image.save(path)

    logger.info("Wrote %dx%d PNG to %s", image.shape[1], image.shape[0], path)


def read_tga_header(path: str | os.PathLike[str]) -> dict[str, int]:
    """Parse the header of a TGA file written by write_tga().

    Returns:
        Dictionary with image_type, width, height, bits_per_pixel and
        descriptor.
    """
    with open(path, "rb") as f:
        header = f.read(TGA_HEADER_SIZE)
    if len(header) != TGA_HEADER_SIZE:
        raise ValueError(f"{path} is too short to be a TGA file")

    fields = struct.unpack("<BBBHHBHHHHBB", header)
    return {
        "image_type": fields[2],
        "width": fields[8],
        "height": fields[9],
        "bits_per_pixel": fields[10],
        "descriptor": fields[11],
    }
