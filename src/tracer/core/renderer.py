"""Pixel loop: sampling, averaging, gamma encoding and the 8-bit buffer.

For each pixel (i, j) the renderer draws `samples` jittered camera rays,
traces each one, averages the results, clamps to [0, 1], applies gamma
1/2.2 and quantizes with floor(c * 255.99). Every pixel owns its own random
stream seeded from (i, j, seed), so the output is byte-identical across runs
and independent of how Taichi schedules the parallel loop.

Buffer layout:
    - Row-major, 4 bytes per pixel, width * height * 4 bytes total.
    - Rows run bottom-to-top: row 0 is the bottom of the image (v = 0).
      This matches an uncompressed TGA with descriptor byte 0.
    - Channel order is BGRA by default, or RGBA. Alpha is always 255.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracer.core.renderer import render
    >>> from tracer.scene.presets import create_demo_camera, create_demo_scene
    >>> buffer = render(
    ...     create_demo_camera(2.0), create_demo_scene(),
    ...     width=200, height=100, samples=16, max_depth=8,
    ... )
    >>> len(buffer)
    80000
"""

import logging
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from tracer.camera.thin_lens import ThinLensCamera, get_ray_jittered, setup_camera
from tracer.core.integrator import trace
from tracer.core.sampling import pixel_seed
from tracer.scene.intersection import MAX_SPHERES, load_scene
from tracer.scene.world import Scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Output Constants
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

GAMMA = 2.2

# Slightly below 256 so 1.0 maps to 255 and the rest spread evenly
QUANTIZE_SCALE = 255.99

BYTES_PER_PIXEL = 4
ALPHA = 255

CHANNEL_ORDERS = ("bgra", "rgba")


@dataclass(frozen=True)
class RenderSettings:
    """Sampling and output configuration for one render.

    Attributes:
        width: Image width in pixels, in [1, MAX_IMAGE_WIDTH].
        height: Image height in pixels, in [1, MAX_IMAGE_HEIGHT].
        samples: Rays per pixel (>= 1).
        max_depth: Bounces per path (>= 0). 0 renders every hit black.
        seed: Global seed mixed into every pixel's random stream.
        channel_order: "bgra" (default) or "rgba".

    Raises:
        ValueError: If any field is out of range.
    """

    width: int
    height: int
    samples: int
    max_depth: int
    seed: int = 0
    channel_order: str = "bgra"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples <= 0:
            raise ValueError(f"Samples per pixel must be positive, got {self.samples}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.channel_order not in CHANNEL_ORDERS:
            raise ValueError(
                f"Unknown channel order {self.channel_order!r}; expected one of {CHANNEL_ORDERS}"
            )

    @property
    def num_pixels(self) -> int:
        return self.width * self.height

    @property
    def buffer_size(self) -> int:
        """Length of the output buffer in bytes."""
        return self.num_pixels * BYTES_PER_PIXEL


# =============================================================================
# Output Buffer
# =============================================================================

# Indexed [row, column, channel] with row 0 at the bottom of the image
_pixel_buffer = ti.field(dtype=ti.u8, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, BYTES_PER_PIXEL))


@ti.func
def encode_channel(value: ti.f32) -> ti.u8:
    """Clamp, gamma-encode and quantize one linear color channel."""
    c = tm.clamp(value, 0.0, 1.0)
    c = ti.pow(c, 1.0 / GAMMA)
    return ti.cast(ti.floor(c * QUANTIZE_SCALE), ti.u8)


@ti.func
def sanitize_color(color: vec3) -> vec3:
    """Replace NaN and infinite components with zero."""
    result = color
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    return result


@ti.func
def render_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
) -> vec3:
    """Average `samples` path estimates for one pixel.

    Returns:
        The linear (not yet clamped or gamma-encoded) pixel color.
    """
    state = pixel_seed(pixel_i, pixel_j, width, seed)
    total = vec3(0.0, 0.0, 0.0)
    for _ in range(samples):
        ray, s1 = get_ray_jittered(pixel_i, pixel_j, width, height, state)
        color, s2 = trace(ray, max_depth, s1)
        state = s2
        total += sanitize_color(color)
    return total / ti.cast(samples, ti.f32)


@ti.kernel
def _render_kernel(
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    bgra: ti.i32,
):
    for j, i in ti.ndrange(height, width):
        color = render_pixel(i, j, width, height, samples, max_depth, seed)
        r = encode_channel(color.x)
        g = encode_channel(color.y)
        b = encode_channel(color.z)

        if bgra == 1:
            _pixel_buffer[j, i, 0] = b
            _pixel_buffer[j, i, 1] = g
            _pixel_buffer[j, i, 2] = r
        else:
            _pixel_buffer[j, i, 0] = r
            _pixel_buffer[j, i, 1] = g
            _pixel_buffer[j, i, 2] = b
        _pixel_buffer[j, i, 3] = ti.cast(ALPHA, ti.u8)


@ti.kernel
def _copy_buffer(out: ti.types.ndarray(), width: ti.i32, height: ti.i32):
    for j, i in ti.ndrange(height, width):
        for c in ti.static(range(BYTES_PER_PIXEL)):
            out[j, i, c] = _pixel_buffer[j, i, c]


# =============================================================================
# Public Rendering API
# =============================================================================


def render_array(
    camera: ThinLensCamera,
    scene: Scene,
    width: int,
    height: int,
    samples: int,
    max_depth: int,
    seed: int = 0,
    channel_order: str = "bgra",
) -> npt.NDArray[np.uint8]:
    """Render a scene into a (height, width, 4) uint8 array.

    Row 0 of the result is the bottom image row. All configuration is
    validated before any device state is modified.

    Args:
        camera: Camera configuration.
        scene: Spheres to render.
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Rays per pixel.
        max_depth: Bounces per path.
        seed: Global random seed.
        channel_order: "bgra" or "rgba".

    Returns:
        NumPy uint8 array of shape (height, width, 4).

    Raises:
        ValueError: If the settings are invalid or camera/scene have the
            wrong type.
        RuntimeError: If the scene exceeds MAX_SPHERES.
    """
    settings = RenderSettings(
        width=width,
        height=height,
        samples=samples,
        max_depth=max_depth,
        seed=seed,
        channel_order=channel_order,
    )
    if not isinstance(camera, ThinLensCamera):
        raise ValueError(f"Expected a ThinLensCamera, got {type(camera).__name__}")
    if not isinstance(scene, Scene):
        raise ValueError(f"Expected a Scene, got {type(scene).__name__}")
    if len(scene) > MAX_SPHERES:
        raise RuntimeError(
            f"Maximum number of spheres ({MAX_SPHERES}) exceeded: scene has {len(scene)}"
        )

    setup_camera(camera)
    load_scene(scene)

    logger.debug(
        "Rendering %dx%d, %d spp, depth %d, seed %d (%s)",
        settings.width,
        settings.height,
        settings.samples,
        settings.max_depth,
        settings.seed,
        settings.channel_order,
    )
    _render_kernel(
        settings.width,
        settings.height,
        settings.samples,
        settings.max_depth,
        settings.seed & 0x7FFFFFFF,
        1 if settings.channel_order == "bgra" else 0,
    )

    out = np.empty((settings.height, settings.width, BYTES_PER_PIXEL), dtype=np.uint8)
    _copy_buffer(out, settings.width, settings.height)
    return out


def render(
    camera: ThinLensCamera,
    scene: Scene,
    width: int,
    height: int,
    samples: int,
    max_depth: int,
    seed: int = 0,
    channel_order: str = "bgra",
) -> bytes:
    """Render a scene into a flat byte buffer.

    Same arguments and errors as render_array().

    Returns:
        width * height * 4 bytes, rows bottom-to-top, in channel_order.
    """
    return render_array(
        camera,
        scene,
        width,
        height,
        samples,
        max_depth,
        seed=seed,
        channel_order=channel_order,
    ).tobytes()


def render_with_settings(camera: ThinLensCamera, scene: Scene, settings: RenderSettings) -> bytes:
    """Render using a prepared RenderSettings."""
    return render(
        camera,
        scene,
        settings.width,
        settings.height,
        settings.samples,
        settings.max_depth,
        seed=settings.seed,
        channel_order=settings.channel_order,
    )


# =============================================================================
# Host-callable helpers
# =============================================================================

_encoded_out = ti.Vector.field(3, dtype=ti.i32, shape=())


@ti.kernel
def _encode_kernel(r: ti.f32, g: ti.f32, b: ti.f32):
    color = sanitize_color(vec3(r, g, b))
    _encoded_out[None] = ti.Vector(
        [
            ti.cast(encode_channel(color.x), ti.i32),
            ti.cast(encode_channel(color.y), ti.i32),
            ti.cast(encode_channel(color.z), ti.i32),
        ]
    )


def encode_color(rgb: tuple[float, float, float]) -> tuple[int, int, int]:
    """Run the clamp, gamma and quantize pipeline on one linear color.

    Args:
        rgb: Linear color (any range; NaN maps to 0).

    Returns:
        The 8-bit (r, g, b) values the renderer would write.
    """
    _encode_kernel(float(rgb[0]), float(rgb[1]), float(rgb[2]))
    encoded = _encoded_out[None]
    return (int(encoded[0]), int(encoded[1]), int(encoded[2]))
