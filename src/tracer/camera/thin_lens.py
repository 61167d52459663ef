"""Thin-lens camera model for perspective ray generation with depth of field.

The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- Aperture and focus distance (aperture = 0 degenerates to a pinhole)
- Jittered sampling for anti-aliasing

The camera builds a right-handed orthonormal basis (u, v, w) from the view
parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The focus-plane rectangle is spanned by lower_left_corner + s * horizontal +
t * vertical for s, t in [0, 1]. Ray origins are jittered inside a disk of
radius aperture / 2 spanned by u and v.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracer.camera.thin_lens import ThinLensCamera, setup_camera
    >>> camera = ThinLensCamera(
    ...     lookfrom=(0.0, 0.25, 0.0),
    ...     lookat=(0.0, 0.0, -1.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=100.0,
    ...     aspect_ratio=16.0 / 9.0,
    ...     aperture=0.025,
    ...     focus_dist=1.0,
    ... )
    >>> setup_camera(camera)
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from tracer.core.ray import make_ray
from tracer.core.sampling import random_float, random_in_unit_disk

logger = logging.getLogger(__name__)

# Minimum |cross(vup, w)| for a usable basis
_MIN_BASIS_LENGTH = 1e-8

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class ThinLensCamera:
    """Configuration for a thin-lens (depth of field) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
            Must not be parallel to the view direction.
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_dist: Distance from the lens to the plane in perfect focus.

    Raises:
        ValueError: If any parameter is out of range or the basis is degenerate.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"Vertical field of view must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"Aspect ratio must be positive, got {self.aspect_ratio}")
        if self.aperture < 0.0:
            raise ValueError(f"Aperture must be non-negative, got {self.aperture}")
        if self.focus_dist <= 0.0:
            raise ValueError(f"Focus distance must be positive, got {self.focus_dist}")

        view = np.subtract(self.lookfrom, self.lookat)
        view_length = float(np.linalg.norm(view))
        if view_length < _MIN_BASIS_LENGTH:
            raise ValueError(
                f"Camera position {self.lookfrom} coincides with look-at target {self.lookat}"
            )
        if float(np.linalg.norm(np.cross(self.vup, view / view_length))) < _MIN_BASIS_LENGTH:
            raise ValueError(
                f"Up vector {self.vup} is parallel to the view direction; "
                "the camera basis would be degenerate"
            )


@dataclass(frozen=True)
class CameraBasis:
    """Derived, immutable camera frame used for ray generation.

    Attributes:
        origin: Lens center in world space.
        lower_left_corner: Lower-left corner of the focus-plane rectangle.
        horizontal: Full-width spanning vector of the focus-plane rectangle.
        vertical: Full-height spanning vector of the focus-plane rectangle.
        u: Right direction (unit).
        v: Up direction (unit).
        w: Backward direction, opposite the view direction (unit).
        lens_radius: Half the aperture.
    """

    origin: tuple[float, float, float]
    lower_left_corner: tuple[float, float, float]
    horizontal: tuple[float, float, float]
    vertical: tuple[float, float, float]
    u: tuple[float, float, float]
    v: tuple[float, float, float]
    w: tuple[float, float, float]
    lens_radius: float


def _as_tuple(vector: np.ndarray) -> tuple[float, float, float]:
    return (float(vector[0]), float(vector[1]), float(vector[2]))


def build_camera_basis(camera: ThinLensCamera) -> CameraBasis:
    """Compute the camera basis and focus-plane geometry.

    half_height = tan(vfov / 2), half_width = aspect * half_height, and the
    focus-plane rectangle sits focus_dist along -w, scaled by focus_dist.

    Args:
        camera: Validated camera configuration.

    Returns:
        The derived CameraBasis.
    """
    theta = math.radians(camera.vfov)
    half_height = math.tan(theta / 2.0)
    half_width = camera.aspect_ratio * half_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    # w points from lookat toward lookfrom (backward)
    w = lookfrom - lookat
    w = w / np.linalg.norm(w)

    # u points right (perpendicular to w and vup)
    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)

    # v points up in the camera's frame
    v = np.cross(w, u)

    focus = camera.focus_dist
    lower_left = lookfrom - focus * half_width * u - focus * half_height * v - focus * w
    horizontal = 2.0 * half_width * focus * u
    vertical = 2.0 * half_height * focus * v

    return CameraBasis(
        origin=_as_tuple(lookfrom),
        lower_left_corner=_as_tuple(lower_left),
        horizontal=_as_tuple(horizontal),
        vertical=_as_tuple(vertical),
        u=_as_tuple(u),
        v=_as_tuple(v),
        w=_as_tuple(w),
        lens_radius=camera.aperture / 2.0,
    )


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Focus-plane rectangle
_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: ThinLensCamera) -> CameraBasis:
    """Compute the camera basis and upload it for ray generation.

    Must be called from Python (not from within a Taichi kernel) before
    rendering.

    Args:
        camera: Camera configuration with position, orientation, FOV and lens.

    Returns:
        The CameraBasis that was uploaded.
    """
    basis = build_camera_basis(camera)

    _camera_origin[None] = list(basis.origin)
    _camera_u[None] = list(basis.u)
    _camera_v[None] = list(basis.v)
    _camera_w[None] = list(basis.w)
    _horizontal[None] = list(basis.horizontal)
    _vertical[None] = list(basis.vertical)
    _lower_left_corner[None] = list(basis.lower_left_corner)
    _lens_radius[None] = basis.lens_radius

    logger.debug("Camera set up: %s", basis)
    return basis


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32, state: ti.u32):
    """Generate a ray through normalized image coordinates (s, t).

    The ray origin is offset inside the lens disk; the direction points from
    that offset origin to the focus-plane point for (s, t), so everything on
    the focus plane stays sharp.

    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].
        state: Random generator state for lens sampling.

    Returns:
        A tuple of (ray, new_state). The ray direction is not normalized.
    """
    disk, new_state = random_in_unit_disk(state)
    rd = _lens_radius[None] * disk
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    direction = (
        _lower_left_corner[None]
        + s * _horizontal[None]
        + t * _vertical[None]
        - _camera_origin[None]
        - offset
    )
    return make_ray(origin, direction), new_state


@ti.func
def get_ray_jittered(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, state: ti.u32):
    """Generate a ray with a random sub-pixel offset for anti-aliasing.

    u = (i + jitter_x) / width and v = (j + jitter_y) / height, so pixel row
    j = 0 is the bottom of the image.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        state: Random generator state.

    Returns:
        A tuple of (ray, new_state).
    """
    jitter_u, s1 = random_float(state)
    jitter_v, s2 = random_float(s1)

    u = (ti.cast(pixel_i, ti.f32) + jitter_u) / ti.cast(width, ti.f32)
    v = (ti.cast(pixel_j, ti.f32) + jitter_v) / ti.cast(height, ti.f32)

    ray, new_state = get_ray(u, v, s2)
    return ray, new_state


# =============================================================================
# Utility Functions
# =============================================================================


# Output slots for generate_ray()
_ray_origin_out = ti.Vector.field(3, dtype=ti.f32, shape=())
_ray_direction_out = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _generate_ray(s: ti.f32, t: ti.f32, seed: ti.i32):
    for _ in range(1):
        state = ti.cast(seed, ti.u32) | ti.cast(1, ti.u32)
        ray, new_state = get_ray(s, t, state)
        _ray_origin_out[None] = ray.origin
        _ray_direction_out[None] = ray.direction


def generate_ray(
    s: float, t: float, seed: int = 1
) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Generate one camera ray from Python for inspection and testing.

    Args:
        s: Horizontal image coordinate in [0, 1].
        t: Vertical image coordinate in [0, 1].
        seed: Lens sampling seed.

    Returns:
        Tuple of (origin, direction) as float triples.
    """
    _generate_ray(s, t, seed & 0x7FFFFFFF)
    origin = _ray_origin_out[None]
    direction = _ray_direction_out[None]
    return (
        (float(origin[0]), float(origin[1]), float(origin[2])),
        (float(direction[0]), float(direction[1]), float(direction[2])),
    )


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left and
        lens_radius.
    """

    def _read(field: ti.MatrixField) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": _read(_camera_origin),
        "u": _read(_camera_u),
        "v": _read(_camera_v),
        "w": _read(_camera_w),
        "horizontal": _read(_horizontal),
        "vertical": _read(_vertical),
        "lower_left": _read(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }
