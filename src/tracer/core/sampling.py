"""Explicit per-task random number generation and Monte Carlo samplers.

Every pixel owns an independent xorshift32 stream seeded by hashing its
coordinates together with a global seed, so renders are reproducible and
independent of how Taichi schedules pixels across threads. Sampling
functions take the generator state and return the advanced state along
with the sample; no generator state is shared between pixels.

Example:
    >>> # Inside a Taichi kernel:
    >>> # state = pixel_seed(i, j, width, seed)
    >>> # x, state = random_float(state)
    >>> # p, state = random_in_unit_sphere(state)
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Number of rejection-sampling attempts before giving up on a sample
MAX_REJECTION_ATTEMPTS = 100

# 2^-24: maps the top 24 bits of a 32-bit state to [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def hash_seed(value: ti.u32) -> ti.u32:
    """Scramble an integer into a well-mixed 32-bit seed (Wang hash)."""
    h = (value ^ ti.cast(61, ti.u32)) ^ (value >> 16)
    h = h * ti.cast(9, ti.u32)
    h = h ^ (h >> 4)
    h = h * ti.cast(0x27D4EB2D, ti.u32)
    h = h ^ (h >> 15)
    return h


@ti.func
def xorshift32(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 generator by one step.

    The state must never be zero; pixel_seed() guarantees that.
    """
    s = state
    s = s ^ (s << 13)
    s = s ^ (s >> 17)
    s = s ^ (s << 5)
    return s


@ti.func
def pixel_seed(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, seed: ti.i32) -> ti.u32:
    """Derive the initial generator state for one pixel.

    Args:
        pixel_i: Pixel x-coordinate.
        pixel_j: Pixel y-coordinate.
        width: Image width in pixels.
        seed: Global render seed.

    Returns:
        A non-zero 32-bit state unique to (pixel, seed).
    """
    index = ti.cast(pixel_j * width + pixel_i, ti.u32)
    state = hash_seed(hash_seed(index) ^ hash_seed(ti.cast(seed, ti.u32)))
    if state == ti.cast(0, ti.u32):
        state = ti.cast(1, ti.u32)
    return state


@ti.func
def random_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Returns:
        A tuple of (value, new_state).
    """
    new_state = xorshift32(state)
    value = ti.cast(new_state >> 8, ti.f32) * _INV_2_POW_24
    return value, new_state


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Generate a uniformly distributed point inside the unit sphere.

    Uses rejection sampling from the enclosing cube.

    Returns:
        A tuple of (point, new_state) with |point| < 1.
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, s1 = random_float(s)
            y, s2 = random_float(s1)
            z, s3 = random_float(s2)
            s = s3
            p = vec3(x * 2.0 - 1.0, y * 2.0 - 1.0, z * 2.0 - 1.0)
            if tm.dot(p, p) < 1.0:
                found = True
    if not found:
        p = vec3(0.0, 0.0, 0.0)
    return p, s


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Generate a uniformly distributed point inside the unit disk.

    Used for lens sampling in the thin-lens camera.

    Returns:
        A tuple of (point, new_state) where point is (x, y, 0) with
        x^2 + y^2 < 1.
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, s1 = random_float(s)
            y, s2 = random_float(s1)
            s = s2
            p = vec3(x * 2.0 - 1.0, y * 2.0 - 1.0, 0.0)
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    if not found:
        p = vec3(0.0, 0.0, 0.0)
    return p, s


# =============================================================================
# Host-callable helpers
# =============================================================================


@ti.kernel
def _sample_floats(out: ti.template(), count: ti.i32, seed: ti.i32):
    state = pixel_seed(0, 0, 1, seed)
    for _ in range(1):
        s = state
        for k in range(count):
            value, s1 = random_float(s)
            s = s1
            out[k] = value


def sample_uniform_floats(count: int, seed: int = 0):
    """Draw a reproducible sequence of uniform floats from one stream.

    Mainly useful for inspecting the generator's distribution.

    Args:
        count: Number of samples to draw.
        seed: Stream seed (same seed, same sequence).

    Returns:
        NumPy float32 array of shape (count,).
    """
    if count <= 0:
        raise ValueError(f"count must be positive, got {count}")
    out = ti.field(dtype=ti.f32, shape=count)
    _sample_floats(out, count, seed & 0x7FFFFFFF)
    return out.to_numpy()
