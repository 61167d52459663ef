"""Path tracing integrator for Monte Carlo light transport.

The integrator follows a ray through the scene: intersect, scatter, multiply
the running throughput by the attenuation and continue with the scattered
ray. A path ends in one of three ways:

    - The ray misses everything: the result is throughput * sky_color(ray).
    - The surface absorbs the ray: the result is black.
    - The ray hits a surface with no bounces left: the result is black.

The last rule is a hard depth cutoff, not Russian roulette. Paths that would
have escaped to the sky after more bounces are dropped, so the estimator is
biased toward darker values for low depths. This is the intended behaviour.

The loop is iterative with an explicit active flag since Taichi functions
cannot recurse.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracer.core.integrator import trace_ray
    >>> from tracer.scene.intersection import clear_scene
    >>> clear_scene()
    >>> color = trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), max_depth=5)
    >>> # color is the sky blue (0.5, 0.7, 1.0)
"""

import taichi as ti
import taichi.math as tm

from tracer.core.ray import Ray, safe_normalize
from tracer.materials.material import scatter
from tracer.scene.intersection import intersect_scene

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Intersection interval; T_MIN suppresses self-intersection at the hit point
T_MIN = 1e-3
T_MAX = 1e10

# Sky gradient end points: white at the horizon-down, blue straight up
SKY_WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Evaluate the background sky gradient for a ray direction.

    t = 0.5 * (normalize(direction).y + 1), color = lerp(white, blue, t).

    Args:
        direction: Ray direction (any length).

    Returns:
        The sky radiance seen along direction.
    """
    unit = safe_normalize(direction)
    t = 0.5 * (unit.y + 1.0)
    return (1.0 - t) * SKY_WHITE + t * SKY_BLUE


@ti.func
def trace(ray: Ray, max_depth: ti.i32, state: ti.u32):
    """Estimate the radiance arriving along a ray.

    Args:
        ray: The ray to trace.
        max_depth: Number of bounces allowed. A hit with no bounces left
            contributes black.
        state: Random generator state.

    Returns:
        A tuple of (color, new_state).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray
    s = state

    # Active flag for path continuation
    active = 1
    for depth in range(max_depth + 1):
        if active == 1:
            rec = intersect_scene(current, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * sky_color(current.direction)
                active = 0
            elif depth == max_depth:
                # Out of bounces
                active = 0
            else:
                attenuation, scattered, did_scatter, s1 = scatter(
                    rec.material, current, rec.point, rec.normal, s
                )
                s = s1
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    current = scattered

    return color, s


# =============================================================================
# Host-callable helpers
# =============================================================================

_trace_out = ti.Vector.field(3, dtype=ti.f32, shape=())
_sky_out = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _trace_kernel(origin: vec3, direction: vec3, max_depth: ti.i32, seed: ti.i32):
    for _ in range(1):
        state = ti.cast(seed, ti.u32) | ti.cast(1, ti.u32)
        color, _state = trace(Ray(origin=origin, direction=direction), max_depth, state)
        _trace_out[None] = color


@ti.kernel
def _sky_kernel(direction: vec3):
    _sky_out[None] = sky_color(direction)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Trace a single ray against the loaded scene from Python.

    Args:
        origin: Ray origin.
        direction: Ray direction (need not be normalized).
        max_depth: Number of bounces allowed.
        seed: Random stream seed.

    Returns:
        The radiance estimate as an (r, g, b) tuple.

    Raises:
        ValueError: If max_depth is negative.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    _trace_kernel(vec3(*origin), vec3(*direction), max_depth, seed & 0x7FFFFFFF)
    color = _trace_out[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def evaluate_sky(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    """Evaluate sky_color() from Python."""
    _sky_kernel(vec3(*direction))
    color = _sky_out[None]
    return (float(color[0]), float(color[1]), float(color[2]))
