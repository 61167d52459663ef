"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    ray: Ray data structure, vector helpers, reflection and refraction
    sampling: Per-pixel random streams and Monte Carlo samplers
    integrator: Iterative path integration against the sky gradient
    renderer: Pixel loop, gamma encoding and the 8-bit output buffer
    progressive: Frame-to-frame history blending for live preview
    timing: Wall-clock statistics for offline renders

All compute-intensive operations use Taichi kernels for parallel execution.
"""

from .ray import (
    ZERO_LENGTH_EPSILON,
    Ray,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    ray_at,
    reflect,
    refract,
    safe_normalize,
    schlick,
    vec3,
)
from .sampling import (
    MAX_REJECTION_ATTEMPTS,
    hash_seed,
    pixel_seed,
    random_float,
    random_in_unit_disk,
    random_in_unit_sphere,
    sample_uniform_floats,
    xorshift32,
)

# Note: integrator, renderer and progressive declare Taichi fields and are NOT
# imported here. Import them directly once ti.init() has run, e.g.:
#   from tracer.core.renderer import render

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "safe_normalize",
    "dot",
    "reflect",
    "refract",
    "schlick",
    "near_zero",
    "ZERO_LENGTH_EPSILON",
    "hash_seed",
    "xorshift32",
    "pixel_seed",
    "random_float",
    "random_in_unit_sphere",
    "random_in_unit_disk",
    "sample_uniform_floats",
    "MAX_REJECTION_ATTEMPTS",
]
