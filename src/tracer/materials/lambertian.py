"""Lambertian (ideal diffuse) material implementation.

A diffuse surface scatters toward a random point in the unit sphere that
sits tangent to the surface at the hit point:

    target = point + normal + random_in_unit_sphere()
    scattered = Ray(point, target - point)

This produces a cosine-like distribution around the normal. The attenuation
is the albedo and the material never absorbs a ray outright.

Example:
    >>> # Within a Taichi kernel:
    >>> # attenuation, scattered, did_scatter, state = scatter_lambert(
    >>> #     albedo, point, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from tracer.core.ray import make_ray, near_zero
from tracer.core.sampling import random_in_unit_sphere

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambert(albedo: vec3, point: vec3, normal: vec3, state: ti.u32):
    """Scatter a ray off a diffuse surface.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        point: The hit point on the surface.
        normal: The unit surface normal at the hit point.
        state: Random generator state.

    Returns:
        A tuple of (attenuation, scattered, did_scatter, new_state) where
        did_scatter is always 1.
    """
    offset, new_state = random_in_unit_sphere(state)
    target = point + normal + offset
    direction = target - point

    # normal + offset can cancel out; fall back to the normal
    if near_zero(direction):
        direction = normal

    scattered = make_ray(point, direction)
    return albedo, scattered, 1, new_state
