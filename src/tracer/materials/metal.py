"""Metal (specular reflective) material implementation.

Metals reflect the incoming direction about the surface normal. A fuzz
parameter perturbs the reflected direction by a random point in a sphere
of radius fuzz, producing brushed or rough-looking metal:

    reflected = reflect(d, n) + fuzz * random_in_unit_sphere()

The ray is absorbed if the perturbed reflection points below the surface
(dot(reflected, n) <= 0), which keeps fuzzy reflections from going through
the object.

Example:
    >>> # Within a Taichi kernel:
    >>> # attenuation, scattered, did_scatter, state = scatter_metal(
    >>> #     albedo, fuzz, ray, point, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from tracer.core.ray import Ray, dot, make_ray, reflect
from tracer.core.sampling import random_in_unit_sphere

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(albedo: vec3, fuzz: ti.f32, ray: Ray, point: vec3, normal: vec3, state: ti.u32):
    """Scatter a ray off a metal surface.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Reflection perturbation radius in [0, 1]. 0 = perfect mirror.
        ray: The incoming ray.
        point: The hit point on the surface.
        normal: The unit surface normal at the hit point.
        state: Random generator state.

    Returns:
        A tuple of (attenuation, scattered, did_scatter, new_state) where
        did_scatter is 0 when the reflection leaves below the surface.
    """
    offset, new_state = random_in_unit_sphere(state)
    reflected = reflect(ray.direction, normal) + fuzz * offset

    did_scatter = 0
    if dot(reflected, normal) > 0.0:
        did_scatter = 1

    scattered = make_ray(point, reflected)
    return albedo, scattered, did_scatter, new_state
