"""Dielectric (glass/water) material implementation.

Dielectrics both reflect and refract light:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when refraction is impossible

Whether the ray enters or leaves the medium is decided from the sign of
dot(direction, normal). When it leaves, the normal is flipped and the index
ratio inverted. If refraction is possible, a uniform random draw against the
Schlick reflectance picks reflection or transmission, so the two are
blended correctly in expectation without splitting the ray. Total internal
reflection always reflects.

Example:
    >>> # Within a Taichi kernel:
    >>> # attenuation, scattered, did_scatter, state = scatter_dielectric(
    >>> #     albedo, refractive_index, ray, point, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from tracer.core.ray import Ray, dot, length, make_ray, reflect, refract, schlick
from tracer.core.sampling import random_float

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_setup(refractive_index: ti.f32, direction: vec3, normal: vec3):
    """Work out the refraction frame for a ray hitting a dielectric boundary.

    Args:
        refractive_index: Index of refraction of the material.
        direction: The incoming ray direction (any non-zero length).
        normal: The unit surface normal from the hit record.

    Returns:
        A tuple of (outward_normal, ni_over_nt, cosine) where outward_normal
        faces the incoming ray's side and cosine feeds the Schlick term.
    """
    d_dot_n = dot(direction, normal)
    inv_length = 1.0 / length(direction)

    outward_normal = normal
    ni_over_nt = 1.0 / refractive_index
    cosine = -d_dot_n * inv_length

    if d_dot_n > 0.0:
        # Leaving the medium
        outward_normal = -normal
        ni_over_nt = refractive_index
        cosine = refractive_index * d_dot_n * inv_length

    return outward_normal, ni_over_nt, cosine


@ti.func
def will_total_internal_reflect(refractive_index: ti.f32, direction: vec3, normal: vec3) -> ti.i32:
    """Check whether refraction is impossible for this incidence.

    Returns:
        1 if total internal reflection occurs, 0 otherwise.
    """
    outward_normal, ni_over_nt, _cosine = refraction_setup(refractive_index, direction, normal)
    _refracted, ok = refract(direction, outward_normal, ni_over_nt)
    return 1 - ok


@ti.func
def fresnel_reflectance(refractive_index: ti.f32, direction: vec3, normal: vec3) -> ti.f32:
    """Schlick reflectance for this incidence (ignores total internal reflection)."""
    _outward, _ratio, cosine = refraction_setup(refractive_index, direction, normal)
    return schlick(cosine, refractive_index)


@ti.func
def scatter_dielectric(
    albedo: vec3,
    refractive_index: ti.f32,
    ray: Ray,
    point: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Scatter a ray off a dielectric surface.

    Args:
        albedo: Tint applied to both reflected and transmitted light.
        refractive_index: Index of refraction of the material (>= 1).
        ray: The incoming ray.
        point: The hit point on the surface.
        normal: The unit surface normal from the hit record.
        state: Random generator state.

    Returns:
        A tuple of (attenuation, scattered, did_scatter, new_state) where
        did_scatter is always 1.
    """
    outward_normal, ni_over_nt, cosine = refraction_setup(refractive_index, ray.direction, normal)
    refracted, ok = refract(ray.direction, outward_normal, ni_over_nt)

    direction = reflect(ray.direction, normal)
    new_state = state
    if ok == 1:
        reflect_prob = schlick(cosine, refractive_index)
        xi, s1 = random_float(state)
        new_state = s1
        if xi >= reflect_prob:
            direction = refracted

    scattered = make_ray(point, direction)
    return albedo, scattered, 1, new_state
