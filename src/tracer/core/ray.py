"""Ray data structure and vector utilities for GPU-accelerated ray tracing.

This module provides the fundamental Ray dataclass and the vector helpers
used by intersection and scattering. All operations are Taichi functions
designed to be called from within kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def demo() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
    ...     return ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Vectors shorter than this are treated as zero-length
ZERO_LENGTH_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            normalized; intersection works with any non-zero length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def safe_normalize(v: vec3) -> vec3:
    """Normalize a vector, mapping zero-length input to the zero vector.

    Keeps NaN out of the integrator when a degenerate direction shows up.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the direction of v, or (0, 0, 0) if |v| is below
        ZERO_LENGTH_EPSILON.
    """
    len_v = tm.length(v)
    result = vec3(0.0, 0.0, 0.0)
    if len_v > ZERO_LENGTH_EPSILON:
        result = v / len_v
    return result


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = ZERO_LENGTH_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Reflection and Refraction
# =============================================================================


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes v - 2 * dot(v, n) * n. Applying it twice with the same unit
    normal returns the original vector.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be unit length).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, ni_over_nt: ti.f32):
    """Refract an incident vector through a surface using Snell's law.

    The incident direction is normalized first, so the caller may pass a
    raw ray direction.

    Args:
        incident: The incoming direction vector (any non-zero length).
        normal: The unit surface normal on the incident side.
        ni_over_nt: Ratio of refractive indices (incident / transmitted).

    Returns:
        A tuple of (refracted, ok) where:
        - refracted: The refracted direction, or a zero vector.
        - ok: 1 if refraction happened, 0 on total internal reflection.
    """
    uv = safe_normalize(incident)
    dt = dot(uv, normal)
    discriminant = 1.0 - ni_over_nt * ni_over_nt * (1.0 - dt * dt)
    refracted = vec3(0.0, 0.0, 0.0)
    ok = 0
    if discriminant > 0.0:
        refracted = ni_over_nt * (uv - normal * dt) - normal * ti.sqrt(discriminant)
        ok = 1
    return refracted, ok


@ti.func
def schlick(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    R0 = ((1 - n) / (1 + n))^2 and R(cos) = R0 + (1 - R0) * (1 - cos)^5.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Refractive index of the material.

    Returns:
        The approximate Fresnel reflectance in [0, 1].
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
