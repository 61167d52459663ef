"""Sphere primitive with ray-sphere intersection.

The ray-sphere intersection is found by solving:
    |ray_origin + t * ray_direction - center|^2 = radius^2

which expands to the quadratic
    t^2 * dot(d, d) + 2t * dot(d, oc) + dot(oc, oc) - r^2 = 0

with oc = ray_origin - center. The near root is tried first and the far root
only if the near one falls outside the open interval (t_min, t_max).

The surface normal is (point - center) / radius for both roots. Dividing by
the signed radius means a sphere with a negative radius reports inward
normals at the same hit points, which is how a hollow dielectric shell (a
bubble inside a glass ball) is modelled.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from tracer.core.ray import Ray, dot, length_squared, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and signed radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Negative values flip the normals.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
        point: The 3D point where the ray intersected the sphere.
        normal: (point - center) / radius: unit length, outward for a
            positive radius and inward for a negative one.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Test for ray-sphere intersection over the open interval (t_min, t_max).

    A discriminant <= 0 (miss or tangent ray) reports no hit. A zero radius
    can never produce a positive discriminant, so it never hits.

    Args:
        ray: The ray to test. The direction need not be normalized.
        sphere: The sphere to test intersection against.
        t_min: Lower bound (exclusive), suppresses self-intersection.
        t_max: Upper bound (exclusive), typically the closest hit so far.

    Returns:
        A HitRecord. Check the hit field to determine if intersection occurred.
    """
    oc = ray.origin - sphere.center
    a = length_squared(ray.direction)
    b = 2.0 * dot(ray.direction, oc)
    c = length_squared(oc) - sphere.radius * sphere.radius
    discriminant = b * b - 4.0 * a * c

    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    if discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Near root first
        t = (-b - sqrt_d) / (2.0 * a)
        valid = (t > t_min) and (t < t_max)

        if not valid:
            # Far root
            t = (-b + sqrt_d) / (2.0 * a)
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_at(ray, t)
            hit_normal = (hit_point - sphere.center) / sphere.radius

    return HitRecord(hit=did_hit, t=hit_t, point=hit_point, normal=hit_normal)


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    return Sphere(center=center, radius=radius)
