"""Scene-level nearest-hit queries over device-resident spheres.

Spheres are uploaded from a host Scene into Structure-of-Arrays Taichi
fields by load_scene(). During a render the fields are read-only and shared
by every pixel task, so no locking is needed.

intersect_scene() is a linear scan: each accepted hit tightens the upper
bound of the search interval to that hit's t, so the final record is the
globally closest intersection along the ray.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracer.scene.intersection import load_scene, intersect_scene
    >>> from tracer.scene.presets import create_demo_scene
    >>> load_scene(create_demo_scene())
    5
    >>> # Use intersect_scene within a Taichi kernel
"""

import logging

import taichi as ti
import taichi.math as tm

from tracer.core.ray import Ray
from tracer.geometry.sphere import Sphere, hit_sphere
from tracer.materials.material import MaterialRecord
from tracer.scene.world import Scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: Whether the ray intersected any sphere (1 if hit, 0 if miss).
        t: Ray parameter of the intersection. Only valid if hit == 1.
        point: World position of the intersection. Only valid if hit == 1.
        normal: (point - center) / radius of the hit sphere. Only valid if
            hit == 1.
        sphere_index: Index of the hit sphere, -1 on a miss.
        material: Copy of the hit sphere's material.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    sphere_index: ti.i32
    material: MaterialRecord


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Per-sphere material storage
material_kinds = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
material_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
material_fuzz = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
material_refractive_indices = ti.field(dtype=ti.f32, shape=MAX_SPHERES)


def clear_scene() -> None:
    """Clear all spheres from device storage.

    Resets the sphere count to zero. The field data is left in place and is
    overwritten by the next load_scene().
    """
    num_spheres[None] = 0


def load_scene(scene: Scene) -> int:
    """Upload a host scene into device storage, replacing what was there.

    Args:
        scene: The scene to upload.

    Returns:
        The number of spheres uploaded.

    Raises:
        RuntimeError: If the scene holds more than MAX_SPHERES spheres. Device
            storage is left untouched in that case.
    """
    count = len(scene)
    if count > MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded: scene has {count}")

    clear_scene()
    for idx, sphere in enumerate(scene):
        material = sphere.material
        sphere_centers[idx] = list(sphere.center)
        sphere_radii[idx] = sphere.radius
        material_kinds[idx] = int(material.kind)
        material_albedos[idx] = list(material.albedo)
        material_fuzz[idx] = material.fuzz
        material_refractive_indices[idx] = material.refractive_index
    num_spheres[None] = count

    logger.debug("Loaded %d spheres into device storage", count)
    return count


def get_sphere_count() -> int:
    """Get the number of spheres currently loaded."""
    return int(num_spheres[None])


@ti.func
def get_sphere_material(idx: ti.i32) -> MaterialRecord:
    """Assemble the MaterialRecord for a loaded sphere."""
    return MaterialRecord(
        kind=material_kinds[idx],
        albedo=material_albedos[idx],
        fuzz=material_fuzz[idx],
        refractive_index=material_refractive_indices[idx],
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        sphere_index=-1,
        material=MaterialRecord(kind=0, albedo=vec3(0.0, 0.0, 0.0), fuzz=0.0, refractive_index=1.0),
    )


@ti.func
def intersect_scene(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> SceneHitRecord:
    """Find the nearest sphere hit in the open interval (t_min, t_max).

    Args:
        ray: The ray to test.
        t_min: Lower bound (exclusive).
        t_max: Upper bound (exclusive).

    Returns:
        A SceneHitRecord for the closest intersection, or a miss record.
    """
    closest_t = t_max
    result = _make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                sphere_index=i,
                material=get_sphere_material(i),
            )

    return result


# =============================================================================
# Host-callable query
# =============================================================================

_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_index = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _nearest_hit_kernel(origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32):
    rec = intersect_scene(Ray(origin=origin, direction=direction), t_min, t_max)
    _query_hit[None] = rec.hit
    _query_t[None] = rec.t
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_index[None] = rec.sphere_index


def find_nearest_hit(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    t_min: float,
    t_max: float,
) -> dict | None:
    """Run a nearest-hit query against the loaded scene from Python.

    Args:
        origin: Ray origin.
        direction: Ray direction (need not be normalized).
        t_min: Lower bound (exclusive).
        t_max: Upper bound (exclusive).

    Returns:
        None on a miss, otherwise a dict with keys t, point, normal and
        sphere_index.
    """
    _nearest_hit_kernel(vec3(*origin), vec3(*direction), t_min, t_max)
    if _query_hit[None] == 0:
        return None

    point = _query_point[None]
    normal = _query_normal[None]
    return {
        "t": float(_query_t[None]),
        "point": (float(point[0]), float(point[1]), float(point[2])),
        "normal": (float(normal[0]), float(normal[1]), float(normal[2])),
        "sphere_index": int(_query_index[None]),
    }
