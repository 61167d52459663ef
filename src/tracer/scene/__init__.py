"""Scene module for scene description and ray-scene queries.

Components:
    world: Host-side Scene container of spheres and materials
    intersection: Device storage, load_scene() and the nearest-hit query
    presets: The demo scene and camera

Scene data is uploaded once per render into Structure-of-Arrays Taichi
fields and read concurrently by every pixel task.
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    clear_scene,
    find_nearest_hit,
    get_sphere_count,
    get_sphere_material,
    intersect_scene,
    load_scene,
)
from .presets import create_demo_camera, create_demo_scene
from .world import Scene, SceneSphere

__all__ = [
    # World
    "Scene",
    "SceneSphere",
    # Intersection
    "SceneHitRecord",
    "MAX_SPHERES",
    "clear_scene",
    "load_scene",
    "get_sphere_count",
    "get_sphere_material",
    "intersect_scene",
    "find_nearest_hit",
    # Presets
    "create_demo_scene",
    "create_demo_camera",
]
