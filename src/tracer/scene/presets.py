"""Demo scene and camera.

The demo scene is a blue diffuse sphere flanked by a fuzzy gold metal sphere
and a glass sphere, resting on a huge diffuse ground sphere. The glass sphere
contains a slightly smaller negative-radius sphere of the same material,
which turns it into a thin hollow shell (a bubble).

Example:
    >>> from tracer.scene.presets import create_demo_camera, create_demo_scene
    >>> scene = create_demo_scene()
    >>> camera = create_demo_camera(aspect_ratio=16.0 / 9.0)
"""

from tracer.camera.thin_lens import ThinLensCamera
from tracer.materials.material import Material
from tracer.scene.world import Scene

# =============================================================================
# Demo Scene Constants
# =============================================================================

DIFFUSE_SPHERE_ALBEDO = (0.1, 0.2, 0.5)
GROUND_ALBEDO = (0.6, 0.6, 0.4)

GOLD_ALBEDO = (0.8, 0.6, 0.2)
GOLD_FUZZ = 0.3

GLASS_ALBEDO = (0.9, 0.8, 0.8)
BUBBLE_ALBEDO = (1.0, 1.0, 1.0)
GLASS_IOR = 1.5

CAMERA_LOOKFROM = (0.0, 0.25, 0.0)
CAMERA_LOOKAT = (0.0, 0.0, -1.0)
CAMERA_VUP = (0.0, 1.0, 0.0)
CAMERA_VFOV = 100.0
CAMERA_APERTURE = 0.025
CAMERA_FOCUS_DIST = 1.0


def create_demo_scene() -> Scene:
    """Build the five-sphere demo scene.

    Returns:
        A Scene with, in order: the blue diffuse sphere, the ground, the gold
        metal sphere, the glass sphere and its inner bubble.
    """
    scene = Scene()
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, Material.lambert(DIFFUSE_SPHERE_ALBEDO))
    scene.add_sphere((0.0, -100.5, -1.0), 100.0, Material.lambert(GROUND_ALBEDO))
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, Material.metal(GOLD_ALBEDO, fuzz=GOLD_FUZZ))
    scene.add_sphere(
        (-1.0, 0.0, -1.0),
        0.5,
        Material.dielectric(GLASS_ALBEDO, refractive_index=GLASS_IOR),
    )
    # Negative radius: same surface, inward normals
    scene.add_sphere(
        (-1.0, 0.0, -1.0),
        -0.45,
        Material.dielectric(BUBBLE_ALBEDO, refractive_index=GLASS_IOR),
    )
    return scene


def create_demo_camera(
    aspect_ratio: float,
    lookfrom: tuple[float, float, float] = CAMERA_LOOKFROM,
    lookat: tuple[float, float, float] = CAMERA_LOOKAT,
) -> ThinLensCamera:
    """Build the demo camera.

    Args:
        aspect_ratio: Image width divided by height.
        lookfrom: Camera position. Defaults to the demo viewpoint.
        lookat: Target point. Defaults to the center of the blue sphere.

    Returns:
        A ThinLensCamera with vfov 100, aperture 0.025 and focus distance 1.
    """
    return ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=CAMERA_VUP,
        vfov=CAMERA_VFOV,
        aspect_ratio=aspect_ratio,
        aperture=CAMERA_APERTURE,
        focus_dist=CAMERA_FOCUS_DIST,
    )
