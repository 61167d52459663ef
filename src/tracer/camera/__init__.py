"""Camera module for view and ray generation.

Components:
    thin_lens: Perspective camera with aperture and focus distance

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    CameraBasis,
    ThinLensCamera,
    build_camera_basis,
    generate_ray,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "CameraBasis",
    "build_camera_basis",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "generate_ray",
    "get_camera_info",
]
