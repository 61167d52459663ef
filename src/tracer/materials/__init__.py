"""Materials module for light scattering.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick-weighted reflection
    material: The Material sum type and the scatter dispatch

Every scatter function takes the generator state explicitly and returns
(attenuation, scattered, did_scatter, new_state).
"""

from .dielectric import (
    fresnel_reflectance,
    refraction_setup,
    scatter_dielectric,
    will_total_internal_reflect,
)
from .lambertian import scatter_lambert
from .material import Material, MaterialRecord, MaterialType, scatter
from .metal import scatter_metal

__all__ = [
    # Sum type
    "Material",
    "MaterialType",
    "MaterialRecord",
    "scatter",
    # Variants
    "scatter_lambert",
    "scatter_metal",
    "scatter_dielectric",
    "refraction_setup",
    "fresnel_reflectance",
    "will_total_internal_reflect",
]
