"""Material sum type and the single scatter dispatch.

Materials are a closed set of three variants: Lambert (diffuse), Metal
(reflective with fuzz) and Dielectric (refractive with Fresnel-weighted
reflection). On the host a Material is an immutable value; on the device it
is flattened into a MaterialRecord struct whose kind tag selects the scatter
branch.

Example:
    >>> from tracer.materials.material import Material
    >>> glass = Material.dielectric(albedo=(1.0, 1.0, 1.0), refractive_index=1.5)
    >>> gold = Material.metal(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
"""

from dataclasses import dataclass
from enum import IntEnum

import taichi as ti
import taichi.math as tm

from tracer.core.ray import Ray
from tracer.materials.dielectric import scatter_dielectric
from tracer.materials.lambertian import scatter_lambert
from tracer.materials.metal import scatter_metal

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Material variant tag, shared between host and device."""

    LAMBERT = 0
    METAL = 1
    DIELECTRIC = 2


def _validate_albedo(albedo: tuple[float, float, float]) -> tuple[float, float, float]:
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return (float(albedo[0]), float(albedo[1]), float(albedo[2]))


@dataclass(frozen=True)
class Material:
    """Host-side material value.

    Build instances with the lambert(), metal() and dielectric() constructors
    rather than directly; they validate the parameters.

    Attributes:
        kind: Which variant this is.
        albedo: Color multiplier (RGB in [0, 1]).
        fuzz: Metal reflection perturbation in [0, 1]. Unused otherwise.
        refractive_index: Dielectric index of refraction. Unused otherwise.
    """

    kind: MaterialType
    albedo: tuple[float, float, float]
    fuzz: float = 0.0
    refractive_index: float = 1.0

    @classmethod
    def lambert(cls, albedo: tuple[float, float, float]) -> "Material":
        """Create a diffuse material.

        Raises:
            ValueError: If any albedo component is outside [0, 1].
        """
        return cls(kind=MaterialType.LAMBERT, albedo=_validate_albedo(albedo))

    @classmethod
    def metal(cls, albedo: tuple[float, float, float], fuzz: float = 0.0) -> "Material":
        """Create a reflective material.

        Args:
            albedo: Reflective tint as (R, G, B).
            fuzz: 0 = perfect mirror, 1 = maximum fuzz.

        Raises:
            ValueError: If any albedo component or fuzz is outside [0, 1].
        """
        if fuzz < 0.0 or fuzz > 1.0:
            raise ValueError(
                f"Fuzz = {fuzz} is outside [0, 1]. "
                "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
            )
        return cls(kind=MaterialType.METAL, albedo=_validate_albedo(albedo), fuzz=float(fuzz))

    @classmethod
    def dielectric(
        cls, albedo: tuple[float, float, float] = (1.0, 1.0, 1.0), refractive_index: float = 1.5
    ) -> "Material":
        """Create a refractive material.

        Args:
            albedo: Tint applied to reflected and transmitted light.
            refractive_index: Index of refraction. Common values:
                - Water: 1.33
                - Glass: 1.5
                - Diamond: 2.4

        Raises:
            ValueError: If any albedo component is outside [0, 1] or the
                refractive index is below 1.
        """
        if refractive_index < 1.0:
            raise ValueError(
                f"Index of refraction = {refractive_index} is less than 1.0. "
                "IOR must be >= 1.0 for physically meaningful materials."
            )
        return cls(
            kind=MaterialType.DIELECTRIC,
            albedo=_validate_albedo(albedo),
            refractive_index=float(refractive_index),
        )


@ti.dataclass
class MaterialRecord:
    """Device-side material, the flattened form of Material.

    Attributes:
        kind: MaterialType value.
        albedo: Color multiplier.
        fuzz: Metal fuzz.
        refractive_index: Dielectric index of refraction.
    """

    kind: ti.i32
    albedo: vec3
    fuzz: ti.f32
    refractive_index: ti.f32


@ti.func
def scatter(material: MaterialRecord, ray: Ray, point: vec3, normal: vec3, state: ti.u32):
    """Scatter an incoming ray according to the material at a hit point.

    Args:
        material: The hit primitive's material.
        ray: The incoming ray.
        point: The hit point.
        normal: The hit record's surface normal.
        state: Random generator state.

    Returns:
        A tuple of (attenuation, scattered, did_scatter, new_state) where:
        - attenuation: Per-channel color multiplier for this bounce.
        - scattered: The outgoing ray (meaningless if did_scatter == 0).
        - did_scatter: 1 if the ray continues, 0 if it was absorbed.
        - new_state: The advanced generator state.
    """
    attenuation = vec3(0.0, 0.0, 0.0)
    scattered = Ray(origin=point, direction=normal)
    did_scatter = 0
    new_state = state

    if material.kind == int(MaterialType.LAMBERT):
        attenuation, scattered, did_scatter, new_state = scatter_lambert(
            material.albedo, point, normal, state
        )
    elif material.kind == int(MaterialType.METAL):
        attenuation, scattered, did_scatter, new_state = scatter_metal(
            material.albedo, material.fuzz, ray, point, normal, state
        )
    elif material.kind == int(MaterialType.DIELECTRIC):
        attenuation, scattered, did_scatter, new_state = scatter_dielectric(
            material.albedo, material.refractive_index, ray, point, normal, state
        )

    return attenuation, scattered, did_scatter, new_state
