"""Host-side scene description.

A Scene is an ordered list of spheres, each paired with its material. It is
built on the host, validated as spheres are added, and uploaded to device
storage in one step by tracer.scene.intersection.load_scene(). Insertion
order does not affect the render; only the nearest hit along a ray matters.

Example:
    >>> from tracer.materials.material import Material
    >>> from tracer.scene.world import Scene
    >>> scene = Scene()
    >>> scene.add_sphere((0.0, 0.0, -1.0), 0.5, Material.lambert((0.1, 0.2, 0.5)))
    0
    >>> len(scene)
    1
"""

import math
from collections.abc import Iterator
from dataclasses import dataclass, field

from tracer.materials.material import Material


@dataclass(frozen=True)
class SceneSphere:
    """A sphere primitive together with its material.

    Attributes:
        center: Sphere center in world space (x, y, z).
        radius: Signed radius. A negative radius flips the surface normals,
            which models a hollow shell inside a dielectric.
        material: The sphere's material.
    """

    center: tuple[float, float, float]
    radius: float
    material: Material


@dataclass
class Scene:
    """Ordered collection of spheres to render.

    Attributes:
        spheres: The spheres in insertion order.
    """

    spheres: list[SceneSphere] = field(default_factory=list)

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material: Material,
    ) -> int:
        """Append a sphere to the scene.

        Args:
            center: Sphere center (x, y, z).
            radius: Signed, non-zero, finite radius.
            material: The sphere's material.

        Returns:
            The index of the added sphere.

        Raises:
            ValueError: If the center is not a finite 3-vector or the radius
                is zero or not finite.
        """
        if len(center) != 3 or not all(math.isfinite(c) for c in center):
            raise ValueError(f"Sphere center must be 3 finite components, got {center}")
        if not math.isfinite(radius) or radius == 0.0:
            raise ValueError(f"Sphere radius must be non-zero and finite, got {radius}")
        if not isinstance(material, Material):
            raise ValueError(f"Expected a Material, got {type(material).__name__}")

        sphere = SceneSphere(
            center=(float(center[0]), float(center[1]), float(center[2])),
            radius=float(radius),
            material=material,
        )
        self.spheres.append(sphere)
        return len(self.spheres) - 1

    def clear(self) -> None:
        """Remove all spheres."""
        self.spheres.clear()

    def __len__(self) -> int:
        return len(self.spheres)

    def __iter__(self) -> Iterator[SceneSphere]:
        return iter(self.spheres)
