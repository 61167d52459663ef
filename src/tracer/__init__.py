"""Taichi-based Monte Carlo path tracer for sphere scenes.

This package renders a camera view of a list of spheres by casting many
jittered rays per pixel and integrating light transport, with support for:
- Thin-lens camera with depth of field
- Diffuse, fuzzy metal and dielectric (glass) materials
- Analytic sky gradient as the only light source
- Deterministic per-pixel random number streams

Subpackages:
    core: Rays, sampling, the integrator, the pixel renderer and accumulation
    geometry: Sphere primitive and ray-sphere intersection
    materials: Material variants and the scatter dispatch
    scene: Scene container, device storage and nearest-hit queries
    camera: Thin-lens camera model with ray generation
    preview: TGA/PNG output, static display and the live preview window
"""

__version__ = "0.1.0"
