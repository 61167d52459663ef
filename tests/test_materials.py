"""Tests for material validation and scattering.

Tests cover:
- Host-side Material constructors and validation
- Lambertian scattering directions
- Metal reflection, fuzz and absorption
- Dielectric refraction, total internal reflection and Fresnel ratio
- The scatter dispatch over MaterialRecord
"""

import math

import pytest
import taichi as ti


class TestMaterialValidation:
    """Tests for Material constructors."""

    def test_lambert(self):
        from tracer.materials.material import Material, MaterialType

        material = Material.lambert((0.1, 0.2, 0.5))
        assert material.kind == MaterialType.LAMBERT
        assert material.albedo == (0.1, 0.2, 0.5)

    def test_metal(self):
        from tracer.materials.material import Material, MaterialType

        material = Material.metal((0.8, 0.6, 0.2), fuzz=0.3)
        assert material.kind == MaterialType.METAL
        assert material.fuzz == 0.3

    def test_dielectric(self):
        from tracer.materials.material import Material, MaterialType

        material = Material.dielectric(refractive_index=1.5)
        assert material.kind == MaterialType.DIELECTRIC
        assert material.albedo == (1.0, 1.0, 1.0)
        assert material.refractive_index == 1.5

    @pytest.mark.parametrize("albedo", [(1.1, 0.5, 0.5), (0.5, -0.1, 0.5), (0.5, 0.5)])
    def test_rejects_bad_albedo(self, albedo):
        from tracer.materials.material import Material

        with pytest.raises(ValueError):
            Material.lambert(albedo)

    @pytest.mark.parametrize("fuzz", [-0.1, 1.5])
    def test_rejects_bad_fuzz(self, fuzz):
        from tracer.materials.material import Material

        with pytest.raises(ValueError, match="Fuzz"):
            Material.metal((0.5, 0.5, 0.5), fuzz=fuzz)

    def test_rejects_ior_below_one(self):
        from tracer.materials.material import Material

        with pytest.raises(ValueError, match="refraction"):
            Material.dielectric(refractive_index=0.9)

    def test_materials_are_immutable(self):
        from dataclasses import FrozenInstanceError

        from tracer.materials.material import Material

        material = Material.lambert((0.5, 0.5, 0.5))
        with pytest.raises(FrozenInstanceError):
            material.fuzz = 0.5


class TestLambertian:
    """Tests for diffuse scattering."""

    def test_scatter_direction_in_tangent_sphere(self):
        """Test direction - normal always lies inside the unit sphere."""
        from tracer.core.ray import vec3
        from tracer.core.sampling import pixel_seed
        from tracer.materials.lambertian import scatter_lambert

        n = 1000
        directions = ti.Vector.field(3, dtype=ti.f32, shape=n)
        origins = ti.Vector.field(3, dtype=ti.f32, shape=n)
        flags = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                state = pixel_seed(k, 0, n, 1)
                _att, scattered, did, _s = scatter_lambert(
                    vec3(0.5, 0.5, 0.5), vec3(1.0, 2.0, 3.0), vec3(0.0, 1.0, 0.0), state
                )
                directions[k] = scattered.direction
                origins[k] = scattered.origin
                flags[k] = did

        test_kernel()
        d = directions.to_numpy()
        o = origins.to_numpy()
        assert (flags.to_numpy() == 1).all()
        assert ((d[:, 0] ** 2 + (d[:, 1] - 1.0) ** 2 + d[:, 2] ** 2) < 1.0 + 1e-5).all()
        assert abs(o[:, 1] - 2.0).max() < 1e-6

    def test_attenuation_is_albedo(self):
        from tracer.core.ray import vec3
        from tracer.materials.lambertian import scatter_lambert

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            att, _scattered, _did, _s = scatter_lambert(
                vec3(0.1, 0.2, 0.5), vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), ti.u32(12345)
            )
            result[None] = att

        test_kernel()
        a = result[None]
        assert abs(a[0] - 0.1) < 1e-6
        assert abs(a[1] - 0.2) < 1e-6
        assert abs(a[2] - 0.5) < 1e-6


class TestMetal:
    """Tests for metal scattering."""

    def test_perfect_mirror(self):
        from tracer.core.ray import Ray, vec3
        from tracer.materials.metal import scatter_metal

        direction = ti.field(dtype=ti.math.vec3, shape=())
        did = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(-1.0, 1.0, 0.0), direction=vec3(1.0, -1.0, 0.0))
            _att, scattered, flag, _s = scatter_metal(
                vec3(0.8, 0.8, 0.8), 0.0, ray, vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), ti.u32(7)
            )
            direction[None] = scattered.direction
            did[None] = flag

        test_kernel()
        d = direction[None]
        assert did[None] == 1
        assert abs(d[0] - 1.0) < 1e-6
        assert abs(d[1] - 1.0) < 1e-6

    def test_reflection_below_surface_is_absorbed(self):
        """Test that a reflection leaving on the inner side is absorbed."""
        from tracer.core.ray import Ray, vec3
        from tracer.materials.metal import scatter_metal

        did = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            # Ray travelling along the normal side: reflect() sends it below
            ray = Ray(origin=vec3(0.0, -1.0, 0.0), direction=vec3(1.0, 0.01, 0.0))
            _att, _scattered, flag, _s = scatter_metal(
                vec3(0.8, 0.8, 0.8), 0.0, ray, vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), ti.u32(7)
            )
            did[None] = flag

        test_kernel()
        assert did[None] == 0

    def test_fuzz_perturbs_within_radius(self):
        from tracer.core.ray import Ray, vec3
        from tracer.core.sampling import pixel_seed
        from tracer.materials.metal import scatter_metal

        n = 500
        directions = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                ray = Ray(origin=vec3(0.0, 1.0, 0.0), direction=vec3(0.0, -1.0, 0.0))
                _att, scattered, _flag, _s = scatter_metal(
                    vec3(0.8, 0.8, 0.8),
                    0.3,
                    ray,
                    vec3(0.0, 0.0, 0.0),
                    vec3(0.0, 1.0, 0.0),
                    pixel_seed(k, 0, n, 2),
                )
                directions[k] = scattered.direction

        test_kernel()
        d = directions.to_numpy()
        offsets = d - [0.0, 1.0, 0.0]
        assert ((offsets**2).sum(axis=1) < 0.09 + 1e-5).all()
        assert (offsets**2).sum() > 0.0


class TestDielectric:
    """Tests for dielectric scattering."""

    def test_refraction_setup_entering(self):
        from tracer.core.ray import vec3
        from tracer.materials.dielectric import refraction_setup

        ratio = ti.field(dtype=ti.f32, shape=())
        cosine = ti.field(dtype=ti.f32, shape=())
        outward = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            n, r, c = refraction_setup(1.5, vec3(0.0, -2.0, 0.0), vec3(0.0, 1.0, 0.0))
            outward[None] = n
            ratio[None] = r
            cosine[None] = c

        test_kernel()
        assert abs(ratio[None] - 1.0 / 1.5) < 1e-6
        assert abs(cosine[None] - 1.0) < 1e-6
        assert abs(outward[None][1] - 1.0) < 1e-6

    def test_refraction_setup_exiting(self):
        from tracer.core.ray import vec3
        from tracer.materials.dielectric import refraction_setup

        ratio = ti.field(dtype=ti.f32, shape=())
        cosine = ti.field(dtype=ti.f32, shape=())
        outward = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            n, r, c = refraction_setup(1.5, vec3(0.0, 1.0, 0.0), vec3(0.0, 1.0, 0.0))
            outward[None] = n
            ratio[None] = r
            cosine[None] = c

        test_kernel()
        assert abs(ratio[None] - 1.5) < 1e-6
        assert abs(cosine[None] - 1.5) < 1e-6
        assert abs(outward[None][1] - (-1.0)) < 1e-6

    def test_total_internal_reflection(self):
        from tracer.core.ray import Ray, vec3
        from tracer.materials.dielectric import scatter_dielectric, will_total_internal_reflect

        tir = ti.field(dtype=ti.i32, shape=())
        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            # Inside the glass, leaving at a grazing angle
            d = vec3(1.0, 0.1, 0.0)
            normal = vec3(0.0, 1.0, 0.0)
            tir[None] = will_total_internal_reflect(1.5, d, normal)
            ray = Ray(origin=vec3(0.0, -1.0, 0.0), direction=d)
            _att, scattered, _did, _s = scatter_dielectric(
                vec3(1.0, 1.0, 1.0), 1.5, ray, vec3(0.0, 0.0, 0.0), normal, ti.u32(99)
            )
            direction[None] = scattered.direction

        test_kernel()
        assert tir[None] == 1
        d = direction[None]
        assert abs(d[0] - 1.0) < 1e-6
        assert abs(d[1] - (-0.1)) < 1e-6

    def test_fresnel_ratio_at_normal_incidence(self):
        """Test that about R0 = 4% of normal-incidence rays reflect off glass."""
        from tracer.core.ray import Ray, vec3
        from tracer.core.sampling import pixel_seed
        from tracer.materials.dielectric import scatter_dielectric

        n = 20000
        reflected = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                ray = Ray(origin=vec3(0.0, 1.0, 0.0), direction=vec3(0.0, -1.0, 0.0))
                _att, scattered, _did, _s = scatter_dielectric(
                    vec3(1.0, 1.0, 1.0),
                    1.5,
                    ray,
                    vec3(0.0, 0.0, 0.0),
                    vec3(0.0, 1.0, 0.0),
                    pixel_seed(k, 0, n, 4),
                )
                reflected[k] = 1 if scattered.direction.y > 0.0 else 0

        test_kernel()
        ratio = reflected.to_numpy().mean()
        assert abs(ratio - 0.04) < 0.01

    def test_refracted_ray_bends_toward_normal(self):
        from tracer.core.ray import Ray, vec3
        from tracer.materials.dielectric import scatter_dielectric

        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            d = vec3(1.0, -1.0, 0.0)
            ray = Ray(origin=vec3(-1.0, 1.0, 0.0), direction=d)
            # Draw until a transmission comes out
            result = vec3(0.0, 0.0, 0.0)
            ti.loop_config(serialize=True)
            for seed in range(1, 64):
                _att, scattered, _did, _s = scatter_dielectric(
                    vec3(1.0, 1.0, 1.0),
                    1.5,
                    ray,
                    vec3(0.0, 0.0, 0.0),
                    vec3(0.0, 1.0, 0.0),
                    ti.cast(seed * 7919, ti.u32),
                )
                if scattered.direction.y < 0.0:
                    result = scattered.direction
            direction[None] = result

        test_kernel()
        d = direction[None]
        assert d[1] < 0.0
        assert abs(d[0] - math.sin(math.radians(45.0)) / 1.5) < 1e-4


class TestScatterDispatch:
    """Tests for the MaterialRecord dispatch."""

    def _scatter(self, kind, albedo, fuzz, ior, direction):
        from tracer.core.ray import Ray, vec3
        from tracer.materials.material import MaterialRecord, scatter

        attenuation = ti.field(dtype=ti.math.vec3, shape=())
        scattered_dir = ti.field(dtype=ti.math.vec3, shape=())
        did = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(kind: ti.i32, albedo: vec3, fuzz: ti.f32, ior: ti.f32, direction: vec3):
            material = MaterialRecord(kind=kind, albedo=albedo, fuzz=fuzz, refractive_index=ior)
            ray = Ray(origin=vec3(0.0, 1.0, 0.0), direction=direction)
            att, scattered, flag, _s = scatter(
                material, ray, vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), ti.u32(31337)
            )
            attenuation[None] = att
            scattered_dir[None] = scattered.direction
            did[None] = flag

        test_kernel(kind, albedo, fuzz, ior, direction)
        return attenuation[None], scattered_dir[None], did[None]

    def test_dispatch_lambert(self):
        from tracer.materials.material import MaterialType

        att, _d, did = self._scatter(int(MaterialType.LAMBERT), (0.1, 0.2, 0.5), 0.0, 1.0, (0.0, -1.0, 0.0))
        assert did == 1
        assert abs(att[2] - 0.5) < 1e-6

    def test_dispatch_metal(self):
        from tracer.materials.material import MaterialType

        att, d, did = self._scatter(int(MaterialType.METAL), (0.8, 0.6, 0.2), 0.0, 1.0, (0.0, -1.0, 0.0))
        assert did == 1
        assert abs(att[0] - 0.8) < 1e-6
        assert abs(d[1] - 1.0) < 1e-6

    def test_dispatch_dielectric(self):
        from tracer.materials.material import MaterialType

        att, _d, did = self._scatter(
            int(MaterialType.DIELECTRIC), (0.9, 0.8, 0.8), 0.0, 1.5, (0.0, -1.0, 0.0)
        )
        assert did == 1
        assert abs(att[0] - 0.9) < 1e-6
