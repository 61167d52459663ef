"""Tests for the thin-lens camera.

Tests cover:
- Configuration validation
- Orthonormal basis construction
- Focus-plane geometry
- Ray generation for pinhole and finite-aperture cameras
"""

import math

import numpy as np
import pytest


def _demo_camera(**overrides):
    from tracer.camera.thin_lens import ThinLensCamera

    params = dict(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=2.0,
        aperture=0.0,
        focus_dist=1.0,
    )
    params.update(overrides)
    return ThinLensCamera(**params)


class TestCameraValidation:
    """Tests for ThinLensCamera construction errors."""

    @pytest.mark.parametrize("vfov", [0.0, 180.0, -10.0, 200.0])
    def test_rejects_bad_vfov(self, vfov):
        with pytest.raises(ValueError, match="field of view"):
            _demo_camera(vfov=vfov)

    def test_rejects_non_positive_aspect(self):
        with pytest.raises(ValueError, match="Aspect"):
            _demo_camera(aspect_ratio=0.0)

    def test_rejects_negative_aperture(self):
        with pytest.raises(ValueError, match="Aperture"):
            _demo_camera(aperture=-0.1)

    def test_rejects_non_positive_focus(self):
        with pytest.raises(ValueError, match="Focus"):
            _demo_camera(focus_dist=0.0)

    def test_rejects_eye_at_target(self):
        with pytest.raises(ValueError, match="coincides"):
            _demo_camera(lookat=(0.0, 0.0, 0.0))

    def test_rejects_up_parallel_to_view(self):
        with pytest.raises(ValueError, match="parallel"):
            _demo_camera(vup=(0.0, 0.0, 1.0))


class TestCameraBasis:
    """Tests for build_camera_basis."""

    def test_basis_is_right_handed_orthonormal(self):
        from tracer.camera.thin_lens import build_camera_basis

        basis = build_camera_basis(
            _demo_camera(lookfrom=(1.0, 2.0, 3.0), lookat=(-2.0, 0.5, -4.0), vup=(0.0, 1.0, 0.0))
        )
        u, v, w = (np.array(basis.u), np.array(basis.v), np.array(basis.w))

        for axis in (u, v, w):
            assert abs(np.linalg.norm(axis) - 1.0) < 1e-9
        assert abs(np.dot(u, v)) < 1e-9
        assert abs(np.dot(v, w)) < 1e-9
        assert abs(np.dot(u, w)) < 1e-9
        np.testing.assert_allclose(np.cross(u, v), w, atol=1e-9)

    def test_focus_plane_rectangle(self):
        from tracer.camera.thin_lens import build_camera_basis

        basis = build_camera_basis(_demo_camera(vfov=90.0, aspect_ratio=2.0, focus_dist=2.0))

        # half_height = tan(45) = 1, half_width = 2, both scaled by focus 2
        np.testing.assert_allclose(basis.horizontal, (8.0, 0.0, 0.0), atol=1e-9)
        np.testing.assert_allclose(basis.vertical, (0.0, 4.0, 0.0), atol=1e-9)
        np.testing.assert_allclose(basis.lower_left_corner, (-4.0, -2.0, -2.0), atol=1e-9)
        assert basis.lens_radius == 0.0

    def test_lens_radius_is_half_aperture(self):
        from tracer.camera.thin_lens import build_camera_basis

        basis = build_camera_basis(_demo_camera(aperture=0.5))
        assert basis.lens_radius == 0.25


class TestRayGeneration:
    """Tests for camera ray generation."""

    def test_setup_camera_uploads_basis(self):
        from tracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_demo_camera(lookfrom=(0.0, 0.25, 0.0)))
        info = get_camera_info()

        assert info["origin"] == pytest.approx((0.0, 0.25, 0.0), abs=1e-6)
        assert info["lens_radius"] == pytest.approx(0.0)

    def test_center_ray_points_at_target(self):
        from tracer.camera.thin_lens import generate_ray, setup_camera

        setup_camera(_demo_camera())
        origin, direction = generate_ray(0.5, 0.5)

        assert origin == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)
        length = math.sqrt(sum(c * c for c in direction))
        assert direction[0] / length == pytest.approx(0.0, abs=1e-6)
        assert direction[1] / length == pytest.approx(0.0, abs=1e-6)
        assert direction[2] / length == pytest.approx(-1.0, abs=1e-6)

    def test_corner_ray_hits_lower_left(self):
        from tracer.camera.thin_lens import generate_ray, setup_camera

        setup_camera(_demo_camera(vfov=90.0, aspect_ratio=2.0))
        _origin, direction = generate_ray(0.0, 0.0)

        assert direction == pytest.approx((-2.0, -1.0, -1.0), abs=1e-5)

    def test_aperture_offsets_origin_within_lens(self):
        from tracer.camera.thin_lens import generate_ray, setup_camera

        setup_camera(_demo_camera(aperture=1.0, focus_dist=2.0))

        for seed in range(1, 20):
            origin, direction = generate_ray(0.5, 0.5, seed=seed)
            # Origin stays in the lens plane (z = 0) inside radius 0.5
            assert origin[2] == pytest.approx(0.0, abs=1e-6)
            assert origin[0] ** 2 + origin[1] ** 2 < 0.25 + 1e-6
            # Every lens sample converges on the focus-plane center
            target = tuple(o + d for o, d in zip(origin, direction))
            assert target == pytest.approx((0.0, 0.0, -2.0), abs=1e-5)
