"""Tests for the host scene, device upload and nearest-hit queries.

Tests cover:
- Scene validation when adding spheres
- load_scene counts and capacity limits
- Nearest-hit ordering across several spheres
- The demo scene and demo camera
"""

import math

import pytest


class TestSceneValidation:
    """Tests for host-side Scene construction."""

    def test_add_sphere_returns_index(self):
        from tracer.materials.material import Material
        from tracer.scene.world import Scene

        scene = Scene()
        material = Material.lambert((0.5, 0.5, 0.5))
        assert scene.add_sphere((0.0, 0.0, -1.0), 0.5, material) == 0
        assert scene.add_sphere((1.0, 0.0, -1.0), 0.5, material) == 1
        assert len(scene) == 2

    def test_negative_radius_allowed(self):
        from tracer.materials.material import Material
        from tracer.scene.world import Scene

        scene = Scene()
        scene.add_sphere((0.0, 0.0, -1.0), -0.45, Material.dielectric())
        assert scene.spheres[0].radius == -0.45

    @pytest.mark.parametrize("radius", [0.0, math.inf, math.nan])
    def test_rejects_bad_radius(self, radius):
        from tracer.materials.material import Material
        from tracer.scene.world import Scene

        with pytest.raises(ValueError, match="radius"):
            Scene().add_sphere((0.0, 0.0, 0.0), radius, Material.lambert((0.5, 0.5, 0.5)))

    @pytest.mark.parametrize("center", [(0.0, 0.0), (0.0, math.nan, 0.0)])
    def test_rejects_bad_center(self, center):
        from tracer.materials.material import Material
        from tracer.scene.world import Scene

        with pytest.raises(ValueError, match="center"):
            Scene().add_sphere(center, 1.0, Material.lambert((0.5, 0.5, 0.5)))

    def test_rejects_non_material(self):
        from tracer.scene.world import Scene

        with pytest.raises(ValueError, match="Material"):
            Scene().add_sphere((0.0, 0.0, 0.0), 1.0, (0.5, 0.5, 0.5))

    def test_clear_and_iterate(self):
        from tracer.materials.material import Material
        from tracer.scene.world import Scene

        scene = Scene()
        scene.add_sphere((0.0, 0.0, -1.0), 0.5, Material.lambert((0.5, 0.5, 0.5)))
        assert [s.center for s in scene] == [(0.0, 0.0, -1.0)]
        scene.clear()
        assert len(scene) == 0


class TestLoadScene:
    """Tests for uploading a scene to device storage."""

    def test_load_returns_count(self):
        from tracer.scene.intersection import get_sphere_count, load_scene
        from tracer.scene.presets import create_demo_scene

        assert load_scene(create_demo_scene()) == 5
        assert get_sphere_count() == 5

    def test_load_replaces_previous_scene(self):
        from tracer.materials.material import Material
        from tracer.scene.intersection import get_sphere_count, load_scene
        from tracer.scene.presets import create_demo_scene
        from tracer.scene.world import Scene

        load_scene(create_demo_scene())
        scene = Scene()
        scene.add_sphere((0.0, 0.0, -1.0), 0.5, Material.lambert((0.5, 0.5, 0.5)))
        load_scene(scene)
        assert get_sphere_count() == 1

    def test_overflow_leaves_storage_untouched(self):
        from tracer.materials.material import Material
        from tracer.scene.intersection import MAX_SPHERES, get_sphere_count, load_scene
        from tracer.scene.presets import create_demo_scene
        from tracer.scene.world import Scene, SceneSphere

        load_scene(create_demo_scene())

        material = Material.lambert((0.5, 0.5, 0.5))
        big = Scene(spheres=[SceneSphere((float(i), 0.0, 0.0), 0.1, material) for i in range(MAX_SPHERES + 1)])
        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            load_scene(big)
        assert get_sphere_count() == 5

    def test_clear_scene(self):
        from tracer.scene.intersection import clear_scene, get_sphere_count, load_scene
        from tracer.scene.presets import create_demo_scene

        load_scene(create_demo_scene())
        clear_scene()
        assert get_sphere_count() == 0


class TestNearestHit:
    """Tests for find_nearest_hit over the loaded scene."""

    def _three_spheres_in_a_row(self):
        from tracer.materials.material import Material
        from tracer.scene.world import Scene

        material = Material.lambert((0.5, 0.5, 0.5))
        scene = Scene()
        # Inserted far-to-near so insertion order differs from depth order
        scene.add_sphere((0.0, 0.0, -10.0), 1.0, material)
        scene.add_sphere((0.0, 0.0, -5.0), 1.0, material)
        scene.add_sphere((0.0, 0.0, -7.5), 1.0, material)
        return scene

    def test_nearest_sphere_wins(self):
        from tracer.scene.intersection import find_nearest_hit, load_scene

        load_scene(self._three_spheres_in_a_row())
        hit = find_nearest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 1e-3, 1e10)

        assert hit is not None
        assert hit["sphere_index"] == 1
        assert hit["t"] == pytest.approx(4.0, abs=1e-4)
        assert hit["point"][2] == pytest.approx(-4.0, abs=1e-4)
        assert hit["normal"][2] == pytest.approx(1.0, abs=1e-4)

    def test_t_max_excludes_hits(self):
        from tracer.scene.intersection import find_nearest_hit, load_scene

        load_scene(self._three_spheres_in_a_row())
        assert find_nearest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 1e-3, 3.9) is None

    def test_t_min_skips_near_sphere(self):
        from tracer.scene.intersection import find_nearest_hit, load_scene

        load_scene(self._three_spheres_in_a_row())
        hit = find_nearest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 6.1, 1e10)

        assert hit is not None
        assert hit["sphere_index"] == 2
        assert hit["t"] == pytest.approx(6.5, abs=1e-4)

    def test_empty_scene_misses(self):
        from tracer.scene.intersection import find_nearest_hit

        assert find_nearest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 1e-3, 1e10) is None

    def test_bubble_normal_points_inward(self):
        """Test that the demo bubble reports an inward normal on its surface."""
        from tracer.materials.material import Material
        from tracer.scene.intersection import find_nearest_hit, load_scene
        from tracer.scene.world import Scene

        scene = Scene()
        scene.add_sphere((0.0, 0.0, -1.0), -0.45, Material.dielectric())
        load_scene(scene)
        hit = find_nearest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 1e-3, 1e10)

        assert hit is not None
        assert hit["t"] == pytest.approx(0.55, abs=1e-4)
        assert hit["normal"][2] == pytest.approx(-1.0, abs=1e-4)


class TestDemoScene:
    """Tests for the demo scene and camera presets."""

    def test_demo_scene_layout(self):
        from tracer.materials.material import MaterialType
        from tracer.scene.presets import create_demo_scene

        scene = create_demo_scene()
        kinds = [s.material.kind for s in scene]

        assert len(scene) == 5
        assert kinds == [
            MaterialType.LAMBERT,
            MaterialType.LAMBERT,
            MaterialType.METAL,
            MaterialType.DIELECTRIC,
            MaterialType.DIELECTRIC,
        ]
        assert scene.spheres[1].radius == 100.0

    def test_bubble_shares_glass_center(self):
        from tracer.scene.presets import create_demo_scene

        glass, bubble = create_demo_scene().spheres[3:]
        assert glass.center == bubble.center
        assert bubble.radius < 0.0
        assert abs(bubble.radius) < glass.radius

    def test_gold_is_fuzzy(self):
        from tracer.scene.presets import GOLD_FUZZ, create_demo_scene

        gold = create_demo_scene().spheres[2]
        assert gold.material.fuzz == GOLD_FUZZ
        assert gold.material.albedo == (0.8, 0.6, 0.2)

    def test_demo_camera(self):
        from tracer.scene.presets import create_demo_camera

        camera = create_demo_camera(aspect_ratio=16.0 / 9.0)
        assert camera.lookfrom == (0.0, 0.25, 0.0)
        assert camera.lookat == (0.0, 0.0, -1.0)
        assert camera.vfov == 100.0
        assert camera.aperture == 0.025
        assert camera.focus_dist == 1.0
