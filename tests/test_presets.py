"""Tests for the built-in scenes.

Tests cover:
- The three-sphere scene layout and camera
- Random scene determinism, spacing rules and camera
- RandomSceneParams validation
"""

import numpy as np
import pytest


class TestThreeSpheresScene:
    """Tests for create_three_spheres_scene."""

    def test_counts(self):
        from src.tracer.scene.presets import create_three_spheres_scene

        scene, _ = create_three_spheres_scene()
        assert scene.get_sphere_count() == 5
        assert scene.get_material_count() == 4

    def test_hollow_glass_shares_material(self):
        """The glass shell and its inner bubble use one dielectric material."""
        from src.tracer.scene.manager import MaterialType
        from src.tracer.scene.presets import create_three_spheres_scene

        scene, _ = create_three_spheres_scene()
        shell = [s for s in scene.spheres if s.center == (-1.0, 0.0, -1.0)]

        assert sorted(s.radius for s in shell) == [-0.45, 0.5]
        assert shell[0].material_id == shell[1].material_id
        assert scene.get_material_type_python(shell[0].material_id) == MaterialType.DIELECTRIC

    def test_camera(self):
        from src.tracer.scene.presets import create_three_spheres_scene

        _, camera = create_three_spheres_scene(aspect_ratio=2.0)
        assert camera.lookfrom == (0.0, 0.0, 0.0)
        assert camera.lookat == (0.0, 0.0, -1.0)
        assert camera.vfov == 90.0
        assert camera.aperture == 0.0
        assert camera.aspect_ratio == 2.0

    def test_renders_through_metal_and_glass(self):
        """Every material in the scene is reachable by the integrator."""
        from src.tracer.core.integrator import trace_ray
        from src.tracer.scene.presets import create_three_spheres_scene

        create_three_spheres_scene()
        # Straight at the gold sphere: reflects back toward +z, tinted gold
        r, g, b = trace_ray((1.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=5)
        assert r > g > b > 0.0


class TestRandomScene:
    """Tests for create_random_scene."""

    def test_same_seed_same_scene(self):
        from src.tracer.scene.presets import RandomSceneParams, create_random_scene

        first, _ = create_random_scene(RandomSceneParams(seed=42))
        first_data = first.to_dict()
        second, _ = create_random_scene(RandomSceneParams(seed=42))

        assert second.to_dict() == first_data

    def test_different_seed_different_scene(self):
        from src.tracer.scene.presets import RandomSceneParams, create_random_scene

        first, _ = create_random_scene(RandomSceneParams(seed=1))
        first_data = first.to_dict()
        second, _ = create_random_scene(RandomSceneParams(seed=2))

        assert second.to_dict() != first_data

    def test_ground_and_feature_spheres(self):
        from src.tracer.scene.presets import create_random_scene

        scene, _ = create_random_scene()
        ground = scene.spheres[0]
        assert ground.center == (0.0, -1000.0, 0.0)
        assert ground.radius == 1000.0

        big = [s for s in scene.spheres if s.radius == 1.0]
        assert sorted(s.center for s in big) == [
            (-4.0, 1.0, 0.0),
            (0.0, 1.0, 0.0),
            (4.0, 1.0, 0.0),
        ]

    def test_small_spheres_on_grid(self):
        """Small spheres sit on the ground inside their cell, clear of the metal sphere."""
        from src.tracer.scene.presets import (
            FEATURE_CLEARANCE,
            SMALL_SPHERE_RADIUS,
            create_random_scene,
        )

        scene, _ = create_random_scene()
        small = [s for s in scene.spheres if s.radius == SMALL_SPHERE_RADIUS]

        # 22 x 22 cells, minus the few near the metal sphere
        assert 400 < len(small) <= 484
        for sphere in small:
            x, y, z = sphere.center
            assert y == SMALL_SPHERE_RADIUS
            assert -11.0 <= x < 11.0
            assert -11.0 <= z < 11.0
            distance = np.linalg.norm(np.array(sphere.center) - np.array([4.0, 0.2, 0.0]))
            assert distance > FEATURE_CLEARANCE

    def test_material_mix(self):
        """All three material kinds appear among the small spheres."""
        from src.tracer.scene.manager import MaterialType
        from src.tracer.scene.presets import create_random_scene

        scene, _ = create_random_scene()
        kinds = {scene.get_material_type_python(s.material_id) for s in scene.spheres}
        assert kinds == {MaterialType.LAMBERTIAN, MaterialType.METAL, MaterialType.DIELECTRIC}

    def test_small_grid_extent(self):
        """grid_extent 0 leaves only the ground and the three feature spheres."""
        from src.tracer.scene.presets import RandomSceneParams, create_random_scene

        scene, _ = create_random_scene(RandomSceneParams(grid_extent=0))
        assert scene.get_sphere_count() == 4

    def test_all_diffuse(self):
        """With diffuse probability 1 every small sphere is Lambertian."""
        from src.tracer.scene.manager import MaterialType
        from src.tracer.scene.presets import RandomSceneParams, create_random_scene

        scene, _ = create_random_scene(
            RandomSceneParams(grid_extent=2, diffuse_probability=1.0, metal_probability=0.0)
        )
        small = [s for s in scene.spheres if s.radius == 0.2]
        assert small
        for sphere in small:
            assert scene.get_material_type_python(sphere.material_id) == MaterialType.LAMBERTIAN

    def test_camera(self):
        from src.tracer.scene.presets import RandomSceneParams, create_random_scene

        _, camera = create_random_scene(RandomSceneParams(aspect_ratio=2.0))
        assert camera.lookfrom == (13.0, 2.0, 3.0)
        assert camera.lookat == (0.0, 0.0, 0.0)
        assert camera.vfov == 20.0
        assert camera.aperture == 0.1
        assert camera.focus_dist == 10.0
        assert camera.aspect_ratio == 2.0


class TestRandomSceneParams:
    """Tests for RandomSceneParams validation."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"grid_extent": -1},
            {"diffuse_probability": -0.1},
            {"metal_probability": -0.1},
            {"diffuse_probability": 0.9, "metal_probability": 0.2},
            {"seed": -1},
            {"seed": 2**31},
        ],
    )
    def test_invalid_params_rejected(self, kwargs):
        from src.tracer.scene.presets import RandomSceneParams

        with pytest.raises(ValueError):
            RandomSceneParams(**kwargs)
