"""Tests for the built-in scenes."""

import math


class TestRandomScene:
    def test_same_seed_same_scene(self):
        from pathtracer.scene.builtin import create_random_scene

        first, _ = create_random_scene(seed=5)
        first_spheres = list(first.spheres)
        second, _ = create_random_scene(seed=5)
        assert second.spheres == first_spheres

    def test_different_seed_different_scene(self):
        from pathtracer.scene.builtin import create_random_scene

        first, _ = create_random_scene(seed=1)
        first_spheres = list(first.spheres)
        second, _ = create_random_scene(seed=2)
        assert second.spheres != first_spheres

    def test_layout(self):
        from pathtracer.materials.types import Dielectric, Diffuse, Metal
        from pathtracer.scene.builtin import GRID_EXTENT, SMALL_RADIUS, create_random_scene

        scene, _ = create_random_scene(seed=0)
        spheres = scene.spheres

        # Ground, at most one small sphere per grid cell, three feature spheres
        assert 4 < len(spheres) <= 1 + (2 * GRID_EXTENT) ** 2 + 3
        assert scene.get_sphere_count() == len(spheres)
        assert spheres[0].radius == 1000.0

        small = spheres[1:-3]
        assert all(s.radius == SMALL_RADIUS for s in small)
        kinds = [type(s.material) for s in small]
        # Diffuse dominates the decorative spheres
        assert kinds.count(Diffuse) > kinds.count(Metal) > 0
        assert kinds.count(Diffuse) > kinds.count(Dielectric)

        assert isinstance(spheres[-3].material, Dielectric)
        assert isinstance(spheres[-2].material, Diffuse)
        assert spheres[-1].material == Metal(fuzz=0.0)

    def test_small_spheres_avoid_metal_feature_sphere(self):
        from pathtracer.scene.builtin import create_random_scene

        scene, _ = create_random_scene(seed=3)
        for sphere in scene.spheres[1:-3]:
            x, y, z = sphere.center
            assert math.dist((x, y, z), (4.0, 0.2, 0.0)) > 0.9

    def test_camera(self):
        from pathtracer.scene.builtin import create_random_scene

        _, camera = create_random_scene(seed=0)
        assert camera.lookfrom == (13.0, 2.0, 3.0)
        assert abs(camera.vfov - math.radians(20.0)) < 1e-12
        assert camera.focus_dist == 10.0
        assert camera.defocus_angle == 0.6

    def test_refills_given_manager(self):
        from pathtracer.scene.builtin import create_random_scene
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_diffuse_sphere((0, 0, 0), 1.0, (0.5, 0.5, 0.5))
        same, _ = create_random_scene(seed=0, scene=scene)
        assert same is scene
        assert scene.spheres[0].radius == 1000.0


class TestSimpleScene:
    def test_contents(self):
        from pathtracer.materials.types import Dielectric, Diffuse, Metal
        from pathtracer.scene.builtin import create_simple_scene

        scene, camera = create_simple_scene()
        materials = [type(s.material) for s in scene.spheres]
        assert materials == [Diffuse, Diffuse, Dielectric, Metal]
        assert scene.get_sphere_count() == 4
        assert camera.defocus_angle == 0.0
