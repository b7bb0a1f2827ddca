"""Built-in scenes.

Two scenes ship with the renderer:

- ``create_random_scene``: a large grey ground sphere covered with a
  22 x 22 grid of small decorative spheres (80% diffuse, 15% metal,
  5% glass), plus three large feature spheres (glass, diffuse, metal)
  viewed through a slightly defocused camera.
- ``create_simple_scene``: a ground sphere and three spheres in a row, one
  of each material, seen through a pinhole camera. It uses no randomness.

Both functions reset the device-side scene and return the SceneManager
together with the matching camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.scene.builtin import create_random_scene
    >>>
    >>> scene, camera = create_random_scene(seed=1)
    >>> setup_camera(camera, 640, 360)
"""

import logging
import math

import numpy as np

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# =============================================================================
# Random Scene Parameters
# =============================================================================

# Decorative spheres sit on the grid a, b in [-GRID_EXTENT, GRID_EXTENT)
GRID_EXTENT = 11

SMALL_RADIUS = 0.2
GROUND_RADIUS = 1000.0
GROUND_COLOR = (0.5, 0.5, 0.5)

# Cumulative probability thresholds of the decorative materials
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.95

GLASS_INDEX = 1.5

# Small spheres closer than this to the metal feature sphere are skipped
_CLEARANCE_POINT = np.array([4.0, SMALL_RADIUS, 0.0])
_CLEARANCE = 0.9


def create_random_scene_camera() -> ThinLensCamera:
    """Camera overlooking the random scene from the front right."""
    return ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=math.radians(20.0),
        focus_dist=10.0,
        defocus_angle=0.6,
    )


def create_random_scene(
    seed: int | None = None,
    scene: SceneManager | None = None,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random-spheres scene.

    Args:
        seed: Seed of the decorative sphere layout. The same seed always
            gives the same scene; None draws a fresh layout.
        scene: Existing SceneManager to fill. It is cleared first.

    Returns:
        Tuple of (scene, camera).
    """
    rng = np.random.default_rng(seed)

    if scene is None:
        scene = SceneManager()
    else:
        scene.clear()

    scene.add_diffuse_sphere((0.0, -GROUND_RADIUS, 0.0), GROUND_RADIUS, GROUND_COLOR)

    counts = {"diffuse": 0, "metal": 0, "glass": 0}
    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()])

            if np.linalg.norm(center - _CLEARANCE_POINT) <= _CLEARANCE:
                continue

            position = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < DIFFUSE_PROBABILITY:
                color = rng.random(3) * rng.random(3)
                scene.add_diffuse_sphere(position, SMALL_RADIUS, tuple(color.tolist()))
                counts["diffuse"] += 1
            elif choose_mat < METAL_PROBABILITY:
                color = rng.uniform(0.5, 1.0, 3)
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(position, SMALL_RADIUS, tuple(color.tolist()), fuzz)
                counts["metal"] += 1
            else:
                scene.add_dielectric_sphere(position, SMALL_RADIUS, GLASS_INDEX)
                counts["glass"] += 1

    # Feature spheres
    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, GLASS_INDEX)
    scene.add_diffuse_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), fuzz=0.0)

    logger.debug(
        "Decorative spheres: %d diffuse, %d metal, %d glass",
        counts["diffuse"],
        counts["metal"],
        counts["glass"],
    )
    logger.info("Built random scene with %d spheres", len(scene.spheres))

    return scene, create_random_scene_camera()


def create_simple_scene(
    scene: SceneManager | None = None,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create a small deterministic scene: ground plus one sphere per material.

    Args:
        scene: Existing SceneManager to fill. It is cleared first.

    Returns:
        Tuple of (scene, camera).
    """
    if scene is None:
        scene = SceneManager()
    else:
        scene.clear()

    scene.add_diffuse_sphere((0.0, -100.5, -1.0), 100.0, (0.8, 0.8, 0.0))
    scene.add_diffuse_sphere((0.0, 0.0, -1.2), 0.5, (0.1, 0.2, 0.5))
    scene.add_dielectric_sphere((-1.0, 0.0, -1.0), 0.5, GLASS_INDEX)
    scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, (0.8, 0.6, 0.2), fuzz=0.3)

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=math.radians(90.0),
        focus_dist=1.0,
        defocus_angle=0.0,
    )

    logger.info("Built simple scene with %d spheres", len(scene.spheres))
    return scene, camera
