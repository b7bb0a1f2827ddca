"""Scene module for scene storage and construction.

Components:
    intersection: Device-side sphere storage and nearest-hit queries
    manager: Validated scene building and JSON serialization
    builtin: Ready-made scenes with matching cameras

Scene data is kept in Structure-of-Arrays Taichi fields that the render
kernel only reads.
"""

from .builtin import create_random_scene, create_random_scene_camera, create_simple_scene
from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import SceneManager, SphereInfo

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "SphereInfo",
    # Built-in scenes
    "create_random_scene",
    "create_random_scene_camera",
    "create_simple_scene",
]
