"""Scene manager for validated sphere input.

This module provides the high-level scene API. The SceneManager validates
every sphere (radius, color, material parameters), writes it to the
device-side storage in ``pathtracer.scene.intersection`` and keeps a
Python-side list of SphereInfo records so the scene can be inspected and
serialized.

Scene dictionaries (and JSON files) have the form::

    {
        "spheres": [
            {
                "center": [0.0, 0.0, -1.0],
                "radius": 0.5,
                "color": [0.8, 0.3, 0.3],
                "material": {"type": "metal", "fuzz": 0.1}
            }
        ],
        "camera": {...}
    }

The optional "camera" entry is read and written by the command line, not
by the SceneManager.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_diffuse_sphere((0, -100.5, -1), 100.0, (0.5, 0.5, 0.5))
    >>> scene.add_metal_sphere((1, 0, -1), 0.5, (0.8, 0.6, 0.2), fuzz=0.3)
    >>> scene.add_dielectric_sphere((-1, 0, -1), 0.5)
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pathtracer.materials.types import (
    Dielectric,
    Diffuse,
    Material,
    Metal,
    material_from_dict,
    material_to_dict,
)
from pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)


def _as_vec3(values: Any, name: str) -> tuple[float, float, float]:
    try:
        x, y, z = (float(v) for v in values)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be a sequence of three numbers, got {values!r}") from e
    return (x, y, z)


@dataclass(frozen=True)
class SphereInfo:
    """A sphere of the scene.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere (positive).
        color: Base RGB reflectance, each component in [0, 1].
        material: The sphere's material variant.
    """

    center: tuple[float, float, float]
    radius: float
    color: tuple[float, float, float]
    material: Material = field(default_factory=Diffuse)

    def __post_init__(self) -> None:
        if not self.radius > 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")
        if any(not 0.0 <= c <= 1.0 for c in self.color):
            raise ValueError(f"Sphere color components must be in [0, 1], got {self.color}")
        if not isinstance(self.material, (Diffuse, Metal, Dielectric)):
            raise ValueError(f"Unsupported material: {self.material!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "center": list(self.center),
            "radius": self.radius,
            "color": list(self.color),
            "material": material_to_dict(self.material),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SphereInfo":
        """Build a sphere from its dict form.

        Raises:
            ValueError: If a key is missing or a value is invalid.
        """
        try:
            center = data["center"]
            radius = data["radius"]
        except KeyError as e:
            raise ValueError(f"Sphere entry is missing {e.args[0]!r}") from e
        return cls(
            center=_as_vec3(center, "center"),
            radius=float(radius),
            color=_as_vec3(data.get("color", (0.5, 0.5, 0.5)), "color"),
            material=material_from_dict(data.get("material", {"type": "diffuse"})),
        )


class SceneManager:
    """High-level scene builder.

    Creating a SceneManager clears the device-side scene; every added
    sphere is written to it immediately, in insertion order.

    Attributes:
        spheres: SphereInfo for every sphere in the scene, in index order.

    Example:
        >>> scene = SceneManager()
        >>> scene.add_diffuse_sphere((0, 0, -1), 0.5, (0.8, 0.3, 0.3))
        0
        >>> scene.get_sphere_count()
        1
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.spheres: list[SphereInfo] = []
        clear_scene()

    def clear(self) -> None:
        """Remove every sphere from the scene."""
        clear_scene()
        self.spheres.clear()

    # =========================================================================
    # Sphere Management
    # =========================================================================

    def add(self, sphere: SphereInfo) -> int:
        """Add a validated sphere to the scene.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        sphere_index = add_sphere(
            sphere.center,
            sphere.radius,
            sphere.color,
            sphere.material.kind,
            sphere.material.parameter,
        )
        self.spheres.append(sphere)
        return sphere_index

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        color: tuple[float, float, float],
        material: Material,
    ) -> int:
        """Add a sphere with the given material.

        Raises:
            ValueError: If the radius, color or material is invalid.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        sphere = SphereInfo(
            center=_as_vec3(center, "center"),
            radius=float(radius),
            color=_as_vec3(color, "color"),
            material=material,
        )
        return self.add(sphere)

    def add_diffuse_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        color: tuple[float, float, float],
    ) -> int:
        """Add a sphere with a diffuse (Lambertian) material."""
        return self.add_sphere(center, radius, color, Diffuse())

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        color: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a sphere with a metal material.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere.
            color: The reflective color as (R, G, B).
            fuzz: Reflection perturbation in [0, 1].

        Returns:
            The index of the added sphere.
        """
        return self.add_sphere(center, radius, color, Metal(fuzz=fuzz))

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        refractive_index: float = 1.5,
        color: tuple[float, float, float] = (1.0, 1.0, 1.0),
    ) -> int:
        """Add a sphere with a dielectric material.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere.
            refractive_index: Index of refraction. Default is 1.5 (glass).
            color: Tint applied at every bounce. Default is clear.

        Returns:
            The index of the added sphere.
        """
        return self.add_sphere(center, radius, color, Dielectric(refractive_index=refractive_index))

    def get_sphere_count(self) -> int:
        """Get the number of spheres on the device side."""
        return get_sphere_count()

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        return {"spheres": [sphere.to_dict() for sphere in self.spheres]}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the scene with the spheres of a dictionary.

        The whole input is validated before the current scene is touched.

        Raises:
            ValueError: If the data is malformed or describes an invalid sphere.
            RuntimeError: If it holds more spheres than the storage allows.
        """
        entries = data.get("spheres", [])
        if not isinstance(entries, list):
            raise ValueError("'spheres' must be a list")
        spheres = [SphereInfo.from_dict(entry) for entry in entries]
        if len(spheres) > MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

        self.clear()
        for sphere in spheres:
            self.add(sphere)
        logger.debug("Loaded %d spheres", len(spheres))

    def save_json(self, path: str | Path, extra: dict[str, Any] | None = None) -> None:
        """Write the scene to a JSON file.

        Args:
            path: Destination file.
            extra: Additional top-level entries (for example a camera).
        """
        data = self.to_dict()
        if extra:
            data.update(extra)
        Path(path).write_text(json.dumps(data, indent=2))
        logger.info("Saved scene with %d spheres to %s", len(self.spheres), path)

    def load_json(self, path: str | Path) -> dict[str, Any]:
        """Replace the scene with the spheres of a JSON file.

        Returns:
            The full decoded document, so callers can read other entries.

        Raises:
            ValueError: If the file is not valid JSON or describes an invalid scene.
        """
        try:
            data = json.loads(Path(path).read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid scene file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid scene file {path}: top level must be an object")
        self.from_dict(data)
        logger.info("Loaded scene with %d spheres from %s", len(self.spheres), path)
        return data

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES
