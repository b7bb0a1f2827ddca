"""Material variants as seen from Python.

The material set is closed: a sphere is either diffuse, metal or
dielectric. Each variant is a small frozen dataclass tagged with a
``MaterialKind`` and at most one scalar parameter, which is exactly what
the device-side scene storage keeps per sphere (kind + parameter). The
render kernel dispatches on the kind.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, ClassVar, Union


class MaterialKind(IntEnum):
    """Tag stored per sphere and used for material dispatch in kernels."""

    DIFFUSE = 0
    METAL = 1
    DIELECTRIC = 2


@dataclass(frozen=True)
class Diffuse:
    """Lambertian material. Has no parameter of its own."""

    kind: ClassVar[MaterialKind] = MaterialKind.DIFFUSE

    @property
    def parameter(self) -> float:
        return 0.0


@dataclass(frozen=True)
class Metal:
    """Specular material with fuzzy reflection.

    Attributes:
        fuzz: Perturbation scale in [0, 1]. 0 is a perfect mirror.
    """

    fuzz: float = 0.0

    kind: ClassVar[MaterialKind] = MaterialKind.METAL

    def __post_init__(self) -> None:
        if not 0.0 <= self.fuzz <= 1.0:
            raise ValueError(
                f"Fuzz = {self.fuzz} is outside [0, 1]. "
                "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
            )

    @property
    def parameter(self) -> float:
        return float(self.fuzz)


@dataclass(frozen=True)
class Dielectric:
    """Transparent refractive material.

    Attributes:
        refractive_index: Index of refraction relative to the surrounding
            air. Common values: water 1.33, glass 1.5, diamond 2.4.
            Values below 1 model air bubbles inside a denser medium.
    """

    refractive_index: float = 1.5

    kind: ClassVar[MaterialKind] = MaterialKind.DIELECTRIC

    def __post_init__(self) -> None:
        if not self.refractive_index > 0.0:
            raise ValueError(
                f"Refractive index = {self.refractive_index} must be positive."
            )

    @property
    def parameter(self) -> float:
        return float(self.refractive_index)


Material = Union[Diffuse, Metal, Dielectric]


def material_to_dict(material: Material) -> dict[str, Any]:
    """Serialize a material variant to a plain dict."""
    if isinstance(material, Metal):
        return {"type": "metal", "fuzz": material.fuzz}
    if isinstance(material, Dielectric):
        return {"type": "dielectric", "refractive_index": material.refractive_index}
    return {"type": "diffuse"}


def material_from_dict(data: dict[str, Any]) -> Material:
    """Load a material variant from a plain dict.

    Raises:
        ValueError: If the type is unknown or a parameter is invalid.
    """
    mat_type = str(data.get("type", "")).lower()
    if mat_type in ("diffuse", "lambertian"):
        return Diffuse()
    if mat_type == "metal":
        return Metal(fuzz=float(data.get("fuzz", 0.0)))
    if mat_type in ("dielectric", "glass"):
        return Dielectric(refractive_index=float(data.get("refractive_index", 1.5)))
    raise ValueError(f"Unknown material type: {mat_type}")
