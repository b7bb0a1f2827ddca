"""Materials module.

Components:
    types: The closed set of material variants (Python side)
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection with optional fuzz
    dielectric: Glass-like materials with refraction (Schlick reflectance)

Scatter functions are Taichi functions that take and return the caller's
random state.
"""

from .dielectric import cannot_refract, fresnel_reflectance, scatter_dielectric
from .lambertian import scatter_lambertian
from .metal import scatter_metal
from .types import (
    Dielectric,
    Diffuse,
    Material,
    MaterialKind,
    Metal,
    material_from_dict,
    material_to_dict,
)

__all__ = [
    "MaterialKind",
    "Material",
    "Diffuse",
    "Metal",
    "Dielectric",
    "material_to_dict",
    "material_from_dict",
    "scatter_lambertian",
    "scatter_metal",
    "scatter_dielectric",
    "cannot_refract",
    "fresnel_reflectance",
]
