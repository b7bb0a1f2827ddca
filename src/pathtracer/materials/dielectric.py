"""Dielectric (glass/water) material implementation.

This module implements the dielectric scatter function, which models
transparent materials like glass and water with refraction and Fresnel
reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when ratio * sin(theta) > 1

The material randomly chooses between reflection and refraction based on
the Fresnel reflectance probability, which increases at grazing angles.

The caller supplies the refraction ratio and a normal on the incident
side: for a ray entering the sphere the ratio is 1 / index and the normal
is the outward one; for a ray leaving it the ratio is the index itself and
the normal is flipped.

Example:
    >>> # Use within a Taichi kernel:
    >>> # direction, state = scatter_dielectric(incident_dir, normal, ratio, state)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import (
    reflect,
    refract,
    schlick_fresnel,
)
from pathtracer.core.sampler import random_float

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def _incident_angle(incident_direction: vec3, normal: vec3):
    """Return (cos_theta, sin_theta) of the angle of incidence."""
    cos_theta = tm.min(-tm.dot(incident_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))
    return cos_theta, sin_theta


@ti.func
def cannot_refract(
    incident_direction: vec3,
    normal: vec3,
    refraction_ratio: ti.f32,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    Args:
        incident_direction: The incoming ray direction (unit length).
        normal: The unit normal on the incident side.
        refraction_ratio: n_incident / n_transmitted.

    Returns:
        1 if refraction_ratio * sin(theta) > 1, 0 otherwise.
    """
    _, sin_theta = _incident_angle(incident_direction, normal)
    return 1 if refraction_ratio * sin_theta > 1.0 else 0


@ti.func
def fresnel_reflectance(
    incident_direction: vec3,
    normal: vec3,
    refraction_ratio: ti.f32,
) -> ti.f32:
    """Compute Fresnel reflectance at this angle using Schlick's approximation."""
    cos_theta, _ = _incident_angle(incident_direction, normal)
    return schlick_fresnel(cos_theta, refraction_ratio)


@ti.func
def scatter_dielectric(
    incident_direction: vec3,
    normal: vec3,
    refraction_ratio: ti.f32,
    state: ti.u32,
):
    """Compute the scattered ray direction for a dielectric surface.

    Reflect if total internal reflection occurs or a uniform draw falls
    below the Schlick reflectance; refract otherwise. One uniform draw is
    consumed on every call.

    Args:
        incident_direction: The incoming ray direction (unit length).
        normal: The unit normal on the incident side.
        refraction_ratio: n_incident / n_transmitted.
        state: The pixel task's random state.

    Returns:
        A tuple of (scattered_direction, new_state).
    """
    u, rng = random_float(state)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract(incident_direction, normal, refraction_ratio) == 1 or u < fresnel_reflectance(
        incident_direction, normal, refraction_ratio
    ):
        scattered_direction = reflect(incident_direction, normal)
    else:
        scattered_direction = refract(incident_direction, normal, refraction_ratio)

    return scattered_direction, rng
