"""Lambertian (ideal diffuse) material implementation.

Diffuse scattering adds a point drawn uniformly from the unit ball to the
surface normal and normalizes the sum. The resulting directions always lie
in the normal's hemisphere and approximate a cosine-weighted distribution,
so no explicit pdf weighting is needed by the integrator.

Example:
    >>> # Use within a Taichi kernel:
    >>> # direction, state = scatter_lambertian(normal, state)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import normalize
from pathtracer.core.sampler import random_in_unit_sphere

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(normal: vec3, state: ti.u32):
    """Sample a scattered ray direction for a diffuse surface.

    Args:
        normal: The outward unit normal at the hit point.
        state: The pixel task's random state.

    Returns:
        A tuple of (scattered_direction, new_state). The direction is unit
        length and satisfies dot(direction, normal) >= 0.
    """
    offset, rng = random_in_unit_sphere(state)
    return normalize(normal + offset), rng
