"""Metal (specular reflective) material implementation.

This module implements the metal scatter function, a mirror reflection with
optional fuzziness. The reflection formula is:

    R = I - 2(I . N)N

where I is the incident direction and N is the surface normal. For fuzzy
metals the reflected direction is offset by ``fuzz * u`` where every
component of u is uniform in [-1, 1]. The offset is neither normalized nor
rejected when it points below the surface: such rays continue into the
sphere and the image keeps the look of the established render.

Example:
    >>> # Use within a Taichi kernel:
    >>> # direction, state = scatter_metal(incident_dir, normal, fuzz, state)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import reflect
from pathtracer.core.sampler import random_in_unit_cube

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    incident_direction: vec3,
    normal: vec3,
    fuzz: ti.f32,
    state: ti.u32,
):
    """Compute the scattered ray direction for a metal surface.

    The random offset is always drawn, so the random stream advances by the
    same amount whatever the fuzz; with fuzz == 0 the result is exactly the
    mirror direction.

    Args:
        incident_direction: The incoming ray direction (unit length).
        normal: The outward unit normal at the hit point.
        fuzz: The fuzz factor in [0, 1]. 0 = perfect mirror.
        state: The pixel task's random state.

    Returns:
        A tuple of (scattered_direction, new_state). The direction is not
        normalized.
    """
    reflected = reflect(incident_direction, normal)
    offset, rng = random_in_unit_cube(state)
    return reflected + fuzz * offset, rng
