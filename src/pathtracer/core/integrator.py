"""Recursive color integrator.

Given a ray, the integrator finds the nearest sphere hit, lets that
sphere's material scatter the ray, follows the scattered ray, and
attenuates whatever comes back by the sphere's base color and a fixed
energy-loss factor. Rays that escape see a vertical sky gradient. Once the
bounce depth passes the configured maximum the contribution is black,
which bounds the work per primary ray.

Taichi functions cannot call themselves, so the recursion

    color(ray, d) = black                                 if d > max_depth
                  = sky(ray)                              if ray misses
                  = color(scatter(ray), d + 1) * c * loss otherwise

is evaluated as a loop that carries the product of the attenuation
factors along the path.

Example:
    >>> # Inside a Taichi kernel:
    >>> # color, state = ray_color(origin, direction, 0, max_depth, state)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import normalize
from pathtracer.materials.dielectric import scatter_dielectric
from pathtracer.materials.lambertian import scatter_lambertian
from pathtracer.materials.metal import scatter_metal
from pathtracer.materials.types import MaterialKind
from pathtracer.scene.intersection import (
    get_sphere_color,
    get_sphere_material,
    intersect_scene,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Self-intersection epsilon: hits closer than this along a ray are ignored
T_MIN = 0.001
T_MAX = 1e10

# Stand-in for imperfect reflectance, applied at every bounce
ENERGY_LOSS = 0.9

# Background gradient: GROUND_COLOR looking straight down, SKY_COLOR straight up
GROUND_COLOR = vec3(1.0, 1.0, 1.0)
SKY_COLOR = vec3(0.5, 0.7, 0.9)


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky gradient seen by a ray that escapes the scene.

    The normalized direction's vertical component is mapped from [-1, 1]
    onto a in [0, 1], and the color is (1 - a) * GROUND_COLOR + a * SKY_COLOR.
    """
    unit_direction = normalize(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - a) * GROUND_COLOR + a * SKY_COLOR


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_kind: ti.i32,
    material_param: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Dispatch to the scatter function of the hit sphere's material.

    Args:
        material_kind: A MaterialKind value.
        material_param: Metal fuzz or dielectric refractive index.
        incident_direction: The incoming ray direction (unit length).
        normal: The outward unit normal at the hit point.
        front_face: 1 if the ray hit from outside, 0 if from inside.
        state: The pixel task's random state.

    Returns:
        A tuple of (scattered_direction, new_state).
    """
    rng = state
    scattered_direction = vec3(0.0, 0.0, 0.0)

    if material_kind == int(MaterialKind.DIFFUSE):
        scattered_direction, rng = scatter_lambertian(normal, rng)

    elif material_kind == int(MaterialKind.METAL):
        scattered_direction, rng = scatter_metal(incident_direction, normal, material_param, rng)

    elif material_kind == int(MaterialKind.DIELECTRIC):
        # Entering: air -> material with the outward normal.
        # Leaving: material -> air with the normal flipped toward the ray.
        refraction_ratio = 1.0 / material_param
        facing_normal = normal
        if front_face == 0:
            refraction_ratio = material_param
            facing_normal = -normal
        scattered_direction, rng = scatter_dielectric(
            incident_direction, facing_normal, refraction_ratio, rng
        )

    return scattered_direction, rng


# =============================================================================
# Color Integration
# =============================================================================


@ti.func
def ray_color(
    origin: vec3,
    direction: vec3,
    depth: ti.i32,
    max_depth: ti.i32,
    state: ti.u32,
):
    """Compute the color carried back along a ray.

    Args:
        origin: Ray origin.
        direction: Ray direction (need not be unit length).
        depth: Bounce depth of this ray; primary rays start at 0.
        max_depth: Largest depth that is still traced. Rays at a greater
            depth contribute exactly black.
        state: The pixel task's random state.

    Returns:
        A tuple of (rgb, new_state).
    """
    rng = state
    ray_origin = origin
    ray_direction = direction
    level = depth

    throughput = vec3(1.0, 1.0, 1.0)
    color = vec3(0.0, 0.0, 0.0)

    # Loop until the ray escapes or passes the depth cap
    active = 1
    while active == 1:
        if level > max_depth:
            active = 0
        else:
            rec = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(ray_direction)
                active = 0
            else:
                material_kind, material_param = get_sphere_material(rec.sphere_index)
                scattered_direction, rng = _scatter_material(
                    material_kind,
                    material_param,
                    normalize(ray_direction),
                    rec.normal,
                    rec.front_face,
                    rng,
                )

                throughput *= get_sphere_color(rec.sphere_index) * ENERGY_LOSS
                ray_origin = rec.point
                ray_direction = scattered_direction
                level += 1

    return color, rng
