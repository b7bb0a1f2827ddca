"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    sampler: Per-pixel random state and rejection samplers
    integrator: Recursive color integrator (sky gradient, bounce cap)
    renderer: Per-pixel driver, output buffer and the Renderer class

All compute-intensive operations use Taichi kernels for GPU acceleration.
"""

from .ray import (
    Ray,
    dot,
    length,
    length_squared,
    make_ray,
    normalize,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from .sampler import (
    next_state,
    random_float,
    random_in_unit_cube,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    seed_pixel_rng,
    seed_rng,
)

# Note: integrator and renderer are NOT imported here; they allocate Taichi
# fields. Import them directly once Taichi is initialized:
#   from pathtracer.core.renderer import Renderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "reflect",
    "refract",
    "schlick_fresnel",
    "next_state",
    "seed_rng",
    "seed_pixel_rng",
    "random_float",
    "random_range",
    "random_in_unit_cube",
    "random_in_unit_sphere",
    "random_in_unit_disk",
]
