"""Per-task random number generation and rejection samplers.

Every pixel task owns a 32-bit xorshift generator whose state is a plain
``ti.u32`` threaded through the sampling functions: each sampler takes the
current state and returns its result together with the advanced state.
Nothing here touches shared mutable data, so any number of pixels can be
sampled in parallel and the output depends only on the seed each task
starts from.

The rejection loops (unit ball, unit disk) retry until a sample is
accepted. Acceptance probability is pi/6 for the ball and pi/4 for the
disk, so the expected number of rounds is small, but the loops are not
structurally bounded.

Example:
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     state = seed_rng(ti.cast(42, ti.u32))
    ...     value, state = random_float(state)
    ...     return value
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import length_squared

vec3 = tm.vec3
vec2 = tm.vec2

# 2^-24: maps the top 24 bits of a draw onto [0, 1) exactly in f32
_UINT24_SCALE = 1.0 / 16777216.0

# Numerical Recipes LCG multiplier and increment used to scramble seeds
_LCG_MULTIPLIER = 1664525
_LCG_INCREMENT = 1013904223

# Odd constant mixed with the pixel index when decorrelating pixel streams
_PIXEL_MIX = 747796405

# Replacement state when scrambling lands on zero (xorshift fixed point)
_NONZERO_STATE = 1831565813


@ti.func
def _u32(value) -> ti.u32:
    return ti.cast(value, ti.u32)


@ti.func
def next_state(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 state by one step."""
    x = state
    x ^= x << _u32(13)
    x ^= x >> _u32(17)
    x ^= x << _u32(5)
    return x


@ti.func
def seed_rng(seed: ti.u32) -> ti.u32:
    """Turn a user seed into a valid (non-zero) generator state.

    The seed is scrambled with one LCG step and an xorshift round so that
    small consecutive seeds start from well separated states.
    """
    state = seed * _u32(_LCG_MULTIPLIER) + _u32(_LCG_INCREMENT)
    state ^= state >> _u32(16)
    if state == _u32(0):
        state = _u32(_NONZERO_STATE)
    return next_state(state)


@ti.func
def seed_pixel_rng(seed: ti.u32, pixel_index: ti.i32, decorrelate: ti.i32) -> ti.u32:
    """Seed the generator for one pixel task.

    With ``decorrelate == 0`` every pixel starts from the same state,
    which keeps the image reproducible independently of scheduling. With
    ``decorrelate != 0`` the pixel index is mixed in first, so neighbouring
    pixels draw independent streams (still reproducible).
    """
    mixed = seed
    if decorrelate != 0:
        mixed = seed ^ (_u32(pixel_index + 1) * _u32(_PIXEL_MIX))
    return seed_rng(mixed)


@ti.func
def random_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Returns:
        A tuple (value, new_state).
    """
    rng = next_state(state)
    value = ti.cast(rng >> _u32(8), ti.f32) * _UINT24_SCALE
    return value, rng


@ti.func
def random_range(state: ti.u32, low: ti.f32, high: ti.f32):
    """Draw a uniform float in [low, high). Returns (value, new_state)."""
    u, rng = random_float(state)
    return low + (high - low) * u, rng


@ti.func
def random_in_unit_cube(state: ti.u32):
    """Draw a vector whose components are each uniform in [-1, 1).

    Returns:
        A tuple (vector, new_state).
    """
    x, rng = random_range(state, -1.0, 1.0)
    y, rng = random_range(rng, -1.0, 1.0)
    z, rng = random_range(rng, -1.0, 1.0)
    return vec3(x, y, z), rng


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Generate a point uniformly inside the unit ball by rejection sampling.

    Candidates are drawn from the [-1, 1]^3 cube and rejected while their
    squared length exceeds 1.

    Returns:
        A tuple (point, new_state) with length_squared(point) <= 1.
    """
    rng = state
    p = vec3(1.0, 1.0, 1.0)
    while length_squared(p) > 1.0:
        p, rng = random_in_unit_cube(rng)
    return p, rng


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Generate a point uniformly inside the unit disk by rejection sampling.

    Used for the camera's defocus (lens) samples.

    Returns:
        A tuple (point, new_state) where point is a vec2 with
        x^2 + y^2 <= 1.
    """
    rng = state
    p = vec2(1.0, 1.0)
    while tm.dot(p, p) > 1.0:
        x, rng = random_range(rng, -1.0, 1.0)
        y, rng = random_range(rng, -1.0, 1.0)
        p = vec2(x, y)
    return p, rng
