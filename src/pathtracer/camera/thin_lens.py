"""Thin-lens camera model for primary ray generation.

This module implements a camera with depth of field. Rays start from a
random point on a defocus disk centred on the camera position and pass
through a point on the focus plane, so geometry at the focus distance is
sharp and everything nearer or farther blurs with the defocus angle.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

Pixel (0, 0) is the top-left corner of the image: x grows to the right and
y grows downward, so the per-pixel vertical delta points along -v.

Example:
    >>> import math
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
    >>>
    >>> camera = ThinLensCamera(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=math.radians(20.0),
    ...     focus_dist=10.0,
    ...     defocus_angle=0.6,
    ... )
    >>> setup_camera(camera, 640, 360)
    >>> # Use get_ray(x, y, jitter, lens) within a Taichi kernel
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, make_ray, normalize

vec3 = tm.vec3
vec2 = tm.vec2

# Below this, two view vectors are treated as parallel
_DEGENERATE_EPSILON = 1e-8


def _as_point(values, name: str) -> tuple[float, float, float]:
    try:
        x, y, z = (float(v) for v in values)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Camera {name} must be three numbers, got {values!r}") from e
    return (x, y, z)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class ThinLensCamera:
    """Configuration for a thin-lens camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in radians.
        focus_dist: Distance from lookfrom to the plane of perfect focus.
        defocus_angle: Cone angle in degrees subtended by the defocus disk
            as seen from the focus plane. 0 gives a pinhole camera.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = math.pi / 2.0
    focus_dist: float = 1.0
    defocus_angle: float = 0.0

    def to_dict(self) -> dict:
        return {
            "lookfrom": list(self.lookfrom),
            "lookat": list(self.lookat),
            "vup": list(self.vup),
            "vfov": self.vfov,
            "focus_dist": self.focus_dist,
            "defocus_angle": self.defocus_angle,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ThinLensCamera":
        """Build a camera from its dict form.

        Raises:
            ValueError: If lookfrom or lookat is missing or not three numbers.
        """
        try:
            lookfrom = data["lookfrom"]
            lookat = data["lookat"]
        except KeyError as e:
            raise ValueError(f"Camera entry is missing {e.args[0]!r}") from e
        return cls(
            lookfrom=_as_point(lookfrom, "lookfrom"),
            lookat=_as_point(lookat, "lookat"),
            vup=_as_point(data.get("vup", (0.0, 1.0, 0.0)), "vup"),
            vfov=float(data.get("vfov", math.pi / 2.0)),
            focus_dist=float(data.get("focus_dist", 1.0)),
            defocus_angle=float(data.get("defocus_angle", 0.0)),
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (center of the defocus disk)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Focus-plane geometry
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # One pixel to the right
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # One pixel down
_viewport_upper_left = ti.Vector.field(3, dtype=ti.f32, shape=())

# Defocus disk basis (zero vectors for a pinhole camera)
_defocus_disk_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_disk_v = ti.Vector.field(3, dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side)
# =============================================================================


def _validate_camera(camera: ThinLensCamera, width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if not 0.0 < camera.vfov < math.pi:
        raise ValueError(f"vfov must be in (0, pi) radians, got {camera.vfov}")
    if camera.focus_dist <= 0.0:
        raise ValueError(f"focus_dist must be positive, got {camera.focus_dist}")
    if camera.defocus_angle < 0.0:
        raise ValueError(f"defocus_angle must be non-negative, got {camera.defocus_angle}")


def setup_camera(camera: ThinLensCamera, width: int, height: int) -> None:
    """Initialize camera state from configuration.

    Computes the orthonormal basis, the focus-plane viewport and the
    defocus disk from the camera parameters and the output resolution.
    Must be called before rendering.

    Args:
        camera: Camera configuration.
        width: Image width in pixels.
        height: Image height in pixels.

    Raises:
        ValueError: If the camera is degenerate (lookfrom equals lookat, vup
            parallel to the view direction, non-positive focus distance) or
            the image size is not positive.
    """
    _validate_camera(camera, width, height)

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    # w points from lookat toward lookfrom (backward)
    w = lookfrom - lookat
    w_norm = np.linalg.norm(w)
    if w_norm < _DEGENERATE_EPSILON:
        raise ValueError("lookfrom and lookat must be different points")
    w = w / w_norm

    # u points right (perpendicular to w and vup)
    u = np.cross(vup, w)
    u_norm = np.linalg.norm(u)
    if u_norm < _DEGENERATE_EPSILON:
        raise ValueError("vup must not be parallel to the view direction")
    u = u / u_norm

    # v points up in the camera's frame
    v = np.cross(w, u)

    # Viewport lies on the focus plane
    viewport_height = 2.0 * math.tan(camera.vfov / 2.0) * camera.focus_dist
    viewport_width = viewport_height * width / height

    viewport_u = viewport_width * u
    viewport_v = -viewport_height * v

    pixel_delta_u = viewport_u / width
    pixel_delta_v = viewport_v / height

    upper_left = lookfrom - camera.focus_dist * w - viewport_u / 2.0 - viewport_v / 2.0

    defocus_radius = camera.focus_dist * math.tan(math.radians(camera.defocus_angle / 2.0))

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _pixel_delta_u[None] = pixel_delta_u.tolist()
    _pixel_delta_v[None] = pixel_delta_v.tolist()
    _viewport_upper_left[None] = upper_left.tolist()
    _defocus_disk_u[None] = (defocus_radius * u).tolist()
    _defocus_disk_v[None] = (defocus_radius * v).tolist()


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(x: ti.i32, y: ti.i32, jitter: vec2, lens: vec2) -> Ray:
    """Generate the camera ray for a sub-pixel sample.

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        jitter: Offset within the pixel, each component in [0, 1).
        lens: Point in the unit disk selecting the ray origin on the
            defocus disk.

    Returns:
        A Ray from the defocus disk toward the sample point on the focus
        plane. The direction is unit length.
    """
    sample_point = (
        _viewport_upper_left[None]
        + (ti.cast(x, ti.f32) + jitter.x) * _pixel_delta_u[None]
        + (ti.cast(y, ti.f32) + jitter.y) * _pixel_delta_v[None]
    )
    origin = _camera_origin[None] + lens.x * _defocus_disk_u[None] + lens.y * _defocus_disk_v[None]
    return make_ray(origin, normalize(sample_point - origin))


# =============================================================================
# Utility Functions
# =============================================================================


def _as_tuple(vec) -> tuple[float, float, float]:
    return (float(vec[0]), float(vec[1]), float(vec[2]))


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, pixel_delta_u, pixel_delta_v,
        upper_left, defocus_disk_u and defocus_disk_v.
    """
    return {
        "origin": _as_tuple(_camera_origin[None]),
        "u": _as_tuple(_camera_u[None]),
        "v": _as_tuple(_camera_v[None]),
        "w": _as_tuple(_camera_w[None]),
        "pixel_delta_u": _as_tuple(_pixel_delta_u[None]),
        "pixel_delta_v": _as_tuple(_pixel_delta_v[None]),
        "upper_left": _as_tuple(_viewport_upper_left[None]),
        "defocus_disk_u": _as_tuple(_defocus_disk_u[None]),
        "defocus_disk_v": _as_tuple(_defocus_disk_v[None]),
    }
