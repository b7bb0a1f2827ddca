"""Camera module for primary ray generation.

Components:
    thin_lens: Look-at camera with vertical field of view and depth of field

Pixel coordinates start at the top-left corner: x grows to the right and
y grows downward.
"""

from .thin_lens import ThinLensCamera, get_camera_info, get_ray, setup_camera

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "get_camera_info",
]
