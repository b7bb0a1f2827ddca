"""Preview module for image output.

Components:
    export: PPM and PNG writers
    display: Matplotlib preview windows
"""

from .display import show_comparison, show_image
from .export import compute_rmse, format_ppm, save_image, save_png, save_ppm

__all__ = [
    "format_ppm",
    "save_ppm",
    "save_png",
    "save_image",
    "compute_rmse",
    "show_image",
    "show_comparison",
]
