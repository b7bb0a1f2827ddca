"""Image export utilities for rendered images.

The renderer already produces tone-mapped 8-bit pixels, so exporting is a
matter of encoding the (height, width, 3) uint8 array.

Supported formats:
    - PPM (plain-text P3, one "R G B" line per pixel)
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from pathtracer.preview.export import save_image
    >>> image = renderer.render()
    >>> save_image(image, "output.ppm")
    >>> save_image(image, "output.png")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Largest channel value written to the PPM header
PPM_MAX_VALUE = 255


def _check_image(image: npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
    array = np.asarray(image)
    if array.ndim != 3 or array.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {array.shape}")
    return array.astype(np.uint8, copy=False)


def format_ppm(image: npt.NDArray[np.uint8]) -> str:
    """Encode an image as plain-text PPM (P3).

    The header is ``P3``, ``<width> <height>`` and ``255`` on separate
    lines, followed by one ``R G B`` line per pixel in row-major order,
    top row first.

    Raises:
        ValueError: If the array is not of shape (H, W, 3).
    """
    array = _check_image(image)
    height, width, _ = array.shape

    lines = ["P3", f"{width} {height}", str(PPM_MAX_VALUE)]
    lines.extend(f"{r} {g} {b}" for r, g, b in array.reshape(-1, 3).tolist())
    return "\n".join(lines) + "\n"


def save_ppm(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image as a plain-text PPM file."""
    Path(filepath).write_text(format_ppm(image))
    logger.info("Saved %s", filepath)


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image as an 8-bit RGB PNG file."""
    array = _check_image(image)
    pil_image = PILImage.fromarray(array)
    pil_image.save(filepath)
    logger.info("Saved %s", filepath)


def save_image(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image, choosing the format from the file suffix.

    ``.ppm`` writes plain-text PPM; any other suffix Pillow understands
    (``.png``, ``.jpg``, ...) goes through Pillow.

    Raises:
        ValueError: If the suffix is missing.
    """
    suffix = Path(filepath).suffix.lower()
    if not suffix:
        raise ValueError(f"Cannot infer image format from {filepath!r}; add a file extension")
    if suffix == ".ppm":
        save_ppm(image, filepath)
    else:
        save_png(image, filepath)


def compute_rmse(
    image_a: npt.NDArray[np.generic],
    image_b: npt.NDArray[np.generic],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
