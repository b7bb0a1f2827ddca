"""Matplotlib-based preview display for rendered images.

Example:
    >>> from pathtracer.preview.display import show_image
    >>> image = renderer.render()
    >>> show_image(image, title="Random spheres")
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from pathtracer.preview.export import compute_rmse


def show_image(
    image: npt.NDArray[np.uint8],
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (10, 6),
    block: bool = True,
) -> None:
    """Display a rendered image as a Matplotlib figure.

    Args:
        image: Image array of shape (H, W, 3), uint8.
        title: Figure title (default shows the image size).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(1, 1, figsize=figsize)

    ax.imshow(image)
    ax.axis("off")

    if title is None:
        height, width = image.shape[:2]
        title = f"Render Preview - {width}x{height}"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)


def show_comparison(
    image_a: npt.NDArray[np.uint8],
    image_b: npt.NDArray[np.uint8],
    *,
    labels: tuple[str, str] = ("A", "B"),
    diff_scale: float = 10.0,
    figsize: tuple[float, float] = (16, 6),
    block: bool = True,
) -> float:
    """Display side-by-side comparison of two images with difference view.

    Useful for comparing renders with different seeds or sample counts.

    Args:
        image_a: First image array (H, W, 3), uint8.
        image_b: Second image array (H, W, 3), uint8.
        labels: Labels for the two images.
        diff_scale: Scale factor for difference amplification.
        figsize: Figure size in inches.
        block: Whether to block execution until figure is closed.

    Returns:
        RMSE between the two images, in 8-bit units.
    """
    import matplotlib.pyplot as plt

    rmse = compute_rmse(image_a, image_b)

    diff = np.abs(image_a.astype(np.float64) - image_b.astype(np.float64)) / 255.0
    diff_amplified = np.clip(diff * diff_scale, 0.0, 1.0)

    fig, axes = plt.subplots(1, 3, figsize=figsize)

    axes[0].imshow(image_a)
    axes[0].set_title(labels[0])
    axes[0].axis("off")

    axes[1].imshow(image_b)
    axes[1].set_title(labels[1])
    axes[1].axis("off")

    axes[2].imshow(diff_amplified)
    axes[2].set_title(f"Difference ({diff_scale}x) - RMSE: {rmse:.3f}")
    axes[2].axis("off")

    plt.tight_layout()
    plt.show(block=block)

    return rmse
