"""Render configuration and quality presets.

Example:
    >>> from pathtracer.config import RenderConfig, preset
    >>> config = RenderConfig(width=400, height=225, samples_per_axis=4, max_depth=10)
    >>> final = preset("final", seed=7)
"""

from dataclasses import dataclass, replace

# Largest image the preallocated render buffer can hold
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048


@dataclass(frozen=True)
class RenderConfig:
    """Parameters of one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_axis: Antialiasing factor N; each pixel averages an
            N x N grid of camera rays.
        max_depth: Largest bounce depth that is still traced.
        seed: Seed of the per-pixel random streams.
        decorrelate_pixels: Mix the pixel index into each pixel's seed. Off
            by default, in which case every pixel draws the same stream.
    """

    width: int = 720
    height: int = 405
    samples_per_axis: int = 8
    max_depth: int = 50
    seed: int = 0
    decorrelate_pixels: bool = False

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples_per_axis <= 0:
            raise ValueError(f"samples_per_axis must be positive, got {self.samples_per_axis}")
        if self.max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def samples_per_pixel(self) -> int:
        return self.samples_per_axis * self.samples_per_axis

    @property
    def total_pixels(self) -> int:
        return self.width * self.height


# Image size, antialiasing factor and bounce cap per quality level
QUALITY_PRESETS: dict[str, RenderConfig] = {
    "draft": RenderConfig(width=320, height=180, samples_per_axis=2, max_depth=8),
    "preview": RenderConfig(width=640, height=360, samples_per_axis=4, max_depth=20),
    "final": RenderConfig(width=1280, height=720, samples_per_axis=8, max_depth=50),
}


def preset(name: str, **overrides) -> RenderConfig:
    """Get a quality preset, optionally overriding some of its fields.

    Args:
        name: One of the keys of QUALITY_PRESETS.
        **overrides: RenderConfig fields to replace. None values are ignored
            so that unset command line options can be passed straight in.

    Raises:
        ValueError: If the preset name is unknown or an override is invalid.
    """
    if name not in QUALITY_PRESETS:
        raise ValueError(
            f"Unknown quality preset {name!r}; expected one of {sorted(QUALITY_PRESETS)}"
        )
    changes = {key: value for key, value in overrides.items() if value is not None}
    return replace(QUALITY_PRESETS[name], **changes)
