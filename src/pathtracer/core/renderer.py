"""Per-pixel driver and output buffer.

Each pixel averages an N x N grid of camera rays placed at the centres of
the pixel's strata, with every ray starting from its own point on the
defocus disk. The average goes through a square-root tone curve and is
quantized to bytes. The render kernel's outermost loop runs over pixels,
so Taichi distributes pixels across its worker threads (or GPU lanes).
Every pixel owns its random state and writes only its own slot of the
output buffer.

The kernel covers a band of rows per launch, which lets the Renderer
report progress between launches without affecting the result: a pixel's
value depends only on its coordinates, the scene, the camera and the
render configuration.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.config import RenderConfig
    >>> from pathtracer.core.renderer import Renderer
    >>> from pathtracer.scene.builtin import create_simple_scene
    >>>
    >>> config = RenderConfig(width=320, height=180, samples_per_axis=2, max_depth=8)
    >>> scene, camera = create_simple_scene()
    >>> setup_camera(camera, config.width, config.height)
    >>> image = Renderer(config).render()  # (180, 320, 3) uint8
"""

import logging
import time
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray
from pathtracer.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, RenderConfig
from pathtracer.core.integrator import ray_color
from pathtracer.core.sampler import random_in_unit_disk, seed_pixel_rng

logger = logging.getLogger(__name__)

vec3 = tm.vec3
vec2 = tm.vec2

# Scale applied after the tone curve; truncation maps [0, 1] onto 0..255
_BYTE_SCALE = 255.999

# Progress callback receives (done_pixels, total_pixels)
ProgressCallback = Callable[[int, int], None]

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Quantized output, indexed [row, column] with row 0 at the top
_pixels = ti.Vector.field(3, dtype=ti.i32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Number of pixels written since the last clear
_completed_pixels = ti.field(dtype=ti.i32, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image size and clear the output buffer.

    The buffer is preallocated to MAX_IMAGE_HEIGHT x MAX_IMAGE_WIDTH so the
    render kernel compiles once whatever the image size.

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Zero the output buffer and the completed-pixel counter."""
    _pixels.fill(0)
    _completed_pixels[None] = 0


def reset_render_target() -> None:
    """Forget the render target entirely; rendering then requires a new setup."""
    _render_target_initialized[None] = 0
    clear_render_target()


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def get_completed_pixels() -> int:
    """Number of pixels written since the render target was last cleared."""
    return int(_completed_pixels[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Per-Pixel Driver
# =============================================================================


@ti.func
def tone_map(color: vec3) -> ti.types.vector(3, ti.i32):
    """Map a linear color to bytes: clamp, square root, scale, truncate.

    Non-finite channels become 0.
    """
    result = ti.Vector([0, 0, 0], dt=ti.i32)
    for c in ti.static(range(3)):
        channel = color[c]
        if tm.isnan(channel) or tm.isinf(channel):
            channel = 0.0
        channel = ti.sqrt(tm.clamp(channel, 0.0, 1.0))
        result[c] = tm.clamp(ti.cast(channel * _BYTE_SCALE, ti.i32), 0, 255)
    return result


@ti.func
def render_pixel(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    samples_per_axis: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    decorrelate: ti.i32,
) -> vec3:
    """Average the colors of a pixel's N x N stratified camera rays.

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        width: Image width, used to form the pixel index.
        samples_per_axis: N; the pixel is split into N x N strata.
        max_depth: Bounce cap passed to the integrator.
        seed: Render seed.
        decorrelate: Non-zero to mix the pixel index into the seed.

    Returns:
        The mean linear color of the pixel's samples (before tone mapping).
    """
    rng = seed_pixel_rng(seed, y * width + x, decorrelate)
    inv_n = 1.0 / ti.cast(samples_per_axis, ti.f32)

    total = vec3(0.0, 0.0, 0.0)
    for sx in range(samples_per_axis):
        for sy in range(samples_per_axis):
            # Stratum centre; for N = 1 this is the pixel centre
            jitter = vec2(
                (ti.cast(sx, ti.f32) + 0.5) * inv_n,
                (ti.cast(sy, ti.f32) + 0.5) * inv_n,
            )
            lens, rng = random_in_unit_disk(rng)
            ray = get_ray(x, y, jitter, lens)
            color, rng = ray_color(ray.origin, ray.direction, 0, max_depth, rng)
            total += color

    return total * (inv_n * inv_n)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    samples_per_axis: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    decorrelate: ti.i32,
):
    """Render rows [row_start, row_end) into the output buffer."""
    for y, x in ti.ndrange((row_start, row_end), width):
        color = render_pixel(x, y, width, samples_per_axis, max_depth, seed, decorrelate)
        _pixels[y, x] = tone_map(color)
        ti.atomic_add(_completed_pixels[None], 1)


@ti.kernel
def _render_single_pixel(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    samples_per_axis: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    decorrelate: ti.i32,
) -> vec3:
    return render_pixel(x, y, width, samples_per_axis, max_depth, seed, decorrelate)


# =============================================================================
# Public Rendering API
# =============================================================================


def _seed_u32(seed: int) -> int:
    return seed & 0xFFFFFFFF


def render_rows(row_start: int, row_end: int, config: RenderConfig) -> None:
    """Render a band of rows of the active render target.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If the band is outside the image or the configuration
            does not match the render target size.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if (config.width, config.height) != (width, height):
        raise ValueError(
            f"Config size {config.width}x{config.height} does not match "
            f"render target {width}x{height}"
        )
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Invalid row band [{row_start}, {row_end}) for height {height}")

    _render_rows(
        row_start,
        row_end,
        width,
        config.samples_per_axis,
        config.max_depth,
        _seed_u32(config.seed),
        int(config.decorrelate_pixels),
    )


def render_sample(x: int, y: int, config: RenderConfig) -> tuple[float, float, float]:
    """Mean linear color of one pixel, without touching the output buffer.

    Useful for testing and debugging individual pixels.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()

    width, _ = get_image_dimensions()
    color = _render_single_pixel(
        x,
        y,
        width,
        config.samples_per_axis,
        config.max_depth,
        _seed_u32(config.seed),
        int(config.decorrelate_pixels),
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_uint8() -> npt.NDArray[np.uint8]:
    """Get the output buffer as a (height, width, 3) uint8 array, top row first.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full_image = _pixels.to_numpy()
    return full_image[:height, :width, :].astype(np.uint8)


class Renderer:
    """Renders the current scene and camera with a fixed configuration.

    The scene (see SceneManager) and camera (see setup_camera) live
    in module-level Taichi fields and must be set up before rendering.

    Attributes:
        config: The render configuration.
    """

    def __init__(self, config: RenderConfig) -> None:
        """Initialize the renderer and its render target.

        Raises:
            ValueError: If the image size exceeds the preallocated buffer.
        """
        self._config = config
        setup_render_target(config.width, config.height)

    @property
    def config(self) -> RenderConfig:
        return self._config

    @property
    def completed_pixels(self) -> int:
        """Number of pixels rendered since the last reset."""
        return get_completed_pixels()

    def reset(self) -> None:
        """Clear the output buffer and the completed-pixel counter."""
        clear_render_target()

    def render_progressive(
        self, rows_per_batch: int = 16
    ) -> Generator[tuple[int, int], None, None]:
        """Render the image one band of rows at a time.

        Args:
            rows_per_batch: Number of rows per kernel launch.

        Yields:
            Tuple of (done_pixels, total_pixels) after each band.

        Raises:
            ValueError: If rows_per_batch is not positive.
        """
        if rows_per_batch <= 0:
            raise ValueError(f"rows_per_batch must be positive, got {rows_per_batch}")

        config = self._config
        total = config.total_pixels
        clear_render_target()

        for row_start in range(0, config.height, rows_per_batch):
            row_end = min(row_start + rows_per_batch, config.height)
            render_rows(row_start, row_end, config)
            done = self.completed_pixels
            logger.debug("Rendered rows %d-%d (%d/%d pixels)", row_start, row_end - 1, done, total)
            yield (done, total)

    def render(
        self,
        callback: ProgressCallback | None = None,
        rows_per_batch: int | None = None,
    ) -> npt.NDArray[np.uint8]:
        """Render the full image.

        Args:
            callback: Optional function called after each band of rows with
                (done_pixels, total_pixels).
            rows_per_batch: Rows per kernel launch. Defaults to the whole
                image in one launch.

        Returns:
            The rendered image as a (height, width, 3) uint8 array.
        """
        config = self._config
        batch = config.height if rows_per_batch is None else rows_per_batch

        logger.info(
            "Rendering %dx%d, %d samples/pixel, max depth %d",
            config.width,
            config.height,
            config.samples_per_pixel,
            config.max_depth,
        )
        start = time.perf_counter()

        for done, total in self.render_progressive(batch):
            if callback is not None:
                callback(done, total)

        ti.sync()
        logger.info("Render finished in %.2fs", time.perf_counter() - start)
        return self.get_image()

    def get_image(self) -> npt.NDArray[np.uint8]:
        """Get the rendered image as a (height, width, 3) uint8 array."""
        return get_image_uint8()

    def pixels(self) -> list[tuple[int, int, int]]:
        """Get the rendered image as a flat, row-major list of (R, G, B)."""
        image = self.get_image()
        return [tuple(int(c) for c in pixel) for pixel in image.reshape(-1, 3)]
