"""Tests for the per-pixel driver, render target and Renderer class.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
"""

import math

import numpy as np
import pytest


def _setup_pinhole(width, height, vfov_degrees=90.0):
    from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=math.radians(vfov_degrees),
        focus_dist=1.0,
        defocus_angle=0.0,
    )
    setup_camera(camera, width, height)


def _expected_sky_image(width, height, samples_per_axis, vfov_degrees=90.0):
    """Reference sky render of an empty scene for the camera of _setup_pinhole."""
    viewport_height = 2.0 * math.tan(math.radians(vfov_degrees) / 2.0)
    viewport_width = viewport_height * width / height
    ground = np.array([1.0, 1.0, 1.0])
    sky = np.array([0.5, 0.7, 0.9])

    image = np.zeros((height, width, 3), dtype=np.int64)
    for y in range(height):
        for x in range(width):
            total = np.zeros(3)
            for k in range(samples_per_axis):
                for m in range(samples_per_axis):
                    px = x + (k + 0.5) / samples_per_axis
                    py = y + (m + 0.5) / samples_per_axis
                    direction = np.array(
                        [
                            -viewport_width / 2.0 + px * viewport_width / width,
                            viewport_height / 2.0 - py * viewport_height / height,
                            -1.0,
                        ]
                    )
                    a = 0.5 * (direction[1] / np.linalg.norm(direction) + 1.0)
                    total += (1.0 - a) * ground + a * sky
            mean = total / samples_per_axis**2
            image[y, x] = (np.sqrt(np.clip(mean, 0.0, 1.0)) * 255.999).astype(np.int64)
    return image


class TestRenderTarget:
    def test_setup_render_target(self):
        from pathtracer.core.renderer import (
            get_completed_pixels,
            get_image_dimensions,
            setup_render_target,
        )

        setup_render_target(64, 48)
        assert get_image_dimensions() == (64, 48)
        assert get_completed_pixels() == 0

    @pytest.mark.parametrize("size", [(0, 10), (10, -1), (4096, 10), (10, 4096)])
    def test_invalid_dimensions_raise(self, size):
        from pathtracer.core.renderer import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(*size)

    def test_render_before_setup_raises(self):
        from pathtracer.config import RenderConfig
        from pathtracer.core.renderer import get_image_uint8, render_rows

        config = RenderConfig(width=4, height=4, samples_per_axis=1, max_depth=2)
        with pytest.raises(RuntimeError, match="Render target not set up"):
            render_rows(0, 4, config)
        with pytest.raises(RuntimeError):
            get_image_uint8()

    def test_render_rows_validates_band_and_size(self):
        from pathtracer.config import RenderConfig
        from pathtracer.core.renderer import render_rows, setup_render_target

        setup_render_target(4, 4)
        config = RenderConfig(width=4, height=4, samples_per_axis=1, max_depth=2)
        with pytest.raises(ValueError, match="Invalid row band"):
            render_rows(2, 5, config)
        with pytest.raises(ValueError, match="does not match"):
            render_rows(0, 4, RenderConfig(width=8, height=4, samples_per_axis=1, max_depth=2))


class TestRenderer:
    @pytest.mark.parametrize("n", [1, 2])
    def test_empty_scene_renders_sky_gradient(self, n):
        from pathtracer.config import RenderConfig
        from pathtracer.core.renderer import Renderer

        width, height = 9, 7
        _setup_pinhole(width, height)
        config = RenderConfig(width=width, height=height, samples_per_axis=n, max_depth=5)

        image = Renderer(config).render()
        expected = _expected_sky_image(width, height, n)

        assert image.shape == (height, width, 3)
        assert image.dtype == np.uint8
        assert np.abs(image.astype(np.int64) - expected).max() <= 1

    def test_sky_is_bluer_at_the_top(self):
        from pathtracer.config import RenderConfig
        from pathtracer.core.renderer import Renderer

        _setup_pinhole(8, 8)
        image = Renderer(RenderConfig(width=8, height=8, samples_per_axis=1, max_depth=3)).render()
        # Red falls off toward the top while blue stays close to full
        assert image[0, 4, 0] < image[-1, 4, 0]
        assert image[0, 4, 2] > image[0, 4, 0]

    def test_progress_callback_reports_every_band(self):
        from pathtracer.config import RenderConfig
        from pathtracer.core.renderer import Renderer

        _setup_pinhole(6, 10)
        config = RenderConfig(width=6, height=10, samples_per_axis=1, max_depth=2)
        calls = []
        renderer = Renderer(config)
        renderer.render(callback=lambda done, total: calls.append((done, total)), rows_per_batch=4)

        assert calls == [(24, 60), (48, 60), (60, 60)]
        assert renderer.completed_pixels == 60

    def test_render_progressive_yields_progress(self):
        from pathtracer.config import RenderConfig
        from pathtracer.core.renderer import Renderer

        _setup_pinhole(5, 5)
        renderer = Renderer(RenderConfig(width=5, height=5, samples_per_axis=1, max_depth=2))
        progress = list(renderer.render_progressive(rows_per_batch=2))
        assert progress == [(10, 25), (20, 25), (25, 25)]

    def test_invalid_rows_per_batch(self):
        from pathtracer.config import RenderConfig
        from pathtracer.core.renderer import Renderer

        _setup_pinhole(4, 4)
        renderer = Renderer(RenderConfig(width=4, height=4, samples_per_axis=1, max_depth=2))
        with pytest.raises(ValueError, match="rows_per_batch"):
            renderer.render(rows_per_batch=0)

    def test_batching_does_not_change_the_image(self):
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.config import RenderConfig
        from pathtracer.core.renderer import Renderer
        from pathtracer.scene.builtin import create_simple_scene

        _, camera = create_simple_scene()
        setup_camera(camera, 12, 8)
        config = RenderConfig(width=12, height=8, samples_per_axis=2, max_depth=6, seed=3)

        whole = Renderer(config).render()
        banded = Renderer(config).render(rows_per_batch=3)
        assert np.array_equal(whole, banded)

    def test_same_seed_is_reproducible(self):
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.config import RenderConfig
        from pathtracer.core.renderer import Renderer
        from pathtracer.scene.builtin import create_simple_scene

        _, camera = create_simple_scene()
        setup_camera(camera, 10, 6)
        config = RenderConfig(
            width=10, height=6, samples_per_axis=2, max_depth=6, seed=11, decorrelate_pixels=True
        )

        first = Renderer(config).render()
        second = Renderer(config).render()
        assert np.array_equal(first, second)

    def test_pixels_is_flat_row_major(self):
        from pathtracer.config import RenderConfig
        from pathtracer.core.renderer import Renderer

        _setup_pinhole(3, 2)
        renderer = Renderer(RenderConfig(width=3, height=2, samples_per_axis=1, max_depth=2))
        image = renderer.render()
        pixels = renderer.pixels()

        assert len(pixels) == 6
        assert pixels[0] == tuple(int(c) for c in image[0, 0])
        assert pixels[4] == tuple(int(c) for c in image[1, 1])

    def test_render_sample_matches_tone_mapped_pixel(self):
        from pathtracer.config import RenderConfig
        from pathtracer.core.renderer import Renderer, render_sample

        _setup_pinhole(5, 5)
        config = RenderConfig(width=5, height=5, samples_per_axis=2, max_depth=3)
        image = Renderer(config).render()

        color = render_sample(1, 3, config)
        expected = [int(math.sqrt(min(max(c, 0.0), 1.0)) * 255.999) for c in color]
        assert all(abs(int(image[3, 1, i]) - expected[i]) <= 1 for i in range(3))

    def test_reset_clears_output(self):
        from pathtracer.config import RenderConfig
        from pathtracer.core.renderer import Renderer

        _setup_pinhole(4, 4)
        renderer = Renderer(RenderConfig(width=4, height=4, samples_per_axis=1, max_depth=2))
        assert renderer.render().max() > 0

        renderer.reset()
        assert renderer.completed_pixels == 0
        assert renderer.get_image().max() == 0
