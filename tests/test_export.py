"""Tests for image export."""

import numpy as np
import pytest
from PIL import Image as PILImage

from pathtracer.preview.export import (
    compute_rmse,
    format_ppm,
    save_image,
    save_png,
    save_ppm,
)


@pytest.fixture
def small_image():
    image = np.zeros((2, 3, 3), dtype=np.uint8)
    image[0, 0] = (255, 0, 0)
    image[0, 2] = (1, 2, 3)
    image[1, 1] = (10, 20, 30)
    return image


class TestPPM:
    def test_format_ppm(self, small_image):
        text = format_ppm(small_image)
        lines = text.splitlines()

        assert lines[:3] == ["P3", "3 2", "255"]
        assert len(lines) == 3 + 6
        assert lines[3] == "255 0 0"
        assert lines[5] == "1 2 3"
        assert lines[7] == "10 20 30"
        assert text.endswith("\n")

    def test_rejects_wrong_shape(self):
        with pytest.raises(ValueError, match="shape"):
            format_ppm(np.zeros((4, 4), dtype=np.uint8))

    def test_save_ppm(self, small_image, tmp_path):
        path = tmp_path / "out.ppm"
        save_ppm(small_image, path)
        assert path.read_text() == format_ppm(small_image)


class TestPNG:
    def test_save_png_round_trip(self, small_image, tmp_path):
        path = tmp_path / "out.png"
        save_png(small_image, path)
        loaded = np.asarray(PILImage.open(path).convert("RGB"))
        assert np.array_equal(loaded, small_image)


class TestSaveImage:
    def test_dispatch_by_suffix(self, small_image, tmp_path):
        save_image(small_image, tmp_path / "a.ppm")
        save_image(small_image, tmp_path / "b.png")

        assert (tmp_path / "a.ppm").read_text().startswith("P3\n")
        assert (tmp_path / "b.png").read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_missing_suffix(self, small_image, tmp_path):
        with pytest.raises(ValueError, match="extension"):
            save_image(small_image, tmp_path / "image")


class TestRMSE:
    def test_identical_images(self, small_image):
        assert compute_rmse(small_image, small_image) == 0.0

    def test_known_difference(self):
        a = np.zeros((2, 2, 3), dtype=np.uint8)
        b = np.full((2, 2, 3), 3, dtype=np.uint8)
        assert compute_rmse(a, b) == pytest.approx(3.0)

    def test_shape_mismatch(self, small_image):
        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(small_image, small_image[:1])
