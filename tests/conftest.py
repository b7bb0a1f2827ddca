"""Pytest configuration for pathtracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu)
    yield


@pytest.fixture(autouse=True)
def clear_scene_data():
    """Clear the device-side scene and render target around each test."""
    # Import here so the fields are allocated after ti.init()
    from pathtracer.core.renderer import reset_render_target
    from pathtracer.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        reset_render_target()

    _clear_all()
    yield
    _clear_all()
