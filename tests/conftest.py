"""
Pytest configuration and shared fixtures for Icon Studio tests.

This module provides shared test fixtures and configuration
used across multiple test modules.
"""

import io

import numpy as np
import pytest
from PIL import Image

from IS_Libs.ImageEditingLib.image_models import SourceImage
from IS_Libs.ImageEditingLib.pixel_filters import get_blur_backend, set_blur_backend
from IS_Libs.ImageEditingLib.transform_model import TransformModel


@pytest.fixture
def temp_project_dir(tmp_path):
    """
    Provide a temporary directory for project files.

    Args:
        tmp_path: Pytest's built-in temporary directory fixture

    Returns:
        Path object pointing to a temporary directory
    """
    return tmp_path


@pytest.fixture
def red_source():
    """A 200x200 opaque red square."""
    return SourceImage.from_image(Image.new("RGBA", (200, 200), (255, 0, 0, 255)), origin="<red>")


@pytest.fixture
def large_source():
    """A 1024x512 source, wider than the reference canvas."""
    return SourceImage.from_image(Image.new("RGBA", (1024, 512), (0, 128, 255, 255)), origin="<large>")


@pytest.fixture
def default_model():
    return TransformModel()


@pytest.fixture
def png_bytes():
    """Encoded 64x32 green PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (64, 32), (0, 200, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def random_buffer():
    """Deterministic random RGBA buffer of shape (16, 12, 4)."""
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(16, 12, 4), dtype=np.uint8)


@pytest.fixture
def restore_blur_backend():
    """Restore the active blur backend after a test changes it."""
    previous = get_blur_backend()
    yield
    set_blur_backend(previous)

