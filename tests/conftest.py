# Mirage Tank Test Configuration
# This file contains test settings and fixtures

import pytest
import sys
import os

import numpy as np
from PIL import Image

# Add python-core to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'python-core'))

# Test fixtures and configuration
pytest_plugins = ['pytest_asyncio']


def solid_rgba(width, height, color, alpha=255):
    """Build a (height, width, 4) uint8 buffer filled with one color."""
    buffer = np.empty((height, width, 4), dtype=np.uint8)
    buffer[..., :3] = color
    buffer[..., 3] = alpha
    return buffer


@pytest.fixture
def make_solid():
    """Factory fixture for solid RGBA buffers."""
    return solid_rgba


@pytest.fixture
def gray_pair():
    """Two identical mid-gray 8x8 rasters."""
    return solid_rgba(8, 8, (128, 128, 128)), solid_rgba(8, 8, (128, 128, 128))


@pytest.fixture
def gradient_pair():
    """A horizontal and a vertical color gradient of the same size."""
    ramp = np.linspace(0, 255, 32, dtype=np.uint8)
    surface = np.zeros((32, 32, 4), dtype=np.uint8)
    surface[..., 0] = ramp[np.newaxis, :]
    surface[..., 1] = ramp[::-1][np.newaxis, :]
    surface[..., 2] = 200
    surface[..., 3] = 255

    hidden = np.zeros((32, 32, 4), dtype=np.uint8)
    hidden[..., 0] = ramp[:, np.newaxis]
    hidden[..., 1] = 64
    hidden[..., 2] = ramp[::-1][:, np.newaxis]
    hidden[..., 3] = 255
    return surface, hidden


@pytest.fixture
def landscape_image():
    """A 200x100 RGBA image, red on the left half and blue on the right."""
    array = np.zeros((100, 200, 4), dtype=np.uint8)
    array[:, :100] = (255, 0, 0, 255)
    array[:, 100:] = (0, 0, 255, 255)
    return Image.fromarray(array)


@pytest.fixture
def portrait_image():
    """A 60x120 RGBA image, white on top and black at the bottom."""
    array = np.zeros((120, 60, 4), dtype=np.uint8)
    array[:60] = (255, 255, 255, 255)
    array[60:] = (0, 0, 0, 255)
    return Image.fromarray(array)


@pytest.fixture
def png_files(tmp_path, landscape_image, portrait_image):
    """Write the landscape and portrait fixtures to PNG files."""
    surface_path = tmp_path / "surface.png"
    hidden_path = tmp_path / "hidden.png"
    landscape_image.save(str(surface_path))
    portrait_image.save(str(hidden_path))
    return surface_path, hidden_path
