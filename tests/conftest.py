"""Shared test fixtures."""

import io

import numpy as np
import pytest
from PIL import Image

from particle_art.models import ConversionSettings, PixelBuffer


def solid_buffer(width, height, color, alpha=255) -> PixelBuffer:
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :, :3] = color
    pixels[:, :, 3] = alpha
    return PixelBuffer(pixels)


def encode_png(buffer: PixelBuffer) -> bytes:
    output = io.BytesIO()
    buffer.to_image().save(output, format="PNG")
    return output.getvalue()


@pytest.fixture
def gray_buffer() -> PixelBuffer:
    """4x4 fully opaque (128, 128, 128)."""
    return solid_buffer(4, 4, (128, 128, 128))


@pytest.fixture
def red_on_white_buffer() -> PixelBuffer:
    """20x20 white canvas with a red square in the middle."""
    buffer = solid_buffer(20, 20, (255, 255, 255))
    buffer.pixels[5:15, 5:15, :3] = (255, 0, 0)
    return buffer


@pytest.fixture
def noisy_buffer() -> PixelBuffer:
    """Deterministic 48x32 image with few colors and some transparency."""
    rng = np.random.default_rng(7)
    palette = np.array(
        [[20, 20, 20], [200, 40, 40], [40, 200, 40], [250, 250, 250]], dtype=np.uint8
    )
    pixels = np.zeros((32, 48, 4), dtype=np.uint8)
    pixels[:, :, :3] = palette[rng.integers(0, len(palette), size=(32, 48))]
    pixels[:, :, 3] = rng.choice([0, 100, 200, 255], size=(32, 48))
    return PixelBuffer(pixels)


@pytest.fixture
def unit_settings() -> ConversionSettings:
    return ConversionSettings(particle_size=1, particle_density=100, blur=0)


@pytest.fixture
def gray_png(gray_buffer) -> bytes:
    return encode_png(gray_buffer)
