"""Preprocessing filters applied to pixel buffers before sampling."""

import logging
import math

import numpy as np
from scipy.ndimage import convolve1d

from particle_art.errors import SettingsError
from particle_art.models import PixelBuffer

logger = logging.getLogger(__name__)


def gaussian_kernel(sigma: float) -> np.ndarray:
    """Normalized 1-D Gaussian kernel of size 2 * ceil(3 * sigma) + 1."""
    radius = math.ceil(sigma * 3)
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    kernel = np.exp(-(offsets * offsets) / (2 * sigma * sigma))
    return kernel / kernel.sum()


def _convolve_axis(pixels: np.ndarray, kernel: np.ndarray, axis: int) -> np.ndarray:
    """Convolve along one axis with edge-clamped sampling, back to uint8."""
    # mode="nearest" clamps out-of-range reads to the nearest valid row/column
    result = convolve1d(pixels.astype(np.float64), kernel, axis=axis, mode="nearest")
    return np.clip(np.rint(result), 0, 255).astype(np.uint8)


def gaussian_blur(buffer: PixelBuffer, sigma: float) -> PixelBuffer:
    """Separable Gaussian blur over all four channels.

    Args:
        buffer: Source pixels (not modified)
        sigma: Standard deviation in pixels, must be positive

    Returns:
        New PixelBuffer with identical dimensions

    AIDEV-NOTE: Alpha is blurred like the color channels, so soft edges
    carry partial transparency into the sampler's alpha test. The horizontal
    result is stored as 8-bit before the vertical pass.
    """
    if sigma <= 0:
        raise SettingsError(f"Blur sigma must be positive, got {sigma}")

    kernel = gaussian_kernel(sigma)
    logger.debug(
        "Blurring %dx%d buffer, sigma=%s, kernel=%d",
        buffer.width,
        buffer.height,
        sigma,
        len(kernel),
    )

    horizontal = _convolve_axis(buffer.pixels, kernel, axis=1)
    vertical = _convolve_axis(horizontal, kernel, axis=0)
    return PixelBuffer(vertical)
