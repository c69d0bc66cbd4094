"""Utility functions for color math, background detection and scaling.

AIDEV-NOTE: This module contains helper functions shared by the sampler,
the color extraction and the SVG builder. Keep them free of pipeline state.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from PIL import Image

from particle_art.errors import SurfaceError

if TYPE_CHECKING:
    from particle_art.models import PixelBuffer


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -0.5 -> 0).

    AIDEV-NOTE: Python's round() rounds halves to even, which would shift
    half-step grid coordinates onto different pixels.
    """
    return math.floor(value + 0.5)


def round_to_tenth(value: float) -> float:
    """Round to one decimal, halves going up (2.25 -> 2.3).

    The exact binary value is rounded, so 1.15 (stored as 1.1499...) gives 1.1.
    """
    return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def get_luminance(color: "tuple[float, float, float]") -> float:
    """Perceived brightness (0-255) of an RGB color."""
    r, g, b = color[:3]
    return 0.299 * r + 0.587 * g + 0.114 * b


def rgb_to_hex(color: "tuple[float, float, float]") -> str:
    """Convert an RGB triple to a lowercase #rrggbb string."""
    return "#" + "".join(
        f"{max(0, min(255, round_half_up(c))):02x}" for c in color[:3]
    )


def color_distance(
    a: "tuple[float, float, float]", b: "tuple[float, float, float]"
) -> float:
    """Euclidean distance between two colors in RGB space."""
    return math.sqrt(
        (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2
    )


def get_color(buffer: "PixelBuffer", x: int, y: int) -> "tuple[int, int, int]":
    """Get the RGB color at a pixel location (alpha dropped)."""
    r, g, b, _ = buffer.pixel(x, y)
    return (r, g, b)


def detect_background(
    buffer: "PixelBuffer",
) -> "tuple[tuple[float, float, float], float]":
    """Estimate the background color from the four corner pixels.

    Args:
        buffer: Source pixels

    Returns:
        Tuple of (mean corner color as floats, its luminance)

    AIDEV-NOTE: Channels are averaged independently and not rounded; the
    background filter compares against the exact mean.
    """
    right = buffer.width - 1
    bottom = buffer.height - 1
    corners = [(0, 0), (right, 0), (0, bottom), (right, bottom)]

    total_r = total_g = total_b = 0
    for x, y in corners:
        r, g, b = get_color(buffer, x, y)
        total_r += r
        total_g += g
        total_b += b

    background = (total_r / 4, total_g / 4, total_b / 4)
    return background, get_luminance(background)


def scale_image_to_fit(
    image: Image.Image, max_size: int
) -> "tuple[Image.Image, float]":
    """Downscale an image so neither side exceeds max_size.

    Args:
        image: Input PIL image
        max_size: Maximum width and height in pixels

    Returns:
        Tuple of (scaled_image, scale_factor). Images already within bounds
        are returned unchanged with a factor of 1.0.

    AIDEV-NOTE: Fewer pixels means fewer particles; the cap keeps both the
    sampling time and the SVG size bounded. Never upscales.
    """
    orig_width, orig_height = image.size
    if orig_width <= 0 or orig_height <= 0:
        raise SurfaceError(f"Image has no area ({orig_width}x{orig_height})")

    if orig_width <= max_size and orig_height <= max_size:
        return image, 1.0

    scale = min(max_size / orig_width, max_size / orig_height)
    new_width = max(1, math.floor(orig_width * scale))
    new_height = max(1, math.floor(orig_height * scale))

    scaled_image = image.resize((new_width, new_height), Image.Resampling.LANCZOS)
    return scaled_image, scale
