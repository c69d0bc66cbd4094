"""Representative color extraction for display.

AIDEV-NOTE: Colors are computed from the (possibly blurred) pixel buffer,
independently of the sampled particles. "unique" reproduces the distinct
colors in scan order; "kmeans" summarizes photographs better but is slower.
"""

import numpy as np
from sklearn.cluster import KMeans

from particle_art.errors import SettingsError
from particle_art.models import (
    ALPHA_THRESHOLD,
    BACKGROUND_DISTANCE,
    LIGHT_BACKGROUND_LUMINANCE,
    PixelBuffer,
)

from .utils import detect_background, get_luminance, rgb_to_hex


def foreground_pixels(buffer: PixelBuffer) -> np.ndarray:
    """RGB rows (N, 3) of the pixels the sampler would accept, in scan order.

    Applies the same alpha and light-background filters as the particle
    sampler.
    """
    rgba = buffer.pixels.reshape(-1, 4)
    keep = rgba[:, 3] >= ALPHA_THRESHOLD

    background, background_luminance = detect_background(buffer)
    if background_luminance > LIGHT_BACKGROUND_LUMINANCE:
        diff = rgba[:, :3].astype(np.float64) - np.asarray(background)
        distance = np.sqrt((diff * diff).sum(axis=1))
        keep &= distance >= BACKGROUND_DISTANCE

    return rgba[keep, :3]


def extract_unique_colors(buffer: PixelBuffer, limit: int) -> "list[str]":
    """First `limit` distinct foreground colors, in first-seen scan order."""
    pixels = foreground_pixels(buffer)
    if len(pixels) == 0 or limit <= 0:
        return []

    unique, first_index = np.unique(pixels, axis=0, return_index=True)
    order = np.argsort(first_index, kind="stable")[:limit]
    return [rgb_to_hex(tuple(int(c) for c in unique[i])) for i in order]


def extract_palette_kmeans(buffer: PixelBuffer, limit: int) -> "list[str]":
    """K-means palette of up to `limit` colors, ordered dark to light."""
    pixels = foreground_pixels(buffer)
    if len(pixels) == 0 or limit <= 0:
        return []

    num_colors = min(limit, len(np.unique(pixels, axis=0)))
    kmeans = KMeans(n_clusters=num_colors, random_state=42, n_init=10)
    kmeans.fit(pixels.astype(np.float64))

    centers = np.clip(np.rint(kmeans.cluster_centers_), 0, 255).astype(np.uint8)
    palette = [tuple(int(c) for c in center) for center in centers]
    palette.sort(key=get_luminance)

    # Distinct hex values only; nearby centers can round to the same color
    return list(dict.fromkeys(rgb_to_hex(color) for color in palette))


def extract_colors(buffer: PixelBuffer, limit: int, method: str = "unique") -> "list[str]":
    """Representative colors for display using the configured method."""
    if method == "unique":
        return extract_unique_colors(buffer, limit)
    elif method == "kmeans":
        return extract_palette_kmeans(buffer, limit)
    else:
        raise SettingsError(f"Unknown palette method: {method}")
