"""Main image processor orchestrating the complete pipeline.

AIDEV-NOTE: This module handles the complete pipeline from raster image
to particle SVG: decode -> downscale -> blur -> two-pass sampling ->
color grouping -> clustering -> SVG assembly. Everything after decoding is
synchronous and keeps no state between calls.
"""

import io
import logging
import time
from pathlib import Path

from PIL import Image

from particle_art.errors import DecodeError
from particle_art.models import (
    ConversionResult,
    ConversionSettings,
    EngineConfig,
    PixelBuffer,
    SvgDocument,
)

from .filters import gaussian_blur
from .quantization import extract_colors
from .rendering import group_by_color, render_particles
from .svg_builder import build_svg_document
from .utils import scale_image_to_fit

logger = logging.getLogger(__name__)


class ImageProcessor:
    """Converts raster images into particle-art SVG documents."""

    def __init__(self, engine_config: EngineConfig | None = None):
        self.engine_config = engine_config or EngineConfig()

    def load_image(self, source) -> Image.Image:
        """Decode an image source into RGBA.

        Args:
            source: Path, raw encoded bytes, binary file object or PIL Image

        Returns:
            PIL Image in RGBA mode

        Raises:
            DecodeError: If the source cannot be decoded
        """
        if isinstance(source, Image.Image):
            image = source
        else:
            if isinstance(source, (bytes, bytearray)):
                source = io.BytesIO(source)
            try:
                image = Image.open(source)
                # Force the lazy decoder now so truncated files fail here
                image.load()
            except Exception as e:
                raise DecodeError(f"Failed to load image: {e}") from e

        # AIDEV-NOTE: Always convert to RGBA for consistent processing
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return image

    def rasterize(self, source) -> PixelBuffer:
        """Decode a source and downscale it to the configured size cap."""
        image = self.load_image(source)
        orig_width, orig_height = image.size

        scaled_image, scale_factor = scale_image_to_fit(
            image, self.engine_config.max_size
        )
        if scale_factor != 1.0:
            logger.debug(
                "Downscaled %dx%d to %dx%d",
                orig_width,
                orig_height,
                scaled_image.size[0],
                scaled_image.size[1],
            )
        return PixelBuffer.from_image(scaled_image)

    def build_document(
        self, buffer: PixelBuffer, settings: ConversionSettings
    ) -> "tuple[SvgDocument, int]":
        """Sample, group and cluster a prepared buffer.

        Returns:
            Tuple of (document, number of sampled particles)
        """
        particles = render_particles(
            buffer, settings.particle_size, settings.particle_density
        )
        color_groups = group_by_color(particles)
        document = build_svg_document(
            buffer.width,
            buffer.height,
            color_groups,
            settings.particle_size,
            settings.merge_distance,
        )
        return document, len(particles)

    def convert_buffer(
        self,
        buffer: PixelBuffer,
        settings: ConversionSettings,
        source: object = None,
    ) -> ConversionResult:
        """Run the pixel pipeline on an already decoded buffer.

        The buffer must already respect the size cap; it is not resized here.
        """
        settings.validate()
        start_time = time.perf_counter()

        if settings.blur > 0:
            buffer = gaussian_blur(buffer, settings.blur)

        document, particle_count = self.build_document(buffer, settings)
        svg_code = document.as_str()

        colors = extract_colors(
            buffer,
            self.engine_config.max_colors,
            self.engine_config.palette_method,
        )

        processing_time = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Converted %s (%dx%d): %d particles, %d groups in %.1fms",
            source if source is not None else "buffer",
            buffer.width,
            buffer.height,
            particle_count,
            len(document.groups),
            processing_time,
        )

        return ConversionResult(
            svg_code=svg_code,
            source=source,
            width=buffer.width,
            height=buffer.height,
            processing_time=processing_time,
            colors=colors,
            particle_count=particle_count,
            group_count=len(document.groups),
        )

    def convert(self, source, settings: ConversionSettings) -> ConversionResult:
        """Execute the complete conversion pipeline.

        Args:
            source: Path, encoded bytes, binary file object or PIL Image
            settings: Particle size, density and blur

        Returns:
            ConversionResult with the serialized SVG and statistics

        Raises:
            SettingsError: If settings are out of range (checked first)
            DecodeError: If the source cannot be decoded
            SurfaceError: If the image has no drawable area
        """
        settings.validate()
        start_time = time.perf_counter()

        buffer = self.rasterize(source)
        result = self.convert_buffer(buffer, settings, source=_describe(source))

        # Include decode and resize time, like the end-to-end timer callers see
        result.processing_time = (time.perf_counter() - start_time) * 1000
        return result


def _describe(source) -> object:
    if isinstance(source, (str, Path)):
        return Path(source)
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    return source
