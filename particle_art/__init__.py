"""particle-art: raster images to particle SVG art."""

from particle_art.batch import RateLimiter, convert_batch
from particle_art.errors import (
    DecodeError,
    ParticleArtError,
    RenderError,
    SettingsError,
    SurfaceError,
)
from particle_art.image_processing import ImageProcessor
from particle_art.models import (
    ConversionResult,
    ConversionSettings,
    EngineConfig,
    ExportFormat,
    ExportOptions,
    PixelBuffer,
)

__version__ = "0.1.0"

__all__ = [
    "ConversionResult",
    "ConversionSettings",
    "DecodeError",
    "EngineConfig",
    "ExportFormat",
    "ExportOptions",
    "ImageProcessor",
    "ParticleArtError",
    "PixelBuffer",
    "RateLimiter",
    "RenderError",
    "SettingsError",
    "SurfaceError",
    "convert_batch",
]
