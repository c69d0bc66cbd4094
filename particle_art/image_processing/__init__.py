"""Image processing pipeline for raster-to-particle-SVG conversion.

AIDEV-NOTE: This package handles the complete pipeline from raster image
to particle art. Organized into modular components:
- processor: Main ImageProcessor orchestrator
- filters: Gaussian blur preprocessing
- rendering: Two-pass grid sampling and color grouping
- clustering: Grid-hashed merging of nearby same-color particles
- svg_builder: Path emission and SVG document assembly
- quantization: Representative colors for display
- export: SVG to PNG/JPEG/WEBP rasterization (imported on demand, needs cairo)
- utils: Color math, background detection and scaling
"""

from .processor import ImageProcessor
from .svg_builder import build_svg_document

__all__ = ["ImageProcessor", "build_svg_document"]
