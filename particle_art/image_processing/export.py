"""Raster export of generated SVG documents.

AIDEV-NOTE: The reverse of the conversion pipeline and fully independent of
it: it only consumes serialized SVG. cairosvg does the vector rendering,
Pillow does background compositing and encoding.
"""

import io
import logging
import math
import re
import xml.etree.ElementTree as ET
from pathlib import Path

import cairosvg
from PIL import Image, ImageColor

from particle_art.errors import RenderError
from particle_art.models import ExportFormat, ExportOptions

logger = logging.getLogger(__name__)

# Signed decimal with optional exponent; units after it are ignored
LENGTH_PATTERN = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def read_svg_size(svg_code: str) -> "tuple[float, float]":
    """Read the canvas size of an SVG document.

    Uses the width/height attributes, falling back to the viewBox.

    Raises:
        RenderError: If the markup cannot be parsed or has no usable size
    """
    try:
        root = ET.fromstring(svg_code)
    except ET.ParseError as e:
        raise RenderError(f"Failed to parse SVG: {e}") from e

    width = _length(root.get("width"))
    height = _length(root.get("height"))
    if width is None or height is None:
        viewbox = root.get("viewBox", "").replace(",", " ").split()
        if len(viewbox) != 4:
            raise RenderError("SVG document has no width/height or viewBox")
        try:
            width, height = float(viewbox[2]), float(viewbox[3])
        except ValueError as e:
            raise RenderError(f"Invalid viewBox: {root.get('viewBox')}") from e

    if width <= 0 or height <= 0:
        raise RenderError(f"SVG document has no area: {width}x{height}")
    return width, height


def _length(value: "str | None") -> "float | None":
    """Leading number of a length attribute such as "12px" or "1e2"."""
    if not value:
        return None
    match = LENGTH_PATTERN.match(value)
    return float(match.group(1)) if match else None


def rasterize_svg(
    svg_code: str, output_width: int, output_height: int
) -> Image.Image:
    """Render an SVG string to an RGBA image of exactly the given size."""
    if output_width <= 0 or output_height <= 0:
        raise RenderError(
            f"Cannot allocate a {output_width}x{output_height} raster surface"
        )

    try:
        png_data = cairosvg.svg2png(
            bytestring=svg_code.encode("utf-8"),
            output_width=output_width,
            output_height=output_height,
        )
        image = Image.open(io.BytesIO(png_data)).convert("RGBA")
    except Exception as e:
        raise RenderError(f"Failed to rasterize SVG: {e}") from e

    if image.size != (output_width, output_height):
        image = image.resize((output_width, output_height), Image.Resampling.LANCZOS)
    return image


def apply_background(image: Image.Image, background: str) -> Image.Image:
    """Composite an RGBA image over an opaque background color."""
    try:
        fill = ImageColor.getrgb(background)
    except ValueError as e:
        raise RenderError(f"Invalid background color: {background}") from e

    canvas = Image.new("RGBA", image.size, fill[:3] + (255,))
    canvas.alpha_composite(image)
    return canvas


def export_svg(
    svg_code: str,
    width: float,
    height: float,
    options: "ExportOptions | None" = None,
) -> bytes:
    """Rasterize an SVG document and encode it.

    Args:
        svg_code: Well-formed SVG markup
        width: Document width in px
        height: Document height in px
        options: Target format, scale, quality and background

    Returns:
        Encoded image bytes of size floor(width * scale) x floor(height * scale)

    Raises:
        RenderError: If the document cannot be rendered or encoded. No
            partial output is returned.

    AIDEV-NOTE: JPEG always gets a background (white by default) because it
    cannot store transparency. PNG and WEBP keep transparency unless a
    background is given.
    """
    options = options or ExportOptions()
    if options.scale <= 0:
        raise RenderError(f"Export scale must be positive, got {options.scale}")

    # Fractional sizes truncate (7.5 -> 7)
    output_width = math.floor(width * options.scale)
    output_height = math.floor(height * options.scale)
    image = rasterize_svg(svg_code, output_width, output_height)

    background = options.resolved_background()
    if background:
        image = apply_background(image, background)

    save_kwargs: "dict[str, object]" = {}
    if options.format is ExportFormat.JPEG:
        image = image.convert("RGB")
        save_kwargs["quality"] = options.quality
    elif options.format is ExportFormat.WEBP:
        save_kwargs["quality"] = options.quality

    output = io.BytesIO()
    try:
        image.save(output, format=options.format.pil_format, **save_kwargs)
    except (OSError, ValueError) as e:
        raise RenderError(f"Failed to encode {options.format.value}: {e}") from e

    logger.debug(
        "Exported %s %dx%d (%d bytes)",
        options.format.value,
        output_width,
        output_height,
        output.tell(),
    )
    return output.getvalue()


def svg_to_png(
    svg_code: str,
    width: float,
    height: float,
    scale: float = 2.0,
    background: "str | None" = None,
) -> bytes:
    """Export to PNG, transparent unless a background is given."""
    return export_svg(
        svg_code,
        width,
        height,
        ExportOptions(format=ExportFormat.PNG, scale=scale, background=background),
    )


def svg_to_jpeg(
    svg_code: str,
    width: float,
    height: float,
    quality: int = 95,
    scale: float = 2.0,
    background: str = "#ffffff",
) -> bytes:
    """Export to JPEG over an opaque background."""
    return export_svg(
        svg_code,
        width,
        height,
        ExportOptions(
            format=ExportFormat.JPEG,
            scale=scale,
            quality=quality,
            background=background,
        ),
    )


def svg_to_webp(
    svg_code: str,
    width: float,
    height: float,
    quality: int = 95,
    scale: float = 2.0,
    background: "str | None" = None,
) -> bytes:
    """Export to WEBP, transparent unless a background is given."""
    return export_svg(
        svg_code,
        width,
        height,
        ExportOptions(
            format=ExportFormat.WEBP,
            scale=scale,
            quality=quality,
            background=background,
        ),
    )


def save_blob(blob: bytes, path: "str | Path") -> Path:
    """Write exported bytes to disk, returning the path written."""
    path = Path(path)
    path.write_bytes(blob)
    return path
