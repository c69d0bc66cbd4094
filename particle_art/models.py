"""Data models and constants for the particle-art engine."""

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import numpy as np
import svg
from PIL import Image

from particle_art.errors import DecodeError, SettingsError, SurfaceError

# AIDEV-NOTE: Sampling heuristics - changing any of these changes the output
ALPHA_THRESHOLD = 128  # alpha below this is treated as fully transparent
LIGHT_BACKGROUND_LUMINANCE = 200.0  # only backgrounds brighter than this are filtered
BACKGROUND_DISTANCE = 30.0  # RGB distance under which a pixel counts as background
MERGE_DISTANCE_FACTOR = 3.0  # merge distance in multiples of particle size

# Accepted particle_density range (percent)
MIN_DENSITY = 10.0
MAX_DENSITY = 100.0

# Engine defaults
DEFAULT_MAX_SIZE = 600  # px, longest side after downscaling
DEFAULT_MAX_COLORS = 10

# Configuration file path
CONFIG_FILE = Path.home() / ".particle_art_config.json"

SVG_NAMESPACE = "http://www.w3.org/2000/svg"


class ExportFormat(Enum):
    """Raster formats the exporter can produce."""

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @property
    def extension(self) -> str:
        return ".jpg" if self is ExportFormat.JPEG else f".{self.value}"

    @property
    def pil_format(self) -> str:
        return self.value.upper()

    @classmethod
    def from_name(cls, name: str) -> "ExportFormat":
        """Resolve a user supplied name such as 'jpg' or 'PNG'."""
        key = name.strip().lower().lstrip(".")
        if key == "jpg":
            key = "jpeg"
        try:
            return cls(key)
        except ValueError as e:
            raise SettingsError(f"Unsupported export format: {name}") from e


@dataclass(frozen=True)
class ConversionSettings:
    """User-facing conversion parameters.

    AIDEV-NOTE: Immutable for the duration of one conversion. Degenerate
    values are rejected by validate() rather than producing zero-radius output.
    """

    particle_size: float = 2.0  # particle radius in px
    particle_density: float = 50.0  # percent, controls grid step (10-100)
    blur: float = 0.0  # Gaussian sigma, 0 disables blur

    def validate(self) -> "ConversionSettings":
        """Raise SettingsError if any value is outside the supported range."""
        for name in ("particle_size", "particle_density", "blur"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise SettingsError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise SettingsError(f"{name} must be finite, got {value!r}")

        from particle_art.image_processing.utils import round_to_tenth

        # The written radius is particle_size to one decimal
        if round_to_tenth(self.particle_size) <= 0:
            raise SettingsError(
                f"particle_size must be at least 0.05, got {self.particle_size}"
            )
        if not MIN_DENSITY <= self.particle_density <= MAX_DENSITY:
            raise SettingsError(
                f"particle_density must be within [{MIN_DENSITY:g}, {MAX_DENSITY:g}], "
                f"got {self.particle_density}"
            )
        if self.blur < 0:
            raise SettingsError(f"blur must not be negative, got {self.blur}")
        return self

    @property
    def step(self) -> float:
        from particle_art.image_processing.rendering import grid_step

        return grid_step(self.particle_size, self.particle_density)

    @property
    def merge_distance(self) -> float:
        return self.particle_size * MERGE_DISTANCE_FACTOR


@dataclass
class EngineConfig:
    """Engine-wide limits that are not part of a single conversion."""

    max_size: int = DEFAULT_MAX_SIZE  # longest side in px before sampling
    max_colors: int = DEFAULT_MAX_COLORS  # representative colors reported
    palette_method: str = "unique"  # "unique" or "kmeans"


@dataclass
class PixelBuffer:
    """RGBA pixels in row-major order, shape (height, width, 4), uint8.

    AIDEV-NOTE: Owned by exactly one stage at a time. Stages that transform
    pixels return a new buffer instead of mutating the caller's.
    """

    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise DecodeError(
                f"Expected an RGBA array of shape (h, w, 4), got {self.pixels.shape}"
            )
        if self.pixels.shape[0] == 0 or self.pixels.shape[1] == 0:
            raise SurfaceError("Pixel buffer has no area")
        if self.pixels.dtype != np.uint8:
            self.pixels = np.clip(self.pixels, 0, 255).astype(np.uint8)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(np.array(image, dtype=np.uint8))

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "PixelBuffer":
        """Wrap a flat RGBA byte sequence of length width * height * 4."""
        if width <= 0 or height <= 0:
            raise SurfaceError(f"Invalid buffer size {width}x{height}")
        expected = width * height * 4
        if len(data) != expected:
            raise DecodeError(
                f"Expected {expected} bytes for {width}x{height} RGBA, got {len(data)}"
            )
        array = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4)
        return cls(array.copy())

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels)

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()

    def pixel(self, x: int, y: int) -> "tuple[int, int, int, int]":
        r, g, b, a = self.pixels[y, x]
        return (int(r), int(g), int(b), int(a))


@dataclass(frozen=True)
class Particle:
    """One sampled, colored point at integer pixel coordinates."""

    x: int
    y: int
    color: "tuple[int, int, int]"


@dataclass
class ColorGroup:
    """All particles sharing one exact color."""

    color: "tuple[int, int, int]"
    particles: "list[Particle]" = field(default_factory=list)

    @property
    def hex_color(self) -> str:
        from particle_art.image_processing.utils import rgb_to_hex

        return rgb_to_hex(self.color)

    @property
    def luminance(self) -> float:
        from particle_art.image_processing.utils import get_luminance

        # AIDEV-NOTE: paint order uses the first member, not the group mean
        return get_luminance(self.particles[0].color if self.particles else self.color)


@dataclass
class SvgDocument:
    """Ordered (fill color, primitive) drawing groups plus canvas size.

    AIDEV-NOTE: Group order is paint order - later (brighter) groups are
    drawn on top of earlier (darker) ones.
    """

    width: int
    height: int
    groups: "list[tuple[str, svg.Element]]" = field(default_factory=list)

    def elements(self) -> "list[svg.G]":
        return [svg.G(fill=fill, elements=[primitive]) for fill, primitive in self.groups]

    def as_str(self) -> str:
        """Serialize with root attributes in xmlns, width, height, viewBox order.

        svg.SVG writes viewBox first, so the root tag is written here and only
        the groups go through svg.py.
        """
        root = (
            f'<svg xmlns="{SVG_NAMESPACE}" width="{self.width}" '
            f'height="{self.height}" viewBox="0 0 {self.width} {self.height}">'
        )
        return root + "".join(group.as_str() for group in self.elements()) + "</svg>"


@dataclass
class ConversionResult:
    """Result of one image conversion."""

    # Serialized SVG document
    svg_code: str

    # Where the pixels came from (path, name or the caller's object)
    source: object

    # Canvas size of the document (after downscaling)
    width: int
    height: int

    # Wall-clock processing time in milliseconds
    processing_time: float = 0.0

    # Representative colors as lowercase hex, for display
    colors: "list[str]" = field(default_factory=list)

    # Statistics
    particle_count: int = 0
    group_count: int = 0


@dataclass
class ExportOptions:
    """Raster export target."""

    format: ExportFormat = ExportFormat.PNG
    scale: float = 2.0
    quality: int = 95  # 1-100, lossy formats only
    background: "str | None" = None  # CSS color; required for JPEG

    def resolved_background(self) -> "str | None":
        # JPEG has no alpha channel
        if self.format is ExportFormat.JPEG and not self.background:
            return "#ffffff"
        return self.background
