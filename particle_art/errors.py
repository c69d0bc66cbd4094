"""Exception types raised by the particle-art engine.

AIDEV-NOTE: Each error is fatal to one conversion or one export call only.
Nothing is retried internally; callers decide whether to skip or abort.
"""


class ParticleArtError(Exception):
    """Base class for all engine failures."""


class DecodeError(ParticleArtError):
    """Source image could not be decoded into a pixel buffer."""


class SurfaceError(ParticleArtError):
    """No drawing surface could be obtained (e.g. zero-sized image)."""


class RenderError(ParticleArtError):
    """An SVG document could not be rasterized during export."""


class SettingsError(ParticleArtError, ValueError):
    """Conversion settings violate the caller contract."""
