"""Sequential batch conversion for several images.

AIDEV-NOTE: Images are converted strictly one at a time, in submission
order. A failure is fatal to that image only; the rest of the batch keeps
going. The rate limiter is an explicit object owned by the caller.
"""

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional

from particle_art.errors import ParticleArtError
from particle_art.image_processing import ImageProcessor
from particle_art.models import ConversionResult, ConversionSettings

logger = logging.getLogger(__name__)


class BatchStatus(Enum):
    """Per-image outcome of a batch run."""

    COMPLETED = "completed"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass
class BatchItem:
    """Outcome for one submitted image."""

    source: object
    status: BatchStatus
    result: Optional[ConversionResult] = None
    error: Optional[str] = None


@dataclass
class BatchReport:
    """All outcomes of a batch run, in submission order."""

    items: "list[BatchItem]" = field(default_factory=list)

    @property
    def results(self) -> "list[ConversionResult]":
        return [item.result for item in self.items if item.result is not None]

    @property
    def failed(self) -> "list[BatchItem]":
        return [item for item in self.items if item.status is BatchStatus.ERROR]

    @property
    def skipped(self) -> "list[BatchItem]":
        return [item for item in self.items if item.status is BatchStatus.SKIPPED]


class RateLimiter:
    """Sliding-window limiter: at most max_requests per window_seconds."""

    def __init__(
        self,
        max_requests: int = 20,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._timestamps: "deque[float]" = deque()

    def _expire(self, now: float):
        while self._timestamps and now - self._timestamps[0] >= self.window_seconds:
            self._timestamps.popleft()

    def can_proceed(self) -> bool:
        """Record a request and return True if it fits in the window."""
        now = self._clock()
        self._expire(now)
        if len(self._timestamps) >= self.max_requests:
            return False
        self._timestamps.append(now)
        return True

    def remaining_time(self) -> float:
        """Seconds until the oldest recorded request leaves the window."""
        if not self._timestamps:
            return 0.0
        now = self._clock()
        return max(0.0, self.window_seconds - (now - self._timestamps[0]))


def convert_batch(
    sources: Iterable,
    settings: ConversionSettings,
    processor: Optional[ImageProcessor] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> BatchReport:
    """Convert images one after another, isolating failures per image.

    Args:
        sources: Image paths, bytes or PIL images, in processing order
        settings: Settings shared by every conversion
        processor: Processor to use (a default one if None)
        rate_limiter: Optional limiter consulted once per image; images over
            the limit are reported as skipped

    Returns:
        BatchReport with one item per source, in submission order

    Raises:
        SettingsError: If settings are invalid, before any image is touched
    """
    settings.validate()
    processor = processor or ImageProcessor()
    report = BatchReport()

    for source in sources:
        if rate_limiter is not None and not rate_limiter.can_proceed():
            message = (
                f"Rate limit reached, retry in {rate_limiter.remaining_time():.0f}s"
            )
            logger.warning("Skipping %s: %s", source, message)
            report.items.append(
                BatchItem(source=source, status=BatchStatus.SKIPPED, error=message)
            )
            continue

        try:
            result = processor.convert(source, settings)
        except ParticleArtError as e:
            logger.warning("Conversion failed for %s: %s", source, e)
            report.items.append(
                BatchItem(source=source, status=BatchStatus.ERROR, error=str(e))
            )
            continue

        report.items.append(
            BatchItem(source=source, status=BatchStatus.COMPLETED, result=result)
        )

    return report


def svg_filename(original_name: "str | Path") -> str:
    """Replace the source file's extension with .svg."""
    return Path(original_name).with_suffix(".svg").name


def save_svg(svg_code: str, original_name: "str | Path", output_dir: "str | Path") -> Path:
    """Write an SVG next to the others in output_dir, named after its source."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / svg_filename(original_name)
    path.write_text(svg_code, encoding="utf-8")
    return path
