"""
Run configuration: defaults and the immutable OptimizationRequest.
"""

from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError

# ── Defaults ─────────────────────────────────────────────────────────────────

DEFAULT_QUALITY = 85            # JPEG/WebP quality, ignored when lossless
DEFAULT_PNG_LEVEL = '2'         # oxipng preset, 0-6 or 'max'
DEFAULT_ZOPFLI_ITERATIONS = 15
LIBDEFLATER_COMPRESSION = 12    # used when zopfli is disabled
MAX_PNG_LEVEL = 6

PNG_LEVEL_CHOICES = tuple(str(n) for n in range(MAX_PNG_LEVEL + 1)) + ('max',)


def parse_png_level(value: str) -> int:
    """Turn '0'..'6' or 'max' into an oxipng preset number."""
    value = str(value).strip().lower()
    if value == 'max':
        return MAX_PNG_LEVEL
    try:
        level = int(value)
    except ValueError:
        level = -1
    if not 0 <= level <= MAX_PNG_LEVEL:
        raise ConfigError(
            f"Invalid oxipng optimization level: {value}. Valid values are 0-6 or 'max'"
        )
    return level


@dataclass(frozen=True)
class OptimizationRequest:
    """Settings for one batch run. Shared read-only by every worker."""

    quality: int = DEFAULT_QUALITY
    lossless: bool = False
    max_size: int | None = None
    backup: bool = False
    output_dir: Path | None = None
    parallel: bool = True
    workers: int | None = None
    png_level: str = DEFAULT_PNG_LEVEL
    zopfli: bool = True
    zopfli_iterations: int = DEFAULT_ZOPFLI_ITERATIONS
    keep_metadata: bool = False

    def __post_init__(self):
        if not 1 <= self.quality <= 100:
            raise ConfigError("Quality must be between 1 and 100")
        if self.max_size is not None and self.max_size < 1:
            raise ConfigError("Max size must be a positive number of pixels")
        if self.workers is not None and self.workers < 1:
            raise ConfigError("Worker count must be at least 1")
        if not 1 <= self.zopfli_iterations <= 255:
            raise ConfigError("Zopfli iterations must be between 1 and 255")
        if self.output_dir is not None:
            object.__setattr__(self, 'output_dir', Path(self.output_dir))

    @property
    def in_place(self) -> bool:
        return self.output_dir is None

    @property
    def effective_quality(self) -> int:
        return 100 if self.lossless else self.quality
