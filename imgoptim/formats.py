"""Supported image formats and the files discovered for them."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ImageFormat(Enum):
    JPEG = 'jpeg'
    PNG = 'png'
    WEBP = 'webp'

    @classmethod
    def from_path(cls, path: Path) -> 'ImageFormat | None':
        """Infer the format from the file extension, case-insensitively."""
        return EXT_TO_FORMAT.get(Path(path).suffix.lower())


# Extension → format mapping used for discovery and dispatch
EXT_TO_FORMAT = {
    '.jpg': ImageFormat.JPEG,
    '.jpeg': ImageFormat.JPEG,
    '.png': ImageFormat.PNG,
    '.webp': ImageFormat.WEBP,
}


@dataclass(frozen=True)
class ImageFile:
    """A discovered image. Only discovery builds these, so format is always supported."""

    path: Path
    format: ImageFormat

    @classmethod
    def from_path(cls, path: Path) -> 'ImageFile | None':
        fmt = ImageFormat.from_path(path)
        if fmt is None:
            return None
        return cls(Path(path), fmt)
