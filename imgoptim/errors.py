"""Exception types raised by imgoptim."""

from pathlib import Path


class ImgOptimError(Exception):
    """Base class for every error imgoptim raises on purpose."""


class ConfigError(ImgOptimError):
    """Invalid optimization settings."""


class DiscoveryError(ImgOptimError):
    """The input path cannot be scanned."""


class FileError(ImgOptimError):
    """A failure tied to one image file. Never aborts the batch."""

    def __init__(self, path: Path, message: str):
        self.path = Path(path)
        super().__init__(message)


class EncodeError(FileError):
    """Decoding, resampling or re-encoding an image failed."""


class OutputPathError(FileError):
    """The file cannot be mapped into the output tree."""


class BackupError(FileError):
    """Copying the original to its .bak sibling failed."""


class UpdateError(ImgOptimError):
    """Self-update could not complete."""
