"""
Optimize one image: back up, resize, encode to a staging path and keep the
result only when it is strictly smaller than the original.
"""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from .config import OptimizationRequest
from .encoders import DECODE_ERRORS, Decoded, FromDisk, PixelSource, encode
from .errors import EncodeError
from .formats import ImageFile
from .output import OutputTarget, create_backup, resolve
from .resize import needs_resize, plan_resize


@dataclass(frozen=True)
class FileOutcome:
    path: Path
    original_bytes: int
    optimized_bytes: int
    resized_to: tuple[int, int] | None = None

    @property
    def improved(self) -> bool:
        return self.optimized_bytes < self.original_bytes

    @property
    def saved(self) -> int:
        return self.original_bytes - self.optimized_bytes if self.improved else 0


def _discard(path: Path):
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def load_source(image: ImageFile, max_size: int | None) -> tuple[PixelSource, tuple[int, int] | None]:
    """Decode and resize when a size limit is set, otherwise leave it on disk."""
    if max_size is None:
        return FromDisk(image.path), None

    try:
        with Image.open(image.path) as img:
            img.load()
            exif = img.info.get('exif')
            width, height = img.size
            if not needs_resize(width, height, max_size):
                return Decoded(img.copy(), exif), None

            new_size = plan_resize(width, height, max_size)
            if 0 in new_size:
                raise EncodeError(
                    image.path,
                    f"cannot resize {width}x{height} to {new_size[0]}x{new_size[1]}",
                )
            resized = img.resize(new_size, Image.Resampling.LANCZOS)
            return Decoded(resized, exif), new_size
    except DECODE_ERRORS as e:
        raise EncodeError(image.path, f"Failed to decode image: {e}") from e


def _keep_original(image: ImageFile, target: OutputTarget):
    """No size win: leave the original alone, or mirror it unchanged."""
    _discard(target.staging)
    if not target.in_place:
        shutil.copyfile(image.path, target.staging)
        os.replace(target.staging, target.final)


def optimize_file(image: ImageFile, request: OptimizationRequest, input_root: Path) -> FileOutcome:
    """Process a single image and report the bytes it saved.

    The original is only ever replaced by the final os.replace of a staged
    file that already won the size comparison. The staging file never
    outlives this call; errors propagate to the caller.
    """
    original_bytes = image.path.stat().st_size
    target = resolve(request, input_root, image.path)

    if request.backup and target.in_place:
        create_backup(image.path)

    try:
        source, resized_to = load_source(image, request.max_size)
        encode(image.format, source, target.staging, request)
        optimized_bytes = target.staging.stat().st_size

        if optimized_bytes < original_bytes:
            os.replace(target.staging, target.final)
        else:
            _keep_original(image, target)
    finally:
        # Gone already after a successful replace
        _discard(target.staging)

    return FileOutcome(image.path, original_bytes, optimized_bytes, resized_to)
