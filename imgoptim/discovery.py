"""Find the image files a run should optimize."""

from pathlib import Path

from .errors import DiscoveryError
from .formats import ImageFile
from .output import STAGING_MARKER


def is_leftover_staging(path: Path) -> bool:
    """photo.tmp.jpg next to photo.jpg is debris from an interrupted run."""
    if not path.stem.endswith(STAGING_MARKER):
        return False
    original = path.with_name(path.stem[:-len(STAGING_MARKER)] + path.suffix)
    return original.is_file()


def _is_candidate(path: Path) -> bool:
    return path.is_file() and not is_leftover_staging(path)


def discover(input_path: Path, recursive: bool = False,
             exclude: list[Path] | None = None) -> list[ImageFile]:
    """Return the supported images under input_path, sorted by path.

    A single file yields itself when its extension is supported, nothing
    otherwise. Directories are scanned one level deep unless recursive.
    Anything inside an excluded directory (e.g. an output folder nested in
    the input) is skipped.
    """
    input_path = Path(input_path)
    if not input_path.exists():
        raise DiscoveryError(f"Input file or directory does not exist: {input_path}")

    if input_path.is_file():
        image = ImageFile.from_path(input_path)
        return [image] if image else []

    excluded = [Path(d).resolve() for d in exclude or []]
    entries = input_path.rglob('*') if recursive else input_path.iterdir()

    images = []
    for path in entries:
        if not _is_candidate(path):
            continue
        if excluded and any(path.resolve().is_relative_to(d) for d in excluded):
            continue
        image = ImageFile.from_path(path)
        if image:
            images.append(image)
    return sorted(images, key=lambda image: image.path)


def input_root_for(input_path: Path) -> Path:
    """Directory the output tree is mirrored from."""
    input_path = Path(input_path)
    return input_path.parent if input_path.is_file() else input_path
