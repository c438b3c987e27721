"""Where optimized bytes are staged and where they end up."""

import shutil
from dataclasses import dataclass
from pathlib import Path

from .config import OptimizationRequest
from .errors import BackupError, OutputPathError

STAGING_MARKER = '.tmp'
BACKUP_SUFFIX = '.bak'


@dataclass(frozen=True)
class OutputTarget:
    final: Path
    staging: Path
    in_place: bool


def staging_path_for(path: Path) -> Path:
    """photo.jpg → photo.tmp.jpg, next to the file it will replace."""
    path = Path(path)
    return path.with_name(f"{path.stem}{STAGING_MARKER}{path.suffix}")


def backup_path_for(path: Path) -> Path:
    path = Path(path)
    return path.with_name(path.name + BACKUP_SUFFIX)


def mirror_output_path(output_dir: Path, input_root: Path, file_path: Path) -> Path:
    """Generate output path preserving subfolder structure, creating parents."""
    try:
        relative_path = Path(file_path).relative_to(input_root)
    except ValueError:
        raise OutputPathError(file_path, f"{file_path} is not inside {input_root}") from None

    output_path = Path(output_dir) / relative_path
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return output_path


def resolve(request: OptimizationRequest, input_root: Path, file_path: Path) -> OutputTarget:
    """Pick the final location and a staging path on the same filesystem."""
    if request.in_place:
        return OutputTarget(Path(file_path), staging_path_for(file_path), True)

    final = mirror_output_path(request.output_dir, input_root, file_path)
    return OutputTarget(final, staging_path_for(final), False)


def create_backup(path: Path) -> Path:
    """Copy the original to <name>.bak before anything touches it."""
    backup = backup_path_for(path)
    try:
        shutil.copy2(path, backup)
    except OSError as e:
        raise BackupError(path, f"Failed to create backup {backup.name}: {e}") from e
    return backup
