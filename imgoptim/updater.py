"""
Self-update from the latest GitHub release.

Only standalone (frozen) builds can replace their own executable; a pip
installation is upgraded with pip instead.
"""

import os
import platform
import shutil
import sys
from pathlib import Path

import requests

from . import __version__
from .console import C, echo
from .errors import UpdateError

REPO_OWNER = 'nixuuu'
REPO_NAME = 'image-optimizer'
RELEASES_URL = f'https://api.github.com/repos/{REPO_OWNER}/{REPO_NAME}/releases/latest'
BINARY_PREFIX = REPO_NAME
REQUEST_TIMEOUT = 30

_TARGETS = {
    ('linux', 'x86_64'): 'x86_64-unknown-linux-gnu',
    ('linux', 'aarch64'): 'aarch64-unknown-linux-gnu',
    ('darwin', 'x86_64'): 'x86_64-apple-darwin',
    ('darwin', 'arm64'): 'aarch64-apple-darwin',
    ('windows', 'amd64'): 'x86_64-pc-windows-msvc',
}


def _parse_version(version: str) -> list[int]:
    try:
        return [int(part) for part in version.lstrip('v').split('.')]
    except ValueError:
        raise UpdateError(f"Invalid version format: {version}") from None


def compare_versions(current: str, latest: str) -> bool:
    """True when latest is newer than current. A leading 'v' is ignored."""
    current_parts = _parse_version(current)
    latest_parts = _parse_version(latest)

    for curr, new in zip(current_parts, latest_parts):
        if new != curr:
            return new > curr
    return len(latest_parts) > len(current_parts)


def platform_target(system: str | None = None, machine: str | None = None) -> str:
    """Release target triple for this OS and CPU."""
    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()
    if machine == 'aarch64' and system == 'darwin':
        machine = 'arm64'
    if machine == 'arm64' and system == 'linux':
        machine = 'aarch64'
    try:
        return _TARGETS[(system, machine)]
    except KeyError:
        raise UpdateError(f"Unsupported platform: {system}-{machine}") from None


def current_executable() -> Path:
    if not getattr(sys, 'frozen', False):
        raise UpdateError(
            "Self-update only works for standalone builds; "
            "run 'pip install --upgrade imgoptim' instead"
        )
    return Path(sys.executable).resolve()


def fetch_latest_release(session: requests.Session) -> dict:
    try:
        r = session.get(RELEASES_URL, timeout=REQUEST_TIMEOUT)
        r.raise_for_status()
        return r.json()
    except requests.RequestException as e:
        raise UpdateError(f"Failed to check for updates: {e}") from e
    except ValueError as e:
        raise UpdateError(f"Failed to parse release information: {e}") from e


def download_to(session: requests.Session, url: str, path: Path):
    try:
        r = session.get(url, timeout=REQUEST_TIMEOUT, stream=True)
        r.raise_for_status()
        with path.open('wb') as f:
            for chunk in r.iter_content(chunk_size=1 << 15):
                if chunk:
                    f.write(chunk)
    except requests.RequestException as e:
        raise UpdateError(f"Failed to download update: {e}") from e
    except OSError as e:
        raise UpdateError(f"Failed to write updated binary: {e}") from e


def install_binary(downloaded: Path, executable: Path) -> Path:
    """Back up the running executable, then swap the download into its place."""
    backup_path = executable.with_suffix('.bak')
    try:
        shutil.copy2(executable, backup_path)
        if os.name == 'posix':
            downloaded.chmod(0o755)
        os.replace(downloaded, executable)
    except OSError as e:
        raise UpdateError(f"Failed to install update: {e}") from e
    return backup_path


def update_self(session: requests.Session | None = None) -> bool:
    """Update to the latest release. Returns False when already up to date."""
    echo("🔍 Checking for updates...")
    echo(f"Current version: v{__version__}")

    session = session or requests.Session()
    session.headers.setdefault('User-Agent', f'{REPO_NAME}/{__version__}')

    release = fetch_latest_release(session)
    tag = release.get('tag_name', '')
    echo(f"Latest version: {tag}")

    if not compare_versions(__version__, tag):
        echo(f"{C.GREEN}✅ You're already running the latest version!{C.RESET}")
        return False

    echo(f"📦 New version available: {tag}")

    target = platform_target()
    binary_name = f'{BINARY_PREFIX}-{target}'
    asset = next((a for a in release.get('assets', []) if a.get('name') == binary_name), None)
    if asset is None:
        raise UpdateError(f"No binary found for platform: {target}")

    executable = current_executable()
    staging = executable.with_suffix('.tmp')

    echo("⬇️  Downloading update...")
    try:
        download_to(session, asset['browser_download_url'], staging)
        echo("🔄 Installing update...")
        backup_path = install_binary(staging, executable)
    finally:
        if staging.exists():
            staging.unlink()

    echo(f"{C.GREEN}✅ Successfully updated to {tag}!{C.RESET}")
    echo(f"📁 Backup saved to: {backup_path}")
    return True
