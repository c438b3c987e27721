"""Terminal output: colors, byte formatting and the progress bar."""

import sys
from pathlib import Path

from tqdm import tqdm

# ── ANSI Colors ──────────────────────────────────────────────────────────────

class Color:
    """ANSI color codes. Auto-disabled when not writing to a TTY."""
    _enabled = sys.stdout.isatty()

    BOLD    = '\033[1m'   if _enabled else ''
    DIM     = '\033[2m'   if _enabled else ''
    GREEN   = '\033[92m'  if _enabled else ''
    RED     = '\033[91m'  if _enabled else ''
    YELLOW  = '\033[93m'  if _enabled else ''
    CYAN    = '\033[96m'  if _enabled else ''
    RESET   = '\033[0m'   if _enabled else ''

C = Color


# ── Helpers ──────────────────────────────────────────────────────────────────

def format_bytes(size_bytes: int) -> str:
    """Human-readable file size. Whole bytes below 1 KB, one decimal above."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    size = float(size_bytes)
    for unit in ('KB', 'MB', 'GB'):
        size /= 1024
        if size < 1024 or unit == 'GB':
            return f"{size:.1f} {unit}"


def echo(msg: str = '', err: bool = False):
    """Print without tearing an active progress bar."""
    tqdm.write(msg, file=sys.stderr if err else sys.stdout)


def error(msg: str):
    echo(f"{C.RED}{msg}{C.RESET}", err=True)


# ── Progress ─────────────────────────────────────────────────────────────────

class NullProgress:
    """Progress sink that ignores every event."""

    def file_started(self, path: Path):
        pass

    def file_finished(self, path: Path):
        pass

    def close(self, message: str | None = None):
        pass


class BarProgress(NullProgress):
    """tqdm bar: one tick per finished file, current file name as postfix."""

    def __init__(self, total: int):
        self._bar = tqdm(
            total=total,
            desc=f"  {C.CYAN}Optimizing{C.RESET}",
            unit='img',
            bar_format=f"  {{l_bar}}{C.GREEN}{{bar}}{C.RESET} {{n_fmt}}/{{total_fmt}} [{{elapsed}}<{{remaining}}, {{rate_fmt}}]",
            ncols=80,
        )

    def file_started(self, path: Path):
        self._bar.set_postfix_str(Path(path).name[-30:], refresh=False)

    def file_finished(self, path: Path):
        self._bar.update(1)

    def close(self, message: str | None = None):
        if message:
            self._bar.set_postfix_str(message, refresh=True)
        self._bar.close()
