"""
Run the single-file optimizer over a whole list of images, sequentially or on
a thread pool, and fold every outcome into one thread-safe result.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

from .config import OptimizationRequest
from .console import C, NullProgress, echo
from .formats import ImageFile
from .optimizer import FileOutcome, optimize_file


@dataclass(frozen=True)
class BatchResult:
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    total_saved: int = 0


class ResultAccumulator:
    """Counters shared by every worker, updated under one lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._processed = 0
        self._skipped = 0
        self._failed = 0
        self._saved = 0

    def record(self, outcome: FileOutcome):
        with self._lock:
            if outcome.saved > 0:
                self._processed += 1
                self._saved += outcome.saved
            else:
                self._skipped += 1

    def record_failure(self):
        with self._lock:
            self._failed += 1

    def snapshot(self) -> BatchResult:
        with self._lock:
            return BatchResult(self._processed, self._skipped, self._failed, self._saved)


def _describe(outcome: FileOutcome) -> str | None:
    if outcome.resized_to is None:
        return None
    width, height = outcome.resized_to
    return f"  {C.GREEN}✓{C.RESET} {C.DIM}Resized{C.RESET} {outcome.path.name} {C.DIM}(→ {width}x{height}){C.RESET}"


def _process(image: ImageFile, request: OptimizationRequest, input_root: Path,
             totals: ResultAccumulator, progress):
    progress.file_started(image.path)
    try:
        outcome = optimize_file(image, request, input_root)
    except Exception as e:
        # One bad file never stops the batch
        echo(f"{C.RED}Error processing {image.path}: {e}{C.RESET}", err=True)
        totals.record_failure()
    else:
        totals.record(outcome)
        msg = _describe(outcome)
        if msg:
            echo(msg)
    finally:
        progress.file_finished(image.path)


def run_batch(request: OptimizationRequest, files: list[ImageFile], input_root: Path,
              progress=None) -> BatchResult:
    """Optimize every file and return the aggregated counts.

    A file that fails is reported on stderr and counted as failed, never as
    processed or skipped. Failures never stop the rest of the batch.
    """
    progress = progress or NullProgress()
    totals = ResultAccumulator()

    if not request.parallel:
        for image in files:
            _process(image, request, input_root, totals, progress)
        return totals.snapshot()

    with ThreadPoolExecutor(max_workers=request.workers) as executor:
        futures = [
            executor.submit(_process, image, request, input_root, totals, progress)
            for image in files
        ]
        for future in as_completed(futures):
            future.result()

    return totals.snapshot()
