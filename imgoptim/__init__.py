"""
imgoptim
Optimizes JPEG, PNG and WebP images in place or into a mirrored output tree,
keeping a re-encoded file only when it is smaller than the original.
"""

__version__ = '1.3.0'

from .batch import BatchResult, run_batch
from .config import OptimizationRequest
from .discovery import discover
from .formats import ImageFile, ImageFormat
from .optimizer import FileOutcome, optimize_file
from .resize import plan_resize

__all__ = [
    'BatchResult',
    'FileOutcome',
    'ImageFile',
    'ImageFormat',
    'OptimizationRequest',
    'discover',
    'optimize_file',
    'plan_resize',
    'run_batch',
]
