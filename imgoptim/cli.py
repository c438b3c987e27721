"""
Command-line entry point.

    imgoptim -i photos -r                   optimize in place, recursively
    imgoptim -i photos -o out --backup      mirror into out/
    imgoptim -i photos --max-size 2000      resize, then optimize
    imgoptim --update                       self-update a standalone build
"""

import argparse
import sys
import time
from pathlib import Path

from . import __version__
from .batch import BatchResult, run_batch
from .config import (
    DEFAULT_PNG_LEVEL, DEFAULT_QUALITY, DEFAULT_ZOPFLI_ITERATIONS, PNG_LEVEL_CHOICES,
    OptimizationRequest,
)
from .console import C, BarProgress, echo, error, format_bytes
from .discovery import discover, input_root_for
from .errors import ConfigError, DiscoveryError, UpdateError
from .updater import update_self


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='imgoptim',
        description='CLI tool for optimizing images (JPEG, PNG, WebP)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  imgoptim -i ./images -r
  imgoptim -i input_dir -o output_dir --quality 90 --backup
  imgoptim -i images --max-size 1024 --lossless
            """
    )
    parser.add_argument('-i', '--input', type=Path,
                        help='Input file or directory to scan for images')
    parser.add_argument('-o', '--output', type=Path,
                        help='Output directory (if not specified, optimizes in place)')
    parser.add_argument('--backup', action='store_true',
                        help='Create backup files (.bak) when optimizing in place')
    parser.add_argument('--lossless', action='store_true',
                        help='Use lossless compression')
    parser.add_argument('-q', '--quality', type=int, default=DEFAULT_QUALITY,
                        help=f'JPEG/WebP quality 1-100, ignored if lossless is set (default: {DEFAULT_QUALITY})')
    parser.add_argument('-r', '--recursive', action='store_true',
                        help='Recursively scan subdirectories')
    parser.add_argument('--max-size', type=int, default=None, metavar='PX',
                        help='Maximum size for the longer edge (resizes if larger)')
    parser.add_argument('--png-level', choices=PNG_LEVEL_CHOICES, default=DEFAULT_PNG_LEVEL,
                        help=f'oxipng optimization level (default: {DEFAULT_PNG_LEVEL})')
    parser.add_argument('--no-zopfli', action='store_true',
                        help='Use the faster libdeflate backend instead of zopfli for PNG')
    parser.add_argument('--zopfli-iterations', type=int, default=DEFAULT_ZOPFLI_ITERATIONS,
                        help=f'Zopfli iterations for PNG (default: {DEFAULT_ZOPFLI_ITERATIONS})')
    parser.add_argument('--no-parallel', action='store_true',
                        help='Process files one at a time')
    parser.add_argument('-j', '--workers', type=int, default=None,
                        help='Number of worker threads (default: chosen automatically)')
    parser.add_argument('--keep-metadata', action='store_true',
                        help='Keep EXIF metadata in re-encoded JPEG and WebP files')
    parser.add_argument('--update', action='store_true',
                        help='Update to the latest version')
    parser.add_argument('--version', action='version', version=f'imgoptim {__version__}')
    return parser


def request_from_args(args: argparse.Namespace) -> OptimizationRequest:
    return OptimizationRequest(
        quality=args.quality,
        lossless=args.lossless,
        max_size=args.max_size,
        backup=args.backup,
        output_dir=args.output.resolve() if args.output else None,
        parallel=not args.no_parallel,
        workers=args.workers,
        png_level=args.png_level,
        zopfli=not args.no_zopfli,
        zopfli_iterations=args.zopfli_iterations,
        keep_metadata=args.keep_metadata,
    )


# ── Summary ──────────────────────────────────────────────────────────────────

def print_summary(result: BatchResult, elapsed: float):
    echo()
    echo(f"Processed {C.GREEN}{result.processed}{C.RESET} files")
    if result.skipped > 0:
        echo(f"Skipped {C.YELLOW}{result.skipped}{C.RESET} files (optimization would increase size)")
    if result.failed > 0:
        echo(f"Failed {C.RED}{result.failed}{C.RESET} files (see errors above)")
    if result.total_saved > 0:
        echo(f"Total space saved: {C.BOLD}{format_bytes(result.total_saved)}{C.RESET}")

    minutes, seconds = divmod(elapsed, 60)
    if minutes > 0:
        time_str = f"{int(minutes)}m {seconds:.1f}s"
    else:
        time_str = f"{seconds:.1f}s"
    echo(f"{C.DIM}Time elapsed: {time_str}{C.RESET}")


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.update:
        try:
            update_self()
        except UpdateError as e:
            error(f"Error: {e}")
            return 1
        return 0

    if args.input is None:
        parser.error('the following arguments are required: -i/--input')

    try:
        request = request_from_args(args)
        input_path = args.input.resolve()
        exclude = [request.output_dir] if request.output_dir else []
        images = discover(input_path, args.recursive, exclude=exclude)
    except (ConfigError, DiscoveryError) as e:
        error(f"Error: {e}")
        return 1

    if not images:
        if input_path.is_file():
            echo(f"{C.YELLOW}The specified file is not a supported image format{C.RESET}")
        else:
            echo(f"{C.YELLOW}No image files found in the specified directory{C.RESET}")
        return 0

    echo(f"Found {C.BOLD}{len(images)}{C.RESET} image files")
    if request.output_dir:
        echo(f"  {C.BOLD}Output folder:{C.RESET}   {request.output_dir}")
    else:
        echo(f"  {C.BOLD}Mode:{C.RESET}            {C.YELLOW}in place{C.RESET}"
             f"{' (with .bak backups)' if request.backup else ''}")
    echo(f"{C.DIM}{'─' * 60}{C.RESET}")

    start_time = time.time()
    progress = BarProgress(len(images))
    try:
        result = run_batch(request, images, input_root_for(input_path), progress)
    finally:
        progress.close('Optimization complete')

    print_summary(result, time.time() - start_time)
    return 0


if __name__ == '__main__':
    sys.exit(main())
