"""
Format encoders for JPEG, PNG and WebP.

Each encoder takes a PixelSource and writes the optimized image to a staging
path. Pillow does the JPEG/WebP work, oxipng the lossless PNG pass.
"""

import shutil
import struct
from dataclasses import dataclass
from pathlib import Path

import oxipng
import piexif
from PIL import Image

from .config import LIBDEFLATER_COMPRESSION, OptimizationRequest, parse_png_level
from .errors import ConfigError, EncodeError
from .formats import ImageFormat

# Pillow reports broken files as SyntaxError or struct.error, not only OSError
DECODE_ERRORS = (OSError, ValueError, SyntaxError, struct.error, Image.DecompressionBombError)


# ── Pixel sources ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FromDisk:
    """Encoder reads the original file itself, at its original resolution."""
    path: Path


@dataclass(frozen=True)
class Decoded:
    """Pixels already decoded (and possibly resized) upstream."""
    image: Image.Image
    exif: bytes | None = None


PixelSource = FromDisk | Decoded


def to_rgb(img: Image.Image) -> Image.Image:
    """Flatten to 3-channel RGB, compositing transparency onto white."""
    if img.mode in ('RGBA', 'LA', 'P'):
        if img.mode != 'RGBA':
            img = img.convert('RGBA')
        background = Image.new('RGB', img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode != 'RGB':
        return img.convert('RGB')
    return img


def _load_rgb(source: PixelSource) -> tuple[Image.Image, bytes | None]:
    if isinstance(source, Decoded):
        return to_rgb(source.image), source.exif
    with Image.open(source.path) as img:
        img.load()
        exif = img.info.get('exif')
        return to_rgb(img), exif


def carry_exif(exif_bytes: bytes | None, size: tuple[int, int]) -> bytes | None:
    """Re-dump EXIF with pixel dimensions matching the encoded image."""
    if not exif_bytes:
        return None
    try:
        exif_dict = piexif.load(exif_bytes)
        exif_ifd = exif_dict.get('Exif', {})
        if piexif.ExifIFD.PixelXDimension in exif_ifd:
            exif_ifd[piexif.ExifIFD.PixelXDimension] = size[0]
        if piexif.ExifIFD.PixelYDimension in exif_ifd:
            exif_ifd[piexif.ExifIFD.PixelYDimension] = size[1]
        # Embedded thumbnail would just bloat the output
        exif_dict['thumbnail'] = None
        return piexif.dump(exif_dict)
    except (ValueError, struct.error):
        # Unparseable EXIF is passed through untouched
        return exif_bytes


def _save_kwargs(request: OptimizationRequest, exif: bytes | None, size) -> dict:
    kwargs = {}
    if request.keep_metadata:
        exif = carry_exif(exif, size)
        if exif:
            kwargs['exif'] = exif
    return kwargs


# ── Encoders ─────────────────────────────────────────────────────────────────

def encode_jpeg(source: PixelSource, output_path: Path, request: OptimizationRequest):
    img, exif = _load_rgb(source)
    img.save(
        output_path, 'JPEG',
        quality=request.effective_quality,
        optimize=True,
        progressive=True,
        **_save_kwargs(request, exif, img.size),
    )


def encode_png(source: PixelSource, output_path: Path, request: OptimizationRequest):
    try:
        level = parse_png_level(request.png_level)
    except ConfigError as e:
        raise EncodeError(output_path, str(e)) from e

    # Stage first, then let oxipng rewrite the staged file in place
    if isinstance(source, Decoded):
        source.image.save(output_path, 'PNG')
    else:
        shutil.copyfile(source.path, output_path)

    if request.zopfli:
        deflate = oxipng.Deflaters.zopfli(request.zopfli_iterations)
    else:
        deflate = oxipng.Deflaters.libdeflater(LIBDEFLATER_COMPRESSION)

    try:
        oxipng.optimize(
            str(output_path), str(output_path),
            level=level,
            optimize_alpha=True,
            fast_evaluation=True,
            strip=oxipng.StripChunks.safe(),
            deflate=deflate,
        )
    except oxipng.PngError as e:
        raise EncodeError(output_path, f"Failed to optimize PNG: {e}") from e


def encode_webp(source: PixelSource, output_path: Path, request: OptimizationRequest):
    img, exif = _load_rgb(source)
    kwargs = _save_kwargs(request, exif, img.size)
    if request.lossless:
        img.save(output_path, 'WEBP', lossless=True, **kwargs)
    else:
        img.save(output_path, 'WEBP', quality=float(request.quality), **kwargs)


def encode(image_format: ImageFormat, source: PixelSource, output_path: Path,
           request: OptimizationRequest):
    """Write the optimized image to output_path using the format's encoder.

    Every failure comes out as EncodeError; nothing is retried.
    """
    if image_format is ImageFormat.JPEG:
        encoder = encode_jpeg
    elif image_format is ImageFormat.PNG:
        encoder = encode_png
    elif image_format is ImageFormat.WEBP:
        encoder = encode_webp
    else:
        raise AssertionError(f"unhandled image format: {image_format!r}")

    try:
        encoder(source, Path(output_path), request)
    except EncodeError:
        raise
    except DECODE_ERRORS as e:
        raise EncodeError(output_path, f"{image_format.name} encoding failed: {e}") from e
