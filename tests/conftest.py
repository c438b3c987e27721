import random
from pathlib import Path

import pytest
from PIL import Image

from imgoptim.config import OptimizationRequest


def noise_image(size=(64, 48), mode='RGB', seed=0) -> Image.Image:
    rng = random.Random(seed)
    channels = len(mode)
    data = bytes(rng.randrange(256) for _ in range(size[0] * size[1] * channels))
    return Image.frombytes(mode, size, data)


@pytest.fixture
def make_image(tmp_path):
    """Write a test image; JPEGs get noise at q100 so re-encoding shrinks them."""

    def _make(name: str, size=(64, 48), color=None, root: Path | None = None, **save_kwargs) -> Path:
        path = (root or tmp_path) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        ext = path.suffix.lower()
        mode = 'RGBA' if ext == '.png' and color and len(color) == 4 else 'RGB'
        img = Image.new(mode, size, color) if color else noise_image(size, mode)
        if ext in ('.jpg', '.jpeg'):
            save_kwargs.setdefault('quality', 100)
            img.save(path, 'JPEG', **save_kwargs)
        elif ext == '.png':
            save_kwargs.setdefault('compress_level', 0)
            img.save(path, 'PNG', **save_kwargs)
        elif ext == '.webp':
            save_kwargs.setdefault('lossless', True)
            img.save(path, 'WEBP', **save_kwargs)
        else:
            path.write_bytes(b'not an image')
        return path

    return _make


@pytest.fixture
def fast_request():
    """Defaults, but with the quick PNG deflater so tests stay fast."""
    return OptimizationRequest(zopfli=False, parallel=False)
