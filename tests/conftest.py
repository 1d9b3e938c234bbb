from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from icopack.images import RawImage


def random_rgba(size: int, seed: int = 0) -> Image.Image:
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(size, size, 4), dtype=np.uint8)
    return Image.fromarray(pixels)


@pytest.fixture
def write_png(tmp_path):
    """Save a PIL image as PNG under tmp_path and return its path."""

    def _write(img: Image.Image, name: str) -> Path:
        path = tmp_path / name
        img.save(path, format="PNG")
        return path

    return _write


@pytest.fixture
def primary_png(write_png):
    return write_png(random_rgba(256, seed=1), "icon256.png")


@pytest.fixture
def secondary_png(write_png):
    return write_png(random_rgba(16, seed=2), "icon16.png")


@pytest.fixture
def primary_raw():
    return RawImage.from_pil(random_rgba(256, seed=1))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "ICOPACK_RESOLUTIONS",
        "ICOPACK_RESAMPLE_FILTER",
        "ICOPACK_ALPHA_USES_COLORSPACE",
    ):
        monkeypatch.delenv(name, raising=False)
