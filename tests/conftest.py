import io

import numpy as np
import pytest
from PIL import Image

from imgcompress import decode


def image_bytes(image: Image.Image, fmt: str = "PNG", **params) -> bytes:
    out = io.BytesIO()
    image.save(out, format=fmt, **params)
    return out.getvalue()


def make_photo_array(width: int = 96, height: int = 64, seed: int = 0) -> np.ndarray:
    """Gradient plus noise: compresses like photographic content."""
    rng = np.random.default_rng(seed)
    y, x = np.mgrid[0:height, 0:width]
    base = np.stack(
        [x * 255.0 / width, y * 255.0 / height, (x + y) * 255.0 / (width + height)],
        axis=-1,
    )
    noise = rng.normal(0, 20, size=(height, width, 3))
    return np.clip(base + noise, 0, 255).astype(np.uint8)


@pytest.fixture
def red_png() -> bytes:
    return image_bytes(Image.new("RGB", (100, 100), color=(255, 0, 0)))


@pytest.fixture
def photo_png() -> bytes:
    return image_bytes(Image.fromarray(make_photo_array()))


@pytest.fixture
def photo_jpeg() -> bytes:
    return image_bytes(Image.fromarray(make_photo_array()), "JPEG", quality=95)


@pytest.fixture
def photo_buffer(photo_png):
    return decode(photo_png)


@pytest.fixture
def red_buffer(red_png):
    return decode(red_png)
