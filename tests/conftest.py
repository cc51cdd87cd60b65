from io import BytesIO

import numpy as np
import pytest
from PIL import Image

# Scenario image: black, white / red, blue
CORNERS = [
    [(0, 0, 0), (255, 255, 255)],
    [(255, 0, 0), (0, 0, 255)],
]


def encode(image: Image.Image, fmt: str = "PNG") -> bytes:
    buf = BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


def png_bytes(pixels) -> bytes:
    """Encode nested lists or an (H, W, 3) array of pixels as PNG bytes."""
    return encode(Image.fromarray(np.asarray(pixels, dtype=np.uint8)))


@pytest.fixture
def corners_png() -> bytes:
    return png_bytes(CORNERS)


@pytest.fixture
def noise_png() -> bytes:
    rng = np.random.default_rng(42)
    return png_bytes(rng.integers(0, 256, size=(17, 23, 3), dtype=np.uint8))
