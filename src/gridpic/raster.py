import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from gridpic.errors import DecodeError

logger = logging.getLogger(__name__)

MAX_IMAGE_PIXELS = 40_000_000


@dataclass(frozen=True, eq=False)
class RasterImage:
    """Decoded RGB pixels, row-major, shape (height, width, 3) uint8."""

    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Raster must be uint8, got {self.pixels.dtype}")
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 3:
            raise ValueError(f"Raster must have shape (H, W, 3), got {self.pixels.shape}")
        if self.pixels.flags.writeable:
            frozen = self.pixels.copy()
            frozen.flags.writeable = False
            object.__setattr__(self, "pixels", frozen)

    @classmethod
    def from_array(cls, array) -> "RasterImage":
        return cls(np.asarray(array, dtype=np.uint8))

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def pixel(self, x: int, y: int) -> tuple[int, int, int]:
        r, g, b = self.pixels[y, x]
        return int(r), int(g), int(b)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self.pixels))


def decode_image(data: bytes, *, max_pixels: int = MAX_IMAGE_PIXELS) -> RasterImage:
    """Decode an encoded image (PNG, JPEG, GIF, ...) into an RGB raster.

    Alpha is discarded and grayscale or palette images are promoted to RGB.
    Raises DecodeError for empty, truncated or unrecognised input.
    """
    if not data:
        raise DecodeError("Failed to decode image: empty buffer")
    try:
        with Image.open(BytesIO(data)) as image:
            width, height = image.size
            if width * height > max_pixels:
                raise DecodeError(f"Image too large: {width}x{height} exceeds {max_pixels} pixels")
            image.load()
            # convert drops alpha outright rather than compositing onto a background
            pixels = np.array(image.convert("RGB"), dtype=np.uint8)
    except DecodeError:
        raise
    except (UnidentifiedImageError, OSError, EOFError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Failed to decode image: {e}") from e

    logger.debug("Decoded %dx%d image", pixels.shape[1], pixels.shape[0])
    return RasterImage(pixels)


def load_image(path: str | Path) -> RasterImage:
    return decode_image(Path(path).read_bytes())
