"""Uniform per-channel colour binning.

Each channel is split into ``levels`` equal bins of width ``256 // levels``;
the three bin numbers are mixed into one index in ``[0, levels**3 - 1]``.
No palette is learned from the image, so every pixel is quantized on its own.
"""

import logging
from dataclasses import dataclass

import numpy as np

from gridpic.raster import RasterImage

logger = logging.getLogger(__name__)

DEFAULT_LEVELS = 5
MAX_LEVELS = 256


@dataclass(frozen=True)
class QuantizationConfig:
    levels: int = DEFAULT_LEVELS

    def __post_init__(self):
        if not 1 <= self.levels <= MAX_LEVELS:
            raise ValueError(f"levels must be between 1 and {MAX_LEVELS}, got {self.levels}")

    @property
    def bin_width(self) -> int:
        return 256 // self.levels

    @property
    def palette_size(self) -> int:
        return self.levels**3

    @property
    def max_index(self) -> int:
        return self.levels**3 - 1


def index_dtype(levels: int) -> np.dtype:
    """Smallest unsigned dtype that holds every index for ``levels``."""
    return np.min_scalar_type(levels**3 - 1)


def channel_bins(values, levels: int) -> np.ndarray:
    """Bin raw 0-255 channel values, clamping the remainder into the top bin."""
    values = np.asarray(values, dtype=np.int64)
    return np.minimum(values // (256 // levels), levels - 1)


def combine_bins(r_bin, g_bin, b_bin, levels: int):
    return levels * levels * r_bin + levels * g_bin + b_bin


def split_index(index, levels: int):
    """Inverse of combine_bins: recover (r_bin, g_bin, b_bin)."""
    r_bin, rest = divmod(index, levels * levels)
    g_bin, b_bin = divmod(rest, levels)
    return r_bin, g_bin, b_bin


def bin_centre(bin_, levels: int):
    width = 256 // levels
    return np.minimum(np.asarray(bin_) * width + width // 2, 255)


def palette(levels: int) -> np.ndarray:
    """RGB colour represented by each index. Shape (levels**3, 3) uint8."""
    indices = np.arange(levels**3)
    bins = np.stack(split_index(indices, levels), axis=-1)
    return bin_centre(bins, levels).astype(np.uint8)


def quantize(raster: RasterImage, config: QuantizationConfig) -> np.ndarray:
    """Map every pixel to its palette index. Returns shape (height, width)."""
    bins = channel_bins(raster.pixels, config.levels)
    indices = combine_bins(bins[:, :, 0], bins[:, :, 1], bins[:, :, 2], config.levels)
    if indices.shape != (raster.height, raster.width):
        raise AssertionError(f"Index array {indices.shape} does not match raster {raster.width}x{raster.height}")
    logger.debug("Quantized %dx%d raster with %d levels", raster.width, raster.height, config.levels)
    return indices.astype(index_dtype(config.levels))


def dequantize(indices: np.ndarray, levels: int) -> RasterImage:
    """Render an index array with the bin-centre colours, for previewing."""
    indices = np.asarray(indices)
    if indices.size and (indices.min() < 0 or indices.max() > levels**3 - 1):
        raise ValueError(f"Index out of range for {levels} levels")
    bins = np.stack(split_index(indices.astype(np.int64), levels), axis=-1)
    return RasterImage(bin_centre(bins, levels).astype(np.uint8))
