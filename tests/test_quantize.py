import numpy as np
import pytest

from gridpic.quantize import (
    QuantizationConfig,
    channel_bins,
    combine_bins,
    dequantize,
    index_dtype,
    palette,
    quantize,
    split_index,
)
from gridpic.raster import RasterImage
from tests.conftest import CORNERS

ALL_VALUES = np.arange(256)


def test_default_config():
    config = QuantizationConfig()
    assert config.levels == 5
    assert config.bin_width == 51
    assert config.palette_size == 125
    assert config.max_index == 124


@pytest.mark.parametrize("levels", [0, -1, 257])
def test_config_rejects_bad_levels(levels):
    with pytest.raises(ValueError):
        QuantizationConfig(levels=levels)


def test_corners_scenario():
    indices = quantize(RasterImage.from_array(CORNERS), QuantizationConfig(levels=5))
    np.testing.assert_array_equal(indices, [[0, 124], [100, 4]])


@pytest.mark.parametrize("levels", [1, 2, 3, 5, 6, 7, 16, 100, 256])
def test_every_channel_value_lands_in_range(levels):
    bins = channel_bins(ALL_VALUES, levels)
    assert bins.min() == 0
    assert bins.max() == levels - 1
    # bins are monotonic and every bin is used
    assert np.all(np.diff(bins) >= 0)
    assert len(np.unique(bins)) == levels


def test_remainder_clamped_into_top_bin():
    # 256 // 3 == 85, so 255 would be bin 3 without clamping
    assert channel_bins(255, 3) == 2
    assert channel_bins(254, 5) == 4


@pytest.mark.parametrize("levels", [1, 2, 5, 6, 7, 40])
def test_index_range(levels):
    rng = np.random.default_rng(levels)
    raster = RasterImage(rng.integers(0, 256, size=(32, 32, 3), dtype=np.uint8))
    indices = quantize(raster, QuantizationConfig(levels=levels))
    assert indices.shape == (32, 32)
    assert indices.min() >= 0
    assert indices.max() <= levels**3 - 1


@pytest.mark.parametrize("levels", [2, 5, 9])
def test_combine_is_a_bijection(levels):
    r, g, b = np.meshgrid(np.arange(levels), np.arange(levels), np.arange(levels), indexing="ij")
    indices = combine_bins(r, g, b, levels).ravel()
    assert sorted(indices.tolist()) == list(range(levels**3))
    back = split_index(indices, levels)
    np.testing.assert_array_equal(back[0], r.ravel())
    np.testing.assert_array_equal(back[1], g.ravel())
    np.testing.assert_array_equal(back[2], b.ravel())


def test_same_bins_same_index():
    # (10, 60, 200) and (50, 101, 203) share bins (0, 1, 3) at 5 levels
    raster = RasterImage.from_array([[(10, 60, 200), (50, 101, 203)]])
    indices = quantize(raster, QuantizationConfig(levels=5))
    assert indices[0, 0] == indices[0, 1] == 0 * 25 + 1 * 5 + 3


def test_index_dtype_does_not_wrap():
    assert index_dtype(6) == np.uint8
    assert index_dtype(7) == np.uint16
    assert index_dtype(256) == np.uint32
    raster = RasterImage.from_array([[(255, 255, 255)]])
    indices = quantize(raster, QuantizationConfig(levels=7))
    assert indices[0, 0] == 342


def test_quantize_is_deterministic():
    rng = np.random.default_rng(0)
    raster = RasterImage(rng.integers(0, 256, size=(9, 13, 3), dtype=np.uint8))
    config = QuantizationConfig(levels=4)
    np.testing.assert_array_equal(quantize(raster, config), quantize(raster, config))


def test_palette():
    colours = palette(2)
    assert colours.shape == (8, 3)
    assert colours.dtype == np.uint8
    assert tuple(colours[0]) == (64, 64, 64)
    assert tuple(colours[7]) == (192, 192, 192)
    assert tuple(colours[4]) == (192, 64, 64)


def test_dequantize_requantizes_to_same_indices():
    rng = np.random.default_rng(7)
    raster = RasterImage(rng.integers(0, 256, size=(8, 8, 3), dtype=np.uint8))
    config = QuantizationConfig(levels=5)
    indices = quantize(raster, config)
    preview = dequantize(indices, config.levels)
    assert (preview.width, preview.height) == (8, 8)
    np.testing.assert_array_equal(quantize(preview, config), indices)


def test_dequantize_rejects_out_of_range():
    with pytest.raises(ValueError):
        dequantize(np.array([[125]]), 5)
