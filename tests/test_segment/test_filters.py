"""Tests for smoothing and adaptive thresholding."""

from __future__ import annotations

import numpy as np
import pytest

from spotcell.core.exceptions import ConfigurationError
from spotcell.segment.filters import adaptive_threshold, local_mean, smooth


class TestSmooth:

    def test_spreads_point_mass(self) -> None:
        image = np.zeros((21, 21))
        image[10, 10] = 1.0
        out = smooth(image, sigma=2.0)
        assert out[10, 10] < 1.0
        assert out[10, 12] > 0.0
        assert out.sum() == pytest.approx(1.0, abs=1e-6)

    def test_isotropic(self) -> None:
        image = np.zeros((21, 21))
        image[10, 10] = 1.0
        out = smooth(image, sigma=1.5)
        assert out[10, 13] == pytest.approx(out[13, 10])
        assert out[10, 7] == pytest.approx(out[7, 10])

    def test_preserves_range(self) -> None:
        image = np.full((10, 10), 0.5)
        out = smooth(image, sigma=1.0)
        np.testing.assert_allclose(out, 0.5)

    @pytest.mark.parametrize("sigma", [0.0, -1.0])
    def test_non_positive_sigma_raises(self, sigma: float) -> None:
        with pytest.raises(ConfigurationError, match="sigma"):
            smooth(np.zeros((5, 5)), sigma=sigma)


class TestLocalMean:

    def test_constant_image(self) -> None:
        out = local_mean(np.full((15, 15), 2.0), radius=3)
        np.testing.assert_allclose(out, 2.0)

    def test_point_is_averaged(self) -> None:
        image = np.zeros((11, 11))
        image[5, 5] = 1.0
        out = local_mean(image, radius=1)
        # disk(1) has 5 pixels
        assert out[5, 5] == pytest.approx(1.0 / 5)
        assert out[5, 6] == pytest.approx(1.0 / 5)
        assert out[6, 6] == 0.0

    def test_zero_radius_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="threshold_radius"):
            local_mean(np.zeros((5, 5)), radius=0)


class TestAdaptiveThreshold:

    def test_blank_image_has_no_foreground(self) -> None:
        mask = adaptive_threshold(np.zeros((20, 20)), radius=3, offset=0.01)
        assert mask.dtype == bool
        assert not mask.any()

    def test_constant_image_has_no_foreground(self) -> None:
        mask = adaptive_threshold(np.full((20, 20), 0.7), radius=3, offset=0.0)
        assert not mask.any()

    def test_bright_blob_is_foreground(self) -> None:
        image = np.zeros((40, 40))
        image[18:22, 18:22] = 1.0
        mask = adaptive_threshold(image, radius=5, offset=0.01)
        assert mask[19, 19]
        assert mask[20, 20]
        assert not mask[2, 2]
        assert not mask[35, 5]

    def test_offset_raises_threshold(self) -> None:
        image = np.zeros((40, 40))
        image[18:22, 18:22] = 1.0
        loose = adaptive_threshold(image, radius=5, offset=0.0)
        strict = adaptive_threshold(image, radius=5, offset=0.9)
        assert strict.sum() < loose.sum()
        assert not (strict & ~loose).any()
