"""Smoothing and adaptive foreground thresholding of rasterized spot density."""

from __future__ import annotations

import numpy as np
from scipy import ndimage
from skimage.filters import gaussian
from skimage.morphology import disk

from spotcell.core.exceptions import ConfigurationError


def smooth(image: np.ndarray, sigma: float) -> np.ndarray:
    """Isotropic Gaussian blur that merges nearby spots of the same cell."""
    if not sigma > 0:
        raise ConfigurationError("sigma", f"must be > 0, got {sigma}")
    return gaussian(
        np.asarray(image, dtype=np.float64),
        sigma=sigma,
        mode="reflect",
        preserve_range=True,
    )


def local_mean(image: np.ndarray, radius: int) -> np.ndarray:
    """Mean over a disc of ``radius`` pixels around every pixel."""
    if radius < 1:
        raise ConfigurationError("threshold_radius", f"must be >= 1, got {radius}")
    kernel = disk(radius).astype(np.float64)
    kernel /= kernel.sum()
    return ndimage.convolve(np.asarray(image, dtype=np.float64), kernel, mode="reflect")


def adaptive_threshold(image: np.ndarray, radius: int, offset: float = 0.0) -> np.ndarray:
    """Foreground mask: pixels brighter than their local disc mean plus ``offset``.

    Args:
        image: 2D smoothed grid.
        radius: Disc kernel radius in pixels.
        offset: Constant added to the local mean.

    Returns:
        Boolean mask, True = foreground.
    """
    return np.asarray(image) > local_mean(image, radius) + offset
