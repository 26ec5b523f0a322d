"""Shared fixtures for measurement module tests."""

from __future__ import annotations

import numpy as np
import pytest

from spotcell.segment.raster import RasterGrid, rasterize


@pytest.fixture
def grid() -> RasterGrid:
    """A 10x10 grid over [0, 10] x [0, 20] with five spots.

    Spots 0 and 1 share grid cell (1, 2); spot 2 is at (1, 3), spot 3 at
    (8, 7), spot 4 at (0, 0).
    """
    x = np.array([2.2, 2.8, 3.5, 7.5, 0.1])
    y = np.array([2.5, 3.9, 2.1, 17.0, 0.3])
    return rasterize(x, y, nx=10, ny=10, extent=(0.0, 10.0, 0.0, 20.0))


@pytest.fixture
def labels() -> np.ndarray:
    """Region 4 covers rows 0-2, cols 2-4; region 9 covers rows 7-9, cols 6-8."""
    out = np.zeros((10, 10), dtype=np.int32)
    out[0:3, 2:5] = 4
    out[7:10, 6:9] = 9
    return out
