"""Shared fixtures for segmentation module tests."""

from __future__ import annotations

import numpy as np
import pytest
from skimage.draw import disk

from spotcell.segment.base_labeler import BaseLabeler


class MockLabeler(BaseLabeler):
    """A labeler that returns pre-defined labels, or one region per mask."""

    def __init__(self, labels: np.ndarray | None = None) -> None:
        self._labels = labels
        self.calls = 0

    def label(self, mask: np.ndarray, distance: np.ndarray) -> np.ndarray:
        self.calls += 1
        if self._labels is not None:
            return self._labels.astype(np.int32)
        return mask.astype(np.int32)


class EmptyLabeler(BaseLabeler):
    """A labeler that always returns all-zero labels (no regions)."""

    def label(self, mask: np.ndarray, distance: np.ndarray) -> np.ndarray:
        return np.zeros(mask.shape, dtype=np.int32)


@pytest.fixture
def mock_labeler() -> MockLabeler:
    """A labeler that turns the whole foreground into region 1."""
    return MockLabeler()


@pytest.fixture
def empty_labeler() -> EmptyLabeler:
    """A labeler that finds no regions."""
    return EmptyLabeler()


@pytest.fixture
def two_disks_mask() -> np.ndarray:
    """Two separate disks of radius 8."""
    mask = np.zeros((64, 64), dtype=bool)
    rr, cc = disk((16, 16), 8)
    mask[rr, cc] = True
    rr, cc = disk((44, 44), 8)
    mask[rr, cc] = True
    return mask


@pytest.fixture
def touching_disks_mask() -> np.ndarray:
    """Two disks of radius 10 whose centres are 16 px apart (one blob with a neck)."""
    mask = np.zeros((48, 64), dtype=bool)
    rr, cc = disk((24, 20), 10)
    mask[rr, cc] = True
    rr, cc = disk((24, 36), 10)
    mask[rr, cc] = True
    return mask
