"""Spot-to-cell assignment through the raster inverse index."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from spotcell.segment.raster import RasterGrid


def assign_spots(grid: RasterGrid, labels: np.ndarray) -> np.ndarray:
    """Read the final label at every spot's grid cell.

    Spots sharing a grid cell receive the same label. Spots on background,
    debris, or filtered-out regions get 0 (unassigned).

    Args:
        grid: RasterGrid the label image was derived from.
        labels: Final (Y, X) label image, same shape as the grid.

    Returns:
        int64 array with one cell ID per spot, in spot order.

    Raises:
        ValueError: If the label image does not match the grid shape.
    """
    labels = np.asarray(labels)
    if labels.shape != grid.shape:
        raise ValueError(
            f"Label image shape {labels.shape} does not match grid shape {grid.shape}"
        )
    return labels[grid.spot_rows, grid.spot_cols].astype(np.int64)
