"""Debris filtering and hole filling for label images."""

from __future__ import annotations

import logging

import numpy as np
from scipy import ndimage

from spotcell.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def label_sizes(labels: np.ndarray) -> dict[int, int]:
    """Pixel count per nonzero label."""
    counts = np.bincount(np.asarray(labels).ravel())
    return {int(lab): int(n) for lab, n in enumerate(counts) if lab > 0 and n > 0}


def fill_label_holes(labels: np.ndarray) -> np.ndarray:
    """Fill interior holes of every labeled region.

    Only background pixels fully enclosed by a region are filled; pixels of
    other regions are never overwritten. Filling twice gives the same result
    as filling once.

    Args:
        labels: 2D integer label image, 0 = background.

    Returns:
        New label image with holes filled.
    """
    out = np.array(labels, copy=True)
    objects = [
        (idx, sl) for idx, sl in enumerate(ndimage.find_objects(out), start=1)
        if sl is not None
    ]
    # Inner regions first, so a region nested in another fills its own holes.
    objects.sort(key=lambda item: np.prod([s.stop - s.start for s in item[1]]))
    for idx, sl in objects:
        # Pad by one pixel so holes touching the bbox edge are not mistaken
        # for background connected to the outside.
        padded = tuple(
            slice(max(s.start - 1, 0), min(s.stop + 1, dim))
            for s, dim in zip(sl, out.shape)
        )
        crop = out[padded]
        region = crop == idx
        filled = ndimage.binary_fill_holes(region)
        holes = filled & ~region & (crop == 0)
        if holes.any():
            crop[holes] = idx
    return out


def filter_debris(labels: np.ndarray, min_size: int) -> tuple[np.ndarray, list[int]]:
    """Remove regions smaller than ``min_size`` pixels and fill holes in the rest.

    Surviving regions keep their IDs.

    Args:
        labels: 2D integer label image from the region labeler.
        min_size: Minimum region size in pixels.

    Returns:
        Tuple of (filtered label image, sorted list of removed label IDs).
    """
    if min_size < 0:
        raise ConfigurationError("min_size", f"must be >= 0, got {min_size}")

    out = np.array(labels, dtype=np.int32, copy=True)
    sizes = label_sizes(out)
    removed = sorted(lab for lab, n in sizes.items() if n < min_size)
    if removed:
        out[np.isin(out, removed)] = 0

    out = fill_label_holes(out)

    logger.info(
        "Debris filter: kept %d of %d regions (min_size=%d)",
        len(sizes) - len(removed), len(sizes), min_size,
    )
    return out, removed
