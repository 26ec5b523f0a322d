"""Region labeling strategies: marker-controlled watershed and flood fill."""

from __future__ import annotations

import logging

import numpy as np
from scipy import ndimage
from skimage.morphology import disk, local_maxima, reconstruction
from skimage.segmentation import watershed

from spotcell.core.exceptions import ConfigurationError
from spotcell.segment.base_labeler import BaseLabeler, SUPPORTED_METHODS

logger = logging.getLogger(__name__)

# 8-connectivity
_STRUCTURE = np.ones((3, 3), dtype=bool)


def compute_distance_map(mask: np.ndarray) -> np.ndarray:
    """Euclidean distance of each foreground pixel to the nearest background pixel."""
    mask = np.asarray(mask, dtype=bool)
    if not mask.any():
        return np.zeros(mask.shape, dtype=np.float64)
    return ndimage.distance_transform_edt(mask)


class WatershedLabeler(BaseLabeler):
    """Marker-controlled watershed on the distance map.

    Seeds are the distance maxima at least ``tolerance`` high relative to
    their surroundings, grown by a disc of radius ``extension``. Seeds that
    touch after growing become one region.

    Args:
        tolerance: Minimum height of a distance maximum to seed a region.
            Higher values merge shallow maxima.
        extension: Seed growth radius in pixels (0 = no growth).
    """

    def __init__(self, tolerance: float = 1.0, extension: int = 1) -> None:
        if tolerance < 0:
            raise ConfigurationError("tolerance", f"must be >= 0, got {tolerance}")
        if extension < 0:
            raise ConfigurationError("extension", f"must be >= 0, got {extension}")
        self.tolerance = tolerance
        self.extension = extension

    def markers(self, mask: np.ndarray, distance: np.ndarray) -> np.ndarray:
        """Seed label image for the watershed."""
        distance = np.asarray(distance, dtype=np.float64)
        if self.tolerance > 0:
            # h-maxima transform: maxima less than `tolerance` above their
            # saddle flatten into the plateau of a higher neighbour.
            surface = reconstruction(distance - self.tolerance, distance, method="dilation")
        else:
            surface = distance
        peaks = local_maxima(surface).astype(bool) & mask

        if self.extension > 0 and peaks.any():
            peaks = ndimage.binary_dilation(peaks, structure=disk(self.extension)) & mask

        markers, n_markers = ndimage.label(peaks, structure=_STRUCTURE)

        # Every foreground component needs a seed or it would be dropped.
        components, n_components = ndimage.label(mask, structure=_STRUCTURE)
        seeded = np.unique(components[markers > 0])
        unseeded = np.setdiff1d(np.arange(1, n_components + 1), seeded)
        if len(unseeded):
            positions = ndimage.maximum_position(distance, components, unseeded)
            for offset, (row, col) in enumerate(positions, start=1):
                markers[row, col] = n_markers + offset
            logger.debug("Added %d seeds for unseeded components", len(unseeded))
        return markers

    def label(self, mask: np.ndarray, distance: np.ndarray) -> np.ndarray:
        mask = np.asarray(mask, dtype=bool)
        if not mask.any():
            return np.zeros(mask.shape, dtype=np.int32)
        markers = self.markers(mask, distance)
        labels = watershed(-distance, markers, mask=mask)
        return labels.astype(np.int32)


class FloodFillLabeler(BaseLabeler):
    """Connected components of the foreground mask (8-connectivity)."""

    def label(self, mask: np.ndarray, distance: np.ndarray) -> np.ndarray:
        labels, _ = ndimage.label(np.asarray(mask, dtype=bool), structure=_STRUCTURE)
        return labels.astype(np.int32)


def get_labeler(method: str = "watershed", tolerance: float = 1.0, extension: int = 1) -> BaseLabeler:
    """Resolve a labeler strategy by name.

    Raises:
        ConfigurationError: If ``method`` is not a supported labeler.
    """
    if method == "watershed":
        return WatershedLabeler(tolerance=tolerance, extension=extension)
    if method == "floodfill":
        return FloodFillLabeler()
    raise ConfigurationError(
        "method", f"unknown labeler {method!r}, supported: {sorted(SUPPORTED_METHODS)}"
    )
