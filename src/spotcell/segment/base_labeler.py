"""Abstract region-labeling interface and segmentation parameter definitions."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from typing import Any

import numpy as np
import pandas as pd

from spotcell.core.exceptions import ConfigurationError
from spotcell.core.models import CellRecord

SUPPORTED_METHODS = frozenset({"watershed", "floodfill"})


@dataclass(frozen=True)
class SegmentationParams:
    """Parameters for a spot-to-cell segmentation run.

    Attributes:
        nx: Grid width (columns).
        ny: Grid height (rows).
        max_value: Ceiling applied to grid values before normalization.
            None disables clipping.
        sigma: Gaussian blur spread in pixels.
        threshold_radius: Disc radius of the local-mean kernel, in pixels.
        threshold_offset: Offset added to the local mean.
        method: Region labeler ("watershed" or "floodfill").
        tolerance: Watershed merge tolerance (minimum height of a distance
            maximum to seed its own region).
        extension: Radius, in pixels, by which watershed seeds are grown.
        min_size: Minimum region size in pixels; smaller regions are debris.
        scale: Factor converting spot units to physical units.
        extent: Optional grid extent ``(xmin, xmax, ymin, ymax)`` in spot
            units. None = one extent for the whole run, anchored at the origin
            with at least one spot unit per grid cell.
    """

    nx: int = 1000
    ny: int = 1000
    max_value: float | None = 10.0
    sigma: float = 1.0
    threshold_radius: int = 5
    threshold_offset: float = 0.01
    method: str = "watershed"
    tolerance: float = 1.0
    extension: int = 1
    min_size: int = 10
    scale: float = 1.0
    extent: tuple[float, float, float, float] | None = None

    def __post_init__(self) -> None:
        """Validate parameters."""
        if self.nx <= 0:
            raise ConfigurationError("nx", f"must be > 0, got {self.nx}")
        if self.ny <= 0:
            raise ConfigurationError("ny", f"must be > 0, got {self.ny}")
        if self.max_value is not None and not (
            math.isfinite(self.max_value) and self.max_value > 0
        ):
            raise ConfigurationError("max_value", f"must be > 0 or None, got {self.max_value}")
        if not (math.isfinite(self.sigma) and self.sigma > 0):
            raise ConfigurationError("sigma", f"must be > 0, got {self.sigma}")
        if self.threshold_radius < 1:
            raise ConfigurationError(
                "threshold_radius", f"must be >= 1, got {self.threshold_radius}"
            )
        if not math.isfinite(self.threshold_offset):
            raise ConfigurationError(
                "threshold_offset", f"must be finite, got {self.threshold_offset}"
            )
        if self.method not in SUPPORTED_METHODS:
            raise ConfigurationError(
                "method",
                f"unknown labeler {self.method!r}, supported: {sorted(SUPPORTED_METHODS)}",
            )
        if not (math.isfinite(self.tolerance) and self.tolerance >= 0):
            raise ConfigurationError("tolerance", f"must be >= 0, got {self.tolerance}")
        if self.extension < 0:
            raise ConfigurationError("extension", f"must be >= 0, got {self.extension}")
        if self.min_size < 0:
            raise ConfigurationError("min_size", f"must be >= 0, got {self.min_size}")
        if not (math.isfinite(self.scale) and self.scale > 0):
            raise ConfigurationError("scale", f"must be > 0, got {self.scale}")
        if self.extent is not None:
            if len(self.extent) != 4:
                raise ConfigurationError("extent", "expected (xmin, xmax, ymin, ymax)")
            xmin, xmax, ymin, ymax = self.extent
            if not (xmax > xmin and ymax > ymin):
                raise ConfigurationError(
                    "extent", f"must satisfy xmin < xmax and ymin < ymax, got {self.extent}"
                )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "nx": self.nx,
            "ny": self.ny,
            "max_value": self.max_value,
            "sigma": self.sigma,
            "threshold_radius": self.threshold_radius,
            "threshold_offset": self.threshold_offset,
            "method": self.method,
            "tolerance": self.tolerance,
            "extension": self.extension,
            "min_size": self.min_size,
            "scale": self.scale,
            "extent": list(self.extent) if self.extent is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SegmentationParams:
        """Build params from a dict produced by ``to_dict()``.

        Raises:
            ConfigurationError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(unknown[0], f"unknown parameter(s): {unknown}")
        kwargs = dict(data)
        if kwargs.get("extent") is not None:
            kwargs["extent"] = tuple(float(v) for v in kwargs["extent"])
        return cls(**kwargs)


@dataclass(frozen=True)
class SegmentationResult:
    """Result of a segmentation run.

    Attributes:
        spots: Input spot table with the appended cell ID column (0 = unassigned).
        expression: Genes x cells count matrix.
        cells: Cell metadata table, one row per accepted cell.
        cell_records: The same cells as CellRecord objects.
        labels: Final label image per experiment.
        params: Parameters the run used.
        assigned_spots: Number of spots with a nonzero cell ID.
        degenerate: True if any experiment ended with zero accepted cells.
        warnings: Warning messages (e.g., experiments with 0 cells).
        elapsed_seconds: Wall-clock time for the run.
    """

    spots: pd.DataFrame
    expression: pd.DataFrame
    cells: pd.DataFrame
    cell_records: list[CellRecord]
    labels: dict[str, np.ndarray]
    params: SegmentationParams
    assigned_spots: int = 0
    degenerate: bool = False
    warnings: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def cell_count(self) -> int:
        return len(self.cell_records)


class BaseLabeler(ABC):
    """Abstract interface for region-labeling strategies.

    Concrete implementations turn a foreground mask and its distance map
    into a label image.
    """

    @abstractmethod
    def label(self, mask: np.ndarray, distance: np.ndarray) -> np.ndarray:
        """Label the foreground regions of a binary mask.

        Args:
            mask: 2D bool array (Y, X), True = foreground.
            distance: Distance of each foreground pixel to the nearest
                background pixel, same shape as ``mask``.

        Returns:
            Label image (Y, X) as int32 where pixel value = region ID,
            0 = background.
        """
