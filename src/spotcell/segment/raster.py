"""Rasterization of spot locations onto a regular grid and grid normalization."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from spotcell.core.exceptions import ConfigurationError, InputDataError

logger = logging.getLogger(__name__)

Extent = tuple[float, float, float, float]


@dataclass(frozen=True)
class RasterGrid:
    """Spot weights summed onto a regular 2D grid.

    Arrays are indexed ``(row, col) = (y, x)``. ``spot_rows`` / ``spot_cols``
    form the inverse index: spot ``i`` landed in grid cell
    ``(spot_rows[i], spot_cols[i])``.

    Attributes:
        values: (ny, nx) float64 array of summed spot weights.
        counts: (ny, nx) int64 array of spots per grid cell.
        x_edges: nx + 1 bin edges along x.
        y_edges: ny + 1 bin edges along y.
        spot_rows: Grid row of every spot.
        spot_cols: Grid column of every spot.
    """

    values: np.ndarray
    counts: np.ndarray
    x_edges: np.ndarray
    y_edges: np.ndarray
    spot_rows: np.ndarray
    spot_cols: np.ndarray

    @property
    def shape(self) -> tuple[int, int]:
        return self.values.shape

    @property
    def n_spots(self) -> int:
        return len(self.spot_rows)

    @property
    def x_coords(self) -> np.ndarray:
        """Bin centres along x."""
        return (self.x_edges[:-1] + self.x_edges[1:]) / 2.0

    @property
    def y_coords(self) -> np.ndarray:
        """Bin centres along y."""
        return (self.y_edges[:-1] + self.y_edges[1:]) / 2.0

    @property
    def pixel_width(self) -> float:
        return float(self.x_edges[1] - self.x_edges[0])

    @property
    def pixel_height(self) -> float:
        return float(self.y_edges[1] - self.y_edges[0])

    @property
    def empty(self) -> np.ndarray:
        """Boolean mask of grid cells no spot fell into."""
        return self.counts == 0

    def spot_indices(self, row: int, col: int) -> np.ndarray:
        """Indices of the spots binned into grid cell ``(row, col)``."""
        return np.flatnonzero((self.spot_rows == row) & (self.spot_cols == col))

    def inverse_index(self) -> dict[tuple[int, int], np.ndarray]:
        """Map every occupied grid cell to the indices of its spots."""
        ny, nx = self.shape
        flat = self.spot_rows.astype(np.int64) * nx + self.spot_cols
        order = np.argsort(flat, kind="stable")
        cells, starts = np.unique(flat[order], return_index=True)
        groups = np.split(order, starts[1:])
        return {
            (int(c // nx), int(c % nx)): g for c, g in zip(cells, groups)
        }

    def pixel_to_xy(self, row: float, col: float) -> tuple[float, float]:
        """Convert a (possibly fractional) grid position to spot coordinates.

        Integer positions map to bin centres.
        """
        x = float(self.x_edges[0] + (col + 0.5) * self.pixel_width)
        y = float(self.y_edges[0] + (row + 0.5) * self.pixel_height)
        return x, y


def _check_finite(values: np.ndarray, column: str) -> None:
    bad = ~np.isfinite(values)
    if bad.any():
        row = int(np.flatnonzero(bad)[0])
        raise InputDataError(
            column, row, f"{int(bad.sum())} missing or non-finite value(s)"
        )


def _as_float_array(values: object, column: str) -> np.ndarray:
    try:
        arr = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InputDataError(column, reason=f"not numeric ({exc})") from exc
    if arr.ndim != 1:
        raise InputDataError(column, reason=f"expected 1D values, got shape {arr.shape}")
    return arr


def _axis_edges(values: np.ndarray, lo: float | None, hi: float | None, n: int) -> np.ndarray:
    if lo is None or hi is None:
        lo = float(values.min()) if len(values) else 0.0
        hi = float(values.max()) if len(values) else 1.0
        if hi <= lo:
            lo, hi = lo - 0.5, hi + 0.5
    return np.linspace(lo, hi, n + 1)


def default_extent(x: object, y: object, nx: int, ny: int) -> Extent:
    """Grid extent shared by every experiment of a run.

    Each axis starts at the origin (or at the smallest coordinate, if that is
    negative) and spans at least one coordinate unit per grid cell, growing
    to the largest coordinate when the spots reach further.

    Raises:
        InputDataError: If a location is missing or non-finite.
    """
    xs = _as_float_array(x, "x")
    ys = _as_float_array(y, "y")
    _check_finite(xs, "x")
    _check_finite(ys, "y")

    def _axis(values: np.ndarray, n: int) -> tuple[float, float]:
        lo = min(0.0, float(values.min())) if len(values) else 0.0
        hi = float(values.max()) if len(values) else lo
        return lo, max(hi, lo + n)

    xmin, xmax = _axis(xs, int(nx))
    ymin, ymax = _axis(ys, int(ny))
    return xmin, xmax, ymin, ymax


def _bin(values: np.ndarray, edges: np.ndarray, column: str) -> np.ndarray:
    n = len(edges) - 1
    lo, hi = edges[0], edges[-1]
    outside = (values < lo) | (values > hi)
    if outside.any():
        row = int(np.flatnonzero(outside)[0])
        raise InputDataError(
            column, row, f"value {values[row]!r} outside grid extent [{lo}, {hi}]"
        )
    idx = np.floor((values - lo) / (hi - lo) * n).astype(np.int64)
    # Upper edge belongs to the last bin.
    return np.clip(idx, 0, n - 1)


def rasterize(
    x: object,
    y: object,
    nx: int,
    ny: int,
    weights: object | None = None,
    extent: Extent | None = None,
) -> RasterGrid:
    """Bin spot locations into an (ny, nx) grid, summing spot weights per cell.

    Args:
        x: Spot x locations.
        y: Spot y locations.
        nx: Number of grid columns.
        ny: Number of grid rows.
        weights: Optional per-spot weights. Defaults to 1 per spot.
        extent: Optional ``(xmin, xmax, ymin, ymax)``. Defaults to the
            bounding box of the spots. Callers binning several spot sets at
            one resolution pass a shared extent (see ``default_extent``).

    Returns:
        RasterGrid with summed weights and the inverse spot index.

    Raises:
        ConfigurationError: If nx/ny are not positive or the extent is empty.
        InputDataError: If a location or weight is missing, non-finite, or
            outside an explicit extent.
    """
    if int(nx) <= 0:
        raise ConfigurationError("nx", f"must be > 0, got {nx}")
    if int(ny) <= 0:
        raise ConfigurationError("ny", f"must be > 0, got {ny}")
    nx, ny = int(nx), int(ny)

    xs = _as_float_array(x, "x")
    ys = _as_float_array(y, "y")
    if len(xs) != len(ys):
        raise InputDataError(reason=f"x and y lengths differ ({len(xs)} vs {len(ys)})")
    _check_finite(xs, "x")
    _check_finite(ys, "y")

    if weights is None:
        w = np.ones(len(xs), dtype=np.float64)
    else:
        w = _as_float_array(weights, "weight")
        if len(w) != len(xs):
            raise InputDataError(
                "weight", reason=f"expected {len(xs)} weights, got {len(w)}"
            )
        _check_finite(w, "weight")

    if extent is not None:
        xmin, xmax, ymin, ymax = (float(v) for v in extent)
        if not (xmax > xmin and ymax > ymin):
            raise ConfigurationError("extent", f"must satisfy xmin < xmax and ymin < ymax, got {extent}")
        x_edges = _axis_edges(xs, xmin, xmax, nx)
        y_edges = _axis_edges(ys, ymin, ymax, ny)
    else:
        x_edges = _axis_edges(xs, None, None, nx)
        y_edges = _axis_edges(ys, None, None, ny)

    cols = _bin(xs, x_edges, "x")
    rows = _bin(ys, y_edges, "y")

    values = np.zeros((ny, nx), dtype=np.float64)
    counts = np.zeros((ny, nx), dtype=np.int64)
    np.add.at(values, (rows, cols), w)
    np.add.at(counts, (rows, cols), 1)

    logger.debug(
        "Rasterized %d spots onto %dx%d grid (%d occupied cells)",
        len(xs), nx, ny, int(np.count_nonzero(counts)),
    )

    return RasterGrid(
        values=values,
        counts=counts,
        x_edges=x_edges,
        y_edges=y_edges,
        spot_rows=rows,
        spot_cols=cols,
    )


def normalize_grid(
    values: np.ndarray,
    max_value: float | None = None,
    empty: np.ndarray | None = None,
) -> np.ndarray:
    """Clip, fill empty cells, and rescale a grid to [0, 1].

    Args:
        values: 2D grid of summed weights.
        max_value: Ceiling applied before rescaling. None = no clipping.
        empty: Optional boolean mask of grid cells without spots. These and
            any non-finite cells are set to the minimum observed value.

    Returns:
        float64 array in [0, 1]. A constant grid maps to all zeros.
    """
    if max_value is not None and not np.isfinite(max_value):
        raise ConfigurationError("max_value", f"must be finite, got {max_value}")

    out = np.array(values, dtype=np.float64, copy=True)
    if max_value is not None:
        out = np.minimum(out, max_value)

    finite = np.isfinite(out)
    if not finite.any():
        return np.zeros(out.shape, dtype=np.float64)

    fill = out[finite].min()
    holes = ~finite
    if empty is not None:
        holes |= np.asarray(empty, dtype=bool)
    out[holes] = fill

    lo, hi = out.min(), out.max()
    if hi <= lo:
        return np.zeros(out.shape, dtype=np.float64)
    out = (out - lo) / (hi - lo)
    return np.clip(out, 0.0, 1.0)
