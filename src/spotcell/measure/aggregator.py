"""Aggregator — per-cell expression counts and cell metadata from labeled regions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from skimage.measure import regionprops

from spotcell.core.exceptions import ConfigurationError
from spotcell.core.models import DEFAULT_LAYER, CellRecord

if TYPE_CHECKING:
    from spotcell.segment.raster import RasterGrid

logger = logging.getLogger(__name__)

METADATA_COLUMNS = [
    "cell_id", "x", "y", "z", "area", "area_pixels", "n_spots", "layer", "experiment",
]


def build_expression_matrix(
    genes: object,
    cell_ids: object,
    accepted: object,
    gene_panel: object | None = None,
) -> pd.DataFrame:
    """Cross-tabulate gene labels against assigned cell IDs.

    Each assigned spot adds one count to its (gene, cell) entry, so spots
    sharing a grid cell are summed. Unassigned spots (ID 0) and spots of
    cells not in ``accepted`` are ignored.

    Args:
        genes: Gene label of every spot.
        cell_ids: Assigned cell ID of every spot.
        accepted: Accepted cell IDs; these become the matrix columns.
        gene_panel: Optional row labels. Defaults to the sorted unique genes.

    Returns:
        DataFrame (genes x cells) of int64 counts, zero-filled.
    """
    genes = np.asarray(genes).astype(str)
    cell_ids = np.asarray(cell_ids, dtype=np.int64)
    accepted = np.unique(np.asarray(accepted, dtype=np.int64))
    accepted = accepted[accepted > 0]

    if gene_panel is None:
        panel = np.unique(genes)
    else:
        panel = np.unique(np.asarray(gene_panel).astype(str))

    counts = np.zeros((len(panel), len(accepted)), dtype=np.int64)

    keep = np.isin(cell_ids, accepted) & np.isin(genes, panel)
    if keep.any():
        rows = np.searchsorted(panel, genes[keep])
        cols = np.searchsorted(accepted, cell_ids[keep])
        np.add.at(counts, (rows, cols), 1)

    matrix = pd.DataFrame(
        counts,
        index=pd.Index(panel, name="gene"),
        columns=pd.Index(accepted, name="cell_id"),
    )
    return matrix


def _per_cell_mean(cell_ids: np.ndarray, values: np.ndarray, n: int) -> tuple[np.ndarray, np.ndarray]:
    finite = np.isfinite(values) & (cell_ids > 0)
    sums = np.bincount(cell_ids[finite], weights=values[finite], minlength=n)
    counts = np.bincount(cell_ids[finite], minlength=n)
    return sums, counts


class Aggregator:
    """Build cell metadata from a label image and the spots assigned to it.

    Centroids are the mean grid-cell centre of each region and areas the
    pixel count times the pixel area; centroids (z included) and areas are
    converted with ``scale``.

    Args:
        scale: Factor converting spot units to physical units.
    """

    def __init__(self, scale: float = 1.0) -> None:
        if not scale > 0:
            raise ConfigurationError("scale", f"must be > 0, got {scale}")
        self._scale = float(scale)

    def describe_cells(
        self,
        labels: np.ndarray,
        grid: RasterGrid,
        cell_ids: np.ndarray,
        z: np.ndarray | None = None,
        layer: np.ndarray | None = None,
        experiment: str | None = None,
    ) -> list[CellRecord]:
        """Convert a final label image to a list of CellRecord objects.

        Args:
            labels: Final (Y, X) label image, 0 = background.
            grid: RasterGrid the labels were derived from.
            cell_ids: Assigned cell ID of every spot of this grid.
            z: Optional z location of every spot.
            layer: Optional layer annotation of every spot.
            experiment: Experiment tag stored on every record.

        Returns:
            One CellRecord per labeled region, ordered by cell ID.
            Empty list if the label image contains no cells.
        """
        labels = np.asarray(labels)
        if labels.max(initial=0) == 0:
            return []

        cell_ids = np.asarray(cell_ids, dtype=np.int64)
        n = int(labels.max()) + 1
        n_spots = np.bincount(cell_ids[cell_ids > 0], minlength=n)

        z_sums = z_counts = None
        if z is not None:
            z_sums, z_counts = _per_cell_mean(cell_ids, np.asarray(z, dtype=np.float64), n)

        layers: dict[int, str] = {}
        if layer is not None:
            frame = pd.DataFrame({"cell": cell_ids, "layer": np.asarray(layer)})
            frame = frame[(frame["cell"] > 0) & frame["layer"].notna()]
            if not frame.empty:
                modes = frame.groupby("cell")["layer"].agg(lambda s: s.mode().iloc[0])
                layers = {int(k): str(v) for k, v in modes.items()}

        pixel_area = grid.pixel_width * grid.pixel_height * self._scale ** 2
        records: list[CellRecord] = []
        for prop in regionprops(labels.astype(np.int32)):
            label_value = int(prop.label)
            # regionprops returns centroid as (row, col) = (y, x)
            row, col = prop.centroid
            x, y = grid.pixel_to_xy(row, col)

            centroid_z = None
            if z_counts is not None and z_counts[label_value] > 0:
                centroid_z = float(z_sums[label_value] / z_counts[label_value]) * self._scale

            area_pixels = int(prop.area)
            records.append(
                CellRecord(
                    cell_id=label_value,
                    centroid_x=x * self._scale,
                    centroid_y=y * self._scale,
                    centroid_z=centroid_z,
                    area=float(np.float64(area_pixels) * pixel_area),
                    area_pixels=area_pixels,
                    n_spots=int(n_spots[label_value]),
                    layer=layers.get(label_value, DEFAULT_LAYER),
                    experiment=experiment,
                )
            )
        return records


def cells_to_frame(records: list[CellRecord]) -> pd.DataFrame:
    """Cell metadata table, one row per record, in the given order."""
    if not records:
        frame = pd.DataFrame({col: pd.Series(dtype=object) for col in METADATA_COLUMNS})
        frame["cell_id"] = frame["cell_id"].astype(np.int64)
        return frame
    return pd.DataFrame([r.to_dict() for r in records], columns=METADATA_COLUMNS)
