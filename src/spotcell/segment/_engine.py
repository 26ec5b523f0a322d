"""SegmentationEngine — pipeline orchestration from spots to cells."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable

import numpy as np
import pandas as pd

from spotcell.core.exceptions import InputDataError, SegmentationDegeneracy
from spotcell.core.models import CellRecord, SpotColumns
from spotcell.measure.aggregator import Aggregator, build_expression_matrix, cells_to_frame
from spotcell.measure.assigner import assign_spots
from spotcell.segment.base_labeler import BaseLabeler, SegmentationParams, SegmentationResult
from spotcell.segment.debris import filter_debris
from spotcell.segment.filters import adaptive_threshold, smooth
from spotcell.segment.labelers import compute_distance_map, get_labeler
from spotcell.segment.raster import RasterGrid, default_extent, normalize_grid, rasterize

logger = logging.getLogger(__name__)

DEFAULT_EXPERIMENT = "experiment_1"


class SegmentationEngine:
    """Orchestrates a full spot-to-cell run.

    For each experiment in the spot table: rasterizes the spots, normalizes,
    smooths and thresholds the grid, labels regions, filters debris, assigns
    spots to the surviving regions, and describes the resulting cells. The
    expression matrix is built once over all experiments. Cell IDs are unique
    across the whole run.

    Args:
        labeler: Region labeling strategy. If None, one is created from
            ``SegmentationParams.method`` on each run.
        columns: Spot table column names.
    """

    def __init__(
        self,
        labeler: BaseLabeler | None = None,
        columns: SpotColumns | None = None,
    ) -> None:
        self._labeler = labeler
        self._columns = columns or SpotColumns()

    @property
    def columns(self) -> SpotColumns:
        return self._columns

    def segment_grid(
        self,
        grid: RasterGrid,
        params: SegmentationParams,
        labeler: BaseLabeler | None = None,
    ) -> tuple[np.ndarray, list[int]]:
        """Turn a raster grid into a filtered label image.

        Returns:
            Tuple of (final label image, IDs removed as debris).
        """
        if labeler is None:
            labeler = self._labeler or get_labeler(
                params.method, params.tolerance, params.extension,
            )
        normalized = normalize_grid(grid.values, params.max_value, empty=grid.empty)
        smoothed = smooth(normalized, params.sigma)
        mask = adaptive_threshold(smoothed, params.threshold_radius, params.threshold_offset)
        distance = compute_distance_map(mask)
        raw = labeler.label(mask, distance)
        logger.debug(
            "Labeled %d raw regions on %d foreground pixels",
            len(np.unique(raw[raw > 0])), int(mask.sum()),
        )
        return filter_debris(raw, params.min_size)

    def _validate(self, spots: pd.DataFrame) -> None:
        for column in self._columns.required:
            if column not in spots.columns:
                raise InputDataError(column, reason="required column is missing")
        gene = spots[self._columns.gene]
        if gene.isna().any():
            row = int(np.flatnonzero(gene.isna().to_numpy())[0])
            raise InputDataError(self._columns.gene, row, "missing gene label")

    def _experiments(self, spots: pd.DataFrame, default: str) -> np.ndarray:
        col = self._columns.experiment
        if col not in spots.columns:
            return np.full(len(spots), default, dtype=object)
        return spots[col].fillna(default).astype(str).to_numpy(dtype=object)

    def run(
        self,
        spots: pd.DataFrame,
        params: SegmentationParams | None = None,
        experiment: str | None = None,
        progress_callback: Callable[[int, int, str], None] | None = None,
        strict: bool = False,
        **kwargs: object,
    ) -> SegmentationResult:
        """Run the spot-to-cell pipeline.

        Args:
            spots: Spot table with x, y and gene columns; optional z,
                experiment, weight and layer columns.
            params: Segmentation parameters. If None, built from ``kwargs``.
            experiment: Experiment tag for spots without an experiment label.
            progress_callback: Optional callback(current, total, experiment).
            strict: Raise SegmentationDegeneracy when an experiment ends with
                zero cells instead of recording a warning.
            **kwargs: SegmentationParams fields, used when ``params`` is None.

        Returns:
            SegmentationResult with the annotated spots, expression matrix
            and cell metadata.

        Raises:
            InputDataError: On missing columns or invalid spot values.
            ConfigurationError: On invalid parameters.
            SegmentationDegeneracy: In strict mode, if no cells survive.
        """
        start = time.monotonic()
        warnings: list[str] = []
        cols = self._columns

        if params is None:
            params = SegmentationParams(**kwargs)  # type: ignore[arg-type]
        self._validate(spots)

        # One extent for the whole run keeps the pixel size fixed across experiments.
        if params.extent is None:
            params = replace(
                params,
                extent=default_extent(spots[cols.x], spots[cols.y], params.nx, params.ny),
            )

        labeler = self._labeler or get_labeler(
            params.method, params.tolerance, params.extension,
        )
        aggregator = Aggregator(scale=params.scale)
        default_tag = experiment or DEFAULT_EXPERIMENT
        experiments = self._experiments(spots, default_tag)
        names = list(pd.unique(experiments))

        cell_ids = np.zeros(len(spots), dtype=np.int64)
        records: list[CellRecord] = []
        label_images: dict[str, np.ndarray] = {}
        degenerate = False
        offset = 0
        total = len(names)

        for i, name in enumerate(names):
            positions = np.flatnonzero(experiments == name)
            subset = spots.iloc[positions]

            weights = subset[cols.weight] if cols.weight in subset.columns else None
            grid = rasterize(
                subset[cols.x], subset[cols.y], params.nx, params.ny,
                weights=weights, extent=params.extent,
            )
            labels, removed = self.segment_grid(grid, params, labeler)

            # Shift IDs so they stay unique across experiments.
            if offset:
                labels[labels > 0] += offset
            ids = assign_spots(grid, labels)
            cell_ids[positions] = ids

            z = subset[cols.z].to_numpy(dtype=np.float64) if cols.z in subset.columns else None
            layer = subset[cols.layer].to_numpy() if cols.layer in subset.columns else None
            cells = aggregator.describe_cells(
                labels, grid, ids, z=z, layer=layer, experiment=name,
            )
            records.extend(cells)
            label_images[name] = labels
            offset = max(offset, int(labels.max(initial=0)))

            logger.info(
                "Experiment %s: %d cells, %d debris regions removed, %d/%d spots assigned",
                name, len(cells), len(removed), int((ids > 0).sum()), len(ids),
            )

            if not cells:
                if strict:
                    raise SegmentationDegeneracy(experiment=name, min_size=params.min_size)
                degenerate = True
                logger.warning(
                    "No regions survived debris filtering in %s (min_size=%d)",
                    name, params.min_size,
                )
                warnings.append(f"{name}: 0 cells detected")

            if progress_callback:
                progress_callback(i + 1, total, name)

        expression = build_expression_matrix(
            spots[cols.gene],
            cell_ids,
            [r.cell_id for r in records],
            gene_panel=spots[cols.gene],
        )
        annotated = spots.copy()
        annotated[cols.cell_id] = cell_ids

        elapsed = time.monotonic() - start

        return SegmentationResult(
            spots=annotated,
            expression=expression,
            cells=cells_to_frame(records),
            cell_records=records,
            labels=label_images,
            params=params,
            assigned_spots=int((cell_ids > 0).sum()),
            degenerate=degenerate,
            warnings=warnings,
            elapsed_seconds=round(elapsed, 3),
        )
