"""ReferenceMapper — correlation-based cell type assignment against a reference atlas."""

from __future__ import annotations

import logging
from typing import Mapping

import numpy as np
import pandas as pd

from spotcell.core.exceptions import ConfigurationError, InputDataError, MappingGeneMismatchError
from spotcell.core.models import MappingResult

logger = logging.getLogger(__name__)

SCALING_METHODS = frozenset({"total", "gene", "none"})


def _check_finite_query(values: np.ndarray) -> None:
    if not np.isfinite(values).all():
        raise InputDataError("expression", reason="missing or non-finite values")


class ReferenceAtlas:
    """Mean expression profiles of known cell types over a fixed gene panel.

    Args:
        profiles: DataFrame with one row per gene and one column per cell
            type. Values must be finite and non-negative.

    Raises:
        InputDataError: If the table is empty, has duplicate genes or types,
            or contains non-numeric, non-finite, or negative values.
    """

    def __init__(self, profiles: pd.DataFrame) -> None:
        if profiles.empty:
            raise InputDataError("reference", reason="reference atlas is empty")
        profiles = profiles.copy()
        profiles.index = profiles.index.astype(str)
        profiles.columns = profiles.columns.astype(str)
        if profiles.index.has_duplicates:
            dup = profiles.index[profiles.index.duplicated()][0]
            raise InputDataError("gene", reason=f"duplicate reference gene {dup!r}")
        if profiles.columns.has_duplicates:
            dup = profiles.columns[profiles.columns.duplicated()][0]
            raise InputDataError("cell_type", reason=f"duplicate reference type {dup!r}")
        try:
            values = profiles.to_numpy(dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InputDataError("reference", reason=f"non-numeric values ({exc})") from exc
        if not np.isfinite(values).all():
            raise InputDataError("reference", reason="missing or non-finite values")
        if (values < 0).any():
            raise InputDataError("reference", reason="negative expression values")
        self._profiles = pd.DataFrame(values, index=profiles.index, columns=profiles.columns)

    @classmethod
    def from_single_cell(
        cls, expression: pd.DataFrame, labels: object
    ) -> ReferenceAtlas:
        """Average a labeled single-cell reference into per-type profiles.

        Args:
            expression: Cells x genes expression table.
            labels: Cell type label for every row of ``expression``.
        """
        labels = pd.Series(np.asarray(labels), index=expression.index, name="cell_type")
        if labels.isna().any():
            raise InputDataError("cell_type", reason="missing cell type labels")
        means = expression.groupby(labels, sort=False).mean()
        return cls(means.T)

    @property
    def profiles(self) -> pd.DataFrame:
        return self._profiles

    @property
    def genes(self) -> list[str]:
        return list(self._profiles.index)

    @property
    def cell_types(self) -> list[str]:
        return list(self._profiles.columns)

    def __len__(self) -> int:
        return self._profiles.shape[1]

    def shared_genes(self, genes: object) -> list[str]:
        """Atlas genes also present in ``genes``, in atlas order."""
        query = set(pd.Index(genes).astype(str))
        return [g for g in self._profiles.index if g in query]


class ReferenceMapper:
    """Assign query cells to the best-correlated reference cell type.

    Query expression is restricted to the genes shared with the atlas and
    rescaled to the reference dynamic range before the Pearson correlation
    with every type profile is computed.

    Scaling methods:
        total: Scale each cell so its total matches the mean type total of
            the atlas on the shared panel. A uniform factor per cell, so it
            does not change correlations.
        gene: Scale each gene by atlas gene mean / query gene mean across
            the query cells, then apply ``total``. Matrix queries only.
        none: Use counts as they are.

    Only ``gene`` normalizes each gene against the atlas; with the default
    ``total`` the scores equal those of the raw counts.

    Ties go to the type that comes first in the atlas.

    Args:
        atlas: Reference profiles.
        scaling: One of ``SCALING_METHODS``.
        top_n: Number of ranked alternatives to keep (None = all types).
        min_shared_genes: Minimum shared panel size for a correlation.
    """

    def __init__(
        self,
        atlas: ReferenceAtlas,
        scaling: str = "total",
        top_n: int | None = None,
        min_shared_genes: int = 2,
    ) -> None:
        if scaling not in SCALING_METHODS:
            raise ConfigurationError(
                "scaling",
                f"unknown scaling {scaling!r}, supported: {sorted(SCALING_METHODS)}",
            )
        if top_n is not None and top_n < 1:
            raise ConfigurationError("top_n", f"must be >= 1 or None, got {top_n}")
        if min_shared_genes < 1:
            raise ConfigurationError(
                "min_shared_genes", f"must be >= 1, got {min_shared_genes}"
            )
        self._atlas = atlas
        self._scaling = scaling
        self._top_n = top_n
        self._min_shared = min_shared_genes

    @property
    def atlas(self) -> ReferenceAtlas:
        return self._atlas

    def _panel(self, genes: object, cell_id: int | None = None) -> list[str]:
        shared = self._atlas.shared_genes(genes)
        if len(shared) < self._min_shared:
            raise MappingGeneMismatchError(
                n_shared=len(shared),
                n_query=len(pd.Index(genes)),
                n_reference=len(self._atlas.genes),
                cell_id=cell_id,
            )
        return shared

    def _scale(self, query: np.ndarray, reference: np.ndarray, scaling: str) -> np.ndarray:
        """Rescale a (genes x cells) query to the reference range."""
        if scaling == "none":
            return query
        if scaling == "gene":
            query_mean = query.mean(axis=1)
            ref_mean = reference.mean(axis=1)
            factor = np.divide(
                ref_mean, query_mean,
                out=np.ones_like(ref_mean), where=query_mean > 0,
            )
            query = query * factor[:, None]
        target = reference.sum(axis=0).mean()
        totals = query.sum(axis=0)
        factor = np.divide(
            target, totals,
            out=np.ones_like(totals), where=totals > 0,
        )
        return query * factor[None, :]

    @staticmethod
    def correlate(query: np.ndarray, reference: np.ndarray) -> np.ndarray:
        """Pearson correlation of every query column with every reference column.

        Args:
            query: (genes x cells) array.
            reference: (genes x types) array on the same genes.

        Returns:
            (cells x types) array in [-1, 1]. Undefined correlations
            (constant vectors) are 0.0.
        """
        qc = query - query.mean(axis=0, keepdims=True)
        rc = reference - reference.mean(axis=0, keepdims=True)
        num = qc.T @ rc
        den = np.outer(np.linalg.norm(qc, axis=0), np.linalg.norm(rc, axis=0))
        with np.errstate(divide="ignore", invalid="ignore"):
            scores = np.where(den > 0, num / den, 0.0)
        return np.clip(np.nan_to_num(scores, nan=0.0), -1.0, 1.0)

    def _results(
        self, cell_ids: list[int], scores: np.ndarray, n_shared: int
    ) -> list[MappingResult]:
        types = self._atlas.cell_types
        results: list[MappingResult] = []
        for cell_id, row in zip(cell_ids, scores):
            # Stable sort keeps atlas order among equal scores.
            order = np.argsort(-row, kind="stable")
            if self._top_n is not None:
                order = order[: self._top_n]
            ranked = [(types[i], float(row[i])) for i in order]
            results.append(
                MappingResult(
                    cell_id=int(cell_id),
                    cell_type=ranked[0][0],
                    score=ranked[0][1],
                    ranked=ranked,
                    n_shared_genes=n_shared,
                )
            )
        return results

    def map_vector(self, vector: pd.Series | Mapping[str, float], cell_id: int = 0) -> MappingResult:
        """Map one query cell.

        Args:
            vector: Expression values indexed by gene.
            cell_id: ID reported on the result.

        Raises:
            MappingGeneMismatchError: If too few genes are shared with the atlas.
            ConfigurationError: If the mapper uses ``gene`` scaling.
        """
        if self._scaling == "gene":
            raise ConfigurationError(
                "scaling", "'gene' scaling needs a matrix of query cells, use map_matrix()"
            )
        try:
            series = pd.Series(vector, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InputDataError("expression", reason=f"non-numeric values ({exc})") from exc
        _check_finite_query(series.to_numpy())
        series.index = series.index.astype(str)
        series = series.groupby(level=0).sum()
        panel = self._panel(series.index, cell_id=cell_id)

        query = series.reindex(panel).to_numpy(dtype=np.float64)[:, None]
        reference = self._atlas.profiles.loc[panel].to_numpy()
        query = self._scale(query, reference, self._scaling)
        scores = self.correlate(query, reference)
        return self._results([cell_id], scores, len(panel))[0]

    def map_matrix(self, matrix: pd.DataFrame) -> list[MappingResult]:
        """Map every column of a genes x cells expression matrix.

        Raises:
            MappingGeneMismatchError: If too few genes are shared with the atlas.
        """
        if matrix.shape[1] == 0:
            return []
        matrix = matrix.copy()
        matrix.index = matrix.index.astype(str)
        try:
            values = matrix.to_numpy(dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InputDataError("expression", reason=f"non-numeric values ({exc})") from exc
        _check_finite_query(values)
        matrix = matrix.groupby(level=0).sum()
        panel = self._panel(matrix.index)

        query = matrix.loc[panel].to_numpy(dtype=np.float64)
        reference = self._atlas.profiles.loc[panel].to_numpy()
        query = self._scale(query, reference, self._scaling)
        scores = self.correlate(query, reference)

        dropped = matrix.shape[0] - len(panel)
        if dropped:
            logger.info("Ignoring %d query gene(s) absent from the reference", dropped)
        logger.info(
            "Mapped %d cells against %d reference types on %d shared genes",
            matrix.shape[1], len(self._atlas), len(panel),
        )
        return self._results(list(matrix.columns), scores, len(panel))


def results_to_frame(results: list[MappingResult]) -> pd.DataFrame:
    """One row per cell: best type, score, and the ranked alternatives."""
    rows = []
    for r in results:
        rows.append({
            "cell_id": r.cell_id,
            "cell_type": r.cell_type,
            "score": r.score,
            "n_shared_genes": r.n_shared_genes,
            "alternatives": ";".join(f"{t}:{s:.4f}" for t, s in r.ranked[1:]),
        })
    return pd.DataFrame(
        rows, columns=["cell_id", "cell_type", "score", "n_shared_genes", "alternatives"],
    )


def ranked_to_frame(results: list[MappingResult]) -> pd.DataFrame:
    """Long table of every retained (cell, rank, type, score)."""
    rows = [
        {"cell_id": r.cell_id, "rank": rank, "cell_type": t, "score": s}
        for r in results
        for rank, (t, s) in enumerate(r.ranked, start=1)
    ]
    return pd.DataFrame(rows, columns=["cell_id", "rank", "cell_type", "score"])
