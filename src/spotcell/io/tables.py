"""Tabular readers and writers for spot tables, reference atlases and results."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from spotcell.core.exceptions import InputDataError
from spotcell.core.models import SpotColumns

logger = logging.getLogger(__name__)

SPOTS_FILENAME = "spots.csv"
EXPRESSION_FILENAME = "expression.csv"
CELLS_FILENAME = "cells.csv"
MAPPING_FILENAME = "mapping.csv"


def _sep(path: Path) -> str:
    return "\t" if path.suffix.lower() in (".tsv", ".txt") else ","


def _read(path: Path, **kwargs: object) -> pd.DataFrame:
    path = Path(path)
    if not path.is_file():
        raise InputDataError(reason=f"file not found: {path}")
    try:
        return pd.read_csv(path, sep=_sep(path), **kwargs)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise InputDataError(reason=f"cannot parse {path.name}: {exc}") from exc


def read_spots(path: Path, columns: SpotColumns | None = None) -> pd.DataFrame:
    """Read a spot table (CSV or TSV) and check the required columns.

    Raises:
        InputDataError: If the file is missing, unreadable, or lacks x/y/gene.
    """
    columns = columns or SpotColumns()
    spots = _read(path)
    for column in columns.required:
        if column not in spots.columns:
            raise InputDataError(column, reason=f"required column missing from {Path(path).name}")
    logger.info("Read %d spots from %s", len(spots), path)
    return spots


def read_reference(path: Path) -> pd.DataFrame:
    """Read a reference atlas: first column = gene, one column per cell type."""
    table = _read(path, index_col=0)
    table.index = table.index.astype(str)
    return table


def read_matrix(path: Path) -> pd.DataFrame:
    """Read a genes x cells expression matrix written by ``write_outputs``.

    Raises:
        InputDataError: If a column header is not an integer cell ID.
    """
    table = _read(path, index_col=0)
    table.index = table.index.astype(str)
    try:
        table.columns = pd.Index([int(c) for c in table.columns], name="cell_id")
    except ValueError as exc:
        raise InputDataError("cell_id", reason=f"non-integer cell ID column ({exc})") from exc
    return table


@dataclass(frozen=True)
class WrittenOutputs:
    """Paths written by ``write_outputs``."""

    spots: Path
    expression: Path
    cells: Path
    mapping: Path | None = None


def write_outputs(
    directory: Path,
    spots: pd.DataFrame,
    expression: pd.DataFrame,
    cells: pd.DataFrame,
    mapping: pd.DataFrame | None = None,
) -> WrittenOutputs:
    """Write the pipeline outputs as CSV files into ``directory``."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    spots_path = directory / SPOTS_FILENAME
    expression_path = directory / EXPRESSION_FILENAME
    cells_path = directory / CELLS_FILENAME

    spots.to_csv(spots_path, index=False)
    expression.to_csv(expression_path, index_label="gene")
    cells.to_csv(cells_path, index=False)

    mapping_path = None
    if mapping is not None:
        mapping_path = write_mapping(directory, mapping)

    return WrittenOutputs(
        spots=spots_path,
        expression=expression_path,
        cells=cells_path,
        mapping=mapping_path,
    )


def write_mapping(directory: Path, mapping: pd.DataFrame) -> Path:
    """Write a mapping table as ``mapping.csv`` into ``directory``."""
    path = Path(directory) / MAPPING_FILENAME
    mapping.to_csv(path, index=False)
    return path
