"""Data models for the SpotCell core module."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from spotcell.core.exceptions import ConfigurationError

DEFAULT_LAYER = "unknown"


@dataclass(frozen=True)
class SpotColumns:
    """Column names of the spot table.

    Attributes:
        x: X location column.
        y: Y location column.
        gene: Gene/target label column.
        z: Optional z location column (used when present in the table).
        experiment: Optional experiment label column.
        weight: Optional per-spot weight column (default weight is 1).
        layer: Optional layer annotation column.
        cell_id: Name of the column appended to the annotated spot table.
    """

    x: str = "x"
    y: str = "y"
    gene: str = "gene"
    z: str = "z"
    experiment: str = "experiment"
    weight: str = "weight"
    layer: str = "layer"
    cell_id: str = "cell_id"

    def __post_init__(self) -> None:
        names = [self.x, self.y, self.gene, self.z, self.experiment,
                 self.weight, self.layer, self.cell_id]
        if any(not n for n in names):
            raise ConfigurationError("columns", "column names must not be empty")
        if len(set(names)) != len(names):
            raise ConfigurationError("columns", "column names must be distinct")

    @property
    def required(self) -> tuple[str, str, str]:
        return (self.x, self.y, self.gene)


@dataclass(frozen=True)
class CellRecord:
    """An accepted cell's spatial properties and spot summary."""

    cell_id: int
    centroid_x: float
    centroid_y: float
    area: float
    area_pixels: int
    n_spots: int
    centroid_z: float | None = None
    layer: str = DEFAULT_LAYER
    experiment: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Row for the cell metadata table."""
        return {
            "cell_id": self.cell_id,
            "x": self.centroid_x,
            "y": self.centroid_y,
            "z": self.centroid_z,
            "area": self.area,
            "area_pixels": self.area_pixels,
            "n_spots": self.n_spots,
            "layer": self.layer,
            "experiment": self.experiment,
        }


@dataclass(frozen=True)
class MappingResult:
    """Best reference match for one query cell.

    Attributes:
        cell_id: Query cell ID.
        cell_type: Best-matching reference type label.
        score: Pearson correlation with the best-matching type.
        ranked: ``(cell_type, score)`` pairs in descending score order.
        n_shared_genes: Size of the gene panel the scores were computed on.
    """

    cell_id: int
    cell_type: str
    score: float
    ranked: list[tuple[str, float]] = field(default_factory=list)
    n_shared_genes: int = 0
