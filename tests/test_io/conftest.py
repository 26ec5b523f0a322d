"""Shared fixtures for IO module tests."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest


@pytest.fixture
def spots_csv(tmp_path: Path, cluster_and_isolated_spots: pd.DataFrame) -> Path:
    """The cluster-and-isolated spot table written as CSV."""
    path = tmp_path / "spots.csv"
    cluster_and_isolated_spots.to_csv(path, index=False)
    return path


@pytest.fixture
def reference_tsv(tmp_path: Path) -> Path:
    """A two-type reference atlas as TSV (genes in the first column)."""
    path = tmp_path / "atlas.tsv"
    path.write_text(
        "gene\tAstro\tNeuron\n"
        "Gad1\t1.0\t9.0\n"
        "Slc17a7\t8.0\t0.5\n"
        "Pvalb\t0.0\t4.0\n"
    )
    return path
