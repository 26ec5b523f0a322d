"""Shared fixtures for CLI module tests."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest
from click.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def spots_file(tmp_path: Path, cluster_and_isolated_spots: pd.DataFrame) -> Path:
    """Spot table with one dense cluster and one isolated spot."""
    path = tmp_path / "spots.csv"
    cluster_and_isolated_spots.to_csv(path, index=False)
    return path


@pytest.fixture
def reference_file(tmp_path: Path) -> Path:
    """Reference atlas with three cell types."""
    path = tmp_path / "atlas.csv"
    pd.DataFrame(
        {
            "Astro": [10.0, 0.0, 2.0, 1.0],
            "Neuron": [0.0, 8.0, 2.0, 6.0],
            "Oligo": [1.0, 1.0, 9.0, 0.0],
        },
        index=pd.Index(["Gad1", "Slc17a7", "Pvalb", "Sst"], name="gene"),
    ).to_csv(path)
    return path


@pytest.fixture
def matrix_file(tmp_path: Path) -> Path:
    """Expression matrix whose cells are scaled copies of the atlas types."""
    path = tmp_path / "expression.csv"
    path.write_text(
        "gene,1,2,3\n"
        "Gad1,20,0,3\n"
        "Slc17a7,0,4,3\n"
        "Pvalb,4,1,27\n"
        "Sst,2,3,0\n"
        "Other,7,7,7\n"
    )
    return path
