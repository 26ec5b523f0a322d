"""Shared test fixtures for SpotCell."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

GRID_EXTENT = (0.0, 100.0, 0.0, 100.0)


def block_spots(
    x0: int,
    y0: int,
    size: int = 5,
    genes: tuple[str, ...] = ("Gad1", "Slc17a7"),
) -> pd.DataFrame:
    """A size x size block of spots, one per integer position, cycling genes."""
    xs, ys = np.meshgrid(np.arange(x0, x0 + size), np.arange(y0, y0 + size))
    n = xs.size
    return pd.DataFrame({
        "x": xs.ravel().astype(float),
        "y": ys.ravel().astype(float),
        "gene": [genes[i % len(genes)] for i in range(n)],
    })


@pytest.fixture
def cluster_and_isolated_spots() -> pd.DataFrame:
    """A 5x5 spot cluster around (22, 22) and one isolated spot at (80, 80)."""
    cluster = block_spots(20, 20)
    isolated = pd.DataFrame({"x": [80.0], "y": [80.0], "gene": ["Gad1"]})
    return pd.concat([cluster, isolated], ignore_index=True)


@pytest.fixture
def two_experiment_spots() -> pd.DataFrame:
    """Two experiments, each with one 5x5 cluster."""
    a = block_spots(20, 20).assign(experiment="exp_a")
    b = block_spots(60, 60, genes=("Pvalb",)).assign(experiment="exp_b")
    return pd.concat([a, b], ignore_index=True)


@pytest.fixture
def make_block():
    """Factory for square spot blocks (see ``block_spots``)."""
    return block_spots
