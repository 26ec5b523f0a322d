"""Tests for spotcell.core.models."""

import pytest

from spotcell.core.exceptions import ConfigurationError
from spotcell.core.models import DEFAULT_LAYER, CellRecord, MappingResult, SpotColumns


class TestSpotColumns:
    def test_defaults(self):
        cols = SpotColumns()
        assert cols.required == ("x", "y", "gene")
        assert cols.cell_id == "cell_id"

    def test_custom_names(self):
        cols = SpotColumns(x="global_x", y="global_y", gene="target")
        assert cols.required == ("global_x", "global_y", "target")

    def test_empty_name_raises(self):
        with pytest.raises(ConfigurationError, match="must not be empty"):
            SpotColumns(gene="")

    def test_duplicate_names_raise(self):
        with pytest.raises(ConfigurationError, match="distinct"):
            SpotColumns(x="pos", y="pos")

    def test_frozen(self):
        cols = SpotColumns()
        with pytest.raises(AttributeError):
            cols.x = "other"  # type: ignore[misc]


class TestCellRecord:
    def test_defaults(self):
        rec = CellRecord(cell_id=1, centroid_x=1.0, centroid_y=2.0,
                         area=4.0, area_pixels=4, n_spots=3)
        assert rec.centroid_z is None
        assert rec.layer == DEFAULT_LAYER
        assert rec.experiment is None

    def test_to_dict_columns(self):
        rec = CellRecord(cell_id=5, centroid_x=1.0, centroid_y=2.0, area=4.0,
                         area_pixels=4, n_spots=3, centroid_z=0.5, experiment="e1")
        row = rec.to_dict()
        assert row["cell_id"] == 5
        assert row["x"] == 1.0
        assert row["y"] == 2.0
        assert row["z"] == 0.5
        assert row["experiment"] == "e1"


class TestMappingResult:
    def test_ranked_default_empty(self):
        res = MappingResult(cell_id=1, cell_type="Astro", score=0.9)
        assert res.ranked == []
        assert res.n_shared_genes == 0
