"""Tests for SegmentationParams, SegmentationResult, and the BaseLabeler ABC."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from spotcell.core.exceptions import ConfigurationError
from spotcell.core.models import CellRecord
from spotcell.segment.base_labeler import (
    BaseLabeler,
    SegmentationParams,
    SegmentationResult,
)


class TestSegmentationParams:
    """Tests for SegmentationParams dataclass and validation."""

    def test_defaults(self) -> None:
        params = SegmentationParams()
        assert params.nx == 1000
        assert params.ny == 1000
        assert params.max_value == 10.0
        assert params.sigma == 1.0
        assert params.threshold_radius == 5
        assert params.threshold_offset == 0.01
        assert params.method == "watershed"
        assert params.tolerance == 1.0
        assert params.extension == 1
        assert params.min_size == 10
        assert params.scale == 1.0
        assert params.extent is None

    def test_frozen(self) -> None:
        params = SegmentationParams()
        with pytest.raises(AttributeError):
            params.nx = 5  # type: ignore[misc]

    @pytest.mark.parametrize(
        "kwargs,parameter",
        [
            ({"nx": 0}, "nx"),
            ({"ny": -3}, "ny"),
            ({"max_value": 0.0}, "max_value"),
            ({"max_value": float("inf")}, "max_value"),
            ({"sigma": 0.0}, "sigma"),
            ({"threshold_radius": 0}, "threshold_radius"),
            ({"threshold_offset": float("nan")}, "threshold_offset"),
            ({"method": "cellpose"}, "method"),
            ({"tolerance": -0.5}, "tolerance"),
            ({"extension": -1}, "extension"),
            ({"min_size": -1}, "min_size"),
            ({"scale": 0.0}, "scale"),
            ({"extent": (0.0, 0.0, 0.0, 10.0)}, "extent"),
            ({"extent": (0.0, 10.0)}, "extent"),
        ],
    )
    def test_invalid_values_raise(self, kwargs: dict, parameter: str) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            SegmentationParams(**kwargs)
        assert excinfo.value.parameter == parameter

    def test_max_value_none_allowed(self) -> None:
        assert SegmentationParams(max_value=None).max_value is None

    def test_floodfill_method(self) -> None:
        assert SegmentationParams(method="floodfill").method == "floodfill"

    def test_to_dict_from_dict(self) -> None:
        params = SegmentationParams(nx=200, ny=150, method="floodfill",
                                    extent=(0.0, 10.0, 0.0, 5.0))
        data = params.to_dict()
        assert data["extent"] == [0.0, 10.0, 0.0, 5.0]
        assert SegmentationParams.from_dict(data) == params

    def test_from_dict_partial(self) -> None:
        params = SegmentationParams.from_dict({"sigma": 2.5})
        assert params.sigma == 2.5
        assert params.nx == 1000

    def test_from_dict_unknown_key_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown parameter"):
            SegmentationParams.from_dict({"diameter": 30})


class TestSegmentationResult:

    def test_cell_count(self) -> None:
        records = [
            CellRecord(cell_id=1, centroid_x=0.0, centroid_y=0.0, area=1.0,
                       area_pixels=1, n_spots=1),
            CellRecord(cell_id=2, centroid_x=0.0, centroid_y=0.0, area=1.0,
                       area_pixels=1, n_spots=1),
        ]
        result = SegmentationResult(
            spots=pd.DataFrame(),
            expression=pd.DataFrame(),
            cells=pd.DataFrame(),
            cell_records=records,
            labels={},
            params=SegmentationParams(),
        )
        assert result.cell_count == 2
        assert result.warnings == []
        assert result.degenerate is False


class TestBaseLabeler:

    def test_cannot_instantiate(self) -> None:
        with pytest.raises(TypeError):
            BaseLabeler()  # type: ignore[abstract]

    def test_subclass_must_implement_label(self) -> None:
        class Incomplete(BaseLabeler):
            pass

        with pytest.raises(TypeError):
            Incomplete()  # type: ignore[abstract]

    def test_concrete_subclass(self) -> None:
        class Everything(BaseLabeler):
            def label(self, mask: np.ndarray, distance: np.ndarray) -> np.ndarray:
                return mask.astype(np.int32)

        out = Everything().label(np.ones((3, 3), dtype=bool), np.zeros((3, 3)))
        assert out.sum() == 9
