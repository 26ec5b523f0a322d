"""SpotCell Core — exceptions and data models."""

from spotcell.core.exceptions import (
    ConfigurationError,
    InputDataError,
    MappingGeneMismatchError,
    SegmentationDegeneracy,
    SpotCellError,
)
from spotcell.core.models import DEFAULT_LAYER, CellRecord, MappingResult, SpotColumns

__all__ = [
    "CellRecord",
    "ConfigurationError",
    "DEFAULT_LAYER",
    "InputDataError",
    "MappingGeneMismatchError",
    "MappingResult",
    "SegmentationDegeneracy",
    "SpotCellError",
    "SpotColumns",
]
