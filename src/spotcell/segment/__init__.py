"""SpotCell Segment — rasterization, region labeling and debris filtering."""

from spotcell.segment.base_labeler import (
    BaseLabeler,
    SegmentationParams,
    SegmentationResult,
)
from spotcell.segment._engine import SegmentationEngine
from spotcell.segment.debris import fill_label_holes, filter_debris
from spotcell.segment.filters import adaptive_threshold, smooth
from spotcell.segment.labelers import (
    FloodFillLabeler,
    WatershedLabeler,
    compute_distance_map,
    get_labeler,
)
from spotcell.segment.raster import (
    RasterGrid,
    default_extent,
    normalize_grid,
    rasterize,
)

__all__ = [
    "adaptive_threshold",
    "BaseLabeler",
    "compute_distance_map",
    "default_extent",
    "fill_label_holes",
    "filter_debris",
    "FloodFillLabeler",
    "get_labeler",
    "normalize_grid",
    "RasterGrid",
    "rasterize",
    "SegmentationEngine",
    "SegmentationParams",
    "SegmentationResult",
    "smooth",
    "WatershedLabeler",
]
