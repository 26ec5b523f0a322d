"""SpotCell Measure — spot assignment and per-cell aggregation."""

from spotcell.measure.aggregator import Aggregator, build_expression_matrix, cells_to_frame
from spotcell.measure.assigner import assign_spots

__all__ = [
    "Aggregator",
    "assign_spots",
    "build_expression_matrix",
    "cells_to_frame",
]
