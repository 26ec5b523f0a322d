"""SpotCell Mapping — reference atlas and correlation-based type assignment."""

from spotcell.mapping.reference import (
    ReferenceAtlas,
    ReferenceMapper,
    ranked_to_frame,
    results_to_frame,
)

__all__ = [
    "ranked_to_frame",
    "ReferenceAtlas",
    "ReferenceMapper",
    "results_to_frame",
]
