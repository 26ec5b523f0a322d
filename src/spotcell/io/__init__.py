"""SpotCell IO — CSV/TSV readers and writers for spots, atlases and results."""

from spotcell.io.tables import (
    CELLS_FILENAME,
    EXPRESSION_FILENAME,
    MAPPING_FILENAME,
    SPOTS_FILENAME,
    WrittenOutputs,
    read_matrix,
    read_reference,
    read_spots,
    write_mapping,
    write_outputs,
)

__all__ = [
    "CELLS_FILENAME",
    "EXPRESSION_FILENAME",
    "MAPPING_FILENAME",
    "SPOTS_FILENAME",
    "WrittenOutputs",
    "read_matrix",
    "read_reference",
    "read_spots",
    "write_mapping",
    "write_outputs",
]
