"""SpotCell — assign spatially-resolved transcript spots to cells and cell types."""

__version__ = "0.1.0"
