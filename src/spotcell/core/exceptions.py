"""Exception classes for the SpotCell core module."""


class SpotCellError(Exception):
    """Base exception for all SpotCell pipeline errors."""


class InputDataError(SpotCellError):
    """Raised when a spot location, weight, or required column is missing or non-finite."""

    def __init__(
        self,
        column: str | None = None,
        row: int | None = None,
        reason: str | None = None,
    ) -> None:
        if column is not None and row is not None:
            msg = f"Invalid input in column {column!r} at row {row}"
        elif column is not None:
            msg = f"Invalid input in column {column!r}"
        else:
            msg = "Invalid input data"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.column = column
        self.row = row
        self.reason = reason


class ConfigurationError(SpotCellError):
    """Raised when a pipeline parameter is invalid."""

    def __init__(self, parameter: str | None = None, reason: str | None = None) -> None:
        if parameter and reason:
            msg = f"Invalid parameter {parameter!r}: {reason}"
        elif parameter:
            msg = f"Invalid parameter {parameter!r}"
        else:
            msg = "Invalid configuration"
        super().__init__(msg)
        self.parameter = parameter
        self.reason = reason


class SegmentationDegeneracy(SpotCellError):
    """Raised in strict mode when no region survives debris filtering."""

    def __init__(self, experiment: str | None = None, min_size: int | None = None) -> None:
        msg = "No regions survived debris filtering"
        if experiment is not None:
            msg = f"{msg} in experiment {experiment!r}"
        if min_size is not None:
            msg = f"{msg} (min_size={min_size})"
        super().__init__(msg)
        self.experiment = experiment
        self.min_size = min_size


class MappingGeneMismatchError(SpotCellError):
    """Raised when a query shares too few genes with the reference atlas."""

    def __init__(
        self,
        n_shared: int = 0,
        n_query: int | None = None,
        n_reference: int | None = None,
        cell_id: int | None = None,
    ) -> None:
        msg = f"Query shares {n_shared} gene(s) with the reference atlas"
        if n_query is not None and n_reference is not None:
            msg = f"{msg} ({n_query} query genes, {n_reference} reference genes)"
        if cell_id is not None:
            msg = f"Cell {cell_id}: {msg}"
        super().__init__(msg)
        self.n_shared = n_shared
        self.n_query = n_query
        self.n_reference = n_reference
        self.cell_id = cell_id
