"""spotcell segment — assign spots to cells and optionally map cell types."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click

from spotcell.cli.utils import console, error_handler, make_progress
from spotcell.io.tables import CELLS_FILENAME, EXPRESSION_FILENAME, MAPPING_FILENAME, SPOTS_FILENAME
from spotcell.segment.base_labeler import SUPPORTED_METHODS, SegmentationParams

_DEFAULTS = SegmentationParams()


def _build_params(params_file: str | None, overrides: dict[str, Any]) -> SegmentationParams:
    """Defaults, then the JSON params file, then command-line options."""
    from spotcell.core.exceptions import ConfigurationError

    data = _DEFAULTS.to_dict()
    if params_file is not None:
        try:
            loaded = json.loads(Path(params_file).read_text())
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError("params", f"cannot read {params_file}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigurationError("params", "params file must contain a JSON object")
        data.update(loaded)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return SegmentationParams.from_dict(data)


@click.command()
@click.argument("spots", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o", "--output", required=True, type=click.Path(file_okay=False),
    help="Output directory for spots.csv, expression.csv, cells.csv and mapping.csv.",
)
@click.option("--params", "params_file", type=click.Path(exists=True, dir_okay=False),
              default=None, help="JSON parameter file. Command-line options override it.")
@click.option("--nx", type=int, default=None, help=f"Grid width. [default: {_DEFAULTS.nx}]")
@click.option("--ny", type=int, default=None, help=f"Grid height. [default: {_DEFAULTS.ny}]")
@click.option("--max-value", type=float, default=None,
              help=f"Grid value ceiling before normalization. [default: {_DEFAULTS.max_value}]")
@click.option("--sigma", type=float, default=None,
              help=f"Gaussian blur spread in pixels. [default: {_DEFAULTS.sigma}]")
@click.option("--threshold-radius", type=int, default=None,
              help=f"Local threshold disc radius in pixels. [default: {_DEFAULTS.threshold_radius}]")
@click.option("--threshold-offset", type=float, default=None,
              help=f"Local threshold offset. [default: {_DEFAULTS.threshold_offset}]")
@click.option("--method", type=click.Choice(sorted(SUPPORTED_METHODS)), default=None,
              help=f"Region labeler. [default: {_DEFAULTS.method}]")
@click.option("--tolerance", type=float, default=None,
              help=f"Watershed merge tolerance. [default: {_DEFAULTS.tolerance}]")
@click.option("--extension", type=int, default=None,
              help=f"Watershed seed extension radius. [default: {_DEFAULTS.extension}]")
@click.option("--min-size", type=int, default=None,
              help=f"Minimum region size in pixels. [default: {_DEFAULTS.min_size}]")
@click.option("--scale", type=float, default=None,
              help=f"Coordinate scale factor for centroids and areas. [default: {_DEFAULTS.scale}]")
@click.option("--extent", type=float, nargs=4, default=None,
              metavar="XMIN XMAX YMIN YMAX",
              help="Grid extent. Defaults to one extent over all spots, anchored at the origin.")
@click.option("--experiment", default=None,
              help="Experiment tag for spots without an experiment column.")
@click.option("--reference", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Reference atlas (genes x cell types) to map cells against.")
@click.option("--scaling", type=click.Choice(["total", "gene", "none"]), default="total",
              show_default=True, help="Query scaling before correlation.")
@click.option("--top-n", type=int, default=None, help="Ranked alternatives to keep per cell.")
@click.option("--strict", is_flag=True, help="Fail if an experiment ends with zero cells.")
@click.option("--overwrite", is_flag=True, help="Overwrite existing output files.")
@error_handler
def segment(
    spots: str,
    output: str,
    params_file: str | None,
    nx: int | None,
    ny: int | None,
    max_value: float | None,
    sigma: float | None,
    threshold_radius: int | None,
    threshold_offset: float | None,
    method: str | None,
    tolerance: float | None,
    extension: int | None,
    min_size: int | None,
    scale: float | None,
    extent: tuple[float, float, float, float] | None,
    experiment: str | None,
    reference: str | None,
    scaling: str,
    top_n: int | None,
    strict: bool,
    overwrite: bool,
) -> None:
    """Assign spots to cells and build the expression matrix."""
    from spotcell.core.exceptions import MappingGeneMismatchError
    from spotcell.io.tables import read_reference, read_spots, write_mapping, write_outputs
    from spotcell.mapping import ReferenceAtlas, ReferenceMapper, results_to_frame
    from spotcell.segment import SegmentationEngine

    out_dir = Path(output).expanduser()
    names = [SPOTS_FILENAME, EXPRESSION_FILENAME, CELLS_FILENAME]
    if reference is not None:
        names.append(MAPPING_FILENAME)
    existing = [n for n in names if (out_dir / n).exists()]
    if existing and not overwrite:
        console.print(
            f"[red]Error:[/red] Output files already exist in {out_dir}: {', '.join(existing)}\n"
            "Use --overwrite to replace them."
        )
        raise SystemExit(1)

    params = _build_params(params_file, {
        "nx": nx, "ny": ny, "max_value": max_value, "sigma": sigma,
        "threshold_radius": threshold_radius, "threshold_offset": threshold_offset,
        "method": method, "tolerance": tolerance, "extension": extension,
        "min_size": min_size, "scale": scale,
        "extent": tuple(extent) if extent else None,
    })

    # Fail on a bad atlas before segmenting.
    mapper = None
    if reference is not None:
        atlas = ReferenceAtlas(read_reference(Path(reference)))
        mapper = ReferenceMapper(atlas, scaling=scaling, top_n=top_n)

    spot_table = read_spots(Path(spots))
    engine = SegmentationEngine()

    with make_progress() as progress:
        task = progress.add_task("Segmenting...", total=None)

        def on_progress(current: int, total: int, name: str) -> None:
            progress.update(
                task, total=total, completed=current,
                description=f"Segmenting {name}",
            )

        result = engine.run(
            spot_table,
            params=params,
            experiment=experiment,
            progress_callback=on_progress,
            strict=strict,
        )

    write_outputs(out_dir, result.spots, result.expression, result.cells)

    # Summary
    console.print()
    console.print("[green]Segmentation complete[/green]")
    console.print(f"  Total cells found: {result.cell_count}")
    console.print(f"  Spots assigned: {result.assigned_spots} of {len(result.spots)}")
    console.print(f"  Elapsed: {result.elapsed_seconds:.1f}s")
    console.print(f"  Outputs written to {out_dir}")

    if result.warnings:
        console.print()
        console.print(f"[yellow]Warnings ({len(result.warnings)}):[/yellow]")
        for w in result.warnings:
            console.print(f"  [dim]- {w}[/dim]")

    if mapper is None:
        return

    stale = out_dir / MAPPING_FILENAME
    try:
        with console.status("[bold blue]Mapping cell types..."):
            mapping = results_to_frame(mapper.map_matrix(result.expression))
    except MappingGeneMismatchError as e:
        # A mapping from an earlier run no longer matches these cells.
        if stale.exists():
            stale.unlink()
        console.print()
        console.print(f"[red]Error:[/red] {e}")
        console.print(
            f"  Segmentation outputs kept in {out_dir}; no {MAPPING_FILENAME} written."
        )
        raise SystemExit(1)

    write_mapping(out_dir, mapping)
    console.print(f"  Cell types mapped: {len(mapping)}")
