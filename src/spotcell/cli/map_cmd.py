"""spotcell map — map an expression matrix against a reference atlas."""

from __future__ import annotations

from pathlib import Path

import click

from spotcell.cli.utils import check_output_file, console, error_handler


@click.command("map")
@click.argument("matrix", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-r", "--reference", required=True, type=click.Path(exists=True, dir_okay=False),
    help="Reference atlas CSV (genes x cell types).",
)
@click.option("-o", "--output", required=True, type=click.Path(), help="Output CSV path.")
@click.option("--scaling", type=click.Choice(["total", "gene", "none"]), default="total",
              show_default=True, help="Query scaling before correlation.")
@click.option("--top-n", type=int, default=None, help="Ranked alternatives to keep per cell.")
@click.option("--min-shared-genes", type=int, default=2, show_default=True,
              help="Minimum number of genes shared with the reference.")
@click.option("--ranked", is_flag=True, help="Write one row per (cell, rank) instead of one per cell.")
@click.option("--overwrite", is_flag=True, help="Overwrite output file if it exists.")
@error_handler
def map_cmd(
    matrix: str,
    reference: str,
    output: str,
    scaling: str,
    top_n: int | None,
    min_shared_genes: int,
    ranked: bool,
    overwrite: bool,
) -> None:
    """Assign each cell of MATRIX to its best-correlated reference type."""
    from spotcell.io.tables import read_matrix, read_reference
    from spotcell.mapping import ReferenceAtlas, ReferenceMapper, ranked_to_frame, results_to_frame

    out_path = Path(output).expanduser()
    check_output_file(out_path, overwrite)

    atlas = ReferenceAtlas(read_reference(Path(reference)))
    mapper = ReferenceMapper(
        atlas, scaling=scaling, top_n=top_n, min_shared_genes=min_shared_genes,
    )
    expression = read_matrix(Path(matrix))

    with console.status("[bold blue]Mapping cell types..."):
        results = mapper.map_matrix(expression)

    frame = ranked_to_frame(results) if ranked else results_to_frame(results)
    frame.to_csv(out_path, index=False)

    console.print(f"[green]Mapped {len(results)} cells to {len(atlas)} reference types[/green]")
    if results:
        counts = frame.drop_duplicates("cell_id")["cell_type"].value_counts()
        for cell_type, n in counts.items():
            console.print(f"  {cell_type}: {n}")
    console.print(f"[green]Exported mapping to {out_path}[/green]")
