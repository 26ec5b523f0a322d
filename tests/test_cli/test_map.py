"""Tests for the spotcell map command."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
from click.testing import CliRunner

from spotcell.cli.main import cli


class TestMapCommand:

    def test_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["map", "--help"])
        assert result.exit_code == 0
        assert "best-correlated reference type" in result.output
        assert "--scaling" in result.output

    def test_map_success(
        self, runner: CliRunner, matrix_file: Path, reference_file: Path, tmp_path: Path,
    ) -> None:
        out_path = tmp_path / "mapping.csv"
        result = runner.invoke(cli, [
            "map", str(matrix_file), "-r", str(reference_file), "-o", str(out_path),
        ])
        assert result.exit_code == 0, result.output
        assert "Mapped 3 cells to 3 reference types" in result.output
        assert "Exported mapping" in result.output

        mapping = pd.read_csv(out_path)
        assert mapping["cell_id"].tolist() == [1, 2, 3]
        assert mapping["cell_type"].tolist() == ["Astro", "Neuron", "Oligo"]
        assert mapping["n_shared_genes"].tolist() == [4, 4, 4]

    def test_ranked_output(
        self, runner: CliRunner, matrix_file: Path, reference_file: Path, tmp_path: Path,
    ) -> None:
        out_path = tmp_path / "ranked.csv"
        result = runner.invoke(cli, [
            "map", str(matrix_file), "-r", str(reference_file), "-o", str(out_path),
            "--ranked", "--top-n", "2",
        ])
        assert result.exit_code == 0, result.output
        ranked = pd.read_csv(out_path)
        assert list(ranked.columns) == ["cell_id", "rank", "cell_type", "score"]
        assert len(ranked) == 6

    def test_scaling_none(
        self, runner: CliRunner, matrix_file: Path, reference_file: Path, tmp_path: Path,
    ) -> None:
        out_path = tmp_path / "mapping.csv"
        result = runner.invoke(cli, [
            "map", str(matrix_file), "-r", str(reference_file), "-o", str(out_path),
            "--scaling", "none",
        ])
        assert result.exit_code == 0, result.output

    def test_no_shared_genes(
        self, runner: CliRunner, reference_file: Path, tmp_path: Path,
    ) -> None:
        matrix = tmp_path / "other.csv"
        matrix.write_text("gene,1\nFoo,3\nBar,1\n")
        result = runner.invoke(cli, [
            "map", str(matrix), "-r", str(reference_file), "-o", str(tmp_path / "m.csv"),
        ])
        assert result.exit_code == 1
        assert "shares 0 gene(s)" in result.output

    def test_existing_output_refused(
        self, runner: CliRunner, matrix_file: Path, reference_file: Path, tmp_path: Path,
    ) -> None:
        out_path = tmp_path / "mapping.csv"
        out_path.write_text("old")
        result = runner.invoke(cli, [
            "map", str(matrix_file), "-r", str(reference_file), "-o", str(out_path),
        ])
        assert result.exit_code == 1
        assert "already exists" in result.output

        result = runner.invoke(cli, [
            "map", str(matrix_file), "-r", str(reference_file), "-o", str(out_path),
            "--overwrite",
        ])
        assert result.exit_code == 0, result.output

    def test_missing_parent_directory(
        self, runner: CliRunner, matrix_file: Path, reference_file: Path, tmp_path: Path,
    ) -> None:
        out_path = tmp_path / "nope" / "mapping.csv"
        result = runner.invoke(cli, [
            "map", str(matrix_file), "-r", str(reference_file), "-o", str(out_path),
        ])
        assert result.exit_code == 1

    def test_reference_required(self, runner: CliRunner, matrix_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["map", str(matrix_file), "-o", str(tmp_path / "m.csv")])
        assert result.exit_code != 0
        assert "reference" in result.output.lower()


class TestTopLevelGroup:

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "segment" in result.output
        assert "map" in result.output

    def test_verbose_flag(
        self, runner: CliRunner, matrix_file: Path, reference_file: Path, tmp_path: Path,
    ) -> None:
        out_path = tmp_path / "mapping.csv"
        result = runner.invoke(cli, [
            "-v", "map", str(matrix_file), "-r", str(reference_file), "-o", str(out_path),
        ])
        assert result.exit_code == 0, result.output
