"""Unit tests for the sheetnest CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sheetnest.application.config import job_to_parts_by_material, job_to_settings, load_job
from sheetnest.cli.main import app
from sheetnest.infrastructure import generate_cache_key


runner = CliRunner()


def _write_job(tmp_path: Path, parts: list[dict], settings: dict | None = None, name: str = "job.json") -> Path:
    path = tmp_path / name
    path.write_text(
        json.dumps(
            {
                "version": "1.0",
                "settings": settings
                or {
                    "kerf_width": 3.0,
                    "stock_materials": {
                        "Plywood_18mm": {"width": 2440, "height": 1220, "thickness": 18, "price": 45}
                    },
                },
                "parts": parts,
            }
        )
    )
    return path


SHELVES = [
    {"name": "Shelf", "width": 600, "height": 400, "thickness": 18, "material": "Plywood_18mm", "quantity": 4},
    {
        "name": "Rail",
        "width": 1200,
        "height": 100,
        "thickness": 18,
        "material": "Plywood_18mm",
        "grain_direction": "length",
        "quantity": 2,
    },
]

BEAM = {"name": "Beam", "width": 3000, "height": 100, "thickness": 18, "material": "Plywood_18mm"}


@pytest.fixture
def job_file(tmp_path: Path) -> Path:
    return _write_job(tmp_path, SHELVES)


class TestHelp:
    """Tests for CLI help output."""

    def test_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("solve", "key", "validate"):
            assert command in result.output

    def test_solve_help_shows_options(self) -> None:
        result = runner.invoke(app, ["solve", "--help"])
        assert result.exit_code == 0
        assert "--timeout" in result.output
        assert "--output" in result.output


class TestSolveCommand:
    """Tests for `sheetnest solve`."""

    def test_clean_solve(self, job_file: Path) -> None:
        result = runner.invoke(app, ["solve", str(job_file)])
        assert result.exit_code == 0
        assert "Starting optimization..." in result.output
        assert "Nesting optimization complete!" in result.output
        assert "Boards: 1" in result.output
        assert "Parts placed: 6" in result.output

    def test_quiet_solve(self, job_file: Path) -> None:
        result = runner.invoke(app, ["solve", str(job_file), "--quiet"])
        assert result.exit_code == 0
        assert "Starting optimization" not in result.output
        assert "Boards:" not in result.output

    def test_writes_json_output(self, job_file: Path, tmp_path: Path) -> None:
        output = tmp_path / "layout.json"
        result = runner.invoke(app, ["solve", str(job_file), "-q", "--output", str(output)])
        assert result.exit_code == 0
        data = json.loads(output.read_text())
        assert data["summary"]["total_boards"] == 1
        assert data["summary"]["total_parts_placed"] == 6
        assert len(data["boards"][0]["parts"]) == 6

    def test_unplaceable_exits_2(self, tmp_path: Path) -> None:
        job = _write_job(tmp_path, SHELVES + [BEAM])
        result = runner.invoke(app, ["solve", str(job), "-q"])
        assert result.exit_code == 2
        assert "Unplaceable: 1 x Beam" in result.output

    def test_missing_stock_exits_2(self, tmp_path: Path) -> None:
        job = _write_job(
            tmp_path,
            [dict(SHELVES[0], material="Oak")],
            settings={"default_stock": None},
        )
        result = runner.invoke(app, ["solve", str(job), "-q"])
        assert result.exit_code == 2
        assert "No stock sheet defined for material 'Oak'" in result.output

    def test_missing_file_exits_1(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["solve", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "Job file not found" in result.output

    def test_verbose_flag(self, job_file: Path) -> None:
        result = runner.invoke(app, ["--verbose", "solve", str(job_file), "-q"])
        assert result.exit_code == 0


class TestKeyCommand:
    """Tests for `sheetnest key`."""

    def test_prints_cache_key(self, job_file: Path) -> None:
        result = runner.invoke(app, ["key", str(job_file)])
        assert result.exit_code == 0
        job = load_job(job_file)
        expected = generate_cache_key(job_to_parts_by_material(job), job_to_settings(job))
        assert result.output.strip() == expected

    def test_price_does_not_change_key(self, tmp_path: Path) -> None:
        cheap = _write_job(tmp_path, SHELVES, name="cheap.json")
        dear = _write_job(
            tmp_path,
            SHELVES,
            settings={
                "kerf_width": 3.0,
                "stock_materials": {
                    "Plywood_18mm": {
                        "width": 2440,
                        "height": 1220,
                        "thickness": 18,
                        "price": 90,
                        "currency": "USD",
                    }
                },
            },
            name="dear.json",
        )
        first = runner.invoke(app, ["key", str(cheap)])
        second = runner.invoke(app, ["key", str(dear)])
        assert first.output == second.output


class TestValidateCommand:
    """Tests for `sheetnest validate`."""

    def test_valid_job(self, job_file: Path) -> None:
        result = runner.invoke(app, ["validate", str(job_file)])
        assert result.exit_code == 0
        assert "2 part type(s), 6 part(s)" in result.output
        assert "Validation passed" in result.output

    def test_invalid_job(self, tmp_path: Path) -> None:
        job = _write_job(tmp_path, [dict(SHELVES[0], width=-5)])
        result = runner.invoke(app, ["validate", str(job)])
        assert result.exit_code == 1
        assert "parts[0].width" in result.output
        assert "Validation failed." in result.output

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Invalid JSON syntax" in result.output

    def test_non_utf8_file_exits_1(self, tmp_path: Path) -> None:
        path = tmp_path / "latin1.json"
        path.write_bytes(b'{"parts": [{"name": "T\xe4fer"}]}')
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "not valid UTF-8" in result.output

    def test_oversized_part_warns(self, tmp_path: Path) -> None:
        job = _write_job(tmp_path, SHELVES + [BEAM])
        result = runner.invoke(app, ["validate", str(job)])
        assert result.exit_code == 2
        assert "parts[2]: 'Beam' (3000x100) does not fit a 2440x1220 sheet" in result.output

    def test_missing_stock_warns(self, tmp_path: Path) -> None:
        job = _write_job(
            tmp_path,
            [dict(SHELVES[0], material="Oak")],
            settings={"default_stock": None},
        )
        result = runner.invoke(app, ["validate", str(job)])
        assert result.exit_code == 2
        assert "no stock sheet defined for 'Oak'" in result.output
