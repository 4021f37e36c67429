"""Typer CLI for sheet nesting."""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer

from sheetnest.application import (
    Cancelled,
    Complete,
    Error,
    Progress,
    SolveOrchestrator,
)
from sheetnest.application.config import (
    ConfigError,
    NestingJobConfig,
    job_to_parts_by_material,
    job_to_settings,
    load_job,
)
from sheetnest.cli.commands import validate_command
from sheetnest.domain import NestingError, NestingResult
from sheetnest.infrastructure import generate_cache_key

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0


app = typer.Typer(
    name="sheetnest",
    help="Nest rectangular parts onto stock sheets with guillotine cuts.",
)

# Register validate command
app.command(name="validate")(validate_command)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Nest rectangular parts onto stock sheets with guillotine cuts."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _load_job_or_exit(job_file: Path) -> NestingJobConfig:
    try:
        return load_job(job_file)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _format_result(result: NestingResult) -> str:
    """Render a per-board summary of a nesting result."""
    lines = [
        f"Boards: {result.total_boards}  "
        f"Parts placed: {result.total_parts_placed}  "
        f"Waste: {result.total_waste_percentage:.1f}%",
    ]
    for board in result.boards:
        lines.append(
            f"  Board {board.index + 1}: {board.material} "
            f"{board.stock_width:g}x{board.stock_height:g}, "
            f"{board.part_count} parts, {board.efficiency_percentage:.1f}% used"
        )
        for placed in board.placed_parts:
            rotation = " (rotated)" if placed.rotated else ""
            lines.append(
                f"    #{placed.instance_id} {placed.name} "
                f"{placed.placed_width:g}x{placed.placed_height:g} "
                f"at ({placed.x:g}, {placed.y:g}){rotation}"
            )
    return "\n".join(lines)


def _report_issues(result: NestingResult) -> None:
    for warning in result.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    for item in result.unplaceable:
        typer.echo(
            f"Unplaceable: {item.count} x {item.name} "
            f"({item.width:g}x{item.height:g}, {item.material})",
            err=True,
        )


@app.command()
def solve(
    job_file: Annotated[
        Path,
        typer.Argument(help="Path to the JSON job file"),
    ],
    timeout: Annotated[
        float,
        typer.Option("--timeout", "-t", min=0.1, help="Cancel the solve after this many seconds"),
    ] = DEFAULT_TIMEOUT,
    output_file: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the result as JSON to this file"),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress progress and layout output"),
    ] = False,
) -> None:
    """Nest the parts of a job file onto stock sheets.

    Exit codes:
        0 - All parts were nested
        1 - The job could not be loaded, or the solve failed or was cancelled
        2 - The solve finished with warnings or unplaceable parts

    Examples:
        sheetnest solve kitchen.json
        sheetnest solve kitchen.json --output layout.json --quiet
    """
    job = _load_job_or_exit(job_file)
    parts_by_material = job_to_parts_by_material(job)
    settings = job_to_settings(job)
    logger.debug(
        "Loaded %s: %d part types across %d materials",
        job_file,
        len(job.parts),
        len(parts_by_material),
    )

    with SolveOrchestrator() as orchestrator:
        try:
            handle = orchestrator.solve(parts_by_material, settings)
        except NestingError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1)

        for event in handle.events(timeout=timeout):
            if isinstance(event, Progress) and not quiet:
                typer.echo(f"[{event.percentage:5.1f}%] {event.message}")

    outcome = handle.outcome
    if isinstance(outcome, Cancelled):
        typer.echo(f"Cancelled: {outcome.reason}", err=True)
        raise typer.Exit(code=1)
    if isinstance(outcome, Error):
        typer.echo(f"Error: {outcome.user_message}", err=True)
        raise typer.Exit(code=1)
    assert isinstance(outcome, Complete)

    result = outcome.result
    if not quiet:
        typer.echo(_format_result(result))

    if output_file is not None:
        try:
            output_file.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            typer.echo(f"Error: could not write {output_file}: {e}", err=True)
            raise typer.Exit(code=1)
        if not quiet:
            typer.echo(f"Result written to {output_file}")

    _report_issues(result)
    if result.has_issues:
        raise typer.Exit(code=2)


@app.command()
def key(
    job_file: Annotated[
        Path,
        typer.Argument(help="Path to the JSON job file"),
    ],
) -> None:
    """Print the cache key of a job.

    Jobs that differ only in prices or currencies share a key.
    """
    job = _load_job_or_exit(job_file)
    typer.echo(generate_cache_key(job_to_parts_by_material(job), job_to_settings(job)))


if __name__ == "__main__":
    app()
