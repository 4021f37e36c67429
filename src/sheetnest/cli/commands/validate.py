"""Validate command for checking nesting job files.

This module provides the `validate` command that checks a JSON job file for
errors, and for advisories that would show up as warnings or unplaceable
parts when the job is solved.
"""

from pathlib import Path
from typing import Annotated

import typer

from sheetnest.application.config import (
    ConfigError,
    NestingJobConfig,
    job_to_settings,
    load_job,
)
from sheetnest.domain import Part
from sheetnest.infrastructure import GuillotineSheetPacker


def job_advisories(job: NestingJobConfig) -> list[str]:
    """Collect advisories for a valid job.

    Reports materials without a stock sheet and parts that are larger than
    their sheet in every orientation they may take.

    Args:
        job: Validated job file.

    Returns:
        Advisory messages, empty if the job should nest cleanly.
    """
    settings = job_to_settings(job)
    packer = GuillotineSheetPacker(
        kerf_width=settings.kerf_width, allow_rotation=settings.allow_rotation
    )
    advisories: list[str] = []
    reported: set[str] = set()

    for index, entry in enumerate(job.parts):
        stock = settings.stock_for(entry.material)
        if stock is None:
            if entry.material not in reported:
                reported.add(entry.material)
                advisories.append(
                    f"parts[{index}].material: no stock sheet defined for '{entry.material}'"
                )
            continue

        part = Part(
            name=entry.name,
            width=entry.width,
            height=entry.height,
            thickness=entry.thickness,
            material=entry.material,
            grain_direction=entry.grain_direction,
        )
        if not packer.fits_sheet(part, stock):
            advisories.append(
                f"parts[{index}]: '{entry.name}' ({entry.width:g}x{entry.height:g}) "
                f"does not fit a {stock.width:g}x{stock.height:g} sheet"
            )
    return advisories


def _display_load_error(error: ConfigError) -> None:
    """Display a job file loading error.

    Args:
        error: The ConfigError to display
    """
    typer.echo("Errors:", err=True)
    if error.error_type == "file_not_found":
        typer.echo(f"  File not found: {error.path}", err=True)
    elif error.error_type == "json_parse":
        typer.echo("  Invalid JSON syntax", err=True)
        for detail in error.details:
            line = detail.get("line", "?")
            column = detail.get("column", "?")
            message = detail.get("message", "Unknown error")
            typer.echo(f"    Line {line}, Column {column}: {message}", err=True)
    elif error.error_type == "validation":
        for detail in error.details:
            path = detail.get("path", "unknown")
            message = detail.get("message", "Unknown error")
            value = detail.get("value")
            typer.echo(f"  {path}: {message}", err=True)
            if value is not None and not isinstance(value, (dict, list)):
                typer.echo(f"    Value: {value!r}", err=True)
    else:
        typer.echo(f"  {error.message}", err=True)

    typer.echo()
    typer.echo("Validation failed.", err=True)


def validate_command(
    job_file: Annotated[
        Path,
        typer.Argument(help="Path to the JSON job file to validate"),
    ],
) -> None:
    """Validate a nesting job file.

    Checks the job file for:
    - JSON syntax errors
    - Schema validation errors (missing fields, non-positive sizes, etc.)
    - Advisories (materials without stock, parts larger than their sheet)

    Exit codes:
        0 - Job is valid with no advisories
        1 - Job has errors (cannot be solved)
        2 - Job is valid but has advisories

    Example:
        sheetnest validate kitchen.json
    """
    typer.echo(f"Validating {job_file}...")
    typer.echo()

    try:
        job = load_job(job_file)
    except ConfigError as e:
        _display_load_error(e)
        raise typer.Exit(code=1)

    advisories = job_advisories(job)
    total = sum(entry.quantity for entry in job.parts)
    typer.echo(f"{len(job.parts)} part type(s), {total} part(s)")

    if advisories:
        typer.echo()
        typer.echo("Warnings:")
        for advisory in advisories:
            typer.echo(f"  {advisory}")
        typer.echo()
        typer.echo(f"Validation passed with {len(advisories)} warning(s)")
        raise typer.Exit(code=2)

    typer.echo("Validation passed. Job file is valid.")
