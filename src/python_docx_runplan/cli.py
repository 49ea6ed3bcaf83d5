"""Command-line interface for python-docx-runplan.

Provides commands for extracting runs from Word documents and applying
annotation files to them from the terminal.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml

from . import __version__
from .annotations import dump_run_table, load_annotations
from .extractor import RunExtractor
from .planner import SubstitutionPlanner
from .results import RewriteEntry
from .writer import apply_rewrite_plan

app = typer.Typer(
    name="docx-runplan",
    help="Extract formatted runs from Word documents and apply run annotations.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"docx-runplan version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable debug logging.")] = False,
) -> None:
    """Extract formatted runs from Word documents and apply run annotations."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _dump(data: Any, fmt: str) -> str:
    if fmt == "yaml":
        return yaml.safe_dump(data, allow_unicode=True, sort_keys=False)
    return json.dumps(data, ensure_ascii=False, indent=2)


def _plan(
    file: Path, annotations: Path, strict: bool, honor_off_toggles: bool
) -> tuple[bytes, list[RewriteEntry]]:
    package_bytes = file.read_bytes()
    runs = RunExtractor(honor_off_toggles=honor_off_toggles).extract(package_bytes)
    plan = SubstitutionPlanner(require_full_coverage=strict).plan(
        runs, load_annotations(annotations)
    )
    return package_bytes, plan


@app.command()
def extract(
    file: Annotated[Path, typer.Argument(help="Path to the .docx file")],
    fmt: Annotated[
        str, typer.Option("--format", "-f", help="Output format: json or yaml")
    ] = "json",
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    honor_off_toggles: Annotated[
        bool,
        typer.Option("--honor-off-toggles", help="Report w:val=\"0\" style markers as off"),
    ] = False,
) -> None:
    """Print the Run Table of a document."""
    if fmt not in ("json", "yaml"):
        typer.echo(f"Error: Unsupported format: {fmt}", err=True)
        raise typer.Exit(1)

    try:
        runs = RunExtractor(honor_off_toggles=honor_off_toggles).extract(file.read_bytes())
        text = _dump(dump_run_table(runs), fmt)
        if output:
            output.write_text(text, encoding="utf-8")
            typer.echo(f"Extracted {len(runs)} runs to {output}")
        else:
            typer.echo(text)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def plan(
    file: Annotated[Path, typer.Argument(help="Path to the .docx file")],
    annotations: Annotated[Path, typer.Argument(help="Path to YAML/JSON annotations file")],
    strict: Annotated[
        bool, typer.Option("--strict", help="Require an annotation for every run")
    ] = False,
    honor_off_toggles: Annotated[
        bool,
        typer.Option("--honor-off-toggles", help="Report w:val=\"0\" style markers as off"),
    ] = False,
) -> None:
    """Print the Rewrite Plan for a document and its annotations."""
    try:
        _, entries = _plan(file, annotations, strict, honor_off_toggles)
        typer.echo(_dump([entry.to_dict() for entry in entries], "json"))
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def apply(
    file: Annotated[Path, typer.Argument(help="Path to the .docx file")],
    annotations: Annotated[Path, typer.Argument(help="Path to YAML/JSON annotations file")],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    strict: Annotated[
        bool, typer.Option("--strict", help="Require an annotation for every run")
    ] = False,
) -> None:
    """Apply an annotations file to a document."""
    try:
        package_bytes, entries = _plan(file, annotations, strict, False)
        output_path = output or file
        output_path.write_bytes(apply_rewrite_plan(package_bytes, entries))

        variables = SubstitutionPlanner.group_variables(entries)
        typer.echo(
            f"Rewrote {len(entries)} runs ({len(variables)} values), saved to {output_path}"
        )
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
