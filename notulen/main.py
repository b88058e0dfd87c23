from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from . import config
from .models import reset_engine
from .pipeline.export import ExportError, run_export, save_export
from .pipeline.ingest import ingest_units, ingest_users, load_meeting_record, store_logo
from .pipeline.reference import DatabaseReferenceSource
from .pipeline.render_preview import render_previews

app = typer.Typer(help="Meeting minutes (notulen) PDF exporter")


def _use_out_dir(out: Optional[Path]) -> None:
    if out:
        config.set_out_dir(out)
        reset_engine()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress")) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def export(
    record: Path = typer.Argument(..., help="Meeting record JSON"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    preview: bool = typer.Option(False, "--preview", help="Also render PNG previews of each form"),
) -> None:
    _use_out_dir(out)
    try:
        meeting = load_meeting_record(record)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)
    try:
        result = run_export(meeting, DatabaseReferenceSource())
    except ExportError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    path = save_export(meeting, result)
    typer.echo(f"Saved {path} ({result.page_count} pages)")
    if preview:
        for png in render_previews(path, [0, result.attendance_page]):
            typer.echo(f"Preview {png}")


@app.command("import-reference")
def import_reference(
    units: Optional[Path] = typer.Option(None, "--units", help="CSV with id,name"),
    users: Optional[Path] = typer.Option(None, "--users", help="CSV with id,name,unit_id"),
    logo: Optional[Path] = typer.Option(None, "--logo", help="Institution logo image"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
) -> None:
    _use_out_dir(out)
    if not (units or users or logo):
        typer.echo("Nothing to import")
        return
    try:
        if units:
            typer.echo(f"Imported {len(ingest_units(units))} units")
        if users:
            typer.echo(f"Imported {len(ingest_users(users))} users")
        if logo:
            store_logo(logo)
            typer.echo("Stored logo")
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)


if __name__ == "__main__":
    app()
