from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from . import config
from .errors import TemplateNotFound
from .models import list_generations, reset_engine
from .pipeline.ingest import load_files
from .pipeline.run import run_batch
from .pipeline.structure import GenerationOptions

app = typer.Typer(help="Generate grid-laid-out PDFs from Handlebars templates")


def _configure(out: Optional[Path], verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if out:
        config.set_out_dir(out)
        reset_engine()


@app.command()
def generate(
    data: Path = typer.Option(..., "--data", "-d", exists=True, dir_okay=False, help="YAML file with a 'files' list"),
    template: str = typer.Option(..., "--template", "-t", help="Template key"),
    output: Path = typer.Option(Path("output"), "--output", "-o", help="Output directory"),
    page_size: str = typer.Option(config.DEFAULT_PAGE_SIZE, "--page-size", help="A4, letter or legal"),
    preview: bool = typer.Option(False, "--preview", help="Also write a PNG of the first page"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    _configure(output, verbose)
    if template not in config.TEMPLATES:
        typer.echo(f"Unknown template: {template} (available: {', '.join(config.TEMPLATES)})", err=True)
        raise typer.Exit(code=2)
    if page_size not in config.PAGE_SIZES:
        typer.echo(f"Unsupported page size: {page_size}", err=True)
        raise typer.Exit(code=2)

    try:
        files = load_files(data)
        results = run_batch(
            files,
            template,
            out_dir=output,
            options=GenerationOptions(page_size=page_size),
            previews=preview,
        )
    except (ValueError, TemplateNotFound) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)

    for path in results["SUCCESS"]:
        typer.echo(f"OK: {path}")
    for name in results["FAILED"]:
        typer.echo(f"FAILED: {name}")
    typer.echo(f"SUCCESS: {len(results['SUCCESS'])}")
    typer.echo(f"FAILED: {len(results['FAILED'])}")
    if results["FAILED"]:
        raise typer.Exit(code=1)


@app.command()
def templates() -> None:
    for key, relative in config.TEMPLATES.items():
        typer.echo(f"{key}\t{relative}")


@app.command()
def history(
    output: Path = typer.Option(Path("output"), "--output", "-o", help="Output directory"),
    limit: int = typer.Option(20, "--limit", help="Number of records"),
) -> None:
    config.set_out_dir(output)
    reset_engine()
    records = list_generations(limit=limit)
    if not records:
        typer.echo("No generations recorded")
        return
    for record in records:
        detail = record.output_path if record.status == "SUCCESS" else record.error
        typer.echo(f"{record.created_at:%Y-%m-%d %H:%M:%S}\t{record.status.value}\t{record.name}\t{detail}")


if __name__ == "__main__":
    app()
