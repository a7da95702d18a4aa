"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdplantuml.config import PlantumlOptions, load_config
from mdplantuml.core.pipeline import run_render, run_url


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> PlantumlOptions:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def render_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file or directory to render")],
    out: Annotated[str, typer.Option("--out-dir", help="Directory for rendered documents")] = "dist",
    to: Annotated[str, typer.Option("--to", help="Document output: html or md")] = "html",
    output_dir: Annotated[Optional[str], typer.Option("--output-dir", help="Directory for diagram files")] = None,
    output_format: Annotated[Optional[str], typer.Option("--output-format", help="png or svg")] = None,
    include_path: Annotated[Optional[str], typer.Option("--include-path", help="Base directory for !include")] = None,
    url_prefix: Annotated[Optional[str], typer.Option("--url-prefix", help="Public URL prefix for diagrams")] = None,
    base_url: Annotated[Optional[str], typer.Option("--base-url", help="PlantUML server root")] = None,
    inline_image: Annotated[bool, typer.Option("--inline-image", help="Link to the server, write nothing")] = False,
    inline_svg: Annotated[bool, typer.Option("--inline-svg", help="Embed SVG markup (svg only)")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log each diagram")] = False,
    ):
    """Render plantuml fences in PATH and write the documents to --out-dir."""
    _configure_logging(verbose)
    settings = _settings(overrides={
        "output_dir": output_dir, "output_format": output_format,
        "include_path": include_path, "url_prefix": url_prefix, "base_url": base_url,
        "inline_image": inline_image or None, "inline_svg": inline_svg or None,
    })
    out_dir = Path(out)
    try:
        results = run_render(path, settings, out_dir, to)
    except (ValueError, RuntimeError) as e:
        _fail(str(e))
    if not results:
        typer.echo(f"No .md/.mdx files found under {path}.")
        raise typer.Exit(1)
    for src, dest in results:
        typer.echo(f"  {src} -> {dest}")
    typer.echo(f"Rendered {len(results)} document(s) to {out_dir}/")


def url_cmd(
    path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help=".puml file")],
    output_format: Annotated[Optional[str], typer.Option("--output-format", help="png or svg")] = None,
    base_url: Annotated[Optional[str], typer.Option("--base-url", help="PlantUML server root")] = None,
    ):
    """Print the server URL for a PlantUML file, with its includes expanded."""
    settings = _settings(overrides={"output_format": output_format, "base_url": base_url})
    try:
        typer.echo(run_url(path, settings))
    except (OSError, UnicodeDecodeError) as e:
        _fail(f"Cannot read {path}", e)
