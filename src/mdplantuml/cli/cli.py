"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdplantuml.cli.commands import render_cmd, url_cmd


app = typer.Typer(name="mdplantuml", no_args_is_help=True, help="Render PlantUML code blocks in markdown")

app.command(name="render")(render_cmd)
app.command(name="url")(url_cmd)
