# hashmark/cli/cli.py
"""
Main hashmark CLI.

Commands:
    hashmark run     Fingerprint files (once, or continuously with --watch)
    hashmark show    Print the manifest
    hashmark check   Verify fingerprinted files exist for every manifest entry
"""

from __future__ import annotations

import typer

from hashmark import __version__
from hashmark.cli.commands import check, run, show

app = typer.Typer(
    help="hashmark - content-fingerprinted asset copies with a JSON manifest",
    no_args_is_help=True,
)

app.command("run")(run.command)
app.command("show")(show.command)
app.command("check")(check.command)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"hashmark {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    pass
