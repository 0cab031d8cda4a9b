"""CLI entrypoint: Typer app definition, logging setup, and command registration"""

import logging
from typing import Annotated, Optional

import typer

from mdstage.cli.commands import add_cmd, check_cmd, cleanup_cmd, update_cmd


class EchoHandler(logging.Handler):
    """Route log records through typer.echo; warnings and errors go to stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            typer.echo(self.format(record), err=record.levelno >= logging.WARNING)
        except Exception:
            self.handleError(record)


def configure_logging(verbose: bool = False) -> None:
    handler = EchoHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    log = logging.getLogger("mdstage")
    log.handlers = [handler]
    log.setLevel(logging.DEBUG if verbose else logging.INFO)


app = typer.Typer(name="mdstage", no_args_is_help=True, help="Stage Markdown drafts into a static blog")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log per-file detail")] = False,
    root: Annotated[Optional[str], typer.Option("--root", help="Blog repository root (or set MDSTAGE_ROOT_DIR)")] = None,
    ):
    configure_logging(verbose)
    ctx.obj = {"root": root}


app.command(name="add")(add_cmd)
app.command(name="update")(update_cmd)
app.command(name="check")(check_cmd)
app.command(name="cleanup")(cleanup_cmd)
