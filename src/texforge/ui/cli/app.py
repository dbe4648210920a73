"""Typer application wiring for the texforge CLI."""

from __future__ import annotations

from rich.traceback import Traceback
import typer

from texforge.version import get_version

from .commands import build, clear, config, graphics
from .state import debug_enabled, emit_error, get_cli_state


app = typer.Typer(
    help="Build LaTeX documents, rerunning the tools until their output settles.",
    context_settings={"help_option_names": ["--help"]},
    no_args_is_help=True,
)


app.command()(build)
app.command()(clear)
app.command()(graphics)
app.command()(config)


@app.command()
def version() -> None:
    """Print the installed texforge version."""
    typer.echo(get_version())


def main() -> None:
    """Entry point compatible with console scripts."""
    try:
        app()
    except typer.Exit:
        raise
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Operation cancelled by user.", exception=exc)
        raise typer.Exit(code=1) from exc
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - last resort reporting
        state = get_cli_state()
        if state.show_tracebacks:
            tb = Traceback.from_exception(
                type(exc),
                exc,
                exc.__traceback__,
                show_locals=state.verbosity >= 2,
            )
            state.err_console.print(tb)
        else:
            emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["app", "main"]
