"""CLI entry point for macro."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer
from pydantic import ValidationError

from macro import __version__
from macro.alias import AliasTable
from macro.child import ChildSpawnError, ChildSupervisor
from macro.config import MacroConfig
from macro.relay import (
    FdSource,
    InputSource,
    PromptSource,
    RelayEngine,
    SourceSwitcher,
)
from macro.script import find_script

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="macro",
    help="A macro processing front-end to PROGRAM: aliases, and ENTER repeats the last command.",
    no_args_is_help=True,
    add_completion=False,
)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _interactive_source(config: MacroConfig, plain: bool) -> InputSource:
    """Line editor on a terminal, raw stdin bytes otherwise."""
    if config.relay.line_editing and not plain and sys.stdin.isatty():
        return PromptSource(
            prompt=config.relay.prompt, history_file=config.relay.history_file
        )
    return FdSource(sys.stdin.fileno(), name="stdin")


def _script_source(
    config: MacroConfig, script: Path | None, no_script: bool
) -> FdSource | None:
    if no_script:
        return None
    path = script if script is not None else find_script(config.script.search_paths)
    if path is None:
        return None
    try:
        source = FdSource.open(path)
    except OSError as e:
        typer.echo(f"macro: problem reading \"{path}\": {e.strerror or e}", err=True)
        raise typer.Exit(1) from e
    typer.echo(f'macro: reading commands from "{path}"\n')
    return source


@app.command(
    context_settings={
        "allow_interspersed_args": False,
        "ignore_unknown_options": True,
    }
)
def run(
    program: str = typer.Argument(help="Program to run behind the front-end."),
    args: list[str] | None = typer.Argument(
        None, help="Arguments passed to PROGRAM unchanged."
    ),
    no_repeat: bool = typer.Option(
        False, "--no-repeat", "-r", help="Turn off ENTER key repeats last command."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Verbose output (debugging aid)."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path (JSON)."
    ),
    script: Path | None = typer.Option(
        None, "--script", "-s", help="Initialization script to read before the terminal."
    ),
    no_script: bool = typer.Option(
        False, "--no-script", help="Do not read any initialization script."
    ),
    plain: bool = typer.Option(
        False, "--plain", help="Read raw stdin bytes instead of using the line editor."
    ),
) -> None:
    """Run PROGRAM, relaying typed lines to its standard input."""
    setup_logging(verbose)

    try:
        config = MacroConfig.load(config_file)
    except (ValidationError, ValueError) as e:
        typer.echo(f"macro: invalid configuration: {e}", err=True)
        raise typer.Exit(1) from e
    if no_repeat:
        config.relay.repeat = False

    typer.echo(f"\nmacro v{__version__}\n")
    logger.debug('program="%s"', program)

    script_source = _script_source(config, script, no_script)
    sources = SourceSwitcher(_interactive_source(config, plain), script=script_source)

    child = ChildSupervisor(program=program, args=list(args or []))
    child.add_exit_callback(lambda _child, _code: sources.interrupt())
    try:
        child.spawn()
    except ChildSpawnError as e:
        sources.close()
        typer.echo(f"macro: {e}", err=True)
        raise typer.Exit(1) from e

    engine = RelayEngine(
        child,
        sources,
        aliases=AliasTable(
            capacity=config.aliases.max_aliases,
            duplicates=config.aliases.duplicates,
        ),
        max_line_length=config.relay.max_line_length,
        repeat=config.relay.repeat,
    )

    try:
        outcome = engine.run()
        child.close()
        sources.close()
        exit_code = child.wait()
    except KeyboardInterrupt:
        typer.echo("\nmacro: interrupted, exiting...", err=True)
        child.kill()
        sources.close()
        raise typer.Exit(130)

    logger.info("Relay ended: %s (child exit code=%s)", outcome.value, exit_code)
    if not outcome.clean:
        raise typer.Exit(1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
