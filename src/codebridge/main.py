"""Main CLI entry point for CodeBridge."""

import asyncio
import logging
import signal
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console

from .analysis import ExpansionCoordinator, ExpansionResult, Strategy
from .backends import LocalLanguageHost
from .config import Config, ConfigError
from .patterns import is_ignored
from .workspace import Workspace


@click.group()
def cli():
    """CodeBridge - Bundle related project files into LLM-ready context."""
    pass


@cli.command()
@click.argument("seeds", nargs=-1, required=True, type=click.Path())
@click.option(
    "--workspace",
    "-w",
    "workspaces",
    multiple=True,
    type=click.Path(exists=True, file_okay=False),
    help="Workspace folder (repeatable, defaults to the current directory)",
)
@click.option(
    "--strategy",
    "-s",
    type=click.Choice([s.value for s in Strategy]),
    help="Expansion strategy (overrides configuration)",
)
@click.option("--max-files", "-n", type=click.IntRange(min=0), help="Related file cap, 0 = unlimited")
@click.option("--exclude", "-x", "excludes", multiple=True, help="Extra exclusion pattern (repeatable)")
@click.option("--config", "-c", "config_file", type=click.Path(exists=True, dir_okay=False), help="YAML settings file")
@click.option("--timeout", type=click.FloatRange(min=0), help="Per-provider timeout in seconds, 0 disables")
@click.option("--json", "as_json", is_flag=True, help="Print the expansion result as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def expand(seeds, workspaces, strategy, max_files, excludes, config_file, timeout, as_json, verbose):
    """Expand files or directories into their related-file neighborhood.

    Examples:
        # Files linked from a README (shallow, default)
        codebridge expand README.md

        # Follow imports and symbol references, up to 20 files
        codebridge expand src/app.ts -s deep -n 20 -x "**/*.test.ts"
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s %(asctime)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = _load_config(config_file, strategy, max_files, excludes, timeout)
    except (ConfigError, ValidationError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    workspace = Workspace(workspaces or [Path.cwd()])
    host = LocalLanguageHost(workspace, config.exclude_patterns, config.max_file_size)
    coordinator = ExpansionCoordinator.from_config(config, workspace, host)

    console = Console(stderr=True)
    with console.status("Analyzing context...") as status:
        result, interrupted = asyncio.run(
            run_expansion(coordinator, seeds, on_progress=lambda msg: status.update(msg))
        )

    if interrupted:
        click.echo("Interrupted: showing the files found so far", err=True)
    for seed in result.unresolved_seeds:
        click.echo(f"Warning: could not resolve {seed}", err=True)

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return

    for ref in result.all_refs:
        click.echo(ref)
    if result.summary_log:
        click.echo(f"> {result.summary_log}")


async def run_expansion(
    coordinator: ExpansionCoordinator, seeds, on_progress=None
) -> tuple[ExpansionResult, bool]:
    """Run an expansion that Ctrl-C stops early instead of aborting.

    Returns:
        The result, partial when interrupted, and whether SIGINT arrived.
    """
    interrupted = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, interrupted.set)
        handled = True
    except (NotImplementedError, RuntimeError, ValueError):
        # Loop cannot take signal handlers here; Ctrl-C aborts as usual
        handled = False

    try:
        result = await coordinator.expand(seeds, cancel_event=interrupted, on_progress=on_progress)
    finally:
        if handled:
            loop.remove_signal_handler(signal.SIGINT)
    return result, interrupted.is_set()


@cli.command("check-path")
@click.argument("relative_path")
@click.option("--exclude", "-x", "excludes", multiple=True, required=True, help="Exclusion pattern (repeatable)")
def check_path(relative_path: str, excludes):
    """Report whether a workspace-relative path is excluded."""
    if is_ignored(relative_path, list(excludes)):
        click.echo(f"excluded: {relative_path}")
    else:
        click.echo(f"included: {relative_path}")


def _load_config(config_file, strategy, max_files, excludes, timeout) -> Config:
    """Settings file, then environment, then command-line flags."""
    base = Config.from_file(Path(config_file)) if config_file else None
    config = Config.from_env(base)

    overrides = {}
    if strategy is not None:
        overrides["strategy"] = Strategy(strategy)
    if max_files is not None:
        overrides["max_files"] = max_files
    if excludes:
        overrides["excludes"] = [*config.excludes, *excludes]
    if timeout is not None:
        overrides["provider_timeout"] = timeout or None
    return config.model_copy(update=overrides)


if __name__ == "__main__":
    cli()
