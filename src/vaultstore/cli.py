"""CLI for vaultstore."""

import logging
import os
import shlex
import sys
from pathlib import Path
from typing import NoReturn, Optional, Tuple

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .blob_operator import BlobOperator
from .config import VaultConfig, load_config
from .constants import (
    ENV_ACCOUNT_NAME,
    ENV_CONNECTION_STRING,
    ENV_CONTAINER_NAME,
    ENV_LOG_FILE,
    LOG_FILE,
)
from .errors import ConfigError, VaultError
from .logs import configure_logging
from .models import CreateOutcome
from .provisioner import Provisioner
from .storage import make_blob_store, make_resource_provider, resolve_target
from .utils import format_timestamp, humanize_size


app = typer.Typer(
    help="""\
Provision a storage account and blob container, then upload, download,
list and delete blobs in it. Every action is appended to a log file.""",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def _default_log_file() -> Path:
    return Path(os.environ.get(ENV_LOG_FILE) or LOG_FILE)


def _fail(logger: logging.Logger, error: Exception) -> NoReturn:
    """Log the error with a timestamp and exit 1."""
    logger.error(f"ERROR: {error}")
    raise typer.Exit(1)


def _load(ctx: typer.Context) -> Tuple[VaultConfig, logging.Logger]:
    """Load configuration and point logging at the configured log file.

    Raises:
        typer.Exit: If the configuration is invalid
    """
    opts = ctx.obj or {}
    verbose = opts.get("verbose", False)
    log_file = _default_log_file()
    logger = configure_logging(log_file, verbose, console=err_console)

    try:
        config = load_config(opts.get("config_path"))
    except ConfigError as e:
        _fail(logger, e)

    if Path(config.log_file) != log_file:
        logger = configure_logging(Path(config.log_file), verbose, console=err_console)
    return config, logger


def _operator(config: VaultConfig, logger: logging.Logger) -> BlobOperator:
    try:
        store = make_blob_store(config)
    except VaultError as e:
        _fail(logger, e)
    return BlobOperator(store, log=logger)


@app.callback()
def cli(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file (default: ./vaultstore.yaml if present)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug details"),
):
    ctx.obj = {"config_path": config_path, "verbose": verbose}


@app.command()
def provision(
    ctx: typer.Context,
    export: bool = typer.Option(
        False, "--export", help="Print shell export lines for the blob commands"
    ),
):
    """Create the resource group, storage account and container if absent."""
    config, logger = _load(ctx)

    try:
        provider = make_resource_provider(config)
        result = Provisioner(config, provider, log=logger).provision()
    except VaultError as e:
        _fail(logger, e)

    for step, outcome in result.outcomes.items():
        label = step.replace("_", " ")
        if outcome is CreateOutcome.CREATED:
            console.print(f"[green]✓[/green] Created {label}")
        else:
            console.print(f"[dim]•[/dim] {label.capitalize()} already exists")
    console.print(f"[dim]Storage account: {result.account.name}[/dim]")
    console.print(f"[dim]Container: {escape(result.container.name)}[/dim]")

    if export:
        typer.echo(f"export {ENV_ACCOUNT_NAME}={shlex.quote(result.account.name)}")
        typer.echo(f"export {ENV_CONTAINER_NAME}={shlex.quote(result.container.name)}")
        typer.echo(f"export {ENV_CONNECTION_STRING}={shlex.quote(result.credential)}")


@app.command()
def upload(
    ctx: typer.Context,
    local_file: Path = typer.Argument(..., help="Local file to upload"),
    blob_name: Optional[str] = typer.Argument(None, help="Blob name (default: file name)"),
    overwrite: bool = typer.Option(
        True, "--overwrite/--no-overwrite", help="Replace an existing blob"
    ),
):
    """Upload a local file as a blob."""
    config, logger = _load(ctx)
    operator = _operator(config, logger)

    try:
        info = operator.upload(local_file, blob_name, overwrite=overwrite)
    except VaultError as e:
        _fail(logger, e)

    console.print(
        f"[green]✓[/green] Uploaded {escape(str(local_file))} → "
        f"{escape(operator.container)}/{escape(info.name)} ({humanize_size(info.size)})"
    )


@app.command()
def download(
    ctx: typer.Context,
    blob_name: str = typer.Argument(..., help="Blob to download"),
    local_file: Optional[Path] = typer.Argument(None, help="Destination (default: blob basename)"),
):
    """Download a blob to a local file."""
    config, logger = _load(ctx)
    operator = _operator(config, logger)

    try:
        dest = operator.download(blob_name, local_file)
    except VaultError as e:
        _fail(logger, e)

    console.print(f"[green]✓[/green] Downloaded {escape(blob_name)} → {escape(str(dest))}")


@app.command("list")
def list_blobs(ctx: typer.Context):
    """List blobs in the container."""
    config, logger = _load(ctx)
    operator = _operator(config, logger)

    table = Table(title=f"Files in {escape(operator.container)}")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Last Modified")

    try:
        for info in operator.list():
            table.add_row(escape(info.name), humanize_size(info.size), format_timestamp(info.last_modified))
    except VaultError as e:
        _fail(logger, e)

    if table.row_count == 0:
        console.print("No files found.")
    else:
        console.print(table)


@app.command()
def delete(
    ctx: typer.Context,
    blob_name: str = typer.Argument(..., help="Blob to delete"),
):
    """Delete a blob; succeeds even if it does not exist."""
    config, logger = _load(ctx)
    operator = _operator(config, logger)

    try:
        removed = operator.delete(blob_name)
    except VaultError as e:
        _fail(logger, e)

    if removed:
        console.print(f"[green]✓[/green] Deleted {escape(blob_name)}")
    else:
        console.print(f"[yellow]⚠[/yellow] {escape(blob_name)} did not exist, nothing deleted")


@app.command("show-config")
def show_config(ctx: typer.Context):
    """Show the resolved configuration (credential masked)."""
    config, logger = _load(ctx)

    data = config.display_dict()
    try:
        target = resolve_target(config)
        data["target"] = target.model_dump()
    except ConfigError:
        data["target"] = None
    typer.echo(yaml.safe_dump(data, sort_keys=False).rstrip())


def main() -> None:
    """Console entry point; usage errors exit with status 1."""
    try:
        code = app(standalone_mode=False)
    except typer.TyperException as e:
        # Missing, extra or unknown arguments and options
        logger = configure_logging(_default_log_file(), console=err_console)
        ctx = getattr(e, "ctx", None)
        command = ctx.info_name if ctx is not None else "vaultstore"
        logger.error(f"ERROR: Invalid usage for {command}: {e.format_message()}")
        if ctx is not None:
            typer.echo(ctx.get_usage(), err=True)
        sys.exit(1)
    except typer.Abort:
        sys.exit(1)
    sys.exit(code or 0)
