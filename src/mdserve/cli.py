"""Command line interface using Typer."""

import asyncio
import contextlib
import json
from pathlib import Path
from typing import Any, Literal

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from mdserve import __version__
from mdserve.auth import AuthConfigError, load_auth_config
from mdserve.config import (
    CONFIG_DEFAULTS,
    ConfigFileError,
    LoadedConfig,
    Settings,
    cli_options_to_config,
    find_default_config,
    load_config_file,
    merge_configs,
    settings_from_config,
)
from mdserve.logging import configure_logging

app = typer.Typer(
    name="mdserve",
    help="HTTP server for rendering Markdown files, with optional live reload",
    add_completion=False,
)

console = Console(stderr=True)

STARTER_CONFIG: dict[str, Any] = {
    **CONFIG_DEFAULTS,
    "watch": True,
}

YAML_AUTH_EXAMPLE = """\
# Uncomment to require Google sign-in:
# authProvider: GOOGLE
# authConfig:
#   clientId: ${GOOGLE_CLIENT_ID}
#   clientSecret: ${GOOGLE_CLIENT_SECRET}
#   allowedDomains:
#     - example.com
"""


def _print_config_error(error: ConfigFileError) -> None:
    location = f" (line {error.line})" if error.line else ""
    console.print(f"[red]✗[/red] {error}{location}")
    if error.hint:
        console.print(f"  [dim]Hint: {error.hint}[/dim]")


def _report_validation(loaded: LoadedConfig) -> None:
    for issue in loaded.validation.errors:
        location = f" (line {issue.line})" if issue.line else ""
        console.print(f"[red]✗[/red] {issue.field}: {issue.message}{location}")
        if issue.hint:
            console.print(f"  [dim]Hint: {issue.hint}[/dim]")
    for warning in loaded.validation.warnings:
        console.print(f"[yellow]![/yellow] {warning.field}: {warning.message}")
    for message in loaded.env_warnings:
        console.print(f"[yellow]![/yellow] {message}")


def _load_optional_config(config_path: Path | None) -> dict[str, Any]:
    path = config_path or find_default_config(Path.cwd())
    if path is None:
        return {}

    try:
        loaded = load_config_file(path)
    except ConfigFileError as e:
        _print_config_error(e)
        raise typer.Exit(code=1) from e

    if not loaded.validation.valid or loaded.validation.warnings or loaded.env_warnings:
        _report_validation(loaded)
    if not loaded.validation.valid:
        raise typer.Exit(code=1)
    return loaded.config


def build_settings(
    directory: Path | None,
    port: int | None,
    host: str,
    verbose: bool,
    watch: bool,
    watch_debounce: int | None,
    auth: bool,
    auth_config: Path | None,
    config: Path | None,
) -> Settings:
    """Merge defaults, config file and CLI options into Settings.

    Raises:
        typer.Exit: If the config is invalid or the directory is unusable.
    """
    file_config = _load_optional_config(config)
    cli_config = cli_options_to_config(
        directory=str(directory) if directory is not None else None,
        port=port,
        verbose=True if verbose else None,
        watch=True if watch else None,
        watch_debounce=watch_debounce,
        auth=True if auth else None,
    )
    merged = merge_configs(CONFIG_DEFAULTS, file_config, cli_config)

    overrides: dict[str, Any] = {"host": host}
    try:
        if auth_config is not None:
            overrides["auth_config"] = load_auth_config(auth_config, Path.cwd())
        settings = settings_from_config(merged, **overrides)
    except (AuthConfigError, ValidationError) as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    if settings.auth_provider is not None and settings.auth_config is None:
        console.print("[red]✗[/red] Authentication requires authConfig or --auth-config")
        raise typer.Exit(code=1)

    if not settings.root.is_dir():
        console.print(f"[red]✗[/red] Not a directory: {settings.root}")
        raise typer.Exit(code=1)

    return settings


@app.command()
def serve(
    directory: Path | None = typer.Argument(
        None,
        help="Directory to serve (defaults to the current directory)",
    ),
    port: int | None = typer.Option(
        None, "--port", "-p", min=1, max=65535, help="Port to listen on"
    ),
    host: str = typer.Option("127.0.0.1", "--host", help="Address to bind"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    watch: bool = typer.Option(
        False, "--watch", "-w", help="Enable live reload when Markdown files change"
    ),
    watch_debounce: int | None = typer.Option(
        None, "--watch-debounce", min=0, help="Debounce delay for file changes in milliseconds"
    ),
    auth: bool = typer.Option(False, "--auth", help="Require Google sign-in"),
    auth_config: Path | None = typer.Option(
        None, "--auth-config", help="JSON file with Google OAuth settings"
    ),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Config file (JSON or YAML)"
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Log JSON lines"),
) -> None:
    """Start the Markdown server."""
    settings = build_settings(
        directory, port, host, verbose, watch, watch_debounce, auth, auth_config, config
    )
    configure_logging(verbose=settings.verbose, json_logs=json_logs)

    console.print(f"\n[bold]mdserve[/bold] {__version__} running at:")
    console.print(f"  Local:   http://{settings.host}:{settings.port}")
    console.print(f"  Serving: {settings.root}")
    if settings.watch:
        console.print(f"  Live reload: on ({settings.watch_debounce}ms debounce)")
    if settings.auth_enabled:
        console.print("  Auth: Google sign-in required")
    console.print("\nPress Ctrl+C to stop\n")

    from mdserve.server import serve as run_server

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run_server(settings))


@app.command()
def init(
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Config file to write"
    ),
    fmt: str = typer.Option("yaml", "--format", "-f", help="yaml or json"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write a starter config file."""
    if fmt not in ("yaml", "json"):
        console.print(f"[red]✗[/red] Unknown format: {fmt} (use yaml or json)")
        raise typer.Exit(code=2)
    file_format: Literal["yaml", "json"] = "yaml" if fmt == "yaml" else "json"

    path = output or Path(f"mdserve.{file_format}")
    if path.exists() and not force:
        console.print(f"[red]✗[/red] {path} already exists (use --force to overwrite)")
        raise typer.Exit(code=1)

    path.write_text(render_starter_config(file_format), encoding="utf-8")
    console.print(f"[green]✓[/green] Wrote {path}")


def render_starter_config(fmt: Literal["yaml", "json"]) -> str:
    """Starter config text in the given format."""
    if fmt == "json":
        return json.dumps(STARTER_CONFIG, indent=2) + "\n"
    body = yaml.safe_dump(STARTER_CONFIG, sort_keys=False)
    return "# mdserve configuration\n" + body + YAML_AUTH_EXAMPLE


@app.command()
def validate(
    config: Path | None = typer.Argument(
        None, help="Config file to check (defaults to mdserve.yaml/.yml/.json)"
    ),
) -> None:
    """Check a config file and report problems."""
    path = config or find_default_config(Path.cwd())
    if path is None:
        console.print("[red]✗[/red] No config file found")
        console.print("  [dim]Hint: run 'mdserve init' to create one[/dim]")
        raise typer.Exit(code=1)

    try:
        loaded = load_config_file(path)
    except ConfigFileError as e:
        _print_config_error(e)
        raise typer.Exit(code=1) from e

    _report_validation(loaded)
    if not loaded.validation.valid:
        console.print(f"\n{path}: {len(loaded.validation.errors)} error(s)")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] {path} is valid")


@app.callback()
def main() -> None:
    """Markdown HTTP server."""
