"""Shared helpers for CLI commands."""

from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console

from dbuserprovider.factory import DBUserStorageProviderFactory
from dbuserprovider.runtime.app_startup import configure_logging
from dbuserprovider.runtime.config.config_template import load_templated_yaml

console = Console()

ConfigOption = typer.Option(
    Path("config.yaml"), "--config", "-c", help="Path to the provider config.yaml"
)


@dataclass(frozen=True)
class CliRealm:
    """Realm handle used for commands run outside a host."""

    id: str


def get_factory(config_path: Path) -> DBUserStorageProviderFactory:
    """Load configuration and build a provider factory, exiting on bad config."""
    try:
        config = load_templated_yaml(config_path)
    except FileNotFoundError as e:
        console.print(f"[red]❌ Config file not found: {config_path}[/red]")
        raise typer.Exit(code=1) from e
    except ValueError as e:
        console.print(f"[red]❌ Invalid configuration: {e}[/red]")
        raise typer.Exit(code=1) from e

    configure_logging(config.logging)
    return DBUserStorageProviderFactory(config)
