"""Directory database CLI commands."""

from pathlib import Path

import typer
from sqlmodel import SQLModel

from dbuserprovider.core.exceptions import ConfigurationError
from dbuserprovider.entities.user.table import UserTable

from .utils import ConfigOption, console, get_factory

db_app = typer.Typer(help="🗄️  Directory database commands")


@db_app.command("init")
def init_db(config: Path = ConfigOption) -> None:
    """Create the reference ``users`` table used by the default queries."""
    factory = get_factory(config)
    try:
        SQLModel.metadata.create_all(factory.db.engine, tables=[UserTable.__table__])
        console.print("[green]✅ Directory tables created[/green]")
    finally:
        factory.close()


@db_app.command("health")
def health(config: Path = ConfigOption) -> None:
    """Check connectivity and that the configured queries run."""
    factory = get_factory(config)
    try:
        if not factory.db.health_check():
            console.print("[red]❌ Directory is unreachable[/red]")
            raise typer.Exit(code=1)

        count = factory.validate_configuration()
        console.print(f"[green]✅ Directory healthy: {count} users[/green]")
        console.print(f"Pool: {factory.db.get_pool_status()}")
    except ConfigurationError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        factory.close()
