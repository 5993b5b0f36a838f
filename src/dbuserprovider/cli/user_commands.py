"""Directory user CLI commands, run through the provider as the host would."""

from pathlib import Path

import typer
from rich.prompt import Confirm
from rich.table import Table

from dbuserprovider.core.exceptions import ConstraintViolation, RepositoryError
from dbuserprovider.core.models.host import CredentialInput
from dbuserprovider.core.storage.federated_storage import InMemoryFederatedStorage

from .utils import CliRealm, ConfigOption, console, get_factory

users_app = typer.Typer(help="Manage users in the external directory")

RealmOption = typer.Option("master", "--realm", "-r", help="Realm name used in logs and ids")


@users_app.command("list")
def list_users(
    search: str | None = typer.Option(None, "--search", "-s", help="Username or email search term"),
    first: int = typer.Option(0, "--first", help="Index of the first user to show"),
    limit: int = typer.Option(100, "--limit", "-l", help="Maximum number of users to show (0 = all)"),
    realm: str = RealmOption,
    config: Path = ConfigOption,
) -> None:
    """List directory users."""
    factory = get_factory(config)
    provider = factory.create(InMemoryFederatedStorage())
    realm_ctx = CliRealm(realm)

    try:
        users = provider.search_for_user(realm_ctx, search, first, limit)
        total = provider.get_users_count(realm_ctx, search)
    except RepositoryError as e:
        console.print(f"[red]❌ Failed to list users: {e}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        factory.close()

    if not users:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(title="Directory users")
    table.add_column("ID", style="cyan")
    table.add_column("Username", style="green")
    table.add_column("Email", style="blue")
    table.add_column("First Name", style="magenta")
    table.add_column("Last Name", style="magenta")

    for user in users:
        table.add_row(
            user.external_id,
            user.username or "",
            user.email or "",
            user.first_name or "",
            user.last_name or "",
        )

    console.print(table)
    console.print(f"\n[green]Showing {len(users)} of {total} users[/green]")


@users_app.command("add")
def add_user(
    username: str = typer.Argument(..., help="Username for the new user"),
    password: str | None = typer.Option(None, "--password", "-p", help="Initial password"),
    realm: str = RealmOption,
    config: Path = ConfigOption,
) -> None:
    """Add a user to the directory."""
    factory = get_factory(config)
    provider = factory.create(InMemoryFederatedStorage())
    realm_ctx = CliRealm(realm)

    try:
        user = provider.add_user(realm_ctx, username)
        if password and not provider.update_credential(
            realm_ctx, user, CredentialInput.password(password)
        ):
            # A user is only created together with its initial password
            provider.repository.remove_user(user.external_id)
            console.print(
                f"[red]❌ Password rejected for '{username}'; user was not created[/red]"
            )
            raise typer.Exit(code=1)
    except ConstraintViolation as e:
        console.print(f"[red]❌ User '{username}' already exists[/red]")
        raise typer.Exit(code=1) from e
    except RepositoryError as e:
        console.print(f"[red]❌ Failed to create user: {e}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        factory.close()

    console.print(f"[green]✅ Created user '{username}' with id {user.external_id}[/green]")


@users_app.command("set-password")
def set_password(
    username: str = typer.Argument(..., help="Username to set the password for"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, help="New password"),
    realm: str = RealmOption,
    config: Path = ConfigOption,
) -> None:
    """Hash and store a new password for a user."""
    factory = get_factory(config)
    provider = factory.create(InMemoryFederatedStorage())
    realm_ctx = CliRealm(realm)

    try:
        user = provider.get_user_by_username(realm_ctx, username)
        if user is None:
            console.print(f"[red]❌ User '{username}' not found[/red]")
            raise typer.Exit(code=1)
        updated = provider.update_credential(realm_ctx, user, CredentialInput.password(password))
    except RepositoryError as e:
        console.print(f"[red]❌ Failed to update password: {e}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        factory.close()

    if not updated:
        console.print(f"[red]❌ Password for '{username}' was not updated[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✅ Password updated for '{username}'[/green]")


@users_app.command("remove")
def remove_user(
    username: str = typer.Argument(..., help="Username to remove"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
    realm: str = RealmOption,
    config: Path = ConfigOption,
) -> None:
    """Remove a user from the directory."""
    factory = get_factory(config)
    provider = factory.create(InMemoryFederatedStorage())
    realm_ctx = CliRealm(realm)

    try:
        user = provider.get_user_by_username(realm_ctx, username)
        if user is None:
            console.print(f"[red]❌ User '{username}' not found[/red]")
            raise typer.Exit(code=1)

        if not force and not Confirm.ask(f"Are you sure you want to delete user '{username}'?"):
            console.print("[yellow]Deletion cancelled[/yellow]")
            return

        removed = provider.remove_user(realm_ctx, user)
    except RepositoryError as e:
        console.print(f"[red]❌ Failed to remove user: {e}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        factory.close()

    if not removed:
        console.print(f"[red]❌ User '{username}' was not removed[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✅ Removed user '{username}'[/green]")
