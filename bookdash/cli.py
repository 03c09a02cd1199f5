import subprocess
import sys
from typing import Optional

import httpx
import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from bookdash import database
from bookdash.api import configure_logging
from bookdash.client.auth_state import AuthStateProvider
from bookdash.client.services import AuthService, BookService, DashboardService, create_http_client, items_of
from bookdash.client.token_store import TokenStore
from bookdash.config import settings
from bookdash.services.identity_seeder import IdentitySeeder

APP_NAME = "BookDash CLI"

console = Console()

app = typer.Typer(help=APP_NAME)


def get_http_client() -> httpx.Client:
    return create_http_client()


def get_token_store() -> TokenStore:
    return TokenStore()


def _authenticated_client() -> httpx.Client:
    """HTTP client carrying the stored bearer token, if there is one."""
    http = get_http_client()
    AuthStateProvider(get_token_store(), http).get_principal()
    return http


@app.callback()
def _global_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Global CLI options."""
    if verbose:
        settings.log_level = "DEBUG"
    configure_logging()


@app.command("init-db")
def init_db():
    """Create the database tables."""
    database.initialize_database()
    console.print(f"[green]Database ready at {escape(database.DATABASE_FILE)}[/]")


@app.command()
def seed():
    """Create the default roles and the SuperAdmin account."""
    database.initialize_database()
    IdentitySeeder().seed()
    console.print(f"[green]Roles {', '.join(settings.default_roles)} and user {settings.superadmin_email} are in place.[/]")


@app.command()
def serve(
    host: str = typer.Option(settings.api_host, help="Interface to bind."),
    port: int = typer.Option(settings.api_port, help="Port to listen on."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
):
    """Run the REST API with uvicorn."""
    console.print(f"Starting BookDash API on http://{host}:{port}")
    command = [sys.executable, "-m", "uvicorn", "bookdash.api:app", "--host", host, "--port", str(port)]
    if reload:
        command.append("--reload")
    subprocess.run(command)


@app.command()
def login(
    username: str = typer.Argument(..., help="User name or email."),
    password: str = typer.Option(..., prompt=True, hide_input=True),
):
    """Log in and remember the access token."""
    http = get_http_client()
    result = AuthService(http, get_token_store()).login(username, password)
    if not result.success:
        console.print(f"[bold red]Login failed:[/] {escape(result.message or 'unknown error')}")
        raise typer.Exit(code=1)
    roles = ", ".join(result.data.get("roles") or []) or "none"
    console.print(f"[green]Logged in as {escape(result.data['username'])}[/] (roles: {escape(roles)})")


@app.command()
def logout():
    """Forget the stored access token."""
    AuthService(get_http_client(), get_token_store()).logout()
    console.print("Logged out.")


@app.command()
def whoami():
    """Show the user behind the stored token."""
    principal = AuthStateProvider(get_token_store()).get_principal()
    if not principal.is_authenticated:
        console.print("Not logged in.")
        return
    body = (
        f"Name: {escape(principal.name or '-')}\n"
        f"User id: {escape(principal.user_id or '-')}\n"
        f"Roles: {escape(', '.join(principal.roles) or '-')}"
    )
    console.print(Panel(body, title="Current user", expand=False))


@app.command()
def books(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter by title, author or genre."),
    page: int = typer.Option(1, "--page", "-p"),
    page_size: int = typer.Option(10, "--page-size"),
    sort: str = typer.Option("title:asc", help="title|publishYear|bookId with :asc or :desc."),
):
    """List books from the API."""
    result = BookService(_authenticated_client()).get_paged(page, page_size, search, sort)
    if not result.success:
        console.print(f"[bold red]Could not load books:[/] {escape(result.message or 'unknown error')}")
        raise typer.Exit(code=1)

    items = items_of(result)
    if not items:
        console.print("No books found.")
        return

    table = Table(title=f"Books (page {result.data.get('page')}/{max(result.data.get('totalPages') or 1, 1)})",
                  box=box.SIMPLE)
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Genre")
    table.add_column("Year", justify="right")
    for book in items:
        table.add_row(
            str(book.get("bookId")),
            escape(book.get("title") or ""),
            escape(book.get("authorName") or ""),
            escape(book.get("genreName") or ""),
            str(book.get("publishYear") or ""),
        )
    console.print(table)


@app.command()
def dashboard():
    """Show catalog totals."""
    result = DashboardService(_authenticated_client()).get_counts()
    if not result.success:
        console.print(f"[bold red]Could not load dashboard:[/] {escape(result.message or 'unknown error')}")
        raise typer.Exit(code=1)

    table = Table(title="Dashboard", box=box.SIMPLE)
    table.add_column("Entity")
    table.add_column("Count", justify="right")
    for name, count in result.data.items():
        table.add_row(name.capitalize(), str(count))
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
