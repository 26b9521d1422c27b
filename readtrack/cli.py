import os
import subprocess
import sys
import webbrowser
from dataclasses import dataclass
from typing import Any, NoReturn, Optional

import typer
from readtrack.auth import AuthenticationRequired, AuthSession
from readtrack.book import Book
from readtrack.cli_config import CLIConfig
from readtrack.client import ApiClientError, BookApiClient
from readtrack.config import settings
from readtrack.store import BookStore
from readtrack.views import (
    confirm_delete,
    print_book_detail,
    print_book_list,
    print_error,
    print_loading,
    print_toast,
    prompt_book_form,
    set_output_mode,
)

APP_NAME = "ReadTrack"

app = typer.Typer(help="ReadTrack - personal book tracker")


@dataclass
class AppContext:
    config: CLIConfig
    session: AuthSession
    store: BookStore


def make_client(base_url: str, api_key: Optional[str], timeout: float) -> BookApiClient:
    return BookApiClient(base_url=base_url, api_key=api_key, timeout=timeout)


def _render_toast(store: BookStore) -> None:
    """Store listener: show a toast once, then dismiss it."""
    if store.toast.is_visible:
        print_toast(store.toast)
        store.hide_toast()


@app.callback()
def _global_options(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Base URL of the ReadTrack API"),
):
    """Global options for the CLI (output mode, API location)."""
    config = CLIConfig()
    set_output_mode(output or config.get("preferences.output") or "plain")

    session = AuthSession(config)
    base_url = api_url or config.get("api_settings.base_url") or settings.api_url
    timeout = float(config.get("api_settings.timeout") or settings.request_timeout)
    client = make_client(base_url, session.token, timeout)
    ctx.call_on_close(client.close)

    store = BookStore(client)
    store.subscribe(_render_toast)
    ctx.obj = AppContext(config=config, session=session, store=store)


# ------------------------- Helpers ------------------------- #
def _data_view(ctx: typer.Context) -> AppContext:
    """Return the context, or exit with status 1 when the auth gate blocks data views."""
    app_ctx: AppContext = ctx.obj
    try:
        app_ctx.session.require()
    except AuthenticationRequired as e:
        print(str(e))
        raise typer.Exit(code=1)
    return app_ctx


def _fetch(store: BookStore) -> None:
    print_loading()
    try:
        store.fetch_books()
    except ApiClientError as e:
        print_error(e.message, retry_hint=True)
        raise typer.Exit(code=1)


def _find_local(store: BookStore, book_id: int) -> Book:
    book = store.get_book(book_id)
    if book is None:
        print(f"Book with id {book_id} not found.")
        raise typer.Exit(code=1)
    return book


def _report_failure(store: BookStore, error: ApiClientError) -> NoReturn:
    store.show_toast(error.message, "error")
    for message in error.errors:
        print(f"  - {message}")
    raise typer.Exit(code=1)


def _check_form(errors) -> None:
    if errors:
        print_error("Please fix the errors below.", errors)
        raise typer.Exit(code=1)


# ------------------------- Commands ------------------------- #
@app.command("list")
def cli_list(
    ctx: typer.Context,
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter by title, author or description"),
):
    """List all books, optionally filtered."""
    store = _data_view(ctx).store
    _fetch(store)
    store.set_search_query(search or "")
    print_book_list(store.filtered_books(), store.search_query)


@app.command("show")
def cli_show(ctx: typer.Context, book_id: int):
    """Show the details of a book."""
    store = _data_view(ctx).store
    _fetch(store)
    print_book_detail(_find_local(store, book_id))


@app.command("add")
def cli_add(
    ctx: typer.Context,
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
):
    """Add a new book."""
    store = _data_view(ctx).store

    data, errors = prompt_book_form(title=title, author=author, description=description)
    _check_form(errors)

    print_loading("Saving book...")
    try:
        book = store.add_book(data)
    except ApiClientError as e:
        _report_failure(store, e)
    store.show_toast(f"Book added successfully! (id {book.id})")


@app.command("edit")
def cli_edit(
    ctx: typer.Context,
    book_id: int,
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
):
    """Edit an existing book."""
    store = _data_view(ctx).store
    _fetch(store)
    book = _find_local(store, book_id)

    data, errors = prompt_book_form(initial=book, title=title, author=author, description=description)
    _check_form(errors)

    print_loading("Saving book...")
    try:
        store.update_book(book_id, data)
    except ApiClientError as e:
        _report_failure(store, e)
    store.show_toast("Book updated successfully!")


@app.command("delete")
def cli_delete(
    ctx: typer.Context,
    book_id: int,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Delete a book after confirmation."""
    app_ctx = _data_view(ctx)
    store = app_ctx.store
    _fetch(store)
    book = _find_local(store, book_id)

    needs_confirmation = not yes and app_ctx.config.get("ui_settings.confirm_deletions", True)
    if needs_confirmation and not confirm_delete(book):
        print("Deletion cancelled.")
        return

    try:
        store.delete_book(book_id)
    except ApiClientError as e:
        _report_failure(store, e)
    store.show_toast(f"Book \"{book.title}\" deleted successfully!")


@app.command("login")
def cli_login(
    ctx: typer.Context,
    token: Optional[str] = typer.Option(None, "--token", help="Access token issued by the identity provider"),
):
    """Log in through the identity provider and store the access token."""
    session: AuthSession = ctx.obj.session
    if token is None:
        if session.open_login_page():
            print("Complete the login in your browser.")
        token = typer.prompt("Paste the access token", hide_input=True)
    try:
        session.login(token)
    except ValueError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)
    print("Logged in.")


@app.command("logout")
def cli_logout(ctx: typer.Context):
    """Forget the stored access token."""
    ctx.obj.session.logout()
    print("Logged out.")


@app.command("config")
def cli_config(
    ctx: typer.Context,
    action: str = typer.Argument(..., help="Action: show, get, set, reset"),
    key: Optional[str] = typer.Argument(None, help="Config key (dot notation)"),
    value: Optional[str] = typer.Argument(None, help="Config value"),
):
    """Manage CLI configuration and preferences."""
    config: CLIConfig = ctx.obj.config
    if action == "show":
        config.show_config()

    elif action == "get":
        if not key:
            print("Error: 'get' requires a key")
            raise typer.Exit(code=1)
        result = config.get(key)
        if result is not None:
            print(f"{key}: {result}")
        else:
            print(f"Key '{key}' not found")
            raise typer.Exit(code=1)

    elif action == "set":
        if not key or value is None:
            print("Error: 'set' requires both a key and a value")
            raise typer.Exit(code=1)
        # Convert string values to the matching types
        parsed_value: Any = value
        if value.lower() in ("true", "false"):
            parsed_value = value.lower() == "true"
        elif value.isdigit():
            parsed_value = int(value)
        config.set(key, parsed_value)
        print(f"{key} set to {parsed_value}")

    elif action == "reset":
        config.reset_to_default()
        print("Configuration reset to default values")

    else:
        print(f"Unknown action: {action}")
        print("Available actions: show, get, set, reset")
        raise typer.Exit(code=1)


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
    open_docs: bool = typer.Option(False, "--open", help="Open the API docs in a browser"),
):
    """Start the API server with Uvicorn."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    url = f"http://{host}:{port}/"
    print(f"Starting {APP_NAME} API on {url}")
    if open_docs:
        try:
            webbrowser.open(f"{url}docs")
        except webbrowser.Error:
            print("Could not open a web browser automatically.")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "--factory", "readtrack.api:create_app",
        "--host", host,
        "--port", str(port),
    ]
    try:
        subprocess.run(args, check=False, env=os.environ.copy())
    except KeyboardInterrupt:
        print("Server stopped.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
