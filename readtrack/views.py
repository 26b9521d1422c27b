import json
import os
from typing import List, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from readtrack.book import Book
from readtrack.store import BookFormData, Toast
from readtrack.validators import BookValidator

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "READTRACK_OUTPUT"
OUTPUT_MODES = {"plain", "json", "rich"}

TOAST_ICONS = {"success": "✓", "error": "✕", "info": "ℹ"}
TOAST_STYLES = {"success": "green", "error": "red", "info": "blue"}


def _console() -> Console:
    return Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in OUTPUT_MODES:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


# ------------------------- List / detail ------------------------- #
def print_book_list(books: List[Book], query: str = "") -> None:
    """Print the book list in the current output mode.
    - plain: 'ID - Title by Author' lines
    - json: JSON array of records
    - rich: Rich table
    """
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
        return

    if not books:
        if query.strip():
            print(f"No books match '{query.strip()}'.")
        else:
            print("No books yet. Add your first book with 'readtrack add'.")
        return

    if mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Description", style="dim")
        for b in books:
            table.add_row(str(b.id), escape(b.title), escape(b.author), escape(b.description or ""))
        _console().print(table)
    else:
        for b in books:
            print(f"{b.id} - {b.title} by {b.author}")


def print_book_detail(book: Book) -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        content = (
            f"[bold]Author:[/] {escape(book.author)}\n\n"
            f"{escape(book.description or 'No description provided.')}"
        )
        _console().print(Panel.fit(content, title=f"📖 {escape(book.title)}", subtitle=f"#{book.id}", border_style="blue"))
    else:
        print(f"ID: {book.id}")
        print(f"Title: {book.title}")
        print(f"Author: {book.author}")
        print(f"Description: {book.description or '-'}")


# ------------------------- Feedback ------------------------- #
def print_toast(toast: Toast) -> None:
    """Render a transient notification once."""
    if not toast.is_visible:
        return
    mode = get_output_mode()
    icon = TOAST_ICONS.get(toast.type, "")

    if mode == "json":
        print(json.dumps({"toast": toast.type, "message": toast.message}, ensure_ascii=False))
    elif mode == "rich":
        style = TOAST_STYLES.get(toast.type, "white")
        _console().print(f"[bold {style}]{icon}[/] {escape(toast.message)}")
    else:
        print(f"{icon} {toast.message}")


def print_error(message: str, errors: Optional[List[str]] = None, retry_hint: bool = False) -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps({"error": message, "errors": errors or []}, ensure_ascii=False))
        return

    print(f"Error: {message}")
    for error in errors or []:
        print(f"  - {error}")
    if retry_hint:
        print("Run the command again to retry.")


def print_loading(message: str = "Loading books...") -> None:
    if get_output_mode() == "rich":
        _console().print(f"[dim]📚 {message}[/]")


# ------------------------- Form / modal ------------------------- #
def prompt_book_form(
    initial: Optional[Book] = None,
    title: Optional[str] = None,
    author: Optional[str] = None,
    description: Optional[str] = None,
) -> Tuple[BookFormData, List[str]]:
    """Collect form fields, prompting for the ones not given on the command line.

    Returns the cleaned form data and the field errors; nothing should be
    submitted while the error list is non-empty.
    """
    if title is None:
        title = Prompt.ask("Title", default=initial.title if initial else None)
    if author is None:
        author = Prompt.ask("Author", default=initial.author if initial else None)
    if description is None:
        description = Prompt.ask(
            "Description (optional)",
            default=(initial.description or "") if initial else "",
            show_default=False,
        )

    data = BookFormData(
        title=(title or "").strip(),
        author=(author or "").strip(),
        description=(description or "").strip() or None,
    )
    return data, BookValidator.validate_book_fields(data.title, data.author, data.description)


def confirm_delete(book: Book) -> bool:
    return Confirm.ask(f"Are you sure you want to delete \"{book.title}\"? This action cannot be undone.")
