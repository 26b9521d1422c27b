import logging
import sqlite3
from typing import List, Optional

from readtrack.book import Book
from readtrack.config import settings
from readtrack.database import get_db_connection, initialize_database
from readtrack.exceptions import InvalidOperationError, ResourceNotFoundError, ValidationError
from readtrack.validators import BookValidator

logger = logging.getLogger(__name__)

# Largest value an SQLite INTEGER column can hold
SQLITE_MAX_INTEGER = 2**63 - 1


class Library:
    """Manages the book collection and its persistence."""

    def __init__(self, db_file: Optional[str] = None) -> None:
        self.db_file = db_file or settings.database_file
        initialize_database(self.db_file)  # Ensure DB and tables exist

    # ------------------------- Core operations ------------------------- #
    def create_book(self, title: Optional[str], author: Optional[str], description: Optional[str] = None) -> Book:
        """Validate and insert a new book; the database assigns the id."""
        self._validate_fields(title, author, description)
        book = Book(title=title, author=author, description=description)

        conn = get_db_connection(self.db_file)
        try:
            cursor = conn.execute(
                "INSERT INTO books (title, author, description) VALUES (?, ?, ?)",
                (book.title, book.author, book.description),
            )
            conn.commit()
            book.id = cursor.lastrowid
        except sqlite3.Error as e:
            raise InvalidOperationError(f"Could not save book: {e}") from e
        finally:
            conn.close()

        logger.info("Created book %s", book.id)
        return book

    def list_books(self) -> List[Book]:
        """List all books in the database (fresh on every call)."""
        conn = get_db_connection(self.db_file)
        try:
            rows = conn.execute("SELECT id, title, author, description FROM books ORDER BY id").fetchall()
            return [Book.from_dict(dict(row)) for row in rows]
        finally:
            conn.close()

    def get_book(self, book_id: int) -> Book:
        self._validate_id(book_id)
        book = self._find_book(book_id)
        if book is None:
            raise ResourceNotFoundError(f"Book with id {book_id} not found.")
        return book

    def update_book(
        self,
        book_id: int,
        body_id: Optional[int],
        title: Optional[str],
        author: Optional[str],
        description: Optional[str] = None,
    ) -> Book:
        """Replace title, author and description of an existing book.

        The id in the request body must repeat the path id; the mismatch is
        reported before existence is checked so a mismatched request never
        touches the stored record.
        """
        self._validate_id(book_id)
        if body_id != book_id:
            raise ValidationError(
                "Book id mismatch.",
                ["Book id in the path does not match the id in the body"],
            )
        self._validate_fields(title, author, description)
        if self._find_book(book_id) is None:
            raise ResourceNotFoundError(f"Book with id {book_id} not found.")

        book = Book(id=book_id, title=title, author=author, description=description)
        conn = get_db_connection(self.db_file)
        try:
            cursor = conn.execute(
                "UPDATE books SET title = ?, author = ?, description = ? WHERE id = ?",
                (book.title, book.author, book.description, book_id),
            )
            conn.commit()
            if cursor.rowcount != 1:
                raise InvalidOperationError(f"Book with id {book_id} could not be updated.")
        except sqlite3.Error as e:
            raise InvalidOperationError(f"Could not update book: {e}") from e
        finally:
            conn.close()

        logger.info("Updated book %s", book_id)
        return book

    def delete_book(self, book_id: int) -> int:
        """Hard-delete a book and return its id."""
        self._validate_id(book_id)
        if self._find_book(book_id) is None:
            raise ResourceNotFoundError(f"Book with id {book_id} not found.")

        conn = get_db_connection(self.db_file)
        try:
            cursor = conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
            conn.commit()
            if cursor.rowcount != 1:
                raise InvalidOperationError(f"Book with id {book_id} could not be deleted.")
        except sqlite3.Error as e:
            raise InvalidOperationError(f"Could not delete book: {e}") from e
        finally:
            conn.close()

        logger.info("Deleted book %s", book_id)
        return book_id

    def count_books(self) -> int:
        conn = get_db_connection(self.db_file)
        try:
            return conn.execute("SELECT COUNT(*) FROM books").fetchone()[0]
        finally:
            conn.close()

    # ------------------------- Utilities ------------------------- #
    def _find_book(self, book_id: int) -> Optional[Book]:
        if book_id > SQLITE_MAX_INTEGER:
            return None
        conn = get_db_connection(self.db_file)
        try:
            row = conn.execute(
                "SELECT id, title, author, description FROM books WHERE id = ?", (book_id,)
            ).fetchone()
            return Book.from_dict(dict(row)) if row else None
        finally:
            conn.close()

    @staticmethod
    def _validate_id(book_id: int) -> None:
        message = BookValidator.validate_book_id(book_id)
        if message:
            raise ValidationError("Invalid book id.", [message])

    @staticmethod
    def _validate_fields(title: Optional[str], author: Optional[str], description: Optional[str]) -> None:
        errors = BookValidator.validate_book_fields(title, author, description)
        if errors:
            raise ValidationError("Validation errors occurred.", errors)
