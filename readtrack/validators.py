from typing import Any, List, Optional

TITLE_MAX_LENGTH = 200
AUTHOR_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000


class BookValidator:
    """Field rules for book records, shared by the API and the CLI form."""

    @staticmethod
    def _clean(text: Optional[str]) -> str:
        if text is None:
            return ""
        return text.strip()

    @staticmethod
    def validate_title(title: Optional[str]) -> Optional[str]:
        t = BookValidator._clean(title)
        if not t:
            return "Title is required"
        if len(t) > TITLE_MAX_LENGTH:
            return f"Title must be between 1 and {TITLE_MAX_LENGTH} characters"
        return None

    @staticmethod
    def validate_author(author: Optional[str]) -> Optional[str]:
        t = BookValidator._clean(author)
        if not t:
            return "Author is required"
        if len(t) > AUTHOR_MAX_LENGTH:
            return f"Author name must be between 1 and {AUTHOR_MAX_LENGTH} characters"
        return None

    @staticmethod
    def validate_description(description: Optional[str]) -> Optional[str]:
        if len(BookValidator._clean(description)) > DESCRIPTION_MAX_LENGTH:
            return f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
        return None

    @staticmethod
    def validate_book_fields(title: Optional[str], author: Optional[str], description: Optional[str] = None) -> List[str]:
        """Return the list of field-level messages; empty means valid."""
        checks = (
            BookValidator.validate_title(title),
            BookValidator.validate_author(author),
            BookValidator.validate_description(description),
        )
        return [message for message in checks if message]

    @staticmethod
    def validate_book_id(book_id: Any) -> Optional[str]:
        # bool is an int subclass; reject it explicitly
        if isinstance(book_id, bool) or not isinstance(book_id, int) or book_id <= 0:
            return "Book id must be a positive integer"
        return None
