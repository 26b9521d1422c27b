from __future__ import annotations


class Book:
    """Represents a single book record in the collection."""

    def __init__(self, title: str, author: str, description: str | None = None, id: int | None = None) -> None:
        self.id = id
        self.title = (title or "").strip()
        self.author = (author or "").strip()
        # Blank descriptions are stored as NULL
        self.description = (description or "").strip() or None

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (#{self.id})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match over title, author and description."""
        needle = query.lower()
        return any(
            needle in (value or "").lower()
            for value in (self.title, self.author, self.description)
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "description": self.description,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            id=data.get("id"),
            title=data["title"],
            author=data["author"],
            description=data.get("description"),
        )
