import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from readtrack.book import Book
from readtrack.client import ApiClientError, BookApiClient, ErrorKind

logger = logging.getLogger(__name__)

Listener = Callable[["BookStore"], None]

TOAST_TYPES = ("success", "error", "info")


@dataclass
class BookFormData:
    title: str
    author: str
    description: Optional[str] = None


@dataclass
class Toast:
    message: str = ""
    type: str = "info"
    is_visible: bool = False


class BookStore:
    """Local mirror of the server's book collection plus UI feedback state.

    Network operations share one pattern: set ``loading`` and clear
    ``error``, perform the call, then either patch the local slice from the
    server response or record the error message and re-raise so the caller
    can react. Nothing is retried.
    """

    def __init__(self, client: BookApiClient) -> None:
        self.client = client
        self.books: List[Book] = []
        self.loading = False
        self.error: Optional[str] = None
        self.error_kind: Optional[ErrorKind] = None
        self.search_query = ""
        self.toast = Toast()
        self._listeners: List[Listener] = []

    # ------------------------- Subscriptions ------------------------- #
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes) -> None:
        for name, value in changes.items():
            setattr(self, name, value)
        for listener in list(self._listeners):
            listener(self)

    # ------------------------- Network actions ------------------------- #
    def fetch_books(self) -> List[Book]:
        self._set(loading=True, error=None, error_kind=None)
        try:
            books = self.client.list_books()
        except ApiClientError as e:
            self._fail("Fetch", e)
            raise
        self._set(books=books, loading=False, error=None, error_kind=None)
        return books

    def add_book(self, data: BookFormData) -> Book:
        self._set(loading=True, error=None, error_kind=None)
        try:
            book = self.client.create_book(data.title, data.author, data.description)
        except ApiClientError as e:
            self._fail("Add", e)
            raise
        self._set(books=self.books + [book], loading=False, error=None, error_kind=None)
        return book

    def update_book(self, book_id: int, data: BookFormData) -> Book:
        self._set(loading=True, error=None, error_kind=None)
        try:
            updated = self.client.update_book(book_id, data.title, data.author, data.description)
        except ApiClientError as e:
            self._fail("Update", e)
            raise
        books = [updated if b.id == book_id else b for b in self.books]
        self._set(books=books, loading=False, error=None, error_kind=None)
        return updated

    def delete_book(self, book_id: int) -> None:
        self._set(loading=True, error=None, error_kind=None)
        try:
            self.client.delete_book(book_id)
        except ApiClientError as e:
            self._fail("Delete", e)
            raise
        self._set(books=[b for b in self.books if b.id != book_id], loading=False, error=None, error_kind=None)

    def _fail(self, action: str, error: ApiClientError) -> None:
        logger.debug("%s failed (%s): %s", action, error.kind.value, error.message)
        self._set(loading=False, error=error.message, error_kind=error.kind)

    # ------------------------- Local state ------------------------- #
    def get_book(self, book_id: int) -> Optional[Book]:
        return next((b for b in self.books if b.id == book_id), None)

    def set_search_query(self, query: str) -> None:
        self._set(search_query=query or "")

    def filtered_books(self) -> List[Book]:
        query = self.search_query.strip()
        if not query:
            return list(self.books)
        return [b for b in self.books if b.matches(query)]

    def clear_error(self) -> None:
        self._set(error=None, error_kind=None)

    def show_toast(self, message: str, type: str = "success") -> None:
        if type not in TOAST_TYPES:
            raise ValueError(f"Unknown toast type: {type}")
        self._set(toast=Toast(message=message, type=type, is_visible=True))

    def hide_toast(self) -> None:
        self._set(toast=Toast(message=self.toast.message, type=self.toast.type, is_visible=False))

