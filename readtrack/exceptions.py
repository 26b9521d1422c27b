"""Failure taxonomy shared by the service layer and the HTTP error handlers."""

from typing import List, Optional


class ReadTrackError(Exception):
    """Base class for classified failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ReadTrackError):
    """Client input is malformed; carries one message per offending field."""

    status_code = 400

    def __init__(self, message: str = "Validation errors occurred.", errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors: List[str] = list(errors or [])


class ResourceNotFoundError(ReadTrackError):
    status_code = 404


class InvalidOperationError(ReadTrackError):
    status_code = 400
