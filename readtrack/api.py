import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Security
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from readtrack.book import Book
from readtrack.config import Settings, settings as default_settings
from readtrack.database import check_connection
from readtrack.exceptions import ReadTrackError, ValidationError
from readtrack.library import Library

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Correlation-ID"
GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

T = TypeVar("T")


# --- Models ---
class BookModel(BaseModel):
    id: int
    title: str
    author: str
    description: Optional[str] = None


class BookCreateModel(BaseModel):
    title: Optional[str] = Field(default=None, description="1-200 characters")
    author: Optional[str] = Field(default=None, description="1-100 characters")
    description: Optional[str] = Field(default=None, description="Up to 1000 characters")


class BookUpdateModel(BookCreateModel):
    id: int = Field(description="Must match the id in the path")


class ApiResponse(BaseModel, Generic[T]):
    success: bool
    data: Optional[T] = None
    message: Optional[str] = None
    errors: Optional[List[str]] = None


class ApiErrorResponse(BaseModel):
    success: bool = False
    message: Optional[str] = None
    errors: Optional[List[str]] = None
    trace_id: Optional[str] = None


# --- Dependencies ---
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def get_library(request: Request) -> Library:
    return request.app.state.library


def get_api_key(request: Request, api_key: Optional[str] = Security(api_key_header)) -> Optional[str]:
    """Dependency to validate the API key when the gate is enabled."""
    app_settings: Settings = request.app.state.settings
    if not app_settings.require_api_key or api_key == app_settings.api_key:
        return api_key
    raise HTTPException(status_code=403, detail="Could not validate credentials")


def _success(data: Any, message: str) -> Dict[str, Any]:
    return {"success": True, "data": data, "message": message, "errors": None}


def _book_model(book: Book) -> BookModel:
    return BookModel(**book.to_dict())


# --- Book endpoints ---
router = APIRouter(prefix="/api/books", tags=["books"])


@router.post("", response_model=ApiResponse[BookModel], dependencies=[Depends(get_api_key)])
def create_book(payload: BookCreateModel, library: Library = Depends(get_library)):
    """Create a book; the server assigns its id."""
    book = library.create_book(payload.title, payload.author, payload.description)
    return _success(_book_model(book), "Book created successfully")


@router.get("", response_model=ApiResponse[List[BookModel]])
def list_books(library: Library = Depends(get_library)):
    books = [_book_model(b) for b in library.list_books()]
    return _success(books, "Books retrieved successfully")


@router.get("/{book_id}", response_model=ApiResponse[BookModel])
def get_book(book_id: int, library: Library = Depends(get_library)):
    book = library.get_book(book_id)
    return _success(_book_model(book), "Book retrieved successfully")


@router.put("/{book_id}", response_model=ApiResponse[BookModel], dependencies=[Depends(get_api_key)])
def update_book(book_id: int, payload: BookUpdateModel, library: Library = Depends(get_library)):
    """Replace title, author and description; the id is immutable."""
    book = library.update_book(book_id, payload.id, payload.title, payload.author, payload.description)
    return _success(_book_model(book), "Book updated successfully")


@router.delete("/{book_id}", response_model=ApiResponse[int], dependencies=[Depends(get_api_key)])
def delete_book(book_id: int, library: Library = Depends(get_library)):
    deleted_id = library.delete_book(book_id)
    return _success(deleted_id, "Book deleted successfully")


# --- Error mapping ---
def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", None) or uuid.uuid4().hex


def _error_response(request: Request, status_code: int, message: str, errors: Optional[List[str]] = None) -> JSONResponse:
    trace_id = _trace_id(request)
    body = ApiErrorResponse(message=message, errors=errors or None, trace_id=trace_id)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(),
        headers={TRACE_HEADER: trace_id},
    )


def _format_validation_errors(exc: RequestValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        # Drop the "body"/"path"/"query" prefix when a field name follows it
        field = ".".join(loc[1:]) or ".".join(loc) or "request"
        messages.append(f"{field}: {error.get('msg', 'Invalid value')}")
    return messages


def _unexpected_error_response(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    errors = [str(exc)] if request.app.state.settings.debug else None
    return _error_response(request, 500, GENERIC_ERROR_MESSAGE, errors)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ReadTrackError)
    async def readtrack_error_handler(request: Request, exc: ReadTrackError):
        errors = exc.errors if isinstance(exc, ValidationError) else None
        logger.warning(
            "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message
        )
        return _error_response(request, exc.status_code, exc.message, errors)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = _format_validation_errors(exc)
        logger.warning("Request validation failed on %s %s: %s", request.method, request.url.path, errors)
        return _error_response(request, 400, "Validation errors occurred.", errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        logger.warning("HTTP %s on %s %s", exc.status_code, request.method, request.url.path)
        return _error_response(request, exc.status_code, message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        return _unexpected_error_response(request, exc)


def create_app(settings: Optional[Settings] = None, library: Optional[Library] = None) -> FastAPI:
    """Build the API application.

    Run with ``uvicorn --factory readtrack.api:create_app``.
    """
    settings = settings or default_settings
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title=f"{settings.app_name} API", version=settings.app_version)
    app.state.settings = settings
    app.state.library = library or Library(db_file=settings.database_file)

    # --- Trace id ---
    @app.middleware("http")
    async def add_trace_id(request: Request, call_next):
        trace_id = request.headers.get(TRACE_HEADER) or uuid.uuid4().hex
        request.state.trace_id = trace_id
        try:
            response = await call_next(request)
        except Exception as exc:
            # Unhandled errors become the 500 envelope inside CORS
            response = _unexpected_error_response(request, exc)
        response.headers[TRACE_HEADER] = trace_id
        return response

    # --- CORS (outermost) ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[TRACE_HEADER],
    )

    # --- Health check ---
    @app.get("/health")
    def health(request: Request):
        """Lightweight health endpoint with a quick database probe."""
        lib: Library = request.app.state.library
        db_ok = check_connection(lib.db_file)
        return {
            "status": "healthy" if db_ok else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "total_books": lib.count_books() if db_ok else None,
            "db": db_ok,
        }

    app.include_router(router)
    register_exception_handlers(app)

    logger.info("%s API ready (database: %s)", settings.app_name, app.state.library.db_file)
    return app
