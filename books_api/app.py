import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import get_settings
from .errors import NotFound, RepositoryError
from .models import Book, CreateBook, UpdateBook
from .otel import configure_otel
from .repository import BookRepository, InMemoryBookRepository

settings = get_settings()
logger = logging.getLogger("books_api")
request_logger = logging.getLogger("books_api.requests")

book_repository = InMemoryBookRepository()


def get_book_repository() -> BookRepository:
    return book_repository


router = APIRouter()


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
def root() -> str:
    return "Hello World"


@router.get("/health", tags=["health"])
def health() -> dict:
    return {"status": "ok"}


@router.get("/books", response_model=List[Book], tags=["books"])
async def all_books(repository: BookRepository = Depends(get_book_repository)) -> List[Book]:
    return await repository.all()


@router.post("/books", response_model=Book, status_code=status.HTTP_201_CREATED, tags=["books"])
async def create_book(payload: CreateBook, repository: BookRepository = Depends(get_book_repository)) -> Book:
    return await repository.create(payload)


@router.get("/books/{book_id}", response_model=Book, tags=["books"])
async def find_book(book_id: int, repository: BookRepository = Depends(get_book_repository)) -> Book:
    try:
        return await repository.find(book_id)
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found") from exc


@router.patch("/books/{book_id}", response_model=Book, status_code=status.HTTP_201_CREATED, tags=["books"])
async def update_book(
    book_id: int,
    payload: UpdateBook,
    repository: BookRepository = Depends(get_book_repository),
) -> Book:
    try:
        return await repository.update(book_id, payload)
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found") from exc


@router.delete("/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["books"])
async def delete_book(book_id: int, repository: BookRepository = Depends(get_book_repository)) -> None:
    try:
        await repository.delete(book_id)
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found") from exc


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("request.invalid", extra={"path": request.url.path, "errors": len(exc.errors())})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    logger.error("repository.error", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal repository error"},
    )


async def security_headers(request: Request, call_next):
    if settings.require_https:
        forwarded_proto = request.headers.get("x-forwarded-proto", "")
        if (forwarded_proto and forwarded_proto.lower() != "https") or (
            request.url.scheme != "https" and not forwarded_proto
        ):
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "HTTPS required"})

    response = await call_next(request)
    response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains; preload")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'; base-uri 'none'")
    response.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
    return response


async def request_logging_middleware(request: Request, call_next):
    request_logger.info("request.start", extra={"path": request.url.path, "method": request.method})
    response = await call_next(request)
    request_logger.info(
        "request.end",
        extra={"path": request.url.path, "method": request.method, "status": response.status_code},
    )
    return response


async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def create_app(repository: BookRepository | None = None) -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="A simple Books API backed by an in-memory store.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    if repository is not None:
        app.dependency_overrides[get_book_repository] = lambda: repository

    if settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type"],
        )

    app.include_router(router)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)

    app.middleware("http")(security_headers)
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(request_id_middleware)

    configure_otel(app, settings)
    return app


app = create_app()
