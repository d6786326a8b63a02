import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from types import MappingProxyType

from .errors import NotFound
from .models import Book, CreateBook, UpdateBook

logger = logging.getLogger("books_api.repository")


class ReadWriteLock:
    """Many concurrent readers or a single writer.

    Waiting writers block new readers, so a steady stream of reads cannot
    starve a write.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writer_thread: int | None = None
        self._waiting_writers = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def write_held(self) -> bool:
        return self._writer

    def owns_write(self) -> bool:
        return self._writer and self._writer_thread == threading.get_ident()

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers == 0:
                raise RuntimeError("release_read() called without a held read lock")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._waiting_writers -= 1
            self._writer = True
            self._writer_thread = threading.get_ident()

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() called without a held write lock")
            self._writer = False
            self._writer_thread = None
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class BookStore:
    """Id -> Book mapping guarded by a ReadWriteLock.

    Share one instance between every repository that should see the same data.
    """

    def __init__(self) -> None:
        self._books: dict[int, Book] = {}
        self._last_id = 0
        self._lock = ReadWriteLock()

    @contextmanager
    def read(self) -> Iterator[Mapping[int, Book]]:
        with self._lock.read_locked():
            yield MappingProxyType(self._books)

    @contextmanager
    def write(self) -> Iterator[dict[int, Book]]:
        with self._lock.write_locked():
            yield self._books

    def next_id(self) -> int:
        # Ids are never reused, even after deletes.
        if not self._lock.owns_write():
            raise RuntimeError("next_id() requires the write lock held by this thread")
        self._last_id += 1
        return self._last_id

    def __len__(self) -> int:
        with self.read() as books:
            return len(books)


class BookRepository(ABC):
    @abstractmethod
    async def create(self, payload: CreateBook) -> Book: ...

    @abstractmethod
    async def find(self, book_id: int) -> Book: ...

    @abstractmethod
    async def all(self) -> list[Book]: ...

    @abstractmethod
    async def update(self, book_id: int, payload: UpdateBook) -> Book: ...

    @abstractmethod
    async def delete(self, book_id: int) -> None: ...


class InMemoryBookRepository(BookRepository):
    """BookRepository backed by a BookStore.

    Every operation holds one lock mode for its whole duration and never awaits
    while holding it. Records handed out are copies of what the store holds.
    """

    def __init__(self, store: BookStore | None = None):
        self.store = store if store is not None else BookStore()

    def clone(self) -> "InMemoryBookRepository":
        return InMemoryBookRepository(self.store)

    async def create(self, payload: CreateBook) -> Book:
        with self.store.write() as books:
            book_id = self.store.next_id()
            book = Book(id=book_id, **payload.model_dump())
            books[book_id] = book
        logger.debug("book.create", extra={"book_id": book_id})
        return book.model_copy()

    async def find(self, book_id: int) -> Book:
        with self.store.read() as books:
            book = books.get(book_id)
            if book is None:
                raise NotFound(book_id)
            return book.model_copy()

    async def all(self) -> list[Book]:
        with self.store.read() as books:
            return [book.model_copy() for book in books.values()]

    async def update(self, book_id: int, payload: UpdateBook) -> Book:
        with self.store.write() as books:
            current = books.get(book_id)
            if current is None:
                raise NotFound(book_id)
            book = current.model_copy(update=payload.model_dump(exclude_none=True))
            books[book_id] = book
        logger.debug("book.update", extra={"book_id": book_id})
        return book.model_copy()

    async def delete(self, book_id: int) -> None:
        with self.store.write() as books:
            if books.pop(book_id, None) is None:
                raise NotFound(book_id)
        logger.debug("book.delete", extra={"book_id": book_id})
