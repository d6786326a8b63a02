class RepositoryError(Exception):
    """Base class for failures raised by a BookRepository."""


class NotFound(RepositoryError):
    def __init__(self, book_id: int):
        self.id = book_id
        super().__init__(f"NotFound, id is {book_id}")
