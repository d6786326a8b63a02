from pydantic import BaseModel, Field

MAX_REVISION = 2**32 - 1


class Book(BaseModel):
    id: int
    name: str
    isbn_code: str
    author: str
    revision_number: int = Field(ge=0, le=MAX_REVISION)
    publisher: str


class CreateBook(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    isbn_code: str = Field(min_length=1, max_length=200)
    author: str = Field(min_length=1, max_length=200)
    revision_number: int = Field(ge=1, le=MAX_REVISION, strict=True)
    publisher: str = Field(min_length=1, max_length=200)


class UpdateBook(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    isbn_code: str | None = Field(default=None, min_length=1, max_length=200)
    author: str | None = Field(default=None, min_length=1, max_length=200)
    revision_number: int | None = Field(default=None, ge=1, le=MAX_REVISION, strict=True)
    publisher: str | None = Field(default=None, min_length=1, max_length=200)
