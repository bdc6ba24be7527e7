"""
Catalog operations shared by the web views.

Every function here works on plain values (form mappings, integer ids) and
returns model objects or result objects, so the HTTP layer only has to pick
a template or a redirect. Lookups by id raise NotFound; create/update return
a ValidationResult; guarded deletes return a DeleteResult.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from data_models import db, Author, Book, BookInstance, Genre
from validation import (
    ValidationResult,
    validate_author,
    validate_book,
    validate_book_instance,
    validate_genre,
)

logger = logging.getLogger(__name__)


class NotFound(LookupError):
    """An identifier did not resolve to a record."""

    def __init__(self, kind: str, ident=None, message: str = None):
        self.kind = kind
        self.ident = ident
        super().__init__(message or f"{kind} not found")


@dataclass
class DeleteResult:
    """
    Outcome of a guarded delete. When ``dependents`` is non-empty the record
    was left in place and the dependents are what must be removed first.
    """
    record: Any
    dependents: list = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        return len(self.dependents) > 0

    @property
    def deleted(self) -> bool:
        return not self.blocked


def _parse_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _get(model, ident, kind):
    record = db.session.get(model, ident)
    if record is None:
        raise NotFound(kind, ident)
    return record


# --- Summary ---

def summary_counts() -> dict:
    return {
        "book_count": Book.query.count(),
        "book_instance_count": BookInstance.query.count(),
        "book_instance_available_count": BookInstance.query.filter_by(status="Available").count(),
        "author_count": Author.query.count(),
        "genre_count": Genre.query.count(),
    }


# --- Authors ---

def list_authors():
    return Author.query.order_by(Author.family_name.asc(), Author.first_name.asc()).all()


def get_author(author_id: int) -> Author:
    return _get(Author, author_id, "Author")


def books_by_author(author_id: int):
    return Book.query.filter_by(author_id=author_id).order_by(Book.title.asc()).all()


def _apply_author(author, values):
    author.first_name = values["first_name"]
    author.family_name = values["family_name"]
    author.date_of_birth = values["date_of_birth"]
    author.date_of_death = values["date_of_death"]


def create_author(form) -> ValidationResult:
    result = validate_author(form)
    if not result.ok:
        return result

    author = Author()
    _apply_author(author, result.values)
    db.session.add(author)
    db.session.commit()
    logger.info("Created author %s (%s)", author.id, author.name)
    result.record = author
    return result


def update_author(author_id: int, form) -> ValidationResult:
    author = get_author(author_id)
    result = validate_author(form)
    if not result.ok:
        return result

    _apply_author(author, result.values)
    db.session.commit()
    logger.info("Updated author %s", author.id)
    result.record = author
    return result


def delete_author(author_id: int) -> DeleteResult:
    """
    Delete an author unless books still reference it.
    """
    author = get_author(author_id)
    books = books_by_author(author_id)
    if books:
        logger.info("Refused to delete author %s: %d book(s) depend on it", author_id, len(books))
        return DeleteResult(author, books)

    db.session.delete(author)
    db.session.commit()
    logger.info("Deleted author %s", author_id)
    return DeleteResult(author)


# --- Genres ---

def list_genres():
    return Genre.query.order_by(Genre.name.asc()).all()


def get_genre(genre_id: int) -> Genre:
    return _get(Genre, genre_id, "Genre")


def books_in_genre(genre_id: int):
    return (
        Book.query.filter(Book.genres.any(Genre.id == genre_id))
        .order_by(Book.title.asc())
        .all()
    )


def find_genre_by_name(name: str):
    """
    Case-insensitive lookup of a genre by name.

    Uses Unicode case folding, so 'FICTION', 'Fiction' and 'fiction' all
    match, as do 'STRASSE' and 'straße'.
    """
    return Genre.query.filter_by(name_key=name.casefold()).order_by(Genre.id.asc()).first()


def create_genre(form) -> ValidationResult:
    """
    Create a genre, or resolve to the existing one with the same name.
    """
    result = validate_genre(form)
    if not result.ok:
        return result

    existing = find_genre_by_name(result.values["name"])
    if existing is not None:
        logger.info("Genre %r already exists as %s", result.values["name"], existing.id)
        result.record = existing
        return result

    genre = Genre(name=result.values["name"])
    db.session.add(genre)
    db.session.commit()
    logger.info("Created genre %s (%s)", genre.id, genre.name)
    result.record = genre
    return result


def update_genre(genre_id: int, form) -> ValidationResult:
    """
    Rename a genre. If any genre already has the new name (in any case),
    including this one, nothing is written and the result resolves to it.
    """
    genre = get_genre(genre_id)
    result = validate_genre(form)
    if not result.ok:
        return result

    existing = find_genre_by_name(result.values["name"])
    if existing is not None:
        logger.info("Genre %r already exists as %s", result.values["name"], existing.id)
        result.record = existing
        return result

    genre.name = result.values["name"]
    db.session.commit()
    logger.info("Updated genre %s", genre.id)
    result.record = genre
    return result


def delete_genre(genre_id: int) -> DeleteResult:
    genre = get_genre(genre_id)
    books = books_in_genre(genre_id)
    if books:
        logger.info("Refused to delete genre %s: %d book(s) depend on it", genre_id, len(books))
        return DeleteResult(genre, books)

    db.session.delete(genre)
    db.session.commit()
    logger.info("Deleted genre %s", genre_id)
    return DeleteResult(genre)


def genre_choices(selected_ids) -> list:
    """
    All genres by name, each paired with whether it is among ``selected_ids``.
    """
    selected = {str(ident) for ident in selected_ids or []}
    return [(genre, str(genre.id) in selected) for genre in list_genres()]


# --- Books ---

def list_books():
    return Book.query.order_by(Book.title.asc()).all()


def get_book(book_id: int) -> Book:
    return _get(Book, book_id, "Book")


def instances_of_book(book_id: int, by_due_back: bool = False):
    query = BookInstance.query.filter_by(book_id=book_id)
    if by_due_back:
        query = query.order_by(BookInstance.due_back.asc())
    return query.all()


def _resolve_book_refs(result):
    """
    Look up the author and genres a validated book form points at, adding
    field errors for ids that do not resolve.
    """
    author = None
    author_id = _parse_id(result.values["author"])
    if author_id is not None:
        author = db.session.get(Author, author_id)
    if author is None:
        result.add_error("author", "Author not found.")

    genres = []
    for raw in result.values["genre"]:
        genre_id = _parse_id(raw)
        genre = db.session.get(Genre, genre_id) if genre_id is not None else None
        if genre is None:
            result.add_error("genre", "Unknown genre selected.")
            break
        genres.append(genre)
    return author, genres


def _save_book(book, form) -> ValidationResult:
    result = validate_book(form)
    if not result.ok:
        return result

    author, genres = _resolve_book_refs(result)
    if not result.ok:
        return result

    book.title = result.values["title"]
    book.summary = result.values["summary"]
    book.isbn = result.values["isbn"]
    book.author = author
    book.genres = genres
    if book.id is None:
        db.session.add(book)
    db.session.commit()
    result.record = book
    return result


def create_book(form) -> ValidationResult:
    result = _save_book(Book(), form)
    if result.ok:
        logger.info("Created book %s (%s)", result.record.id, result.record.title)
    return result


def update_book(book_id: int, form) -> ValidationResult:
    result = _save_book(get_book(book_id), form)
    if result.ok:
        logger.info("Updated book %s", book_id)
    return result


def delete_book(book_id: int) -> DeleteResult:
    """
    Delete a book unless copies of it are still held.
    """
    book = get_book(book_id)
    copies = instances_of_book(book_id, by_due_back=True)
    if copies:
        logger.info("Refused to delete book %s: %d copy(ies) depend on it", book_id, len(copies))
        return DeleteResult(book, copies)

    db.session.delete(book)
    db.session.commit()
    logger.info("Deleted book %s", book_id)
    return DeleteResult(book)


# --- Book instances ---

def list_book_instances():
    return BookInstance.query.all()


def get_book_instance(instance_id: int) -> BookInstance:
    return _get(BookInstance, instance_id, "Book copy")


def _save_book_instance(instance, form) -> ValidationResult:
    result = validate_book_instance(form)
    if not result.ok:
        return result

    book_id = _parse_id(result.values["book"])
    book = db.session.get(Book, book_id) if book_id is not None else None
    if book is None:
        result.add_error("book", "Book not found.")
        return result

    instance.book = book
    instance.imprint = result.values["imprint"]
    instance.status = result.values["status"]
    instance.due_back = result.values["due_back"]
    if instance.id is None:
        db.session.add(instance)
    db.session.commit()
    result.record = instance
    return result


def create_book_instance(form) -> ValidationResult:
    result = _save_book_instance(BookInstance(), form)
    if result.ok:
        logger.info("Created copy %s of book %s", result.record.id, result.record.book_id)
    return result


def update_book_instance(instance_id: int, form) -> ValidationResult:
    result = _save_book_instance(get_book_instance(instance_id), form)
    if result.ok:
        logger.info("Updated copy %s", instance_id)
    return result


def delete_book_instance(instance_id: int) -> int:
    """
    Delete a copy and return the id of the book it belonged to.

    Raises:
        NotFound: if the copy, or the book it points at, no longer exists.
    """
    instance = get_book_instance(instance_id)
    if instance.book is None:
        raise NotFound("Book", instance.book_id, "Parent book not found")

    book_id = instance.book.id
    db.session.delete(instance)
    db.session.commit()
    logger.info("Deleted copy %s of book %s", instance_id, book_id)
    return book_id
