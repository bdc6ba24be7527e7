"""
Test configuration and fixtures for the LocalLibrary catalog.
"""
from datetime import date

import pytest

from app import create_app
from data_models import db, Author, Book, BookInstance, Genre


@pytest.fixture
def app():
    """Create an app bound to a fresh in-memory database for each test."""
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SECRET_KEY": "test",
        "OPENLIBRARY_LOOKUP": False,
        "LOG_LEVEL": "WARNING",
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_author(app):
    def _make(first_name="Patrick", family_name="Rothfuss", date_of_birth=date(1973, 6, 6), date_of_death=None):
        author = Author(
            first_name=first_name,
            family_name=family_name,
            date_of_birth=date_of_birth,
            date_of_death=date_of_death,
        )
        db.session.add(author)
        db.session.commit()
        return author
    return _make


@pytest.fixture
def make_genre(app):
    def _make(name="Fantasy"):
        genre = Genre(name=name)
        db.session.add(genre)
        db.session.commit()
        return genre
    return _make


@pytest.fixture
def make_book(app, make_author):
    def _make(title="The Name of the Wind", author=None, genres=(), summary="A summary.", isbn="9781473211896"):
        book = Book(
            title=title,
            summary=summary,
            isbn=isbn,
            author=author or make_author(),
            genres=list(genres),
        )
        db.session.add(book)
        db.session.commit()
        return book
    return _make


@pytest.fixture
def make_copy(app, make_book):
    def _make(book=None, imprint="Gollancz, 2011", status="Available", due_back=None):
        copy = BookInstance(book=book or make_book(), imprint=imprint, status=status, due_back=due_back)
        db.session.add(copy)
        db.session.commit()
        return copy
    return _make
