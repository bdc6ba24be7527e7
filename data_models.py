from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import validates

db = SQLAlchemy()

BOOK_INSTANCE_STATUSES = ("Available", "Maintenance", "Loaned", "Reserved")
DEFAULT_STATUS = "Maintenance"


def medium_date(value):
    """
    Render a date the way the catalog pages show it, e.g. 'Oct 6, 2014'.
    """
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value.year}"


def iso_date(value):
    return value.isoformat() if value else None


book_genres = db.Table(
    "book_genres",
    db.Column("book_id", db.Integer, db.ForeignKey("books.id"), primary_key=True),
    db.Column("genre_id", db.Integer, db.ForeignKey("genres.id"), primary_key=True),
)


class Author(db.Model):
    """
    Author model storing names and life dates.

    Books reference authors by id; deleting an author is guarded in
    catalog.delete_author, so the relationship carries no delete cascade.
    """
    __tablename__ = 'authors'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    first_name = db.Column(db.String(100), nullable=False)
    family_name = db.Column(db.String(100), nullable=False)
    date_of_birth = db.Column(db.Date, nullable=True)
    date_of_death = db.Column(db.Date, nullable=True)

    books = db.relationship("Book", back_populates="author")

    @property
    def name(self):
        """'family_name, first_name', or '' when either part is missing."""
        if self.first_name and self.family_name:
            return f"{self.family_name}, {self.first_name}"
        return ""

    @property
    def lifespan(self):
        dod = medium_date(self.date_of_death) if self.date_of_death else "present"
        return f"{medium_date(self.date_of_birth)} - {dod}"

    @property
    def dob_formatted(self):
        return iso_date(self.date_of_birth)

    @property
    def dod_formatted(self):
        return iso_date(self.date_of_death)

    def to_form(self):
        return {
            "first_name": self.first_name,
            "family_name": self.family_name,
            "date_of_birth": self.dob_formatted or "",
            "date_of_death": self.dod_formatted or "",
        }

    def __repr__(self):
        return f"Author(id = {self.id}, name = {self.name})"

    def __str__(self):
        return self.name


class Genre(db.Model):
    """
    Genre model. ``name_key`` is the case-folded name, kept in step with
    ``name`` and used for case-insensitive lookups.
    """
    __tablename__ = 'genres'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), nullable=False)
    name_key = db.Column(db.String(200), nullable=False, index=True)

    books = db.relationship("Book", secondary=book_genres, back_populates="genres")

    @validates("name")
    def _sync_name_key(self, key, value):
        self.name_key = value.casefold()
        return value

    def to_form(self):
        return {"name": self.name}

    def __repr__(self):
        return f"<Genre id={self.id} name='{self.name}'>"

    def __str__(self):
        return self.name


class Book(db.Model):
    """
    Book model storing title, summary, ISBN, its author and its genres.
    """
    __tablename__ = 'books'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    title = db.Column(db.String(255), nullable=False)
    summary = db.Column(db.Text, nullable=False)
    isbn = db.Column(db.String(20), nullable=False)

    author_id = db.Column(db.Integer, db.ForeignKey("authors.id"), nullable=False)
    author = db.relationship("Author", back_populates="books")

    genres = db.relationship(
        "Genre",
        secondary=book_genres,
        back_populates="books",
        order_by="Genre.name",
    )
    instances = db.relationship("BookInstance", back_populates="book")

    def to_form(self):
        return {
            "title": self.title,
            "author": str(self.author_id),
            "summary": self.summary,
            "isbn": self.isbn,
            "genre": [str(genre.id) for genre in self.genres],
        }

    def __repr__(self):
        return f"<Book id={self.id} title='{self.title}'>"

    def __str__(self):
        return self.title


class BookInstance(db.Model):
    """
    A physical copy of a book, with its imprint and loan status.
    """
    __tablename__ = 'book_instances'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False)
    imprint = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=DEFAULT_STATUS)
    due_back = db.Column(db.Date, nullable=True)

    book = db.relationship("Book", back_populates="instances")

    @property
    def due_back_formatted(self):
        return medium_date(self.due_back)

    def to_form(self):
        return {
            "book": str(self.book_id),
            "imprint": self.imprint,
            "status": self.status,
            "due_back": iso_date(self.due_back) or "",
        }

    def __repr__(self):
        return f"<BookInstance id={self.id} book_id={self.book_id} status='{self.status}'>"
