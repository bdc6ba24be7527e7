"""
Test catalog operations: listings, create/update, guarded deletes and
duplicate genre detection.
"""
from datetime import date

import pytest
from werkzeug.datastructures import MultiDict

import catalog
from data_models import db, Author, Book, BookInstance, Genre
from validation import FieldError


class TestListings:
    def test_authors_sorted_by_family_name(self, make_author):
        make_author("Ursula", "LeGuin")
        make_author("Isaac", "Asimov")
        make_author("Iain", "Banks")

        assert [a.family_name for a in catalog.list_authors()] == ["Asimov", "Banks", "LeGuin"]

    def test_genres_and_books_sorted(self, make_genre, make_book, make_author):
        for name in ("Poetry", "Fantasy", "Horror"):
            make_genre(name)
        author = make_author()
        make_book("Zen", author=author)
        make_book("Anathem", author=author)

        assert [g.name for g in catalog.list_genres()] == ["Fantasy", "Horror", "Poetry"]
        assert [b.title for b in catalog.list_books()] == ["Anathem", "Zen"]

    def test_empty_lists_are_not_errors(self, app):
        assert catalog.list_authors() == []
        assert catalog.books_by_author(42) == []

    def test_summary_counts(self, make_copy, make_genre):
        copy = make_copy(status="Available")
        make_copy(book=copy.book, status="Loaned", due_back=date(2026, 12, 1))
        make_genre()

        assert catalog.summary_counts() == {
            "book_count": 1,
            "book_instance_count": 2,
            "book_instance_available_count": 1,
            "author_count": 1,
            "genre_count": 1,
        }

    def test_instances_by_due_back(self, make_book, make_copy):
        book = make_book()
        make_copy(book=book, imprint="late", status="Loaned", due_back=date(2026, 12, 1))
        make_copy(book=book, imprint="early", status="Loaned", due_back=date(2026, 11, 1))

        ordered = catalog.instances_of_book(book.id, by_due_back=True)

        assert [c.imprint for c in ordered] == ["early", "late"]


class TestLookups:
    @pytest.mark.parametrize("getter, kind", [
        (catalog.get_author, "Author"),
        (catalog.get_book, "Book"),
        (catalog.get_genre, "Genre"),
        (catalog.get_book_instance, "Book copy"),
    ])
    def test_missing_id_raises_not_found(self, app, getter, kind):
        with pytest.raises(catalog.NotFound) as excinfo:
            getter(999)

        assert excinfo.value.kind == kind
        assert excinfo.value.ident == 999
        assert str(excinfo.value) == f"{kind} not found"


class TestAuthors:
    def test_create_author(self, app):
        result = catalog.create_author({
            "first_name": "Terry",
            "family_name": "Pratchett",
            "date_of_birth": "1948-04-28",
            "date_of_death": "2015-03-12",
        })

        assert result.ok
        author = db.session.get(Author, result.record.id)
        assert author.name == "Pratchett, Terry"
        assert author.date_of_death == date(2015, 3, 12)

    def test_invalid_author_not_persisted(self, app):
        result = catalog.create_author({"first_name": "", "family_name": "Pratchett", "date_of_birth": "1948-04-28"})

        assert result.error_fields() == ["first_name"]
        assert result.record is None
        assert Author.query.count() == 0

    def test_update_replaces_all_fields(self, make_author):
        author = make_author("Terry", "Pratchett", date(1948, 4, 28), date(2015, 3, 12))

        result = catalog.update_author(author.id, {
            "first_name": "Terence",
            "family_name": "Pratchett",
            "date_of_birth": "1948-04-28",
        })

        assert result.ok
        assert author.first_name == "Terence"
        assert author.date_of_death is None

    def test_update_missing_author(self, app):
        with pytest.raises(catalog.NotFound):
            catalog.update_author(5, {"first_name": "A", "family_name": "B", "date_of_birth": "2000-01-01"})

    def test_delete_blocked_by_books(self, make_author, make_book):
        author = make_author()
        first = make_book("Book One", author=author)
        second = make_book("Book Two", author=author)
        make_book("Elsewhere")

        outcome = catalog.delete_author(author.id)

        assert outcome.blocked
        assert not outcome.deleted
        assert {b.id for b in outcome.dependents} == {first.id, second.id}
        assert db.session.get(Author, author.id) is not None

    def test_delete_without_books(self, make_author):
        author_id = make_author().id

        outcome = catalog.delete_author(author_id)

        assert outcome.deleted
        assert outcome.dependents == []
        with pytest.raises(catalog.NotFound):
            catalog.get_author(author_id)

    def test_delete_missing_author(self, app):
        with pytest.raises(catalog.NotFound):
            catalog.delete_author(77)


class TestGenres:
    def test_create_genre(self, app):
        result = catalog.create_genre({"name": " Science Fiction "})

        assert result.ok
        assert result.record.name == "Science Fiction"
        assert Genre.query.count() == 1

    @pytest.mark.parametrize("submitted", ["fiction", "FICTION", "Fiction", "  fIcTiOn "])
    def test_create_duplicate_resolves_to_existing(self, make_genre, submitted):
        existing = make_genre("Fiction")

        result = catalog.create_genre({"name": submitted})

        assert result.ok
        assert result.record.id == existing.id
        assert Genre.query.count() == 1
        assert existing.name == "Fiction"

    def test_find_genre_uses_case_folding(self, make_genre):
        existing = make_genre("Straße")

        assert catalog.find_genre_by_name("STRASSE").id == existing.id
        assert catalog.find_genre_by_name("Strasse Noir") is None

    def test_find_genre_folds_non_ascii_capitals(self, make_genre):
        existing = make_genre("ÉPOPÉE")

        assert existing.name_key == "épopée"
        assert catalog.find_genre_by_name("épopée").id == existing.id

    def test_renamed_genre_found_by_new_name(self, make_genre):
        genre = make_genre("Horror")

        catalog.update_genre(genre.id, {"name": "Gothic Horror"})

        assert catalog.find_genre_by_name("gothic horror").id == genre.id
        assert catalog.find_genre_by_name("horror") is None

    def test_rename_onto_other_genre_is_noop(self, make_genre):
        fiction = make_genre("Fiction")
        poetry = make_genre("Poetry")

        result = catalog.update_genre(poetry.id, {"name": "FICTION"})

        assert result.record.id == fiction.id
        assert poetry.name == "Poetry"
        assert Genre.query.count() == 2

    def test_rename_case_of_same_genre_is_noop(self, make_genre):
        genre = make_genre("fantasy")

        result = catalog.update_genre(genre.id, {"name": "Fantasy"})
        db.session.expire_all()

        assert result.ok
        assert result.record.id == genre.id
        assert db.session.get(Genre, genre.id).name == "fantasy"

    def test_rename_invalid(self, make_genre):
        genre = make_genre("Fantasy")

        result = catalog.update_genre(genre.id, {"name": "ab"})

        assert not result.ok
        assert genre.name == "Fantasy"

    def test_delete_blocked_by_books(self, make_genre, make_book):
        genre = make_genre("Horror")
        book = make_book(genres=[genre])

        outcome = catalog.delete_genre(genre.id)

        assert outcome.blocked
        assert [b.id for b in outcome.dependents] == [book.id]
        assert db.session.get(Genre, genre.id) is not None

    def test_delete_unused_genre(self, make_genre):
        genre_id = make_genre("Horror").id

        assert catalog.delete_genre(genre_id).deleted
        assert db.session.get(Genre, genre_id) is None

    def test_genre_choices_marks_selected(self, make_genre):
        fantasy = make_genre("Fantasy")
        make_genre("Poetry")

        choices = catalog.genre_choices([str(fantasy.id)])

        assert [(g.name, checked) for g, checked in choices] == [("Fantasy", True), ("Poetry", False)]
        assert all(not checked for _, checked in catalog.genre_choices(None))


class TestBooks:
    def test_empty_title_not_persisted(self, make_author):
        author = make_author()

        result = catalog.create_book({"title": "", "author": str(author.id), "summary": "S", "isbn": "1"})

        assert "title" in result.error_fields()
        assert Book.query.count() == 0

    def test_unknown_author(self, app):
        result = catalog.create_book({"title": "T", "author": "12", "summary": "S", "isbn": "1"})

        assert result.errors == [FieldError("author", "Author not found.")]
        assert Book.query.count() == 0

    def test_unknown_genre(self, make_author):
        author = make_author()

        result = catalog.create_book({
            "title": "T", "author": str(author.id), "summary": "S", "isbn": "1", "genre": ["404"],
        })

        assert result.error_fields() == ["genre"]
        assert Book.query.count() == 0

    def test_genre_book_scenario(self, make_author):
        author = make_author("Frank", "Herbert")
        genre = catalog.create_genre({"name": "Sci-Fi"}).record

        result = catalog.create_book(MultiDict([
            ("title", "Dune"),
            ("author", str(author.id)),
            ("summary", "Spice."),
            ("isbn", "9780441013593"),
            ("genre", str(genre.id)),
        ]))

        book = catalog.get_book(result.record.id)
        assert [g.name for g in book.genres] == ["Sci-Fi"]
        assert book.author.name == "Herbert, Frank"
        assert [b.id for b in catalog.books_in_genre(genre.id)] == [book.id]

    def test_update_replaces_genres(self, make_book, make_genre):
        fantasy = make_genre("Fantasy")
        horror = make_genre("Horror")
        book = make_book(genres=[fantasy])

        result = catalog.update_book(book.id, {
            "title": "Renamed",
            "author": str(book.author_id),
            "summary": "New summary",
            "isbn": "111",
            "genre": str(horror.id),
        })

        assert result.ok
        assert book.title == "Renamed"
        assert [g.id for g in book.genres] == [horror.id]

    def test_create_with_repeated_genre(self, make_author, make_genre):
        author = make_author()
        genre = make_genre("Fantasy")

        result = catalog.create_book(MultiDict([
            ("title", "T"), ("author", str(author.id)), ("summary", "S"), ("isbn", "1"),
            ("genre", str(genre.id)), ("genre", str(genre.id)),
        ]))

        assert result.ok
        assert [g.id for g in result.record.genres] == [genre.id]

    def test_update_with_repeated_genre(self, make_book, make_genre):
        fantasy = make_genre("Fantasy")
        horror = make_genre("Horror")
        book = make_book(genres=[fantasy])
        form = book.to_form()
        form["genre"] = [str(horror.id), str(fantasy.id), str(horror.id)]

        result = catalog.update_book(book.id, form)
        db.session.expire_all()

        assert result.ok
        assert sorted(g.id for g in catalog.get_book(book.id).genres) == sorted([fantasy.id, horror.id])

    def test_update_without_genres_clears_them(self, make_book, make_genre):
        book = make_book(genres=[make_genre("Fantasy")])
        form = book.to_form()
        del form["genre"]

        assert catalog.update_book(book.id, form).ok
        assert book.genres == []

    def test_delete_blocked_by_copies(self, make_copy):
        copy = make_copy()

        outcome = catalog.delete_book(copy.book_id)

        assert outcome.blocked
        assert [c.id for c in outcome.dependents] == [copy.id]
        assert db.session.get(Book, copy.book_id) is not None

    def test_delete_book_without_copies(self, make_book, make_genre):
        book_id = make_book(genres=[make_genre("Fantasy")]).id

        assert catalog.delete_book(book_id).deleted
        assert db.session.get(Book, book_id) is None
        assert Genre.query.count() == 1


class TestBookInstances:
    def test_create_copy(self, make_book):
        book = make_book()

        result = catalog.create_book_instance({"book": str(book.id), "imprint": "Tor, 2007"})

        assert result.ok
        assert result.record.status == "Maintenance"
        assert result.record.book_id == book.id

    def test_create_copy_unknown_book(self, app):
        result = catalog.create_book_instance({"book": "8", "imprint": "Tor"})

        assert result.error_fields() == ["book"]
        assert BookInstance.query.count() == 0

    def test_update_round_trip(self, make_copy):
        copy = make_copy(status="Available")
        before = copy.to_form()

        result = catalog.update_book_instance(copy.id, {
            "book": before["book"],
            "imprint": before["imprint"],
            "status": "Loaned",
            "due_back": "2026-11-20",
        })
        assert result.ok
        db.session.expire_all()

        fetched = catalog.get_book_instance(copy.id)
        assert fetched.status == "Loaned"
        assert fetched.due_back == date(2026, 11, 20)
        assert fetched.book_id == int(before["book"])
        assert fetched.imprint == before["imprint"]

    def test_delete_returns_parent_book(self, make_copy):
        copy = make_copy()
        copy_id, book_id = copy.id, copy.book_id

        assert catalog.delete_book_instance(copy_id) == book_id
        assert db.session.get(BookInstance, copy_id) is None

    def test_delete_missing_copy(self, app):
        with pytest.raises(catalog.NotFound):
            catalog.delete_book_instance(3)

    def test_delete_with_missing_parent(self, app):
        orphan = BookInstance(book_id=999, imprint="Orphan", status="Available")
        db.session.add(orphan)
        db.session.commit()

        with pytest.raises(catalog.NotFound) as excinfo:
            catalog.delete_book_instance(orphan.id)

        assert excinfo.value.kind == "Book"
        assert db.session.get(BookInstance, orphan.id) is not None
