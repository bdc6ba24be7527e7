"""
Catalog pages: list, detail, create, update and delete for authors, books,
genres and book copies. All data access goes through ``catalog``.
"""

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

import catalog
from data_models import BOOK_INSTANCE_STATUSES
from openlibrary import lookup_summary

bp = Blueprint("catalog", __name__, url_prefix="/catalog")


@bp.route("/")
def index():
    """
    Home page: how many of each record the library holds.
    """
    return render_template("index.html", title="Local Library Home", **catalog.summary_counts())


# --- Authors ---

@bp.route("/authors")
def author_list():
    return render_template("author_list.html", title="Author List", authors=catalog.list_authors())


@bp.route("/author/<int:author_id>")
def author_detail(author_id):
    author = catalog.get_author(author_id)
    return render_template(
        "author_detail.html",
        title="Author Detail",
        author=author,
        books=catalog.books_by_author(author_id),
    )


@bp.route("/author/create", methods=["GET", "POST"])
def author_create():
    if request.method == "GET":
        return render_template("author_form.html", title="Create Author", form={}, errors=[])

    result = catalog.create_author(request.form)
    if not result.ok:
        return render_template("author_form.html", title="Create Author", form=result.values, errors=result.errors)
    return redirect(url_for("catalog.author_detail", author_id=result.record.id))


@bp.route("/author/<int:author_id>/update", methods=["GET", "POST"])
def author_update(author_id):
    if request.method == "GET":
        author = catalog.get_author(author_id)
        return render_template("author_form.html", title="Update Author", form=author.to_form(), errors=[])

    result = catalog.update_author(author_id, request.form)
    if not result.ok:
        return render_template("author_form.html", title="Update Author", form=result.values, errors=result.errors)
    return redirect(url_for("catalog.author_detail", author_id=author_id))


@bp.route("/author/<int:author_id>/delete", methods=["GET", "POST"])
def author_delete(author_id):
    if request.method == "GET":
        try:
            author = catalog.get_author(author_id)
        except catalog.NotFound:
            return redirect(url_for("catalog.author_list"))
        return render_template(
            "author_delete.html",
            title="Delete Author",
            author=author,
            books=catalog.books_by_author(author_id),
        )

    outcome = catalog.delete_author(author_id)
    if outcome.blocked:
        return render_template("author_delete.html", title="Delete Author", author=outcome.record, books=outcome.dependents)

    flash(f"Author '{outcome.record.name}' was deleted.", "success")
    return redirect(url_for("catalog.author_list"))


# --- Genres ---

@bp.route("/genres")
def genre_list():
    return render_template("genre_list.html", title="Genre List", genres=catalog.list_genres())


@bp.route("/genre/<int:genre_id>")
def genre_detail(genre_id):
    genre = catalog.get_genre(genre_id)
    return render_template(
        "genre_detail.html",
        title="Genre Detail",
        genre=genre,
        books=catalog.books_in_genre(genre_id),
    )


@bp.route("/genre/create", methods=["GET", "POST"])
def genre_create():
    if request.method == "GET":
        return render_template("genre_form.html", title="Create Genre", form={}, errors=[])

    result = catalog.create_genre(request.form)
    if not result.ok:
        return render_template("genre_form.html", title="Create Genre", form=result.values, errors=result.errors)
    return redirect(url_for("catalog.genre_detail", genre_id=result.record.id))


@bp.route("/genre/<int:genre_id>/update", methods=["GET", "POST"])
def genre_update(genre_id):
    genre = catalog.get_genre(genre_id)
    title = f"Update Genre Name (old name: {genre.name})"
    if request.method == "GET":
        return render_template("genre_form.html", title=title, form=genre.to_form(), errors=[])

    result = catalog.update_genre(genre_id, request.form)
    if not result.ok:
        return render_template("genre_form.html", title=title, form=result.values, errors=result.errors)
    return redirect(url_for("catalog.genre_detail", genre_id=result.record.id))


@bp.route("/genre/<int:genre_id>/delete", methods=["GET", "POST"])
def genre_delete(genre_id):
    if request.method == "GET":
        try:
            genre = catalog.get_genre(genre_id)
        except catalog.NotFound:
            return redirect(url_for("catalog.genre_list"))
        return render_template(
            "genre_delete.html",
            title="Delete Genre",
            genre=genre,
            books=catalog.books_in_genre(genre_id),
        )

    outcome = catalog.delete_genre(genre_id)
    if outcome.blocked:
        return render_template("genre_delete.html", title="Delete Genre", genre=outcome.record, books=outcome.dependents)

    flash(f"Genre '{outcome.record.name}' was deleted.", "success")
    return redirect(url_for("catalog.genre_list"))


# --- Books ---

def _render_book_form(title, form, errors):
    return render_template(
        "book_form.html",
        title=title,
        form=form,
        errors=errors,
        authors=catalog.list_authors(),
        genres=catalog.genre_choices(form.get("genre")),
    )


@bp.route("/books")
def book_list():
    return render_template("book_list.html", title="Book List", books=catalog.list_books())


@bp.route("/book/<int:book_id>")
def book_detail(book_id):
    book = catalog.get_book(book_id)
    return render_template(
        "book_detail.html",
        title=book.title,
        book=book,
        instances=catalog.instances_of_book(book_id),
    )


@bp.route("/book/create", methods=["GET", "POST"])
def book_create():
    """
    GET renders an empty form; with ?isbn=... the summary is pre-filled from
    Open Library when available.
    """
    if request.method == "GET":
        form = {}
        isbn = request.args.get("isbn", "").strip()
        if isbn:
            form["isbn"] = isbn
            if current_app.config["OPENLIBRARY_LOOKUP"]:
                form["summary"] = lookup_summary(isbn, timeout=current_app.config["OPENLIBRARY_TIMEOUT"]) or ""
        return _render_book_form("Create Book", form, [])

    result = catalog.create_book(request.form)
    if not result.ok:
        return _render_book_form("Create Book", result.values, result.errors)
    return redirect(url_for("catalog.book_detail", book_id=result.record.id))


@bp.route("/book/<int:book_id>/update", methods=["GET", "POST"])
def book_update(book_id):
    if request.method == "GET":
        book = catalog.get_book(book_id)
        return _render_book_form("Update Book", book.to_form(), [])

    result = catalog.update_book(book_id, request.form)
    if not result.ok:
        return _render_book_form("Update Book", result.values, result.errors)
    return redirect(url_for("catalog.book_detail", book_id=book_id))


@bp.route("/book/<int:book_id>/delete", methods=["GET", "POST"])
def book_delete(book_id):
    if request.method == "GET":
        try:
            book = catalog.get_book(book_id)
        except catalog.NotFound:
            return redirect(url_for("catalog.book_list"))
        return render_template(
            "book_delete.html",
            title="Delete Book",
            book=book,
            instances=catalog.instances_of_book(book_id, by_due_back=True),
        )

    outcome = catalog.delete_book(book_id)
    if outcome.blocked:
        return render_template("book_delete.html", title="Delete Book", book=outcome.record, instances=outcome.dependents)

    flash(f"Book '{outcome.record.title}' was deleted.", "success")
    return redirect(url_for("catalog.book_list"))


# --- Book instances ---

def _render_instance_form(title, form, errors):
    return render_template(
        "bookinstance_form.html",
        title=title,
        form=form,
        errors=errors,
        books=catalog.list_books(),
        statuses=BOOK_INSTANCE_STATUSES,
    )


@bp.route("/bookinstances")
def bookinstance_list():
    return render_template(
        "bookinstance_list.html",
        title="Book Instance List",
        instances=catalog.list_book_instances(),
    )


@bp.route("/bookinstance/<int:instance_id>")
def bookinstance_detail(instance_id):
    instance = catalog.get_book_instance(instance_id)
    return render_template("bookinstance_detail.html", title="Book:", instance=instance)


@bp.route("/bookinstance/create", methods=["GET", "POST"])
def bookinstance_create():
    if request.method == "GET":
        return _render_instance_form("Create Book Instance", {"book": request.args.get("book", "")}, [])

    result = catalog.create_book_instance(request.form)
    if not result.ok:
        return _render_instance_form("Create Book Instance", result.values, result.errors)
    return redirect(url_for("catalog.bookinstance_detail", instance_id=result.record.id))


@bp.route("/bookinstance/<int:instance_id>/update", methods=["GET", "POST"])
def bookinstance_update(instance_id):
    if request.method == "GET":
        instance = catalog.get_book_instance(instance_id)
        return _render_instance_form("Update Book Copy", instance.to_form(), [])

    result = catalog.update_book_instance(instance_id, request.form)
    if not result.ok:
        return _render_instance_form("Update Book Copy", result.values, result.errors)
    return redirect(url_for("catalog.bookinstance_detail", instance_id=instance_id))


@bp.route("/bookinstance/<int:instance_id>/delete", methods=["GET", "POST"])
def bookinstance_delete(instance_id):
    if request.method == "GET":
        try:
            instance = catalog.get_book_instance(instance_id)
        except catalog.NotFound:
            return redirect(url_for("catalog.bookinstance_list"))
        return render_template("bookinstance_delete.html", title="Delete Book Copy", instance=instance)

    book_id = catalog.delete_book_instance(instance_id)
    flash("Book copy was deleted.", "success")
    return redirect(url_for("catalog.book_detail", book_id=book_id))
