"""
LocalLibrary - a library catalog built with Flask and SQLAlchemy.

Features:
- Authors, books, genres and book copies, each with list, detail,
  create, update and delete pages
- Form validation that re-displays the librarian's input with errors
- Deletes refused while other records still depend on the target
- Case-insensitive duplicate detection for genre names
- Book summaries pre-filled from Open Library by ISBN
"""

import logging
import os

import click
from flask import Flask, redirect, render_template, url_for
from sqlalchemy.exc import SQLAlchemyError

from catalog import NotFound
from data_models import db
from routes import bp as catalog_bp

basedir = os.path.abspath(os.path.dirname(__file__))
DEFAULT_DATABASE_URI = f"sqlite:///{os.path.join(basedir, 'data', 'library.sqlite')}"


def configure_logging(app):
    """
    Apply LOG_LEVEL to the Flask logger and to the catalog module loggers.
    """
    level = logging.getLevelName(str(app.config["LOG_LEVEL"]).upper())
    if not isinstance(level, int):
        level = logging.INFO

    app.logger.setLevel(level)
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    for name in ("catalog", "openlibrary"):
        logging.getLogger(name).setLevel(level)


def register_error_handlers(app):
    @app.errorhandler(NotFound)
    def not_found(error):
        app.logger.info("Not found: %s (id=%s)", error, error.ident)
        return render_template("error.html", title="Not Found", message=str(error), status=404), 404

    @app.errorhandler(404)
    def page_not_found(error):
        return render_template("error.html", title="Not Found", message="Page not found", status=404), 404

    @app.errorhandler(SQLAlchemyError)
    def database_error(error):
        db.session.rollback()
        app.logger.exception("Database error")
        return render_template(
            "error.html", title="Error", message="The library database is unavailable.", status=500
        ), 500


def create_app(test_config=None):
    """
    Application factory. ``test_config`` overrides everything else.
    """
    app = Flask(__name__)
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY", "dev-secret-key"),   # For flash messages (dev only).
        SQLALCHEMY_DATABASE_URI=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URI),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        LOG_LEVEL=os.environ.get("LOG_LEVEL", "INFO"),
        OPENLIBRARY_LOOKUP=True,
        OPENLIBRARY_TIMEOUT=8,
    )
    app.config.from_prefixed_env()
    if test_config is not None:
        app.config.from_mapping(test_config)

    configure_logging(app)
    db.init_app(app)
    app.register_blueprint(catalog_bp)
    register_error_handlers(app)

    @app.route("/")
    def home():
        return redirect(url_for("catalog.index"))

    @app.cli.command("init-db")
    def init_db():
        """Create the catalog tables."""
        os.makedirs(os.path.join(basedir, "data"), exist_ok=True)
        db.create_all()
        click.echo("Initialized the library database.")

    return app


if __name__ == "__main__":
    app = create_app()
    os.makedirs(os.path.join(basedir, "data"), exist_ok=True)
    with app.app_context():
        db.create_all()

    app.run(debug=True)
