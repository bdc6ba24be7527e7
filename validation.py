"""
Form validation for catalog entities.

Each validate_* function takes the raw submitted form (a werkzeug MultiDict
or a plain dict) and returns a ValidationResult holding the sanitized values
and an ordered list of field errors. Nothing here raises on bad input: the
caller re-renders the form from ``result.values`` when ``result.errors`` is
non-empty.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, NamedTuple

from data_models import BOOK_INSTANCE_STATUSES, DEFAULT_STATUS

NAME_MAX_LENGTH = 100
GENRE_MIN_LENGTH = 3
ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class FieldError(NamedTuple):
    field: str
    message: str


@dataclass
class ValidationResult:
    values: dict
    errors: list = field(default_factory=list)
    # Set by the catalog once the values have been persisted (or resolved to
    # an existing record).
    record: Any = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, name: str, message: str) -> None:
        self.errors.append(FieldError(name, message))

    def error_fields(self) -> list:
        return [error.field for error in self.errors]


def parse_date(date_str: str):
    """
    Parse a HTML <input type="date"> ('YYYY-MM-DD') into a datetime.date.

    Raises:
        ValueError: when the string is not an ISO-8601 calendar date.
    """
    if not ISO_DATE.fullmatch(date_str):
        raise ValueError(f"not an ISO-8601 date: {date_str!r}")
    return date.fromisoformat(date_str)


def _text(form, name: str) -> str:
    return (form.get(name) or "").strip()


def normalize_genre_ids(form) -> list:
    """
    Return the submitted genre ids as a list of strings.

    Absent -> [], single value -> [value], multiple values -> all of them,
    with repeats dropped (first occurrence kept).
    """
    if hasattr(form, "getlist"):
        raw = form.getlist("genre")
    else:
        raw = form.get("genre")
        if raw is None:
            raw = []
        elif isinstance(raw, (str, int)):
            raw = [raw]
    ids = [str(value).strip() for value in raw if str(value).strip()]
    return list(dict.fromkeys(ids))


def _check_name(result, form, name, label):
    value = _text(form, name)
    result.values[name] = value
    if not value:
        result.add_error(name, f"{label} must be specified.")
    elif len(value) > NAME_MAX_LENGTH:
        result.add_error(name, f"{label} must be at most {NAME_MAX_LENGTH} characters.")
    elif not value.isalnum():
        # NOTE: also rejects legitimate names such as "O'Brien" or "Le Guin".
        result.add_error(name, f"{label} has non-alphanumeric characters.")


def _check_date(result, form, name, message, required=False):
    raw = _text(form, name)
    result.values[name] = raw
    if not raw:
        if required:
            result.add_error(name, message)
        return None
    try:
        return parse_date(raw)
    except ValueError:
        result.add_error(name, message)
        return None


def _check_required(result, form, name, message):
    value = _text(form, name)
    result.values[name] = value
    if not value:
        result.add_error(name, message)
    return value


def validate_author(form) -> ValidationResult:
    result = ValidationResult(values={})
    _check_name(result, form, "first_name", "First name")
    _check_name(result, form, "family_name", "Family name")
    dob = _check_date(result, form, "date_of_birth", "Invalid date of birth", required=True)
    dod = _check_date(result, form, "date_of_death", "Invalid date of death")

    if result.ok:
        result.values["date_of_birth"] = dob
        result.values["date_of_death"] = dod
    return result


def validate_book(form) -> ValidationResult:
    """
    Validate a book form. ``author`` and ``genre`` are left as id strings;
    resolving them against the database is the catalog's job.
    """
    result = ValidationResult(values={})
    _check_required(result, form, "title", "Title must not be empty.")
    _check_required(result, form, "author", "Author must not be empty.")
    _check_required(result, form, "summary", "Summary must not be empty.")
    _check_required(result, form, "isbn", "ISBN must not be empty.")
    result.values["genre"] = normalize_genre_ids(form)
    return result


def validate_genre(form) -> ValidationResult:
    result = ValidationResult(values={})
    name = _text(form, "name")
    result.values["name"] = name
    if len(name) < GENRE_MIN_LENGTH:
        result.add_error("name", "Genre name must contain at least 3 characters")
    elif len(name) > NAME_MAX_LENGTH:
        result.add_error("name", f"Genre name must be at most {NAME_MAX_LENGTH} characters")
    return result


def validate_book_instance(form) -> ValidationResult:
    result = ValidationResult(values={})
    _check_required(result, form, "book", "Book must be specified")
    _check_required(result, form, "imprint", "Imprint must be specified")

    status = _text(form, "status") or DEFAULT_STATUS
    result.values["status"] = status
    if status not in BOOK_INSTANCE_STATUSES:
        result.add_error("status", "Invalid status")

    due_back = _check_date(result, form, "due_back", "Invalid date")
    if result.ok:
        result.values["due_back"] = due_back
    return result
