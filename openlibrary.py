"""
Summary lookup from Open Library, used to pre-fill the book form.

Open Library serves an edition record per ISBN; the description lives either
on the edition or on the work it links to. Any network or decoding failure
means "no summary": the librarian then types one in.
"""

import logging

import requests

logger = logging.getLogger(__name__)

BASE_URL = "https://openlibrary.org"
DEFAULT_TIMEOUT = 8

SESSION = requests.Session()
SESSION.headers.update({
    "User-Agent": "LocalLibrary/1.0 (catalog summary lookup)",
    "Accept": "application/json",
})


def normalize_isbn(isbn: str) -> str:
    """
    Strip hyphens and spaces, e.g. '978-0-7475-3269-9' -> '9780747532699'.
    """
    return (isbn or "").replace("-", "").replace(" ", "").strip()


def description_of(record: dict) -> str | None:
    """
    Extract the description from an Open Library edition or work record.

    The field is either a plain string or ``{"type": ..., "value": ...}``.
    """
    desc = record.get("description")
    if isinstance(desc, dict):
        desc = desc.get("value")
    if isinstance(desc, str) and desc.strip():
        return desc.strip()
    return None


def _get_json(path: str, timeout: float):
    url = f"{BASE_URL}{path}"
    try:
        response = SESSION.get(url, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("Open Library request to %s failed: %s", url, exc)
        return None

    if response.status_code != 200:
        logger.info("Open Library returned %s for %s", response.status_code, url)
        return None

    try:
        data = response.json()
    except ValueError:
        logger.warning("Open Library returned invalid JSON for %s", url)
        return None
    return data if isinstance(data, dict) else None


def lookup_summary(isbn: str, timeout: float = DEFAULT_TIMEOUT) -> str | None:
    """
    Return a summary for ``isbn``, trying the edition first and then the
    first work it links to. Returns None when nothing usable is found.
    """
    isbn = normalize_isbn(isbn)
    if not isbn:
        return None

    edition = _get_json(f"/isbn/{isbn}.json", timeout)
    if edition is None:
        return None

    summary = description_of(edition)
    if summary:
        return summary

    works = edition.get("works") or []
    if works and isinstance(works[0], dict) and works[0].get("key"):
        work = _get_json(f"{works[0]['key']}.json", timeout)
        if work is not None:
            return description_of(work)
    return None
