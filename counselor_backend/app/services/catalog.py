import logging
from typing import Any, Protocol

import requests
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.services.courses import catalog_record, latest_catalog_year, list_catalog_courses
from app.services.prereq_text import normalize_code

logger = logging.getLogger(__name__)


class CatalogLookup(Protocol):
    def get_courses(self, year: str | None) -> list[dict[str, Any]]: ...


class SqlCatalog:
    """Catalog snapshot stored in the local catalog_courses table."""

    def __init__(self, db: Session):
        self.db = db

    def get_courses(self, year: str | None) -> list[dict[str, Any]]:
        year = year or latest_catalog_year(self.db)
        if not year:
            return []
        return [catalog_record(row) for row in list_catalog_courses(self.db, year)]


class HttpCatalog:
    """Catalog served by a remote ``/api/catalog/courses`` endpoint."""

    def __init__(self, base_url: str, timeout: float | None = None, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.catalog_timeout_seconds
        self.session = session or requests.Session()

    def get_courses(self, year: str | None) -> list[dict[str, Any]]:
        params = {"limit": 5000}
        if year:
            params["year"] = year
        resp = self.session.get(f"{self.base_url}/api/catalog/courses", params=params, timeout=self.timeout)
        resp.raise_for_status()
        payload = resp.json()
        courses = payload.get("courses", []) if isinstance(payload, dict) else payload
        if not isinstance(courses, list):
            raise ValueError("catalog response has no course list")
        return courses


def load_catalog_map(lookup: CatalogLookup | None, year: str | None) -> tuple[dict[str, dict[str, Any]], bool]:
    """Fetch catalog rows keyed by normalized code.

    Returns ``(catalog_map, ok)``. Failures are logged and yield an empty map
    so the optimizer falls back to text-only prerequisite parsing.
    """
    if lookup is None:
        return {}, True
    try:
        rows = lookup.get_courses(year)
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise ValueError("catalog rows must be a list of objects")
    except (requests.RequestException, SQLAlchemyError, ValueError) as exc:
        logger.warning("Could not load catalog courses for optimizer (year=%s): %s", year, exc)
        return {}, False

    catalog: dict[str, dict[str, Any]] = {}
    for row in rows:
        code = row.get("code") or (
            f"{row.get('prefix')} {row.get('number')}" if row.get("prefix") and row.get("number") else None
        )
        if code:
            catalog[normalize_code(code)] = row
    logger.info("Loaded %d catalog course(s) for year %s", len(catalog), year or "latest")
    return catalog, True


def default_lookup(db: Session) -> CatalogLookup:
    if settings.catalog_api_url:
        return HttpCatalog(settings.catalog_api_url)
    return SqlCatalog(db)
