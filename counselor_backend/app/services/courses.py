import json

from sqlalchemy.orm import Session

from app.models.catalog import CatalogCourse
from app.schemas.catalog import CatalogCourseCreate
from app.services.prereq_text import normalize_code


def bulk_create_catalog_courses(db: Session, courses: list[CatalogCourseCreate]) -> list[CatalogCourse]:
    items = [_to_row(course) for course in courses]
    db.add_all(items)
    db.commit()
    for item in items:
        db.refresh(item)
    return items


def list_catalog_courses(db: Session, catalog_year: str | None = None) -> list[CatalogCourse]:
    query = db.query(CatalogCourse)
    if catalog_year:
        query = query.filter(CatalogCourse.catalog_year == catalog_year)
    return query.order_by(CatalogCourse.prefix, CatalogCourse.number).all()


def latest_catalog_year(db: Session) -> str | None:
    row = (
        db.query(CatalogCourse.catalog_year)
        .order_by(CatalogCourse.catalog_year.desc())
        .first()
    )
    return row[0] if row else None


def catalog_record(row: CatalogCourse) -> dict:
    """Row in the shape the optimizer's catalog lookup expects."""
    return {
        "code": row.code,
        "prefix": row.prefix,
        "number": row.number,
        "title": row.title,
        "credits": row.credits,
        "prerequisite_raw": row.prerequisite_raw,
        "prerequisite_codes": _load_list(row.prerequisite_codes),
        "offered_terms": _load_list(row.offered_terms),
        "notes": row.notes,
        "allow_concurrent": bool(row.allow_concurrent),
    }


def _to_row(course: CatalogCourseCreate) -> CatalogCourse:
    prefix = course.prefix.replace(" ", "").upper() if course.prefix else None
    code = normalize_code(course.code or f"{prefix} {course.number}")
    return CatalogCourse(
        catalog_year=course.catalog_year,
        code=code,
        prefix=prefix,
        number=course.number,
        title=course.title,
        credits=course.credits,
        prerequisite_raw=course.prerequisite_raw,
        prerequisite_codes=json.dumps([normalize_code(c) for c in course.prerequisite_codes]),
        offered_terms=json.dumps([t.lower() for t in course.offered_terms]),
        notes=course.notes,
        allow_concurrent=course.allow_concurrent,
    )


def _load_list(value: str | None) -> list[str]:
    if not value:
        return []
    try:
        data = json.loads(value)
    except ValueError:
        # Older rows stored comma-separated text.
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(item) for item in data] if isinstance(data, list) else []
