from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.catalog import CatalogCourseCreateRequest, CatalogCourseListResponse, CatalogCourseOut
from app.schemas.plan import OptimizeRequest, OptimizeResponse
from app.services.catalog import default_lookup
from app.services.courses import (
    bulk_create_catalog_courses,
    catalog_record,
    latest_catalog_year,
    list_catalog_courses,
)
from app.services.optimizer import optimize_plan

router = APIRouter(prefix="/api")


@router.post("/plans/optimize", response_model=OptimizeResponse)
def optimize_plan_endpoint(
    payload: OptimizeRequest,
    db: Session = Depends(get_db),
):
    return optimize_plan(payload, default_lookup(db))


@router.post("/catalog/courses", response_model=list[CatalogCourseOut])
def bulk_create_catalog_courses_endpoint(
    payload: CatalogCourseCreateRequest,
    db: Session = Depends(get_db),
):
    rows = bulk_create_catalog_courses(db, payload.courses)
    return [catalog_record(row) for row in rows]


@router.get("/catalog/courses", response_model=CatalogCourseListResponse)
def list_catalog_courses_endpoint(
    year: str | None = Query(None, description="Catalog year; latest when omitted"),
    db: Session = Depends(get_db),
):
    year = year or latest_catalog_year(db)
    rows = list_catalog_courses(db, year) if year else []
    return CatalogCourseListResponse(year=year, courses=[catalog_record(row) for row in rows])
