from pydantic import BaseModel, model_validator


class CatalogCourseCreate(BaseModel):
    catalog_year: str
    code: str | None = None
    prefix: str | None = None
    number: str | None = None
    title: str | None = None
    credits: float | None = None
    prerequisite_raw: str | None = None
    prerequisite_codes: list[str] = []
    offered_terms: list[str] = []
    notes: str | None = None
    allow_concurrent: bool = False

    @model_validator(mode="after")
    def _require_code(self):
        if not self.code and not (self.prefix and self.number):
            raise ValueError("either code or prefix and number are required")
        return self


class CatalogCourseCreateRequest(BaseModel):
    courses: list[CatalogCourseCreate]


class CatalogCourseOut(BaseModel):
    code: str
    prefix: str | None = None
    number: str | None = None
    title: str | None = None
    credits: float | None = None
    prerequisite_raw: str | None = None
    prerequisite_codes: list[str] = []
    offered_terms: list[str] = []
    notes: str | None = None
    allow_concurrent: bool = False


class CatalogCourseListResponse(BaseModel):
    year: str | None = None
    courses: list[CatalogCourseOut] = []
