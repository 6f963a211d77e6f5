from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

CourseStatus = Literal["not-taken", "planned", "in-progress", "taken"]
Speed = Literal["accelerated", "normal", "relaxed"]


class PlanCourse(BaseModel):
    # Planner clients send camelCase ("offeredTerms"); both spellings are accepted.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str | int | None = None
    name: str = ""
    prefix: str | None = None
    number: str | None = None
    credits: float = 0
    status: CourseStatus = "not-taken"
    grade: str | None = None
    offered_terms: list[str] | None = None
    footnotes: str | list[str] = ""
    attributes: str | list[str] = ""
    raw: str | None = None
    alternatives: list[str] | None = None
    concurrent: bool = False
    allow_concurrent: bool = False
    fallback_placed: bool = False

    @field_validator("name", "footnotes", "attributes", mode="before")
    @classmethod
    def _blank_text(cls, value):
        return "" if value is None else value

    @field_validator("number", mode="before")
    @classmethod
    def _number_as_text(cls, value):
        return str(value) if value is not None else None

    @field_validator("credits", mode="before")
    @classmethod
    def _credits_default(cls, value):
        return 0 if value in (None, "") else value


class PlanTerm(BaseModel):
    courses: list[PlanCourse] = []


class PlanYear(BaseModel):
    fall: PlanTerm = Field(default_factory=PlanTerm)
    spring: PlanTerm = Field(default_factory=PlanTerm)
    summer: PlanTerm = Field(default_factory=PlanTerm)

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_lists(cls, data):
        # {"fall": [...]} is shorthand for {"fall": {"courses": [...]}}
        if isinstance(data, dict):
            return {
                term: {"courses": value or []} if value is None or isinstance(value, list) else value
                for term, value in data.items()
            }
        return data


DegreePlan = dict[int, PlanYear]


class OptimizeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    degree_plan: DegreePlan
    speed: Speed | None = None
    catalog_year: str | None = None
    include_summer: bool = True
    ensure_full_time: bool = False


class FallbackOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    key: str
    year_id: int
    term: str
    reasons: list[str] = []


class TermLoadOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    year_id: int
    term: str
    credits: float
    fallback: bool = False


class OptimizeResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str  # optimized | degraded
    message: str
    degree_plan: DegreePlan
    warnings: list[str] = []
    fallback: list[FallbackOut] = []
    term_loads: list[TermLoadOut] = []
    catalog_loaded: bool = True
