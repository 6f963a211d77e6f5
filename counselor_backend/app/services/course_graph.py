import re
from dataclasses import dataclass, field
from typing import Any

from app.services.prereq_text import (
    detect_level_requirement,
    extract_prerequisite_groups,
    join_text,
    mentions_concurrent,
    normalize_code,
)

TERMS = ("fall", "spring", "summer")
TERM_RANK = {"fall": 1, "spring": 2, "summer": 3}

# "Not offered summer", "not summer", "not offered in summer", "Fall/Spring"
_NOT_SUMMER_RE = re.compile(r"\bnot\s+(?:offered\s+)?(?:in\s+)?summer\b|\bfall\s*/\s*spring\b", re.IGNORECASE)
_SUMMER_ONLY_RE = re.compile(r"\bsummer\s+only\b", re.IGNORECASE)


@dataclass
class PlannedCourse:
    uid: int
    key: str
    name: str
    credits: float
    status: str
    original_year: int
    original_term: str
    offered_terms: frozenset[str] | None = None
    footnotes: str = ""
    attributes: str = ""
    raw: str = ""
    alternatives: list[str] = field(default_factory=list)
    allow_concurrent: bool = False
    # Position in the submitted plan; ties in the sort keys keep this order.
    order: int = 0

    @property
    def original_position(self) -> tuple[int, int]:
        return self.original_year, TERM_RANK.get(self.original_term, len(TERM_RANK) + 1)

    @property
    def summer_only(self) -> bool:
        return self.offered_terms == frozenset({"summer"})


@dataclass
class CourseRequirements:
    key: str
    groups: list[list[str]]
    level: str | None = None
    offered_terms: frozenset[str] | None = None
    allow_concurrent: bool = False


def normalize_terms(terms) -> frozenset[str] | None:
    if not terms:
        return None
    cleaned = frozenset(str(t).strip().lower() for t in terms if str(t).strip().lower() in TERM_RANK)
    return cleaned or None


def _catalog_flag(meta: dict[str, Any]) -> bool:
    return bool(meta.get("concurrent") or meta.get("allow_concurrent"))


def build_requirements(
    courses: list[PlannedCourse],
    catalog: dict[str, dict[str, Any]],
) -> dict[str, CourseRequirements]:
    """Merge parsed text with catalog metadata into one record per course key.

    Offered terms and the concurrency flag resolved here are written back onto
    each ``PlannedCourse`` so eligibility checks can read them directly.
    """
    requirements: dict[str, CourseRequirements] = {}
    for course in courses:
        meta = catalog.get(normalize_code(course.key)) or {}
        text = join_text(course.footnotes, course.attributes, course.raw, course.name)

        groups = extract_prerequisite_groups(
            text,
            own_key=course.key,
            fallback_codes=meta.get("prerequisite_codes") or None,
        )

        if course.offered_terms is None:
            course.offered_terms = normalize_terms(meta.get("offered_terms"))

        course.allow_concurrent = (
            course.allow_concurrent
            or _catalog_flag(meta)
            or mentions_concurrent(join_text(course.footnotes, course.attributes, course.raw))
        )

        level = detect_level_requirement(join_text(text, meta.get("notes")))

        existing = requirements.get(course.key)
        if existing is not None:
            # Same key listed twice (e.g. a repeated elective); keep the richer record.
            if len(existing.groups) >= len(groups):
                continue

        requirements[course.key] = CourseRequirements(
            key=course.key,
            groups=groups,
            level=level,
            offered_terms=course.offered_terms,
            allow_concurrent=course.allow_concurrent,
        )
    return requirements


def allowed_in_term(course: PlannedCourse, term: str, include_summer: bool = True) -> bool:
    if course.offered_terms:
        return term in course.offered_terms

    text = join_text(course.attributes, course.footnotes)

    if _NOT_SUMMER_RE.search(text):
        return term != "summer"
    if _SUMMER_ONLY_RE.search(text):
        return term == "summer"

    if not include_summer and term == "summer":
        return False
    return True
