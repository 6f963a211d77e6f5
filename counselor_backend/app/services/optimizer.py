import logging
from dataclasses import dataclass, field
from typing import Any

from app.core.config import settings
from app.schemas.plan import (
    DegreePlan,
    FallbackOut,
    OptimizeRequest,
    OptimizeResponse,
    PlanCourse,
    PlanTerm,
    PlanYear,
    TermLoadOut,
)
from app.services.catalog import CatalogLookup, load_catalog_map
from app.services.course_graph import PlannedCourse, build_requirements, normalize_terms
from app.services.fallback import FallbackPlacement, place_leftovers
from app.services.graph import blocking_prereq_map, build_graph, cycle_members
from app.services.levels import credits_achieved
from app.services.prereq_text import code_from_name, join_text, normalize_code
from app.services.scheduler import ScheduleState, TermSlot, build_slots, credit_policy, schedule_terms

logger = logging.getLogger(__name__)


@dataclass
class OptimizationResult:
    degree_plan: DegreePlan
    fallback: list[FallbackPlacement] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    term_loads: list[TermLoadOut] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.fallback)


def course_key(course: PlanCourse) -> str:
    prefix = (course.prefix or "").replace(" ", "").upper()
    number = (course.number or "").strip()
    if prefix and number:
        return normalize_code(f"{prefix} {number}")
    return code_from_name(course.name) or normalize_code(course.name)


def optimize_degree_plan(
    degree_plan: DegreePlan,
    speed: str = "normal",
    catalog: dict[str, dict[str, Any]] | None = None,
    include_summer: bool = True,
    ensure_full_time: bool = False,
) -> OptimizationResult:
    """Redistribute every schedulable course across the plan's term slots.

    Taken courses and courses without credits stay where they are. The input
    plan is left untouched; a new plan is returned.
    """
    catalog = catalog or {}
    policy = credit_policy(speed, ensure_full_time)
    slots = build_slots(degree_plan.keys())

    sources: dict[int, PlanCourse] = {}
    fixed: list[tuple[TermSlot, PlannedCourse]] = []
    candidates: list[PlannedCourse] = []

    for slot in slots:
        for course in getattr(degree_plan[slot.year_id], slot.term).courses:
            if not course.name or not course.name.strip():
                continue
            uid = len(sources)
            sources[uid] = course
            planned = PlannedCourse(
                uid=uid,
                key=course_key(course),
                name=course.name,
                credits=course.credits or 0,
                status=course.status,
                original_year=slot.year_id,
                original_term=slot.term,
                offered_terms=normalize_terms(course.offered_terms),
                footnotes=join_text(course.footnotes),
                attributes=join_text(course.attributes),
                raw=course.raw or "",
                alternatives=list(course.alternatives or []),
                allow_concurrent=course.concurrent or course.allow_concurrent,
                order=uid,
            )
            if course.status == "taken" or planned.credits <= 0:
                fixed.append((slot, planned))
            else:
                candidates.append(planned)

    achieved = credits_achieved(sources.values())
    requirements = build_requirements(candidates, catalog)
    state = ScheduleState.seed(slots, fixed, candidates)

    schedule_terms(state, requirements, policy, achieved=achieved, include_summer=include_summer)

    warnings: list[str] = []
    if state.remaining:
        pending = {c.key for c in state.remaining.values()}
        cyclic = cycle_members(build_graph(blocking_prereq_map(requirements, pending)))
        if cyclic:
            warnings.append(f"Prerequisite cycle among: {', '.join(sorted(cyclic))}")

    placements = place_leftovers(state, requirements, policy, include_summer=include_summer)
    warnings.extend(p.message for p in placements)

    fallback_uids = {p.course.uid for p in placements}
    fallback_slots = {p.slot for p in placements}

    new_plan: DegreePlan = {year_id: PlanYear() for year_id in sorted(degree_plan)}
    term_loads: list[TermLoadOut] = []
    for slot in state.slots:
        courses = [
            sources[c.uid].model_copy(update={"fallback_placed": c.uid in fallback_uids}, deep=True)
            for c in state.fixed.get(slot, []) + state.placements.get(slot, [])
        ]
        setattr(new_plan[slot.year_id], slot.term, PlanTerm(courses=courses))
        load = state.load(slot)
        if load:
            term_loads.append(
                TermLoadOut(year_id=slot.year_id, term=slot.term, credits=load, fallback=slot in fallback_slots)
            )

    logger.info(
        "Optimized %d course(s) at %s speed: %d fixed, %d fallback-placed",
        len(candidates),
        policy.speed,
        len(fixed),
        len(placements),
    )
    return OptimizationResult(
        degree_plan=new_plan,
        fallback=placements,
        warnings=warnings,
        term_loads=term_loads,
    )


def optimize_plan(payload: OptimizeRequest, lookup: CatalogLookup | None) -> OptimizeResponse:
    catalog, catalog_loaded = load_catalog_map(lookup, payload.catalog_year or settings.default_catalog_year)

    result = optimize_degree_plan(
        payload.degree_plan,
        speed=payload.speed or settings.default_speed,
        catalog=catalog,
        include_summer=payload.include_summer,
        ensure_full_time=payload.ensure_full_time,
    )

    warnings = list(result.warnings)
    if not catalog_loaded:
        warnings.insert(0, "Catalog data unavailable; prerequisites were parsed from course text only.")

    message = "Plan optimized successfully."
    if warnings:
        message = f"Plan optimized with {len(warnings)} warning(s)."

    return OptimizeResponse(
        status="degraded" if result.degraded else "optimized",
        message=message,
        degree_plan=result.degree_plan,
        warnings=warnings,
        fallback=[
            FallbackOut(key=p.course.key, year_id=p.slot.year_id, term=p.slot.term, reasons=p.reasons)
            for p in result.fallback
        ],
        term_loads=result.term_loads,
        catalog_loaded=catalog_loaded,
    )
