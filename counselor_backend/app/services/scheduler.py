import logging
from dataclasses import dataclass, field
from typing import NamedTuple

from app.services.course_graph import (
    TERM_RANK,
    TERMS,
    CourseRequirements,
    PlannedCourse,
    allowed_in_term,
)
from app.services.levels import credits_before_slot, meets_level
from app.services.prereq_text import normalize_code

logger = logging.getLogger(__name__)

CREDIT_LIMITS = {"accelerated": 23, "normal": 18, "relaxed": 12}
FULL_TIME_CREDITS = 12
FULL_TIME_CEILING = 14


class TermSlot(NamedTuple):
    year_id: int
    term: str

    @property
    def sort_key(self) -> tuple[int, int]:
        return self.year_id, TERM_RANK[self.term]

    @property
    def label(self) -> str:
        return f"Year {self.year_id} {self.term.title()}"


def build_slots(year_ids) -> list[TermSlot]:
    return [TermSlot(year_id, term) for year_id in sorted(year_ids) for term in TERMS]


@dataclass
class CreditPolicy:
    speed: str
    max_credits: int
    ensure_full_time: bool = False

    def has_capacity(self, current: float, credits: float) -> bool:
        total = current + credits
        if total <= self.max_credits:
            return True
        # Relaxed loads may stretch to 14 so a light term still reaches full time.
        if self.ensure_full_time and self.speed == "relaxed":
            return current < FULL_TIME_CREDITS and total <= FULL_TIME_CEILING
        return False


def credit_policy(speed: str | None, ensure_full_time: bool = False) -> CreditPolicy:
    speed = (speed or "normal").lower()
    if speed not in CREDIT_LIMITS:
        logger.warning("Unknown speed %r, using normal credit limit", speed)
        speed = "normal"
    return CreditPolicy(speed=speed, max_credits=CREDIT_LIMITS[speed], ensure_full_time=ensure_full_time)


@dataclass
class ScheduleState:
    slots: list[TermSlot]
    placements: dict[TermSlot, list[PlannedCourse]] = field(default_factory=dict)
    # Courses that keep their original slot (taken or not schedulable).
    fixed: dict[TermSlot, list[PlannedCourse]] = field(default_factory=dict)
    scheduled: set[str] = field(default_factory=set)
    remaining: dict[int, PlannedCourse] = field(default_factory=dict)

    @classmethod
    def seed(
        cls,
        slots: list[TermSlot],
        fixed: list[tuple[TermSlot, PlannedCourse]],
        candidates: list[PlannedCourse],
    ) -> "ScheduleState":
        state = cls(slots=list(slots))
        for slot in state.slots:
            state.placements[slot] = []
            state.fixed[slot] = []
        for slot, course in fixed:
            state.fixed.setdefault(slot, []).append(course)
            if course.status == "taken":
                state.scheduled.add(course.key)
        for course in candidates:
            state.remaining[course.uid] = course
        return state

    def credits_in(self, slot: TermSlot) -> float:
        """Credits the optimizer has placed in ``slot``."""
        return sum(c.credits for c in self.placements.get(slot, []))

    def load(self, slot: TermSlot) -> float:
        """Total credits occupying ``slot``, fixed courses included."""
        return self.credits_in(slot) + sum(c.credits for c in self.fixed.get(slot, []))

    def place(self, course: PlannedCourse, slot: TermSlot) -> None:
        self.placements.setdefault(slot, []).append(course)
        self.scheduled.add(course.key)
        self.remaining.pop(course.uid, None)


def prereqs_satisfied(
    course: PlannedCourse,
    slot: TermSlot,
    state: ScheduleState,
    requirements: dict[str, CourseRequirements],
    achieved: float,
) -> bool:
    # Cross-listed options only move early when none of them carry prerequisites.
    for alt in course.alternatives:
        alt_req = requirements.get(normalize_code(alt))
        if alt_req is not None and alt_req.groups:
            return False

    req = requirements.get(course.key)
    if req is None:
        return True

    if req.level and not meets_level(req.level, credits_before_slot(state, slot, achieved)):
        return False

    for group in req.groups:
        if any(code in state.scheduled for code in group):
            continue
        if course.allow_concurrent or req.allow_concurrent:
            continue
        return False
    return True


def _priority(course: PlannedCourse, slot: TermSlot) -> tuple:
    deprioritize = 1 if course.summer_only and slot.term != "summer" else 0
    return (*course.original_position, deprioritize, course.order)


def schedule_terms(
    state: ScheduleState,
    requirements: dict[str, CourseRequirements],
    policy: CreditPolicy,
    achieved: float = 0,
    include_summer: bool = True,
) -> ScheduleState:
    for slot in state.slots:
        if not state.remaining:
            break
        current = state.load(slot)

        candidates = [
            course
            for course in state.remaining.values()
            if allowed_in_term(course, slot.term, include_summer)
            and prereqs_satisfied(course, slot, state, requirements, achieved)
        ]
        candidates.sort(key=lambda c: _priority(c, slot))

        for course in candidates:
            if not policy.has_capacity(current, course.credits):
                continue
            state.place(course, slot)
            current += course.credits

        logger.debug(
            "%s: %d candidate(s), %.1f credits placed, %d remaining",
            slot.label,
            len(candidates),
            state.credits_in(slot),
            len(state.remaining),
        )
    return state
