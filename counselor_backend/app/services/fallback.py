import logging
from dataclasses import dataclass, field

from app.services.course_graph import CourseRequirements, PlannedCourse, allowed_in_term
from app.services.scheduler import CreditPolicy, ScheduleState, TermSlot

logger = logging.getLogger(__name__)


@dataclass
class FallbackPlacement:
    course: PlannedCourse
    slot: TermSlot
    reasons: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"{self.course.key} placed in {self.slot.label} without meeting constraints: {'; '.join(self.reasons)}"


def place_leftovers(
    state: ScheduleState,
    requirements: dict[str, CourseRequirements],
    policy: CreditPolicy,
    include_summer: bool = True,
) -> list[FallbackPlacement]:
    """Place every course the greedy pass could not, in original plan order.

    The scan cursor only moves forward. A course that fits nowhere from the
    cursor on is forced into the final slot.
    """
    if not state.remaining or not state.slots:
        return []

    leftovers = sorted(state.remaining.values(), key=lambda c: (*c.original_position, c.order))
    placements: list[FallbackPlacement] = []
    cursor = 0

    for course in leftovers:
        target_idx = None
        for idx in range(cursor, len(state.slots)):
            slot = state.slots[idx]
            if allowed_in_term(course, slot.term, include_summer) and policy.has_capacity(
                state.load(slot), course.credits
            ):
                target_idx = cursor = idx
                break

        forced = target_idx is None
        if forced:
            target_idx = len(state.slots) - 1
        target = state.slots[target_idx]

        reasons = _unmet_prerequisites(course, target_idx, state, requirements)
        if forced:
            if not allowed_in_term(course, target.term, include_summer):
                reasons.append(f"not offered in {target.term}")
            if not policy.has_capacity(state.load(target), course.credits):
                reasons.append(f"exceeds {policy.max_credits}-credit cap")
        if not reasons:
            reasons.append("no term satisfied its prerequisites, standing or offering rules")

        state.place(course, target)
        placement = FallbackPlacement(course=course, slot=target, reasons=reasons)
        placements.append(placement)
        logger.warning(placement.message)

    return placements


def _unmet_prerequisites(
    course: PlannedCourse,
    target_idx: int,
    state: ScheduleState,
    requirements: dict[str, CourseRequirements],
) -> list[str]:
    req = requirements.get(course.key)
    if req is None or not req.groups:
        return []
    concurrent = course.allow_concurrent or req.allow_concurrent

    taken = {c.key for courses in state.fixed.values() for c in courses if c.status == "taken"}
    positions: dict[str, int] = {}
    for idx, slot in enumerate(state.slots):
        for placed in state.placements.get(slot, []):
            positions.setdefault(placed.key, idx)

    missing = []
    reasons = []
    for group in req.groups:
        if any(code in taken for code in group):
            continue
        placed = sorted((positions[code], code) for code in group if code in positions)
        if not placed:
            missing.append(" or ".join(group))
            continue
        idx, code = placed[0]
        if idx > target_idx:
            reasons.append(f"placed before prerequisite {code}")
        elif idx == target_idx and not concurrent:
            reasons.append(f"placed in the same term as prerequisite {code}")

    if missing and not concurrent:
        reasons.insert(0, f"prerequisites not scheduled first ({', '.join(missing)})")
    return reasons
