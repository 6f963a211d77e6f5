LEVEL_ORDER = {"freshman": 0, "sophomore": 1, "junior": 2, "senior": 3}

# Grades that count toward achieved credits.
PASSING_GRADES = {"A", "A-", "B+", "B", "B-", "C+", "C", "P"}


def student_level_from_credits(credits: float) -> str:
    if credits >= 90:
        return "senior"
    if credits >= 60:
        return "junior"
    if credits >= 30:
        return "sophomore"
    return "freshman"


def meets_level(required: str | None, credits: float) -> bool:
    if not required:
        return True
    current = student_level_from_credits(credits)
    return LEVEL_ORDER[current] >= LEVEL_ORDER.get(required, 0)


def credits_achieved(courses) -> float:
    """Credits from taken courses with a passing grade.

    ``courses`` is any iterable of objects exposing ``status``, ``grade`` and
    ``credits``.
    """
    total = 0.0
    for course in courses:
        if course.status == "taken" and course.grade and course.grade.strip().upper() in PASSING_GRADES:
            total += course.credits or 0
    return total


def credits_before_slot(state, slot, achieved: float) -> float:
    """Achieved credits plus everything placed in slots strictly before ``slot``."""
    credits = achieved
    for earlier in state.slots:
        if earlier == slot:
            break
        credits += state.credits_in(earlier)
    return credits
