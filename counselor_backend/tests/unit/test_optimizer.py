"""
Tests for services/optimizer.py - end-to-end plan optimization
"""

from collections import Counter
from unittest.mock import MagicMock

import pytest
import requests

from app.core.config import settings
from app.schemas.plan import OptimizeRequest, PlanCourse
from app.services.optimizer import course_key, optimize_degree_plan, optimize_plan

from conftest import make_plan, slot_names


def all_names(degree_plan):
    return Counter(name for names in slot_names(degree_plan).values() for name in names)


def find_slot(degree_plan, name):
    hits = [slot for slot, names in slot_names(degree_plan).items() if name in names]
    assert len(hits) == 1, f"{name} found in {hits}"
    return hits[0]


@pytest.fixture
def mixed_plan():
    return make_plan({
        1: {
            "fall": [
                {"name": "ENGL 101", "credits": 3, "status": "taken", "grade": "A"},
                {"name": "MATH 171", "credits": 4, "status": "planned"},
                {"name": "MATH 172", "credits": 4, "status": "planned", "footnotes": "Prereq MATH 171"},
                {"name": "", "credits": 3},
                {"name": "First-Year Seminar", "credits": 0, "status": "planned"},
            ],
            "spring": [
                {"name": "UCORE Elective", "credits": 3, "status": "planned"},
                {"name": "UCORE Elective", "credits": 3, "status": "planned"},
                {"name": "MATH 273", "credits": 2, "status": "in-progress", "footnotes": ["MATH 172"]},
            ],
        },
        2: {
            "fall": [
                {"name": "MATH 315", "credits": 3, "status": "not-taken", "footnotes": "MATH 172 or 182"},
            ],
        },
    })


class TestCourseKey:

    def test_prefix_and_number(self):
        assert course_key(PlanCourse(name="Program Design", prefix="Cpt S", number=121)) == "CPTS 121"

    def test_code_in_name(self):
        assert course_key(PlanCourse(name="CPTS 121 [QUAN]")) == "CPTS 121"

    def test_plain_name(self):
        assert course_key(PlanCourse(name="ucore   elective")) == "UCORE ELECTIVE"


class TestScenarios:

    def test_intro_sequence(self, intro_sequence_plan):
        result = optimize_degree_plan(intro_sequence_plan, speed="normal")
        names = slot_names(result.degree_plan)

        assert names[(1, "fall")] == ["Program Design"]
        assert names[(1, "spring")] == ["Program Design II"]
        assert not result.degraded

    def test_summer_only_course(self):
        plan = make_plan({
            1: {"fall": [{"name": "Field Camp", "credits": 3, "offeredTerms": ["summer"], "footnotes": "Summer only"}]},
            2: {},
            3: {},
            4: {},
        })

        result = optimize_degree_plan(plan, speed="normal")

        assert find_slot(result.degree_plan, "Field Camp") == (1, "summer")

    def test_five_four_credit_courses(self):
        plan = make_plan({
            1: {"fall": [{"name": f"HIST 10{i}", "credits": 4} for i in range(1, 6)]},
            2: {},
        })

        result = optimize_degree_plan(plan, speed="normal")
        names = slot_names(result.degree_plan)

        assert len(names[(1, "fall")]) == 4
        assert names[(1, "spring")] == ["HIST 105"]

    def test_prerequisite_cycle_flagged(self):
        plan = make_plan({
            1: {
                "fall": [
                    {"name": "CPTS 121", "credits": 4, "footnotes": "Prereq CPTS 122"},
                    {"name": "CPTS 122", "credits": 4, "footnotes": "Prereq CPTS 121"},
                ],
            },
        })

        result = optimize_degree_plan(plan)

        assert result.degraded
        assert {p.course.key for p in result.fallback} == {"CPTS 121", "CPTS 122"}
        assert result.warnings[0] == "Prerequisite cycle among: CPTS 121, CPTS 122"
        placed = result.degree_plan[1].fall.courses
        assert [c.name for c in placed] == ["CPTS 121", "CPTS 122"]
        assert all(c.fallback_placed for c in placed)


class TestProperties:

    def test_coverage_and_no_duplication(self, mixed_plan):
        result = optimize_degree_plan(mixed_plan)

        expected = all_names(mixed_plan)
        del expected[""]
        assert all_names(result.degree_plan) == expected

    def test_taken_and_zero_credit_courses_stay_put(self, mixed_plan):
        result = optimize_degree_plan(mixed_plan)

        assert find_slot(result.degree_plan, "ENGL 101") == (1, "fall")
        assert find_slot(result.degree_plan, "First-Year Seminar") == (1, "fall")

    def test_prerequisite_ordering(self, mixed_plan):
        result = optimize_degree_plan(mixed_plan)
        order = {"fall": 1, "spring": 2, "summer": 3}

        def position(name):
            year_id, term = find_slot(result.degree_plan, name)
            return year_id, order[term]

        assert not result.degraded
        assert position("MATH 171") < position("MATH 172")
        assert position("MATH 172") < position("MATH 273")
        assert position("MATH 172") < position("MATH 315")

    def test_credit_cap_on_regular_terms(self, mixed_plan):
        result = optimize_degree_plan(mixed_plan, speed="relaxed")

        for load in result.term_loads:
            if not load.fallback:
                assert load.credits <= 12

    def test_idempotent(self, mixed_plan):
        first = optimize_degree_plan(mixed_plan)
        second = optimize_degree_plan(first.degree_plan)

        assert slot_names(second.degree_plan) == slot_names(first.degree_plan)

    def test_input_plan_not_mutated(self, mixed_plan):
        before = {y: year.model_dump() for y, year in mixed_plan.items()}

        optimize_degree_plan(mixed_plan)

        assert {y: year.model_dump() for y, year in mixed_plan.items()} == before

    def test_catalog_prerequisites_and_terms(self):
        plan = make_plan({
            1: {"fall": [
                {"name": "STAT 360", "credits": 3},
                {"name": "STAT 212", "credits": 3},
            ]},
        })
        catalog = {
            "STAT 360": {"code": "STAT 360", "prerequisite_codes": ["STAT 212"], "offered_terms": ["spring"]},
        }

        result = optimize_degree_plan(plan, catalog=catalog)

        assert find_slot(result.degree_plan, "STAT 212") == (1, "fall")
        assert find_slot(result.degree_plan, "STAT 360") == (1, "spring")

    def test_empty_plan(self):
        result = optimize_degree_plan({})

        assert result.degree_plan == {}
        assert result.fallback == []


class TestOptimizePlan:

    def test_catalog_failure_degrades_to_text_parsing(self, intro_sequence_plan):
        lookup = MagicMock()
        lookup.get_courses.side_effect = requests.ConnectionError("catalog down")
        payload = OptimizeRequest(degree_plan=intro_sequence_plan, speed="normal", catalog_year="2024")

        response = optimize_plan(payload, lookup)

        lookup.get_courses.assert_called_once_with("2024")
        assert response.catalog_loaded is False
        assert response.status == "optimized"
        assert response.warnings[0].startswith("Catalog data unavailable")
        assert [c.name for c in response.degree_plan[1].spring.courses] == ["Program Design II"]

    def test_degraded_response_lists_fallback(self):
        plan = make_plan({1: {"fall": [{"name": "CAPS 499", "credits": 20}]}})
        payload = OptimizeRequest(degree_plan=plan)

        response = optimize_plan(payload, None)

        assert response.status == "degraded"
        assert response.fallback[0].key == "CAPS 499"
        assert response.fallback[0].term == "summer"
        assert response.message == "Plan optimized with 1 warning(s)."

    def test_malformed_catalog_rows_degrade_to_text_parsing(self, intro_sequence_plan):
        lookup = MagicMock()
        lookup.get_courses.return_value = ["CPTS 121", None]

        response = optimize_plan(OptimizeRequest(degree_plan=intro_sequence_plan), lookup)

        assert response.catalog_loaded is False
        assert [c.name for c in response.degree_plan[1].spring.courses] == ["Program Design II"]

    def test_default_speed_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "default_speed", "relaxed")
        plan = make_plan({1: {"fall": [{"name": f"HIST 10{i}", "credits": 4} for i in range(1, 5)]}})

        response = optimize_plan(OptimizeRequest(degree_plan=plan), None)

        assert len(response.degree_plan[1].fall.courses) == 3
        assert [c.name for c in response.degree_plan[1].spring.courses] == ["HIST 104"]

    def test_request_speed_overrides_default(self, monkeypatch):
        monkeypatch.setattr(settings, "default_speed", "relaxed")
        plan = make_plan({1: {"fall": [{"name": f"HIST 10{i}", "credits": 4} for i in range(1, 5)]}})

        response = optimize_plan(OptimizeRequest(degree_plan=plan, speed="normal"), None)

        assert len(response.degree_plan[1].fall.courses) == 4
