"""
Unit test fixtures
"""

import pytest
import sys
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add counselor_backend to path for imports
backend_dir = Path(__file__).parent.parent.parent
sys.path.insert(0, str(backend_dir))

from app.models.base import Base  # noqa: E402
import app.models  # noqa: E402,F401
from app.schemas.plan import PlanYear  # noqa: E402
from app.services.course_graph import PlannedCourse  # noqa: E402


def planned(key, uid=0, **overrides):
    """PlannedCourse with sensible defaults for scheduler tests"""
    fields = {
        "uid": uid,
        "key": key,
        "name": key,
        "credits": 3,
        "status": "planned",
        "original_year": 1,
        "original_term": "fall",
        "order": uid,
    }
    fields.update(overrides)
    return PlannedCourse(**fields)


def make_plan(years):
    """Build a degree plan from {year_id: {"fall": [course dicts], ...}}"""
    return {year_id: PlanYear.model_validate(terms) for year_id, terms in years.items()}


def slot_names(degree_plan):
    """Flatten a degree plan into {(year_id, term): [course names]}"""
    out = {}
    for year_id, year in degree_plan.items():
        for term in ("fall", "spring", "summer"):
            out[(year_id, term)] = [c.name for c in getattr(year, term).courses]
    return out


@pytest.fixture
def db_session():
    """In-memory SQLite session shared across threads"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def intro_sequence_plan():
    """CPTS 121 -> CPTS 122, both originally in Year 1 Fall"""
    return make_plan({
        1: {
            "fall": [
                {"name": "Program Design", "prefix": "CPTS", "number": "121", "credits": 4, "status": "planned"},
                {
                    "name": "Program Design II",
                    "prefix": "CPTS",
                    "number": "122",
                    "credits": 4,
                    "status": "planned",
                    "footnotes": ["Prereq CPTS 121 with a C or better."],
                },
            ],
        },
        2: {},
    })
