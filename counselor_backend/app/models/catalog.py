from sqlalchemy import Boolean, Column, Float, Integer, String, Text

from app.models.base import Base


class CatalogCourse(Base):
    __tablename__ = "catalog_courses"

    id = Column(Integer, primary_key=True, index=True)
    catalog_year = Column(String, nullable=False, index=True)
    code = Column(String, nullable=False, index=True)  # e.g., "CPTS 121"
    prefix = Column(String, nullable=True)
    number = Column(String, nullable=True)
    title = Column(String, nullable=True)
    credits = Column(Float, nullable=True)
    prerequisite_raw = Column(Text, nullable=True)
    prerequisite_codes = Column(Text, nullable=True)  # JSON list of codes
    offered_terms = Column(Text, nullable=True)  # JSON list, e.g. ["fall", "spring"]
    notes = Column(Text, nullable=True)
    allow_concurrent = Column(Boolean, default=False)
