from app.models.catalog import CatalogCourse  # noqa: F401
