"""Catalog data model, defaults, serialization and cache."""

from .cache import CatalogCache
from .defaults import get_default_catalog
from .schemas import Answer, Catalog, CatalogSource, Category, Question, catalogs_equivalent
from .wire import catalog_to_entries, parse_catalog, parse_catalog_bytes

__all__ = [
    "Answer",
    "Question",
    "Category",
    "Catalog",
    "CatalogSource",
    "CatalogCache",
    "catalogs_equivalent",
    "get_default_catalog",
    "parse_catalog",
    "parse_catalog_bytes",
    "catalog_to_entries",
]
