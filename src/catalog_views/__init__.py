"""Catalog views package root."""

from catalog_views.exceptions import (
    AggregationError,
    AmbiguousReference,
    CatalogViewsError,
    DanglingReference,
    MissingAnnotation,
)
from catalog_views.hierarchy import HierarchyAggregator
from catalog_views.index import EntityIndex
from catalog_views.matrix import ChangeImpactResolver
from catalog_views.model import Entity, Relation

__all__ = [
    "__version__",
    "AggregationError",
    "AmbiguousReference",
    "CatalogViewsError",
    "ChangeImpactResolver",
    "DanglingReference",
    "Entity",
    "EntityIndex",
    "HierarchyAggregator",
    "MissingAnnotation",
    "Relation",
]

__version__ = "0.1.0"
