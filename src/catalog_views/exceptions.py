"""Error taxonomy for catalog aggregation and matrix building."""

from __future__ import annotations


class CatalogViewsError(RuntimeError):
    """Base class for deterministic, non-retryable data errors."""


class InvalidReference(CatalogViewsError):
    def __init__(self, ref: str, reason: str = "malformed entity reference"):
        super().__init__(f"{reason}: {ref!r}")
        self.ref = ref
        self.reason = reason


class AmbiguousReference(CatalogViewsError):
    """Two entities in one loaded set stringify to the same reference."""

    def __init__(self, ref: str):
        super().__init__(f"duplicate entity reference in catalog data: {ref}")
        self.ref = ref


class AggregationError(CatalogViewsError):
    """Hierarchy aggregation could not produce a complete result."""


class DanglingReference(AggregationError):
    """A mandatory reference does not resolve to a loaded entity.

    `declared_by` is the reference of the entity carrying the broken edge and
    `field` names where it was declared (a relation type or a spec field).
    """

    def __init__(self, ref: str, *, declared_by: str, field: str):
        target = ref or "<missing>"
        super().__init__(
            f"unresolved reference {target} declared by {declared_by} ({field})"
        )
        self.ref = ref
        self.declared_by = declared_by
        self.field = field


class MissingAnnotation(CatalogViewsError):
    def __init__(self, entity_ref: str, annotation: str):
        super().__init__(f"{entity_ref} has no {annotation} annotation")
        self.entity_ref = entity_ref
        self.annotation = annotation


class CatalogPayloadError(CatalogViewsError):
    """The catalog answered with something that is not a list of entities."""


class OrderViolation(CatalogViewsError):
    def __init__(self, message: str, payload: dict[str, object]):
        super().__init__(f"{message}: {payload.get('source', '')}")
        self.payload = payload
