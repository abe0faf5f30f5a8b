from __future__ import annotations

from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Mapping

from catalog_views.exceptions import AmbiguousReference, DanglingReference, InvalidReference
from catalog_views.model import Entity
from catalog_views.refs import normalize_entity_ref

EntityPredicate = Callable[[Entity], bool]


class EntityIndex:
    """Read-only lookup from canonical entity reference to entity.

    Built once per run from the catalog response. Iteration and `filter`
    preserve the input order.
    """

    def __init__(self, entities: Iterable[Entity]):
        ordered = tuple(entities)
        by_ref: dict[str, Entity] = {}
        for entity in ordered:
            ref = entity.ref
            if ref in by_ref:
                raise AmbiguousReference(ref)
            by_ref[ref] = entity
        self._entities = ordered
        self._by_ref: Mapping[str, Entity] = MappingProxyType(by_ref)

    @classmethod
    def from_entities(cls, entities: Iterable[Entity]) -> EntityIndex:
        return cls(entities)

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities)

    def __contains__(self, ref: object) -> bool:
        return isinstance(ref, str) and self.lookup(ref) is not None

    def lookup(self, ref: str) -> Entity | None:
        try:
            key = normalize_entity_ref(ref)
        except InvalidReference:
            return None
        return self._by_ref.get(key)

    def require(self, ref: str | None, *, declared_by: str, field: str) -> Entity:
        entity = self.lookup(ref) if ref else None
        if entity is None:
            raise DanglingReference(ref or "", declared_by=declared_by, field=field)
        return entity

    def filter(self, predicate: EntityPredicate) -> tuple[Entity, ...]:
        return tuple(entity for entity in self._entities if predicate(entity))


def kind_is(kind: str) -> EntityPredicate:
    expected = kind.lower()
    return lambda entity: entity.kind.lower() == expected


def type_is(spec_type: str) -> EntityPredicate:
    return lambda entity: entity.spec_type == spec_type


def has_tag(tag: str) -> EntityPredicate:
    return lambda entity: tag in entity.tags


def all_of(*predicates: EntityPredicate) -> EntityPredicate:
    return lambda entity: all(predicate(entity) for predicate in predicates)
