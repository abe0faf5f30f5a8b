"""Immutable catalog entities and the relations between them."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from catalog_views.refs import ref_kind, stringify_entity_ref
from catalog_views.schema import EntityDTO

RELATION_OWNED_BY = "ownedBy"
RELATION_HAS_PART = "hasPart"
RELATION_API_PROVIDED_BY = "apiProvidedBy"


def _frozen_mapping(value: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class Relation:
    type: str
    target_ref: str

    @property
    def target_kind(self) -> str:
        return ref_kind(self.target_ref)


@dataclass(frozen=True)
class Entity:
    kind: str
    name: str
    namespace: str = "default"
    title: str | None = None
    spec_type: str | None = None
    owner: str | None = None
    system: str | None = None
    tags: tuple[str, ...] = ()
    annotations: Mapping[str, str] = field(default_factory=dict, hash=False)
    relations: tuple[Relation, ...] = ()
    spec: Mapping[str, Any] = field(default_factory=dict, hash=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "relations", tuple(self.relations))
        object.__setattr__(self, "annotations", _frozen_mapping(self.annotations))
        object.__setattr__(self, "spec", _frozen_mapping(self.spec))

    @property
    def ref(self) -> str:
        return stringify_entity_ref(self.kind, self.namespace, self.name)

    @property
    def display_title(self) -> str:
        return self.title or self.name

    def relations_of(self, relation_type: str) -> tuple[Relation, ...]:
        return tuple(item for item in self.relations if item.type == relation_type)

    def to_payload(self) -> dict[str, object]:
        return {
            "ref": self.ref,
            "name": self.name,
            "title": self.display_title,
        }


def _optional_text(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def entity_from_dto(dto: EntityDTO) -> Entity:
    spec = dict(dto.spec)
    return Entity(
        kind=dto.kind,
        name=dto.metadata.name,
        namespace=dto.metadata.namespace or "default",
        title=_optional_text(dto.metadata.title),
        spec_type=_optional_text(spec.get("type")),
        owner=_optional_text(spec.get("owner")),
        system=_optional_text(spec.get("system")),
        tags=tuple(dto.metadata.tags),
        annotations=dto.metadata.annotations,
        relations=tuple(
            Relation(type=item.type, target_ref=item.target_ref)
            for item in dto.relations
        ),
        spec=spec,
    )


def entity_from_payload(payload: Mapping[str, object]) -> Entity:
    return entity_from_dto(EntityDTO.model_validate(payload))


def entities_from_payloads(payloads: Iterable[Mapping[str, object]]) -> list[Entity]:
    return [entity_from_payload(item) for item in payloads]
