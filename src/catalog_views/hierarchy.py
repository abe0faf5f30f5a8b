"""System -> Component -> multisig deployment -> signer ownership tree.

The catalog only links entities through reference strings, so every edge is
resolved through the `EntityIndex`. A mandatory edge that does not resolve
fails the whole aggregation with `DanglingReference`.

Every level is sorted so that the result depends only on entity references
and names, never on the order the catalog returned them in:

- systems by name,
- components by name,
- deployments by name,
- signers by the name of their owner.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from catalog_views.exceptions import DanglingReference
from catalog_views.index import EntityIndex, all_of, kind_is, type_is
from catalog_views.model import (
    RELATION_API_PROVIDED_BY,
    RELATION_HAS_PART,
    RELATION_OWNED_BY,
    Entity,
    Relation,
)
from catalog_views.order_contract import sort_once
from catalog_views.refs import normalize_entity_ref

DEFAULT_ROOT_KIND = "API"
DEFAULT_ROOT_TYPE = "multisig-deployment"
DEFAULT_OWNER_KIND = "group"


@dataclass(frozen=True)
class SignerInfo:
    signer: Entity
    owner: Entity

    def to_payload(self) -> dict[str, object]:
        return {
            "signer": self.signer.to_payload(),
            "owner": self.owner.to_payload(),
        }


@dataclass(frozen=True)
class ArtifactInfo:
    entity: Entity
    signers: tuple[SignerInfo, ...]

    def to_payload(self) -> dict[str, object]:
        return {
            "entity": self.entity.to_payload(),
            "signers": [signer.to_payload() for signer in self.signers],
        }


@dataclass(frozen=True)
class ComponentGroup:
    title: str
    component: Entity
    artifacts: tuple[ArtifactInfo, ...]

    def to_payload(self) -> dict[str, object]:
        return {
            "title": self.title,
            "component": self.component.to_payload(),
            "artifacts": [artifact.to_payload() for artifact in self.artifacts],
        }


@dataclass(frozen=True)
class SystemGroup:
    title: str
    system: Entity
    components: tuple[ComponentGroup, ...]

    def to_payload(self) -> dict[str, object]:
        return {
            "title": self.title,
            "system": self.system.to_payload(),
            "components": [component.to_payload() for component in self.components],
        }


class HierarchyAggregator:
    def __init__(
        self,
        index: EntityIndex,
        *,
        root_kind: str = DEFAULT_ROOT_KIND,
        root_type: str = DEFAULT_ROOT_TYPE,
        owner_default_kind: str = DEFAULT_OWNER_KIND,
    ):
        self.index = index
        self.root_kind = root_kind
        self.root_type = root_type
        self.owner_default_kind = owner_default_kind
        self.roots = index.filter(all_of(kind_is(root_kind), type_is(root_type)))

    def aggregate(self) -> tuple[SystemGroup, ...]:
        declared_by = self._system_refs()
        groups = [
            self._system_group(ref, declared_by=declared_by[ref])
            for ref in sort_once(declared_by, source="HierarchyAggregator.aggregate.refs")
        ]
        return tuple(
            sort_once(
                groups,
                source="HierarchyAggregator.aggregate.systems",
                key=lambda group: (group.system.name, group.system.ref),
            )
        )

    def _system_refs(self) -> dict[str, str]:
        # system ref -> lowest deployment ref declaring it
        refs: dict[str, str] = {}
        for root in self.roots:
            if not root.system:
                raise DanglingReference("", declared_by=root.ref, field="spec.system")
            system_ref = normalize_entity_ref(root.system, default_kind="system")
            refs[system_ref] = min(refs.get(system_ref, root.ref), root.ref)
        return refs

    def _system_group(self, system_ref: str, *, declared_by: str) -> SystemGroup:
        system = self.index.require(system_ref, declared_by=declared_by, field="spec.system")
        return SystemGroup(
            title=system.display_title,
            system=system,
            components=self._components(system),
        )

    def _components(self, system: Entity) -> tuple[ComponentGroup, ...]:
        edges = _distinct_targets(
            relation
            for relation in system.relations_of(RELATION_HAS_PART)
            if relation.target_kind == "component"
        )
        groups: list[ComponentGroup] = []
        for relation in edges:
            component = self.index.require(
                relation.target_ref,
                declared_by=system.ref,
                field=RELATION_HAS_PART,
            )
            groups.append(
                ComponentGroup(
                    title=component.display_title,
                    component=component,
                    artifacts=self._artifacts(component),
                )
            )
        return tuple(
            sort_once(
                groups,
                source="HierarchyAggregator._components",
                key=lambda group: (group.component.name, group.component.ref),
            )
        )

    def _artifacts(self, component: Entity) -> tuple[ArtifactInfo, ...]:
        artifacts = [
            ArtifactInfo(entity=root, signers=self._signers(root))
            for root in self.roots
            if _provides_for(root, component)
        ]
        return tuple(
            sort_once(
                artifacts,
                source="HierarchyAggregator._artifacts",
                key=lambda info: (info.entity.name, info.entity.ref),
            )
        )

    def _signers(self, artifact: Entity) -> tuple[SignerInfo, ...]:
        edges = _distinct_targets(
            relation
            for relation in artifact.relations_of(RELATION_OWNED_BY)
            if relation.target_kind != "group"
        )
        signers: list[SignerInfo] = []
        for relation in edges:
            signer = self.index.require(
                relation.target_ref,
                declared_by=artifact.ref,
                field=RELATION_OWNED_BY,
            )
            owner_ref = (
                normalize_entity_ref(signer.owner, default_kind=self.owner_default_kind)
                if signer.owner
                else None
            )
            owner = self.index.require(owner_ref, declared_by=signer.ref, field="spec.owner")
            signers.append(SignerInfo(signer=signer, owner=owner))
        return tuple(
            sort_once(
                signers,
                source="HierarchyAggregator._signers",
                key=lambda info: (info.owner.name, info.signer.ref),
            )
        )


def _distinct_targets(relations: Iterable[Relation]) -> list[Relation]:
    seen: set[str] = set()
    distinct: list[Relation] = []
    for relation in relations:
        key = normalize_entity_ref(relation.target_ref)
        if key in seen:
            continue
        seen.add(key)
        distinct.append(relation)
    return distinct


def _provides_for(artifact: Entity, component: Entity) -> bool:
    return any(
        normalize_entity_ref(relation.target_ref) == component.ref
        for relation in artifact.relations_of(RELATION_API_PROVIDED_BY)
    )


def aggregate_hierarchy(
    entities: Iterable[Entity],
    *,
    root_kind: str = DEFAULT_ROOT_KIND,
    root_type: str = DEFAULT_ROOT_TYPE,
    owner_default_kind: str = DEFAULT_OWNER_KIND,
) -> tuple[SystemGroup, ...]:
    index = EntityIndex(entities)
    return HierarchyAggregator(
        index,
        root_kind=root_kind,
        root_type=root_type,
        owner_default_kind=owner_default_kind,
    ).aggregate()


def hierarchy_payload(groups: Sequence[SystemGroup]) -> list[dict[str, object]]:
    return [group.to_payload() for group in groups]


def summarize_multisigs(groups: Sequence[SystemGroup]) -> list[dict[str, object]]:
    """Flatten the tree into one row per deployment, in tree order.

    `network` is the leading dash-separated segment of the deployment name
    (``mainnet-treasury`` -> ``mainnet``).
    """
    rows: list[dict[str, object]] = []
    for system in groups:
        for component in system.components:
            for artifact in component.artifacts:
                entity = artifact.entity
                rows.append(
                    {
                        "name": entity.name,
                        "network": entity.name.split("-")[0],
                        "spec": entity.spec.get("multisig"),
                    }
                )
    return rows
