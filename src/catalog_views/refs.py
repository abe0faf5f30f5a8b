"""Entity reference strings of the form ``kind:namespace/name``."""

from __future__ import annotations

from dataclasses import dataclass

from catalog_views.exceptions import InvalidReference

DEFAULT_NAMESPACE = "default"


@dataclass(frozen=True)
class EntityName:
    kind: str
    namespace: str
    name: str

    @property
    def ref(self) -> str:
        return stringify_entity_ref(self.kind, self.namespace, self.name)


def stringify_entity_ref(kind: str, namespace: str | None, name: str) -> str:
    return f"{kind.lower()}:{(namespace or DEFAULT_NAMESPACE).lower()}/{name}"


def parse_entity_ref(
    ref: str,
    *,
    default_kind: str | None = None,
    default_namespace: str = DEFAULT_NAMESPACE,
) -> EntityName:
    text = ref.strip() if isinstance(ref, str) else ""
    if not text:
        raise InvalidReference(str(ref), "empty entity reference")
    kind: str | None = default_kind
    rest = text
    if ":" in text:
        kind, rest = text.split(":", 1)
        if not kind:
            raise InvalidReference(text, "entity reference has an empty kind")
    if kind is None:
        raise InvalidReference(text, "entity reference has no kind")
    namespace = default_namespace
    name = rest
    if "/" in rest:
        namespace, name = rest.split("/", 1)
        if not namespace:
            raise InvalidReference(text, "entity reference has an empty namespace")
    if not name or "/" in name:
        raise InvalidReference(text)
    return EntityName(kind=kind.lower(), namespace=namespace.lower(), name=name)


def normalize_entity_ref(ref: str, *, default_kind: str | None = None) -> str:
    return parse_entity_ref(ref, default_kind=default_kind).ref


def ref_kind(ref: str) -> str:
    return parse_entity_ref(ref).kind
