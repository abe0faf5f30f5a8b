from __future__ import annotations

import pytest

from catalog_views.exceptions import InvalidReference
from catalog_views.refs import normalize_entity_ref, parse_entity_ref, ref_kind, stringify_entity_ref


def test_stringify_lowercases_kind_and_namespace_only() -> None:
    assert stringify_entity_ref("Component", "Default", "Bridge-API") == "component:default/Bridge-API"
    assert stringify_entity_ref("API", None, "x") == "api:default/x"


@pytest.mark.parametrize(
    ("raw", "default_kind", "expected"),
    [
        ("component:default/c1", None, "component:default/c1"),
        ("System:s1", None, "system:default/s1"),
        ("ops/s1", "system", "system:ops/s1"),
        ("s1", "system", "system:default/s1"),
        ("  User:Default/alice  ", None, "user:default/alice"),
    ],
)
def test_normalize_entity_ref_forms(raw: str, default_kind: str | None, expected: str) -> None:
    assert normalize_entity_ref(raw, default_kind=default_kind) == expected


@pytest.mark.parametrize("raw", ["", "   ", "s1", ":default/x", "user:/x", "user:default/"])
def test_parse_entity_ref_rejects_malformed(raw: str) -> None:
    with pytest.raises(InvalidReference):
        parse_entity_ref(raw)


def test_ref_kind() -> None:
    assert ref_kind("Group:default/g1") == "group"
