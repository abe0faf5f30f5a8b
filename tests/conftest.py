from __future__ import annotations

import pytest

from catalog_views.model import Entity, entity_from_payload
from tests.catalog_helpers import relation, source_location


@pytest.fixture
def scenario_entities() -> list[Entity]:
    """S1 owns C1; A1 is provided by C1 and owned by signer U1 and group G1."""
    return [
        Entity(
            kind="System",
            name="s1",
            title="System One",
            relations=(relation("hasPart", "component:default/c1"),),
        ),
        Entity(kind="Component", name="c1", title="Component One", system="s1"),
        Entity(
            kind="API",
            name="mainnet-a1",
            spec_type="multisig-deployment",
            system="system:default/s1",
            relations=(
                relation("apiProvidedBy", "component:default/c1"),
                relation("ownedBy", "user:default/u1"),
                relation("ownedBy", "group:default/g1"),
            ),
            spec={"type": "multisig-deployment", "multisig": {"threshold": 2}},
        ),
        Entity(kind="User", name="u1", owner="user:default/o1"),
        Entity(kind="User", name="o1", title="Owner One"),
        Entity(kind="Group", name="g1"),
    ]


@pytest.fixture
def catalog_payload() -> list[dict[str, object]]:
    return [
        {
            "apiVersion": "backstage.io/v1alpha1",
            "kind": "System",
            "metadata": {"name": "bridge", "title": "Rainbow Bridge"},
            "spec": {"owner": "group:default/bridge-team"},
            "relations": [
                {"type": "hasPart", "targetRef": "component:default/bridge-contracts"},
                {"type": "hasPart", "targetRef": "api:default/bridge-api"},
            ],
        },
        {
            "apiVersion": "backstage.io/v1alpha1",
            "kind": "Component",
            "metadata": {
                "name": "bridge-contracts",
                "tags": ["solidity"],
                "annotations": {
                    "backstage.io/source-location": source_location("contracts/bridge"),
                },
            },
            "spec": {"type": "contract", "system": "bridge", "owner": "bridge-team"},
            "relations": [],
        },
        {
            "apiVersion": "backstage.io/v1alpha1",
            "kind": "API",
            "metadata": {"name": "mainnet-bridge-admin"},
            "spec": {
                "type": "multisig-deployment",
                "system": "system:default/bridge",
                "multisig": {"address": "0xabc", "threshold": 2},
            },
            "relations": [
                {"type": "apiProvidedBy", "targetRef": "component:default/bridge-contracts"},
                {"type": "ownedBy", "targetRef": "api:default/signer-zed"},
                {"type": "ownedBy", "targetRef": "api:default/signer-amy"},
                {"type": "ownedBy", "targetRef": "group:default/bridge-team"},
            ],
        },
        {
            "kind": "API",
            "metadata": {"name": "signer-zed"},
            "spec": {"type": "multisig-signer", "owner": "user:default/alice"},
        },
        {
            "kind": "API",
            "metadata": {"name": "signer-amy"},
            "spec": {"type": "multisig-signer", "owner": "user:default/zoe"},
        },
        {"kind": "User", "metadata": {"name": "alice", "title": "Alice"}},
        {"kind": "User", "metadata": {"name": "zoe"}},
        {"kind": "Group", "metadata": {"name": "bridge-team"}},
    ]


@pytest.fixture
def catalog_entities(catalog_payload: list[dict[str, object]]) -> list[Entity]:
    return [entity_from_payload(item) for item in catalog_payload]
