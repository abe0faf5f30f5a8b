from __future__ import annotations

import pytest

from catalog_views.exceptions import OrderViolation
from catalog_views.order_contract import (
    OrderPolicy,
    order_policy,
    ordered_or_sorted,
    resolve_policy,
    sort_once,
)
from tests.env_helpers import env_scope


def test_sort_once_always_sorts() -> None:
    assert sort_once([3, 1, 2], source="test.sort_once") == [1, 2, 3]
    assert sort_once(["b", "a"], source="test.sort_once", reverse=True) == ["b", "a"]


def test_check_policy_reports_regression_and_sorts() -> None:
    seen: list[dict[str, object]] = []
    result = ordered_or_sorted(
        [2, 1],
        source="test.check",
        policy=OrderPolicy.CHECK,
        on_unsorted=seen.append,
    )
    assert result == [1, 2]
    assert seen[0]["source"] == "test.check"
    assert seen[0]["violation_kind"] == "out_of_order"


def test_check_policy_keeps_sorted_input_silently() -> None:
    seen: list[dict[str, object]] = []
    assert ordered_or_sorted([1, 2], source="test.check", policy="check", on_unsorted=seen.append) == [1, 2]
    assert seen == []


def test_trust_policy_keeps_caller_order() -> None:
    assert ordered_or_sorted([2, 1], source="test.trust", policy="trust") == [2, 1]


def test_enforce_policy_raises_on_regression() -> None:
    assert ordered_or_sorted([1, 2, 2], source="test.enforce", policy="enforce") == [1, 2, 2]
    with pytest.raises(OrderViolation) as exc_info:
        ordered_or_sorted([2, 1], source="test.enforce", policy="enforce")
    assert exc_info.value.payload["source"] == "test.enforce"
    assert exc_info.value.payload["current_index"] == 1


def test_enforce_policy_reports_incomparable_keys() -> None:
    with pytest.raises(OrderViolation) as exc_info:
        ordered_or_sorted([1, "a"], source="test.incomparable", policy=OrderPolicy.ENFORCE)
    assert exc_info.value.payload["violation_kind"] == "incomparable"


def test_policy_precedence() -> None:
    with env_scope({"CATALOG_VIEWS_ORDER_POLICY": "check"}):
        assert resolve_policy() is OrderPolicy.CHECK
        with order_policy("trust"):
            assert resolve_policy() is OrderPolicy.TRUST
            assert resolve_policy("enforce") is OrderPolicy.ENFORCE
            assert ordered_or_sorted([2, 1], source="test.context") == [2, 1]
        with order_policy(None):
            assert resolve_policy() is OrderPolicy.CHECK
    with env_scope({"CATALOG_VIEWS_ORDER_POLICY": None}):
        assert resolve_policy() is OrderPolicy.SORT
        assert resolve_policy(fallback=OrderPolicy.CHECK) is OrderPolicy.CHECK


def test_environment_boolean_aliases() -> None:
    with env_scope({"CATALOG_VIEWS_ORDER_POLICY": "1"}):
        assert resolve_policy() is OrderPolicy.ENFORCE
    with env_scope({"CATALOG_VIEWS_ORDER_POLICY": "off"}):
        assert resolve_policy(fallback=OrderPolicy.CHECK) is OrderPolicy.SORT


def test_unknown_policy_rejected() -> None:
    with pytest.raises(ValueError):
        ordered_or_sorted([1], source="test.unknown", policy="shuffle")
    with env_scope({"CATALOG_VIEWS_ORDER_POLICY": "shuffle"}):
        with pytest.raises(ValueError):
            resolve_policy()
