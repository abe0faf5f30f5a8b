from __future__ import annotations

import os
from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, TypeVar

from catalog_views.exceptions import OrderViolation


T = TypeVar("T")

ORDER_POLICY_ENV = "CATALOG_VIEWS_ORDER_POLICY"
_ORDER_POLICY_CONTEXT: ContextVar["OrderPolicy | None"] = ContextVar(
    "catalog_views_order_policy",
    default=None,
)

UnsortedHook = Callable[[dict[str, object]], None]


class OrderPolicy(str, Enum):
    SORT = "sort"
    CHECK = "check"
    TRUST = "trust"
    ENFORCE = "enforce"


def ordered_or_sorted(
    values: Iterable[T],
    *,
    source: str,
    key: Callable[[T], Any] | None = None,
    reverse: bool = False,
    policy: OrderPolicy | str | None = None,
    fallback: OrderPolicy = OrderPolicy.SORT,
    on_unsorted: UnsortedHook | None = None,
) -> list[T]:
    """Order `values` according to the active order policy.

    - `SORT` sorts unconditionally.
    - `CHECK` keeps caller order and sorts only on a regression, reporting
      it through `on_unsorted`.
    - `TRUST` returns caller order untouched.
    - `ENFORCE` raises `OrderViolation` on a regression.

    The policy is the explicit `policy` if given, else the one installed by
    `order_policy(...)`, else `CATALOG_VIEWS_ORDER_POLICY`, else `fallback`.
    """
    items = list(values)
    resolved = resolve_policy(policy, fallback=fallback)
    if resolved is OrderPolicy.SORT:
        return sorted(items, key=key, reverse=reverse)
    if resolved is OrderPolicy.TRUST:
        return items
    violation = _first_order_violation(items, key=key, reverse=reverse)
    if violation is None:
        return items
    previous_index, current_index, previous_key, current_key, kind = violation
    payload: dict[str, object] = {
        "source": source,
        "previous_index": previous_index,
        "current_index": current_index,
        "previous_key": repr(previous_key),
        "current_key": repr(current_key),
        "violation_kind": kind,
        "policy": resolved.value,
    }
    if resolved is OrderPolicy.CHECK:
        if on_unsorted is not None:
            on_unsorted(payload)
        return sorted(items, key=key, reverse=reverse)
    if kind == "incomparable":
        raise OrderViolation("items are not comparable", payload)
    raise OrderViolation(f"items out of order at index {current_index}", payload)


def sort_once(
    values: Iterable[T],
    *,
    source: str,
    key: Callable[[T], Any] | None = None,
    reverse: bool = False,
) -> list[T]:
    return ordered_or_sorted(
        values,
        source=source,
        key=key,
        reverse=reverse,
        policy=OrderPolicy.SORT,
    )


def resolve_policy(
    policy: OrderPolicy | str | None = None,
    *,
    fallback: OrderPolicy = OrderPolicy.SORT,
) -> OrderPolicy:
    if policy is not None:
        return _normalize_policy(policy)
    context_policy = _ORDER_POLICY_CONTEXT.get()
    if context_policy is not None:
        return context_policy
    return _order_policy_from_env() or fallback


@contextmanager
def order_policy(policy: OrderPolicy | str | None) -> Iterator[None]:
    """Install `policy` for the enclosed block; `None` leaves it unchanged."""
    if policy is None:
        yield
        return
    token = _ORDER_POLICY_CONTEXT.set(_normalize_policy(policy))
    try:
        yield
    finally:
        _ORDER_POLICY_CONTEXT.reset(token)


def _order_policy_from_env() -> OrderPolicy | None:
    value = os.environ.get(ORDER_POLICY_ENV, "").strip().lower()
    if not value:
        return None
    if value in {"off", "false", "0"}:
        return OrderPolicy.SORT
    if value in {"on", "true", "1"}:
        return OrderPolicy.ENFORCE
    return _normalize_policy(value)


def _normalize_policy(policy: OrderPolicy | str) -> OrderPolicy:
    if isinstance(policy, OrderPolicy):
        return policy
    try:
        return OrderPolicy(policy.strip().lower())
    except ValueError:
        allowed = ", ".join(candidate.value for candidate in OrderPolicy)
        raise ValueError(f"unknown order policy {policy!r} (expected one of: {allowed})") from None


def _first_order_violation(
    values: list[T],
    *,
    key: Callable[[T], Any] | None = None,
    reverse: bool = False,
) -> tuple[int, int, Any, Any, str] | None:
    markers = [key(value) if key is not None else value for value in values]
    for index in range(1, len(markers)):
        previous, current = markers[index - 1], markers[index]
        try:
            regressed = previous < current if reverse else previous > current
        except TypeError:
            return (index - 1, index, previous, current, "incomparable")
        if regressed:
            return (index - 1, index, previous, current, "out_of_order")
    return None
