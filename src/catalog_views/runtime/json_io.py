from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Mapping

from catalog_views.order_contract import sort_once

STDOUT_ALIAS = "-"


def canonicalize_json(value: object) -> object:
    if isinstance(value, Mapping):
        ordered_items = sort_once(
            [(str(key), canonicalize_json(item_value)) for key, item_value in value.items()],
            source="json_io.canonicalize_json.mapping_items",
            key=lambda item: item[0],
        )
        return {key: item_value for key, item_value in ordered_items}
    if isinstance(value, (list, tuple)):
        return [canonicalize_json(item) for item in value]
    return value


def dump_json(payload: object) -> str:
    return json.dumps(payload, separators=(",", ":"), sort_keys=False)


def dump_json_pretty(payload: object) -> str:
    return json.dumps(canonicalize_json(payload), indent=2, sort_keys=False)


def write_json_output(target: str | Path, payload: object, *, pretty: bool = False) -> str:
    """Write `payload` to `target` ("-" is stdout) and return the text written."""
    text = dump_json_pretty(payload) if pretty else dump_json(payload)
    if str(target) == STDOUT_ALIAS:
        sys.stdout.write(text + "\n")
        sys.stdout.flush()
        return text
    path = Path(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")
    return text
