from __future__ import annotations

import textwrap
from pathlib import Path

from catalog_views.config import (
    as_int,
    as_text,
    catalog_defaults,
    hierarchy_defaults,
    load_config,
    matrix_defaults,
    merge_payload,
    normalize_name_list,
)


def _write_config(root: Path, text: str) -> Path:
    path = root / "catalog-views.toml"
    path.write_text(textwrap.dedent(text).strip() + "\n", encoding="utf-8")
    return path


def test_sections_read_from_default_location(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
        [catalog]
        url = "https://backstage.example.com"

        [hierarchy]
        root_type = "safe-deployment"

        [matrix]
        marker_file = "Cargo.toml"
        prefix_segments = 9
        excluded_tags = ["near", "legacy"]
        """,
    )
    assert catalog_defaults(root=tmp_path)["url"] == "https://backstage.example.com"
    assert hierarchy_defaults(root=tmp_path) == {"root_type": "safe-deployment"}
    matrix = matrix_defaults(root=tmp_path)
    assert matrix["marker_file"] == "Cargo.toml"
    assert matrix["prefix_segments"] == 9
    assert normalize_name_list(matrix["excluded_tags"]) == ["near", "legacy"]


def test_missing_or_broken_config_is_empty(tmp_path: Path) -> None:
    assert load_config(root=tmp_path) == {}
    broken = tmp_path / "broken.toml"
    broken.write_text("[matrix\n", encoding="utf-8")
    assert load_config(config_path=broken) == {}
    assert matrix_defaults(config_path=broken) == {}


def test_non_table_section_is_ignored(tmp_path: Path) -> None:
    path = _write_config(tmp_path, 'matrix = "nope"')
    assert matrix_defaults(config_path=path) == {}


def test_merge_payload_prefers_explicit_values() -> None:
    merged = merge_payload(
        {"root_kind": None, "root_type": "safe-deployment"},
        {"root_kind": "API", "root_type": "multisig-deployment"},
    )
    assert merged == {"root_kind": "API", "root_type": "safe-deployment"}


def test_value_coercions() -> None:
    assert normalize_name_list("near, legacy,,") == ["near", "legacy"]
    assert normalize_name_list(None) == []
    assert as_int("9", default=7) == 9
    assert as_int("nine", default=7) == 7
    assert as_int(True, default=7) == 7
    assert as_text("  x ", default="y") == "x"
    assert as_text(3, default="y") == "y"
