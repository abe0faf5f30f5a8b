from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from catalog_views.order_contract import OrderPolicy, UnsortedHook, ordered_or_sorted


@dataclass(frozen=True)
class ChangedFile:
    file: str


def _diff_command(base: str | None, head: str | None) -> list[str]:
    if base and head:
        return ["git", "diff", "--name-only", f"{base}...{head}"]
    if base:
        return ["git", "diff", "--name-only", base]
    return ["git", "diff", "--name-only", "HEAD"]


def parse_name_only(
    diff_text: str,
    *,
    on_unsorted: UnsortedHook | None = None,
) -> list[ChangedFile]:
    # git emits paths sorted, so CHECK is the fallback; the active order
    # policy can tighten it to ENFORCE.
    paths = dict.fromkeys(line.strip() for line in diff_text.splitlines() if line.strip())
    ordered = ordered_or_sorted(
        paths,
        source="changed_files.parse_name_only",
        fallback=OrderPolicy.CHECK,
        on_unsorted=on_unsorted,
    )
    return [ChangedFile(file=path) for path in ordered]


def git_changed_files(
    root: Path,
    *,
    base: str | None,
    head: str | None,
    run_fn: Callable[..., subprocess.CompletedProcess[str]] = subprocess.run,
    on_unsorted: UnsortedHook | None = None,
) -> list[ChangedFile]:
    """Repository-relative paths changed between `base` and `head`.

    With no `base`, lists uncommitted changes against HEAD.
    """
    proc = run_fn(
        _diff_command(base, head),
        cwd=root,
        check=False,
        capture_output=True,
        text=True,
    )
    if proc.returncode != 0:
        message = proc.stderr.strip() or proc.stdout.strip() or "git diff failed"
        raise RuntimeError(message)
    return parse_name_only(proc.stdout, on_unsorted=on_unsorted)
