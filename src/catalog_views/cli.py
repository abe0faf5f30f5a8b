from __future__ import annotations

import urllib.error
from pathlib import Path
from typing import Callable, NoReturn, Optional

import typer

from catalog_views.catalog_client import CatalogClient
from catalog_views.changed_files import ChangedFile, git_changed_files
from catalog_views.config import (
    as_int,
    as_text,
    catalog_defaults,
    hierarchy_defaults,
    matrix_defaults,
    merge_payload,
    normalize_name_list,
)
from catalog_views.exceptions import CatalogViewsError
from catalog_views.hierarchy import (
    DEFAULT_OWNER_KIND,
    DEFAULT_ROOT_KIND,
    DEFAULT_ROOT_TYPE,
    HierarchyAggregator,
    hierarchy_payload,
    summarize_multisigs,
)
from catalog_views.index import EntityIndex
from catalog_views.matrix import (
    DEFAULT_ARTIFACT_TYPE,
    DEFAULT_EXCLUDED_TAGS,
    DEFAULT_FLAG_NAME,
    DEFAULT_MARKER_FILE,
    DEFAULT_PREFIX_SEGMENTS,
    SOURCE_LOCATION_ANNOTATION,
    ChangeImpactResolver,
    force_all_for_event,
    select_repo_artifacts,
    tag_exclusion_policy,
)
from catalog_views.model import Entity
from catalog_views.order_contract import ORDER_POLICY_ENV, order_policy, resolve_policy
from catalog_views.runtime.env_policy import (
    BACKSTAGE_URL_ENV,
    BASE_SHA_ENV,
    EVENT_NAME_ENV,
    HEAD_SHA_ENV,
    env_optional,
    repository_url,
)
from catalog_views.runtime.json_io import STDOUT_ALIAS, write_json_output

app = typer.Typer(add_completion=False)


def _fetch_entities(backstage_url: str) -> list[Entity]:
    return CatalogClient(backstage_url).fetch_entities()


def _fetch_changed_files(root: Path, base: str | None, head: str | None) -> list[ChangedFile]:
    return git_changed_files(root, base=base, head=head, on_unsorted=_report_unsorted)


def _info(message: str) -> None:
    typer.echo(message, err=True)


def _report_unsorted(payload: dict[str, object]) -> None:
    _info(f"{payload['source']}: input out of order at {payload['current_key']}, re-sorting")


def _override(ctx: typer.Context, name: str, default: Callable[..., object]) -> Callable[..., object]:
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    candidate = obj.get(name)
    return candidate if callable(candidate) else default


def _fail(message: str, *, code: int) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(code=code)


def _resolve_backstage_url(option: str | None, defaults: dict[str, object]) -> str:
    url = option or env_optional(BACKSTAGE_URL_ENV) or as_text(defaults.get("url"), default="")
    if not url:
        _fail(f"catalog url is required (--backstage-url, {BACKSTAGE_URL_ENV} or [catalog] url)", code=2)
    return url


def _load_entities(ctx: typer.Context, backstage_url: str) -> list[Entity]:
    fetch = _override(ctx, "fetch_entities", _fetch_entities)
    _info(f"Connecting to {backstage_url} to fetch catalog entities")
    try:
        entities = list(fetch(backstage_url))
    except urllib.error.URLError as exc:
        _fail(f"catalog request failed: {exc}", code=1)
    except CatalogViewsError as exc:
        _fail(f"catalog response rejected: {exc}", code=2)
    _info(f"Total catalog entities: {len(entities)}")
    return entities


@app.command("multisigs")
def multisigs(
    ctx: typer.Context,
    backstage_url: Optional[str] = typer.Option(None, "--backstage-url"),
    out: str = typer.Option(STDOUT_ALIAS, "--out", help="Output path, '-' for stdout."),
    tree: bool = typer.Option(False, "--tree/--summary", help="Emit the full ownership tree."),
    root_kind: Optional[str] = typer.Option(None, "--root-kind"),
    root_type: Optional[str] = typer.Option(None, "--root-type"),
    owner_kind: Optional[str] = typer.Option(
        None, "--owner-kind", help="Default kind for short signer owner references."
    ),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Collect multisig deployments grouped by system and component."""
    url = _resolve_backstage_url(backstage_url, catalog_defaults(root=root, config_path=config))
    settings = merge_payload(
        {"root_kind": root_kind, "root_type": root_type, "owner_default_kind": owner_kind},
        hierarchy_defaults(root=root, config_path=config),
    )
    entities = _load_entities(ctx, url)
    try:
        aggregator = HierarchyAggregator(
            EntityIndex(entities),
            root_kind=as_text(settings.get("root_kind"), default=DEFAULT_ROOT_KIND),
            root_type=as_text(settings.get("root_type"), default=DEFAULT_ROOT_TYPE),
            owner_default_kind=as_text(
                settings.get("owner_default_kind"), default=DEFAULT_OWNER_KIND
            ),
        )
        groups = aggregator.aggregate()
    except CatalogViewsError as exc:
        _fail(f"hierarchy aggregation failed: {exc}", code=2)
    _info(f"Multisig deployments: {len(aggregator.roots)} across {len(groups)} systems")
    payload = hierarchy_payload(groups) if tree else summarize_multisigs(groups)
    if out != STDOUT_ALIAS:
        _info(f"Writing {out}")
    write_json_output(out, payload)


@app.command("component-matrix")
def component_matrix(
    ctx: typer.Context,
    backstage_url: Optional[str] = typer.Option(None, "--backstage-url"),
    repo_url: Optional[str] = typer.Option(None, "--repo-url"),
    event_name: Optional[str] = typer.Option(None, "--event-name"),
    base: Optional[str] = typer.Option(None, "--base"),
    head: Optional[str] = typer.Option(None, "--head"),
    root: Path = typer.Option(Path("."), "--root"),
    out: str = typer.Option(STDOUT_ALIAS, "--out", help="Output path, '-' for stdout."),
    config: Optional[Path] = typer.Option(None, "--config"),
    policy: Optional[str] = typer.Option(
        None, "--order-policy", help=f"Order policy for git output; overrides {ORDER_POLICY_ENV}."
    ),
) -> None:
    """Emit the CI build matrix for catalog artifacts of this repository."""
    url = _resolve_backstage_url(backstage_url, catalog_defaults(root=root, config_path=config))
    settings = matrix_defaults(root=root, config_path=config)
    try:
        resolve_policy(policy)
    except ValueError as exc:
        _fail(str(exc), code=2)
    repository = repo_url or repository_url()
    if not repository:
        _fail("repository url is required (--repo-url or GITHUB_REPOSITORY)", code=2)
    entities = _load_entities(ctx, url)
    annotation = as_text(
        settings.get("source_location_annotation"), default=SOURCE_LOCATION_ANNOTATION
    )
    candidates = select_repo_artifacts(
        entities,
        repo_url=repository,
        artifact_type=as_text(settings.get("artifact_type"), default=DEFAULT_ARTIFACT_TYPE),
        annotation=annotation,
    )
    names = ", ".join(entity.name for entity in candidates)
    _info(f"Artifact entities in this repo: {len(candidates)} ({names})")

    event = event_name or env_optional(EVENT_NAME_ENV)
    force_all = force_all_for_event(event)
    changed_paths: list[str] = []
    if force_all:
        _info(f"forcing CI runs for all components (event {event or '<unset>'} is not a pull request)")
    else:
        fetch_changed = _override(ctx, "changed_files", _fetch_changed_files)
        try:
            with order_policy(policy):
                changed = fetch_changed(
                    root,
                    base or env_optional(BASE_SHA_ENV),
                    head or env_optional(HEAD_SHA_ENV),
                )
        except CatalogViewsError as exc:
            _fail(f"changed file enumeration rejected: {exc}", code=2)
        except RuntimeError as exc:
            _fail(f"changed file enumeration failed: {exc}", code=1)
        changed_paths = [item.file for item in changed]
        _info(f"Changed files count: {len(changed_paths)}")

    excluded = settings.get("excluded_tags")
    exists_fn = _override(ctx, "exists_fn", lambda path: (root / path).exists())
    resolver = ChangeImpactResolver(
        marker_file=as_text(settings.get("marker_file"), default=DEFAULT_MARKER_FILE),
        source_location_annotation=annotation,
        prefix_segments=as_int(settings.get("prefix_segments"), default=DEFAULT_PREFIX_SEGMENTS),
        exists_fn=exists_fn,
        flag_policy=tag_exclusion_policy(
            normalize_name_list(excluded) if excluded is not None else DEFAULT_EXCLUDED_TAGS
        ),
        echo_fn=_info,
    )
    _info("Generating component matrix...")
    try:
        matrix = resolver.resolve_impact(candidates, changed_paths, force_all)
    except CatalogViewsError as exc:
        _fail(f"component matrix failed: {exc}", code=2)
    impacted_names = ", ".join(entry.name for entry in matrix.impacted)
    _info(f"Impacted artifacts: {len(matrix.impacted)} ({impacted_names})")
    flag_name = as_text(settings.get("flag_name"), default=DEFAULT_FLAG_NAME)
    write_json_output(out, matrix.to_payload(flag_name))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
