"""Build matrix of source artifacts affected by a change set.

Each candidate artifact carries a source-location annotation pointing at its
directory in the repository. An artifact is impacted when a changed file lies
under that directory, or unconditionally when the run is not a differential
review. Every candidate yields exactly one matrix row.
"""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from catalog_views.exceptions import MissingAnnotation
from catalog_views.model import Entity

SOURCE_LOCATION_ANNOTATION = "backstage.io/source-location"
# url:https://github.com/<org>/<repo>/tree/<branch>/<dir...>
DEFAULT_PREFIX_SEGMENTS = 7
DEFAULT_MARKER_FILE = "package.json"
DEFAULT_ARTIFACT_TYPE = "contract"
DEFAULT_EXCLUDED_TAGS: tuple[str, ...] = ("near",)
DEFAULT_FLAG_NAME = "runSlither"
DIFFERENTIAL_EVENT = "pull_request"
REPOSITORY_ROOT = "."

ExistsFn = Callable[[str], bool]
EchoFn = Callable[[str], None]
FlagPolicy = Callable[[Sequence[str], bool], bool]


def tag_exclusion_policy(excluded_tags: Iterable[str] = DEFAULT_EXCLUDED_TAGS) -> FlagPolicy:
    excluded = frozenset(excluded_tags)

    def _policy(tags: Sequence[str], impacted: bool) -> bool:
        return impacted and not excluded.intersection(tags)

    return _policy


def force_all_for_event(event_name: str | None) -> bool:
    return event_name != DIFFERENTIAL_EVENT


def _noop_echo(_message: str) -> None:
    return None


@dataclass(frozen=True)
class ArtifactMatrixEntry:
    name: str
    tags: tuple[str, ...]
    path: str
    project_root: str
    impacted: bool
    flag: bool

    def to_payload(self, flag_name: str = DEFAULT_FLAG_NAME) -> dict[str, object]:
        return {
            "name": self.name,
            "tags": list(self.tags),
            "path": self.path,
            "nodeRoot": self.project_root,
            "impacted": self.impacted,
            flag_name: self.flag,
        }


@dataclass(frozen=True)
class ChangeMatrix:
    entries: tuple[ArtifactMatrixEntry, ...]

    @property
    def impacted(self) -> tuple[ArtifactMatrixEntry, ...]:
        return tuple(entry for entry in self.entries if entry.impacted)

    def to_payload(self, flag_name: str = DEFAULT_FLAG_NAME) -> dict[str, object]:
        return {"include": [entry.to_payload(flag_name) for entry in self.entries]}


class ChangeImpactResolver:
    def __init__(
        self,
        *,
        marker_file: str = DEFAULT_MARKER_FILE,
        source_location_annotation: str = SOURCE_LOCATION_ANNOTATION,
        prefix_segments: int = DEFAULT_PREFIX_SEGMENTS,
        exists_fn: ExistsFn = os.path.exists,
        flag_policy: FlagPolicy | None = None,
        echo_fn: EchoFn = _noop_echo,
    ):
        if prefix_segments < 0:
            raise ValueError(f"prefix_segments must be >= 0, got {prefix_segments}")
        self.marker_file = marker_file
        self.source_location_annotation = source_location_annotation
        self.prefix_segments = prefix_segments
        self.exists_fn = exists_fn
        self.flag_policy = flag_policy or tag_exclusion_policy()
        self.echo_fn = echo_fn

    def source_location(self, entity: Entity) -> str:
        location = entity.annotations.get(self.source_location_annotation, "")
        if not location:
            raise MissingAnnotation(entity.ref, self.source_location_annotation)
        return location

    def source_location_dir(self, entity: Entity) -> str:
        """Repository-relative directory of an artifact.

        Drops the fixed scheme/host/org/repo/tree/branch prefix and the
        trailing segment, so ``.../main/contracts/vault/`` and
        ``.../main/contracts/vault/Vault.sol`` both give ``contracts/vault``.
        """
        segments = self.source_location(entity).split("/")
        return "/".join(segments[self.prefix_segments : -1])

    def find_root(self, path: str, marker_file: str | None = None) -> str:
        """Deepest directory at or above `path` holding `marker_file`.

        Falls back to the repository root when no directory has the marker.
        """
        marker = marker_file or self.marker_file
        parts = [part for part in path.split("/") if part and part != "."]
        self.echo_fn(f"searching {marker} for {path}")
        while parts:
            candidate = "/".join(parts)
            test_file = posixpath.join(candidate, marker)
            self.echo_fn(f"checking: {test_file}")
            if self.exists_fn(test_file):
                self.echo_fn(f"found {marker} root for {path}: {candidate}")
                return candidate
            parts.pop()
        self.echo_fn(f"unable to find {marker} for {path}, using the repository root")
        return REPOSITORY_ROOT

    def is_impacted(self, source_dir: str, changed_files: Iterable[str]) -> bool:
        directory = source_dir.strip("/")
        paths = [path.removeprefix("./") for path in changed_files]
        if directory in {"", REPOSITORY_ROOT}:
            return bool(paths)
        prefix = directory + "/"
        return any(path == directory or path.startswith(prefix) for path in paths)

    def resolve_impact(
        self,
        candidates: Iterable[Entity],
        changed_files: Iterable[str],
        force_all: bool,
    ) -> ChangeMatrix:
        changed = tuple(changed_files)
        entries: list[ArtifactMatrixEntry] = []
        for entity in candidates:
            source_dir = self.source_location_dir(entity)
            impacted = force_all or self.is_impacted(source_dir, changed)
            entries.append(
                ArtifactMatrixEntry(
                    name=entity.name,
                    tags=entity.tags,
                    path=source_dir,
                    project_root=self.find_root(source_dir),
                    impacted=impacted,
                    flag=self.flag_policy(entity.tags, impacted),
                )
            )
        return ChangeMatrix(entries=tuple(entries))


def select_repo_artifacts(
    entities: Iterable[Entity],
    *,
    repo_url: str,
    artifact_type: str = DEFAULT_ARTIFACT_TYPE,
    annotation: str = SOURCE_LOCATION_ANNOTATION,
) -> list[Entity]:
    """Entities of `artifact_type` whose source lives in `repo_url`."""
    prefix = f"url:{repo_url.rstrip('/')}/"
    return [
        entity
        for entity in entities
        if entity.annotations.get(annotation, "").startswith(prefix)
        and entity.spec_type == artifact_type
    ]
