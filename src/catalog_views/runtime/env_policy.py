from __future__ import annotations

import os

BACKSTAGE_URL_ENV = "BACKSTAGE_URL"
EVENT_NAME_ENV = "GITHUB_EVENT_NAME"
SERVER_URL_ENV = "GITHUB_SERVER_URL"
REPOSITORY_ENV = "GITHUB_REPOSITORY"
BASE_SHA_ENV = "GITHUB_BASE_SHA"
HEAD_SHA_ENV = "GITHUB_HEAD_SHA"

_DEFAULT_SERVER_URL = "https://github.com"


def env_text(name: str, *, default: str = "") -> str:
    return os.getenv(name, default).strip()


def env_optional(name: str) -> str | None:
    return env_text(name) or None


def repository_url() -> str | None:
    """`<server>/<owner>/<repo>` for the repository the CI job runs in."""
    repository = env_text(REPOSITORY_ENV)
    if not repository:
        return None
    server = env_text(SERVER_URL_ENV, default=_DEFAULT_SERVER_URL) or _DEFAULT_SERVER_URL
    return f"{server.rstrip('/')}/{repository.strip('/')}"
