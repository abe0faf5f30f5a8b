"""HTTP access to the entity catalog.

Transport errors (`urllib.error.URLError` and friends) propagate unchanged;
retries and authentication are the caller's business.
"""

from __future__ import annotations

import json
import urllib.parse
import urllib.request
from typing import Callable, Iterable, Mapping

from pydantic import ValidationError

from catalog_views.exceptions import CatalogPayloadError
from catalog_views.model import Entity, entity_from_dto
from catalog_views.schema import EntityDTO, EntityListDTO

_CATALOG_PATH = "/api/catalog"
_DEFAULT_TIMEOUT_SECONDS = 30


class CatalogClient:
    def __init__(
        self,
        base_url: str,
        *,
        urlopen_fn: Callable[..., object] = urllib.request.urlopen,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
    ):
        if not base_url.strip():
            raise ValueError("catalog base url is required")
        self.base_url = base_url.strip().rstrip("/")
        self.urlopen_fn = urlopen_fn
        self.timeout = timeout

    def entities_url(self, filters: Iterable[Mapping[str, str]] | None = None) -> str:
        url = f"{self.base_url}{_CATALOG_PATH}/entities"
        query = [
            ("filter", ",".join(f"{key}={value}" for key, value in item.items()))
            for item in (filters or ())
            if item
        ]
        if query:
            url = f"{url}?{urllib.parse.urlencode(query)}"
        return url

    def fetch_entities(self, filters: Iterable[Mapping[str, str]] | None = None) -> list[Entity]:
        req = urllib.request.Request(
            self.entities_url(filters),
            headers={"Accept": "application/json"},
        )
        with self.urlopen_fn(req, timeout=self.timeout) as response:
            raw = response.read()
        return parse_entities(raw)


def parse_entities(raw: bytes | str) -> list[Entity]:
    """Accept either a bare JSON array or an ``{"items": [...]}`` envelope."""
    text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CatalogPayloadError(f"catalog response is not JSON: {exc}") from exc
    try:
        if isinstance(payload, list):
            dtos = [EntityDTO.model_validate(item) for item in payload]
        elif isinstance(payload, dict):
            dtos = EntityListDTO.model_validate(payload).items
        else:
            raise CatalogPayloadError(
                f"catalog response must be a list of entities, got {type(payload).__name__}"
            )
    except ValidationError as exc:
        raise CatalogPayloadError(f"catalog response has malformed entities: {exc}") from exc
    return [entity_from_dto(dto) for dto in dtos]
