from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RelationDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    target_ref: str = Field(alias="targetRef")


class MetadataDTO(BaseModel):
    name: str
    namespace: Optional[str] = None
    title: Optional[str] = None
    tags: List[str] = []
    annotations: Dict[str, str] = {}


class EntityDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_version: Optional[str] = Field(default=None, alias="apiVersion")
    kind: str
    metadata: MetadataDTO
    spec: Dict[str, Any] = {}
    relations: List[RelationDTO] = []


class EntityListDTO(BaseModel):
    items: List[EntityDTO]
