# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)

from ..config import settings
from ..utils import from_cardinality, now_utc, to_cardinality

__all__ = (
    "TagConfig",
    "CollectionConfig",
    "CollectionDump",
    "CollectionSnapshot",
)


class TagConfig(BaseModel):
    """Per-tag options. Only the cardinality limit is configurable."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    cardinality: int | float = Field(
        math.inf,
        description="Maximum number of positions that may bear the tag.",
    )

    @field_validator("cardinality", mode="before")
    def _validate_cardinality(cls, value: Any) -> float | int:
        return to_cardinality(value)

    @field_serializer("cardinality", when_used="json")
    def _serialize_cardinality(self, value: float) -> int | None:
        return from_cardinality(value)


class CollectionConfig(BaseModel):
    """Options of a single collection instance.

    ``sort_fn`` and ``normalize_fn`` are behavior, not data: they are never
    serialized and do not survive a dump/restore round trip.
    """

    model_config = ConfigDict(
        extra="forbid",
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    cardinality: int | float = Field(math.inf, description="Maximum item count.")
    unique: bool = True
    id_prop_name: str = Field(default_factory=lambda: settings.ID_PROP_NAME)
    allow_next_prev_cycle: bool = False
    allow_unconfigured_tags: bool = True
    tags: dict[str, TagConfig] = Field(default_factory=dict)
    sort_fn: Callable[[Any, Any], int] | None = Field(None, exclude=True)
    normalize_fn: Callable[[Any], Any] | None = Field(None, exclude=True)

    @field_validator("cardinality", mode="before")
    def _validate_cardinality(cls, value: Any) -> float | int:
        return to_cardinality(value)

    @field_validator("id_prop_name")
    def _validate_id_prop_name(cls, value: str) -> str:
        if not value:
            raise ValueError("id_prop_name must be a non-empty string")
        return value

    @field_serializer("cardinality", when_used="json")
    def _serialize_cardinality(self, value: float) -> int | None:
        return from_cardinality(value)


class CollectionDump(BaseModel):
    """Serialized state of a collection.

    Dumped with camelCase keys (``activeIndex``, ``idPropName``,
    ``tagConfigs``) so other implementations can read it. An unset active
    index is left out. Both camelCase and snake_case keys are accepted on
    input.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    items: list[Any] = Field(default_factory=list)
    active_index: int | None = Field(
        None,
        validation_alias=AliasChoices("active_index", "activeIndex"),
        serialization_alias="activeIndex",
    )
    cardinality: int | float = math.inf
    unique: bool = True
    id_prop_name: str = Field(
        default_factory=lambda: settings.ID_PROP_NAME,
        validation_alias=AliasChoices("id_prop_name", "idPropName"),
        serialization_alias="idPropName",
    )
    tags: dict[str, list[Any]] = Field(default_factory=dict)
    tag_configs: dict[str, TagConfig] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("tag_configs", "tagConfigs"),
        serialization_alias="tagConfigs",
    )

    @field_validator("cardinality", mode="before")
    def _validate_cardinality(cls, value: Any) -> float | int:
        return to_cardinality(value)

    @field_validator("active_index", mode="before")
    def _validate_active_index(cls, value: Any) -> int | None:
        # anything that is not a plain integer simply leaves the pointer unset
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value

    @field_serializer("cardinality")
    def _serialize_cardinality(self, value: float) -> int | None:
        return from_cardinality(value)


class CollectionSnapshot(BaseModel):
    """Read-only view of a collection published after every change."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    items: list[Any]
    active: Any = None
    active_index: int | None = None
    size: int
    is_full: bool
    config: dict[str, Any]
    timestamp: datetime = Field(default_factory=now_utc)
    last_query: Any = None
