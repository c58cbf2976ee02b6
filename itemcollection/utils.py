# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

import math
from collections.abc import Hashable, Mapping
from datetime import datetime, timezone
from typing import Any

from ._sentinel import Undefined

__all__ = (
    "get_attr",
    "is_empty_item",
    "is_hashable",
    "now_utc",
    "to_cardinality",
    "from_cardinality",
)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def get_attr(item: Any, name: str, default: Any = Undefined) -> Any:
    """Read a named attribute from an item.

    Mappings are read by key, anything else by attribute, so plain dicts,
    dataclasses and pydantic models can all live in a collection.
    """
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def is_empty_item(item: Any) -> bool:
    if item is None:
        return True
    return isinstance(item, Mapping) and len(item) == 0


def is_hashable(value: Any) -> bool:
    if not isinstance(value, Hashable):
        return False
    try:
        hash(value)
    except TypeError:
        return False
    return True


def to_cardinality(value: Any) -> float | int:
    """Coerce a serialized cardinality (``None`` meaning unbounded)."""
    if value is None:
        return math.inf
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Invalid cardinality: {value!r}")
    if value < 0:
        raise ValueError(f"Cardinality must be non-negative, got {value!r}")
    if isinstance(value, float) and not math.isinf(value):
        if not value.is_integer():
            raise ValueError(
                f"Cardinality must be a whole number, got {value!r}"
            )
        return int(value)
    return value


def from_cardinality(value: float | int) -> int | None:
    """Serialize a cardinality; unbounded becomes ``None``."""
    if math.isinf(value):
        return None
    return int(value)
