# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .._sentinel import Undefined
from ..utils import get_attr, is_hashable

__all__ = ("PropertyIndex",)


def _key(value: Any) -> Any:
    # True == 1 == 1.0 in Python; keep booleans apart from numbers
    return (bool, value) if isinstance(value, bool) else value


class PropertyIndex:
    """Lazily built secondary indexes over an ordered sequence.

    Maps ``property -> value -> positions``. An index for a property is
    created on the first query for that property and cached until it is
    invalidated. Position lists are always kept in ascending order.

    Items missing the property are not indexed under it. Unhashable values
    cannot be dictionary keys, so they are left out of the index and a
    query for an unhashable value scans the sequence instead.

    Values match by ``==`` except that a boolean value never matches a
    number: ``True`` does not find ``1``, while ``1`` does find ``1.0``.
    """

    def __init__(self) -> None:
        self._indexes: dict[str, dict[Any, list[int]]] = {}

    def __contains__(self, prop: str) -> bool:
        return prop in self._indexes

    @property
    def properties(self) -> list[str]:
        """Names of the currently cached property indexes."""
        return list(self._indexes)

    def build(self, items: Sequence[Any], prop: str) -> dict[Any, list[int]]:
        index: dict[Any, list[int]] = {}
        for position, item in enumerate(items):
            value = get_attr(item, prop)
            if value is Undefined or not is_hashable(value):
                continue
            index.setdefault(_key(value), []).append(position)
        self._indexes[prop] = index
        return index

    def positions(self, items: Sequence[Any], prop: str, value: Any) -> list[int]:
        """Return a copy of the ascending positions whose ``prop == value``."""
        if not is_hashable(value):
            return [
                position
                for position, item in enumerate(items)
                if _key(get_attr(item, prop)) == _key(value)
            ]
        index = self._indexes.get(prop)
        if index is None:
            index = self.build(items, prop)
        return list(index.get(_key(value), ()))

    def add_position(self, item: Any, position: int) -> None:
        """Index an item appended at ``position`` in every cached property.

        Only already cached properties are touched; a property that was never
        queried stays absent instead of being created with partial content.
        ``position`` must be the new last position so ordering is preserved.
        """
        for prop, index in self._indexes.items():
            value = get_attr(item, prop)
            if value is Undefined or not is_hashable(value):
                continue
            index.setdefault(_key(value), []).append(position)

    def invalidate(self, prop: str | None = None) -> None:
        if prop is None:
            self._indexes.clear()
        else:
            self._indexes.pop(prop, None)

    def rebuild(self, items: Sequence[Any], identity_prop: str) -> None:
        """Drop every cached index and eagerly rebuild the identity index."""
        self._indexes.clear()
        self.build(items, identity_prop)

    def clear(self) -> None:
        self._indexes.clear()
