# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Runtime-checkable protocols for the collaborators of a collection.

The collection engine only talks to its search engine and its change
publisher through these structural contracts, so either can be replaced
by any object with the same shape.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable
from typing import Any, Literal, Protocol, runtime_checkable

__all__ = (
    "ChangePublisher",
    "SearchAdapter",
    "SearchStrategy",
)

SearchStrategy = Literal["exact", "prefix", "fuzzy"]


@runtime_checkable
class SearchAdapter(Protocol):
    """Full-text index keyed by identity values.

    Adapters may also provide ``clear()`` and a ``last_query`` attribute;
    both are optional and looked up at call time.
    """

    def add_or_replace(self, content: str, doc_id: Hashable) -> int: ...

    def remove_doc_id(self, doc_id: Hashable) -> bool: ...

    def search(
        self,
        query: str,
        strategy: SearchStrategy | None = None,
        *,
        max_distance: int | None = None,
    ) -> list[Hashable]: ...


@runtime_checkable
class ChangePublisher(Protocol):
    """Synchronous topic based publish/subscribe."""

    def publish(self, topic: str, payload: Any) -> None: ...

    def subscribe(
        self, topic: str, callback: Callable[[Any], None]
    ) -> Callable[[], None]: ...
