# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import contextlib
import logging
import math
from collections.abc import Callable, Hashable, Iterator, Mapping
from functools import cmp_to_key
from typing import Any, Generic, TypeVar

import orjson
from pydantic import ValidationError
from typing_extensions import Self

from .._errors import ConfigurationError, RestoreError, SearchNotConfiguredError
from .._sentinel import Undefined
from ..protocols.contracts import ChangePublisher, SearchAdapter, SearchStrategy
from ..service.pubsub import PubSub
from ..service.searchable import Searchable, SearchableOptions
from ..utils import get_attr, is_empty_item, is_hashable
from .active_pointer import ActivePointer
from .models import CollectionConfig, CollectionDump, CollectionSnapshot
from .property_index import PropertyIndex
from .tag_store import TagStore

__all__ = ("ItemCollection", "CHANGE_TOPIC")

T = TypeVar("T")

CHANGE_TOPIC = "change"

logger = logging.getLogger(__name__)


class ItemCollection(Generic[T]):
    """An ordered list of items with an active pointer, attribute indexes,
    position tags, optional full-text search and change notification.

    Items are records of named attributes (mappings or plain objects). One
    attribute, ``id_prop_name``, is the identity: every operation taking an
    item resolves it to the first position holding the same identity value,
    never by reference.

    Ordinary misuse (unknown item, out of range position, full collection)
    is reported through return values. Only host programming errors raise,
    see :mod:`itemcollection._errors`.

    Args:
        initial: Items added through :meth:`add_many`.
        searchable: :class:`SearchableOptions` (or a mapping of its fields)
            enabling :meth:`search`. Only configurable here.
        publisher: Change publisher, a private :class:`PubSub` by default.
        **options: Fields of :class:`CollectionConfig`.

    Example::

        c = ItemCollection([{"id": "a"}, {"id": "b"}], cardinality=10)
        c.apply_tag_by_index(0, "starred")
        c.move(0, 1)
        c.get_indexes_by_tag("starred")  # [1]
    """

    def __init__(
        self,
        initial: list[T] | tuple[T, ...] | None = None,
        *,
        searchable: SearchableOptions | Mapping[str, Any] | None = None,
        publisher: ChangePublisher | None = None,
        **options: Any,
    ) -> None:
        self._items: list[T] = []
        self._config = CollectionConfig()
        self._index = PropertyIndex()
        self._tags = TagStore()
        self._pointer = ActivePointer()
        self._publisher: ChangePublisher = (
            publisher if publisher is not None else PubSub()
        )
        self._searchable: SearchAdapter | None = None
        self._get_content: Callable[[T], str | None] | None = None
        self._batch_depth = 0
        self._dirty = False

        if searchable is not None:
            self._setup_searchable(searchable)

        with self._batch():
            self.configure(**options)
            if initial is not None:
                self.add_many(initial)

    def _setup_searchable(
        self, searchable: SearchableOptions | Mapping[str, Any]
    ) -> None:
        if isinstance(searchable, Mapping):
            searchable = SearchableOptions(**searchable)
        if not isinstance(searchable, SearchableOptions):
            raise ConfigurationError(
                "searchable must be SearchableOptions or a mapping of its fields",
                details={"type": type(searchable).__name__},
            )
        adapter = searchable.adapter
        if adapter is None:
            adapter = Searchable(searchable)
        elif not isinstance(adapter, SearchAdapter):
            raise ConfigurationError(
                "searchable adapter does not implement SearchAdapter",
                details={"type": type(adapter).__name__},
            )
        self._searchable = adapter
        self._get_content = searchable.get_content

    # ------------------------------------------------------------------
    # notification
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def _batch(self) -> Iterator[None]:
        """Collapse the notifications of nested mutations into one."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self._dirty = False
                self._publish()

    def _changed(self) -> None:
        if self._batch_depth:
            self._dirty = True
        else:
            self._publish()

    def _publish(self) -> None:
        has_subscribers = getattr(self._publisher, "has_subscribers", None)
        if has_subscribers is not None and not has_subscribers(CHANGE_TOPIC):
            return
        self._publisher.publish(CHANGE_TOPIC, self.snapshot())

    def snapshot(self) -> CollectionSnapshot:
        return CollectionSnapshot(
            items=self.get_all(),
            active=self.active,
            active_index=self.active_index,
            size=self.size,
            is_full=self.is_full,
            config=self.config,
            last_query=getattr(self._searchable, "last_query", None),
        )

    def subscribe(
        self, callback: Callable[[CollectionSnapshot], None]
    ) -> Callable[[], None]:
        """Call ``callback`` with a snapshot now and after every change.

        Returns:
            A zero-argument function cancelling the subscription.
        """
        unsubscribe = self._publisher.subscribe(CHANGE_TOPIC, callback)
        callback(self.snapshot())
        return unsubscribe

    # ------------------------------------------------------------------
    # configuration and read accessors
    # ------------------------------------------------------------------

    def configure(self, **options: Any) -> Self:
        """Update configuration options.

        Raises:
            ConfigurationError: ``searchable`` was passed.
            pydantic.ValidationError: Unknown option or invalid value.
        """
        if "searchable" in options:
            raise ConfigurationError(
                "Searchable options can only be specified at the constructor level."
            )
        current = {
            name: getattr(self._config, name)
            for name in CollectionConfig.model_fields
            if name != "tags"
        }
        config = CollectionConfig.model_validate({**current, **options})
        id_changed = config.id_prop_name != self._config.id_prop_name

        self._config = config.model_copy(update={"tags": {}})
        for tag_name, tag_config in config.tags.items():
            self._tags.configure(tag_name, tag_config.cardinality)
        if id_changed:
            self._index.rebuild(self._items, config.id_prop_name)

        self._changed()
        return self

    @property
    def config(self) -> dict[str, Any]:
        """Serializable configuration, tag configurations included."""
        return {
            "cardinality": self._config.cardinality,
            "tags": {
                name: tag_config.model_dump()
                for name, tag_config in self._tags.configs().items()
            },
            "allow_next_prev_cycle": self._config.allow_next_prev_cycle,
            "allow_unconfigured_tags": self._config.allow_unconfigured_tags,
            "unique": self._config.unique,
            "id_prop_name": self._config.id_prop_name,
        }

    @property
    def id_prop_name(self) -> str:
        return self._config.id_prop_name

    @property
    def searchable(self) -> SearchAdapter | None:
        return self._searchable

    @property
    def size(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.get_all())

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(size={self.size}, "
            f"active_index={self.active_index})"
        )

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self._config.cardinality

    @property
    def items(self) -> list[T]:
        return self.get_all()

    def get_all(self) -> list[T]:
        return list(self._items)

    def at(self, index: int) -> T | None:
        """Item at ``index`` (negative counts from the end), or None."""
        if isinstance(index, bool) or not isinstance(index, int):
            return None
        try:
            return self._items[index]
        except IndexError:
            return None

    def _in_bounds(self, index: Any) -> bool:
        return (
            isinstance(index, int)
            and not isinstance(index, bool)
            and 0 <= index < len(self._items)
        )

    def _identity(self, item: Any) -> Any:
        return get_attr(item, self._config.id_prop_name)

    def _position_of(self, item: Any) -> int:
        if is_empty_item(item):
            return -1
        identity = self._identity(item)
        if identity is Undefined:
            return -1
        return self.find_index_by(self._config.id_prop_name, identity)

    # ------------------------------------------------------------------
    # lookup
    # ------------------------------------------------------------------

    def exists(self, id: Any) -> bool:
        return self.find_index_by(self._config.id_prop_name, id) >= 0

    def find_by_id(self, id: Any) -> T | None:
        return self.find_by(self._config.id_prop_name, id)

    def find_by(self, prop: str, value: Any) -> T | None:
        index = self.find_index_by(prop, value)
        return self._items[index] if index >= 0 else None

    def find_all_by(self, prop: str, value: Any) -> list[T]:
        return [self._items[i] for i in self.find_all_indexes_by(prop, value)]

    def find_index_by(self, prop: str, value: Any) -> int:
        """First position whose ``prop`` equals ``value``, or -1."""
        indexes = self.find_all_indexes_by(prop, value)
        return indexes[0] if indexes else -1

    def find_all_indexes_by(self, prop: str, value: Any) -> list[int]:
        return self._index.positions(self._items, prop, value)

    def search(
        self,
        query: str,
        strategy: SearchStrategy | None = None,
        *,
        max_distance: int | None = None,
    ) -> list[T]:
        """Full-text search, mapped back to items through the identity.

        Raises:
            SearchNotConfiguredError: The collection was built without
                ``searchable``.
        """
        if self._searchable is None:
            raise SearchNotConfiguredError()
        ids = self._searchable.search(query, strategy, max_distance=max_distance)
        found = []
        for doc_id in ids:
            index = self.find_index_by(self._config.id_prop_name, doc_id)
            if index >= 0:
                found.append(self._items[index])
        return found

    def _index_for_search(self, item: T) -> None:
        if self._searchable is None:
            return
        doc_id = self._identity(item)
        if doc_id is Undefined or not is_hashable(doc_id):
            return
        content = self._get_content(item) if self._get_content else None
        self._searchable.add_or_replace(
            str(doc_id) if content is None else content, doc_id
        )

    def _unindex_for_search(self, item: T) -> None:
        if self._searchable is None:
            return
        doc_id = self._identity(item)
        if doc_id is Undefined or not is_hashable(doc_id):
            return
        self._searchable.remove_doc_id(doc_id)
        # a duplicate left behind in a non-unique collection stays searchable
        index = self.find_index_by(self._config.id_prop_name, doc_id)
        if index >= 0:
            self._index_for_search(self._items[index])

    # ------------------------------------------------------------------
    # mutation
    # ------------------------------------------------------------------

    def _normalize(self, item: Any) -> Any:
        if self._config.normalize_fn is None:
            return item
        return self._config.normalize_fn(item)

    def _sort_items(self, sort_fn: Callable[[T, T], int]) -> None:
        self._items.sort(key=cmp_to_key(sort_fn))
        self._index.rebuild(self._items, self._config.id_prop_name)

    def _add(self, item: Any, auto_sort: bool, normalize: bool = True) -> bool:
        if is_empty_item(item):
            return False
        if self.is_full:
            logger.debug(
                f"Collection is full ({self._config.cardinality}), item rejected"
            )
            return False
        if normalize:
            item = self._normalize(item)
            if is_empty_item(item):
                return False
        if self._config.unique:
            identity = self._identity(item)
            if identity is not Undefined and self.exists(identity):
                logger.debug(f"Item with {self.id_prop_name}={identity!r} exists")
                return False

        self._items.append(item)
        if auto_sort and self._config.sort_fn is not None:
            self._sort_items(self._config.sort_fn)
        else:
            self._index.add_position(item, len(self._items) - 1)
        self._index_for_search(item)
        self._changed()
        return True

    def add(self, item: T, auto_sort: bool = True) -> bool:
        """Append an item, keeping the configured order.

        Returns:
            bool: False if the item is empty, the collection is full, or
                (with ``unique``) the identity value already exists.
        """
        return self._add(item, auto_sort)

    def add_many(self, items: list[T] | tuple[T, ...]) -> int:
        """Add every item, sorting once at the end. Returns the added count."""
        if not isinstance(items, (list, tuple)):
            return 0
        added = 0
        with self._batch():
            for item in items:
                if self._add(item, auto_sort=False):
                    added += 1
            if added:
                self.sort()
        return added

    def toggle_add(self, item: T) -> bool:
        """Remove the item if its identity exists, otherwise add it.

        Returns:
            bool: True if the item was added.
        """
        if is_empty_item(item):
            return False
        item = self._normalize(item)
        identity = self._identity(item)
        if identity is not Undefined and self.exists(identity):
            self.remove_all_by(self._config.id_prop_name, identity)
            return False
        return self._add(item, auto_sort=True, normalize=False)

    def _patch(self, item: T) -> int:
        if is_empty_item(item):
            return 0
        identity = self._identity(item)
        if identity is Undefined:
            return 0
        positions = self.find_all_indexes_by(self._config.id_prop_name, identity)
        if not positions:
            return 0
        for position in positions:
            self._items[position] = item
        self._index.rebuild(self._items, self._config.id_prop_name)
        self._index_for_search(item)
        return len(positions)

    def patch(self, item: T) -> bool:
        """Replace, in place, every item sharing the identity of ``item``."""
        if self._patch(item):
            self._changed()
            return True
        return False

    def patch_many(self, items: list[T] | tuple[T, ...]) -> int:
        """Patch every item. Returns the number of positions replaced."""
        if not isinstance(items, (list, tuple)):
            return 0
        patched = 0
        with self._batch():
            for item in items:
                patched += self._patch(item)
            if patched:
                self._changed()
        return patched

    def remove_at(self, index: int) -> bool:
        if not self._in_bounds(index):
            return False
        removed = self._items.pop(index)
        self._index.rebuild(self._items, self._config.id_prop_name)
        self._pointer.on_remove(index, len(self._items))
        self._tags.on_remove(index)
        self._unindex_for_search(removed)
        logger.debug(f"Removed item at position {index}")
        self._changed()
        return True

    def remove(self, item: T) -> bool:
        index = self._position_of(item)
        return self.remove_at(index) if index >= 0 else False

    def remove_by_id(self, id: Any) -> bool:
        index = self.find_index_by(self._config.id_prop_name, id)
        return self.remove_at(index) if index >= 0 else False

    def remove_all_by(self, prop: str, value: Any) -> int:
        """Remove every item whose ``prop`` equals ``value``.

        The index is re-queried after each removal since positions shift.
        """
        removed = 0
        with self._batch():
            index = self.find_index_by(prop, value)
            while index >= 0:
                self.remove_at(index)
                removed += 1
                index = self.find_index_by(prop, value)
        return removed

    def move(self, from_index: int, to_index: int) -> bool:
        """Move one item; tags and the active pointer follow it."""
        if (
            not self._in_bounds(from_index)
            or not self._in_bounds(to_index)
            or from_index == to_index
        ):
            return False
        item = self._items.pop(from_index)
        self._items.insert(to_index, item)
        self._index.rebuild(self._items, self._config.id_prop_name)
        self._pointer.on_move(from_index, to_index)
        self._tags.on_move(from_index, to_index)
        logger.debug(f"Moved item from position {from_index} to {to_index}")
        self._changed()
        return True

    def sort(self, sort_fn: Callable[[T, T], int] | None = None) -> bool:
        """Stable sort with ``sort_fn`` or the configured comparator.

        Tags and the active pointer keep their numeric positions and are
        not remapped to follow the items.

        Returns:
            bool: False if no comparator is available.
        """
        sort_fn = sort_fn or self._config.sort_fn
        if sort_fn is None:
            return False
        self._sort_items(sort_fn)
        self._changed()
        return True

    def clear(self) -> None:
        """Remove all items, keeping configuration and tag configurations."""
        removed = self._items
        self._items = []
        self._index.clear()
        pointer_changed = self._pointer.unset()
        tags_changed = self._tags.clear_members()
        self._clear_search(removed)
        if removed or pointer_changed or tags_changed:
            self._changed()

    def _clear_search(self, removed: list[T]) -> None:
        if self._searchable is None:
            return
        clear = getattr(self._searchable, "clear", None)
        if clear is not None:
            clear()
            return
        for item in removed:
            doc_id = self._identity(item)
            if doc_id is not Undefined and is_hashable(doc_id):
                self._searchable.remove_doc_id(doc_id)

    # ------------------------------------------------------------------
    # active pointer
    # ------------------------------------------------------------------

    @property
    def active(self) -> T | None:
        index = self._pointer.index
        return self._items[index] if index is not None else None

    @property
    def active_index(self) -> int | None:
        return self._pointer.index

    def set_active(self, item: T) -> bool:
        index = self._position_of(item)
        if index < 0:
            return False
        if self._pointer.set(index, self.size):
            self._changed()
        return True

    def set_active_index(self, index: int) -> T | None:
        """Activate ``index mod size``; a non-integer index is ignored.

        Returns the active item.
        """
        if self._pointer.set(index, self.size):
            self._changed()
        return self.active

    def unset_active(self) -> Self:
        if self._pointer.unset():
            self._changed()
        return self

    def next(self) -> T | None:
        if self._pointer.next(self.size, self._config.allow_next_prev_cycle):
            self._changed()
        return self.active

    def previous(self) -> T | None:
        if self._pointer.previous(self.size, self._config.allow_next_prev_cycle):
            self._changed()
        return self.active

    set_active_next = next
    set_active_previous = previous

    def first(self) -> T | None:
        if self._pointer.first(self.size):
            self._changed()
        return self.active

    def last(self) -> T | None:
        if self._pointer.last(self.size):
            self._changed()
        return self.active

    # ------------------------------------------------------------------
    # tags
    # ------------------------------------------------------------------

    def apply_tag(self, item: T, tag_name: str) -> bool:
        index = self._position_of(item)
        return self.apply_tag_by_index(index, tag_name) if index >= 0 else False

    def apply_tag_by_index(self, index: int, tag_name: str) -> bool:
        """Tag the item at ``index``.

        Returns:
            bool: False if out of range or the tag is at its cardinality.

        Raises:
            UnconfiguredTagError: Unknown tag while unconfigured tags are
                disallowed.
        """
        if not self._in_bounds(index):
            return False
        if self._tags.has(tag_name, index):
            return True
        applied = self._tags.apply(
            tag_name,
            index,
            allow_unconfigured=self._config.allow_unconfigured_tags,
        )
        if applied:
            self._changed()
        return applied

    def remove_tag(self, item: T, tag_name: str) -> bool:
        index = self._position_of(item)
        return self.remove_tag_by_index(index, tag_name) if index >= 0 else False

    def remove_tag_by_index(self, index: int, tag_name: str) -> bool:
        if not self._in_bounds(index):
            return False
        if self._tags.remove(tag_name, index):
            self._changed()
            return True
        return False

    def has_tag(self, item: T, tag_name: str) -> bool:
        index = self._position_of(item)
        return self.has_tag_by_index(index, tag_name) if index >= 0 else False

    def has_tag_by_index(self, index: int, tag_name: str) -> bool:
        return self._in_bounds(index) and self._tags.has(tag_name, index)

    def toggle_tag(self, item: T, tag_name: str) -> bool | None:
        index = self._position_of(item)
        return self.toggle_tag_by_index(index, tag_name) if index >= 0 else None

    def toggle_tag_by_index(self, index: int, tag_name: str) -> bool | None:
        """Apply the tag if absent, remove it otherwise.

        Returns:
            True if applied, False if removed, None if nothing happened
            (out of range, or the tag is full).
        """
        if not self._in_bounds(index):
            return None
        if self._tags.has(tag_name, index):
            self.remove_tag_by_index(index, tag_name)
            return False
        return True if self.apply_tag_by_index(index, tag_name) else None

    def get_by_tag(self, tag_name: str) -> list[T]:
        return [self._items[i] for i in self._tags.positions(tag_name)]

    def get_indexes_by_tag(self, tag_name: str) -> list[int]:
        return self._tags.positions(tag_name)

    def delete_tag(self, tag_name: str) -> bool:
        """Remove a tag's membership and configuration altogether."""
        if self._tags.delete(tag_name):
            self._changed()
            return True
        return False

    def configure_tag(
        self, tag_name: str, cardinality: int | float = math.inf
    ) -> bool:
        """Create or reconfigure a tag.

        Lowering the cardinality below the current membership evicts the
        highest positions first.
        """
        self._tags.configure(tag_name, cardinality)
        self._changed()
        return True

    # ------------------------------------------------------------------
    # serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dump of items, active index, scalars and tags.

        Keys are camelCase. Comparator, normalizer and search configuration
        are behavior and are not part of the dump.
        """
        state = CollectionDump(
            items=list(self._items),
            active_index=self._pointer.index,
            cardinality=self._config.cardinality,
            unique=self._config.unique,
            id_prop_name=self._config.id_prop_name,
            tags=self._tags.to_dict(),
            tag_configs=self._tags.configs(),
        )
        return state.model_dump(
            mode="json",
            by_alias=True,
            exclude={"active_index"} if state.active_index is None else None,
        )

    def dump(self) -> str:
        return orjson.dumps(self.to_dict()).decode()

    @staticmethod
    def _load_dump(
        dump: str | bytes | Mapping[str, Any] | CollectionDump,
    ) -> CollectionDump:
        if isinstance(dump, CollectionDump):
            return dump
        try:
            if isinstance(dump, (str, bytes, bytearray)):
                dump = orjson.loads(dump)
            return CollectionDump.model_validate(dump)
        except (orjson.JSONDecodeError, ValidationError) as e:
            raise RestoreError(
                "Malformed collection dump",
                details={"type": type(dump).__name__},
                cause=e,
            ) from e

    def _restore(self, state: CollectionDump) -> None:
        self.clear()
        self._config = self._config.model_copy(
            update={
                "cardinality": state.cardinality,
                "unique": state.unique,
                "id_prop_name": state.id_prop_name,
            }
        )
        self.add_many(list(state.items))

        if state.active_index is not None and 0 <= state.active_index < self.size:
            self._pointer.index = state.active_index

        for tag_name, tag_config in state.tag_configs.items():
            self._tags.configure(tag_name, tag_config.cardinality)
        for tag_name, positions in state.tags.items():
            self._tags.replace(
                tag_name,
                {
                    p
                    for p in positions
                    if isinstance(p, int)
                    and not isinstance(p, bool)
                    and 0 <= p < self.size
                },
            )
        self._changed()

    def restore(self, dump: str | bytes | Mapping[str, Any] | CollectionDump) -> bool:
        """Replace the current state with a dump.

        Never raises: on malformed input the failure is logged, the
        collection is left empty and False is returned.
        """
        if not dump:
            return False
        with self._batch():
            try:
                self._restore(self._load_dump(dump))
            except Exception as e:
                logger.error(f"Unable to restore collection: {e}", exc_info=True)
                self.clear()
                return False
        return True

    @classmethod
    def from_json(cls, json: str | bytes, **options: Any) -> ItemCollection:
        """Build a collection from :meth:`dump` output.

        Returns an empty collection if the input cannot be restored.
        """
        collection = cls(**options)
        collection.restore(json)
        return collection
