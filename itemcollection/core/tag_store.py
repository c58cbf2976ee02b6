# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import math

from .._errors import UnconfiguredTagError
from .models import TagConfig

__all__ = ("TagStore",)

logger = logging.getLogger(__name__)


class TagStore:
    """Named, cardinality-bounded sets of positions.

    Tags reference items purely by position, so the owner of the sequence
    must report every structural change through :meth:`on_remove` and
    :meth:`on_move` for tags to keep following their items. Bounds checks of
    positions are the owner's job; the store only keeps the sets consistent
    with each tag's cardinality.
    """

    def __init__(self) -> None:
        self._members: dict[str, set[int]] = {}
        self._configs: dict[str, TagConfig] = {}

    def __contains__(self, tag_name: str) -> bool:
        return tag_name in self._members

    def config(self, tag_name: str) -> TagConfig | None:
        return self._configs.get(tag_name)

    def configs(self) -> dict[str, TagConfig]:
        return dict(self._configs)

    def ensure(self, tag_name: str, *, allow_unconfigured: bool = True) -> set[int]:
        """Return the member set of a tag, creating it on first use.

        A configured tag is always usable. An unknown tag gets an unbounded
        configuration when ``allow_unconfigured`` is set.

        Raises:
            UnconfiguredTagError: the tag has no configuration and
                unconfigured tags are disallowed.
        """
        members = self._members.get(tag_name)
        if members is not None:
            return members
        if tag_name not in self._configs:
            if not allow_unconfigured:
                raise UnconfiguredTagError.from_tag(tag_name)
            self._configs[tag_name] = TagConfig()
        members = self._members[tag_name] = set()
        return members

    def configure(self, tag_name: str, cardinality: int | float = math.inf) -> bool:
        """Create or reconfigure a tag, evicting members over the new limit.

        Returns:
            bool: True if existing members had to be evicted.
        """
        self._configs[tag_name] = TagConfig(cardinality=cardinality)
        self._members.setdefault(tag_name, set())
        return self.enforce(tag_name)

    def enforce(self, tag_name: str) -> bool:
        """Evict the highest positions until the tag fits its cardinality."""
        members = self._members.get(tag_name)
        config = self._configs.get(tag_name)
        if not members or config is None or len(members) <= config.cardinality:
            return False
        keep = sorted(members)[: int(config.cardinality)]
        evicted = members.difference(keep)
        members.intersection_update(keep)
        logger.debug(f"Tag '{tag_name}' evicted positions {sorted(evicted)}")
        return True

    def apply(
        self, tag_name: str, position: int, *, allow_unconfigured: bool = True
    ) -> bool:
        """Add ``position`` to a tag.

        Returns:
            bool: True if the position bears the tag afterwards. False when
                the tag is full and the position was not already a member.
        """
        members = self.ensure(tag_name, allow_unconfigured=allow_unconfigured)
        if position in members:
            return True
        if len(members) >= self._configs[tag_name].cardinality:
            logger.warning(
                f"Tag '{tag_name}' is at capacity, position {position} rejected"
            )
            return False
        members.add(position)
        return True

    def remove(self, tag_name: str, position: int) -> bool:
        members = self._members.get(tag_name)
        if members is None or position not in members:
            return False
        members.discard(position)
        return True

    def has(self, tag_name: str, position: int) -> bool:
        members = self._members.get(tag_name)
        return members is not None and position in members

    def positions(self, tag_name: str) -> list[int]:
        return sorted(self._members.get(tag_name, ()))

    def delete(self, tag_name: str) -> bool:
        """Remove both the membership set and the configuration of a tag."""
        if tag_name not in self._members:
            return False
        del self._members[tag_name]
        self._configs.pop(tag_name, None)
        return True

    def clear_members(self) -> bool:
        """Empty every tag while keeping its configuration."""
        changed = any(self._members.values())
        for members in self._members.values():
            members.clear()
        return changed

    def replace(self, tag_name: str, positions: set[int]) -> None:
        self.ensure(tag_name)
        self._members[tag_name] = set(positions)
        self.enforce(tag_name)

    def on_remove(self, removed: int) -> None:
        """Shift positions after the removal of ``removed``."""
        for tag_name, members in self._members.items():
            members.discard(removed)
            self._members[tag_name] = {p - 1 if p > removed else p for p in members}

    def on_move(self, from_index: int, to_index: int) -> None:
        """Shift positions after moving ``from_index`` to ``to_index``."""
        for tag_name, members in self._members.items():
            was_tagged = from_index in members
            members.discard(from_index)
            shifted = set()
            for p in members:
                if from_index < to_index and from_index < p <= to_index:
                    shifted.add(p - 1)
                elif to_index < from_index and to_index <= p < from_index:
                    shifted.add(p + 1)
                else:
                    shifted.add(p)
            if was_tagged:
                shifted.add(to_index)
            self._members[tag_name] = shifted

    def to_dict(self) -> dict[str, list[int]]:
        return {name: sorted(members) for name, members in self._members.items()}
