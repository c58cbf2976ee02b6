# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

__all__ = ("ActivePointer",)


class ActivePointer:
    """A single optional position with cursor-style navigation.

    The pointer does not know the sequence it points into; every call takes
    the current size. All transitions return whether the position changed,
    which lets the owner skip notifications for no-ops.
    """

    __slots__ = ("index",)

    def __init__(self, index: int | None = None) -> None:
        self.index = index

    def __repr__(self) -> str:
        return f"ActivePointer(index={self.index})"

    def _assign(self, index: int | None) -> bool:
        changed = index != self.index
        self.index = index
        return changed

    def set(self, index: int, size: int) -> bool:
        """Point at ``index mod size``; unset when the sequence is empty.

        Anything but a plain integer leaves the pointer unchanged.
        """
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        return self._assign(index % size if size > 0 else None)

    def unset(self) -> bool:
        return self._assign(None)

    def next(self, size: int, cycle: bool = False) -> bool:
        if size == 0:
            return False
        if self.index is None:
            return self._assign(0)
        if self.index >= size - 1:
            return self._assign(0) if cycle else False
        return self._assign(self.index + 1)

    def previous(self, size: int, cycle: bool = False) -> bool:
        if size == 0:
            return False
        if self.index is None:
            return self._assign(0)
        if self.index <= 0:
            return self._assign(size - 1) if cycle else False
        return self._assign(self.index - 1)

    def first(self, size: int) -> bool:
        if size == 0:
            return False
        return self._assign(0)

    def last(self, size: int) -> bool:
        if size == 0:
            return False
        return self._assign(size - 1)

    def on_remove(self, removed: int, new_size: int) -> None:
        if self.index is None:
            return
        if self.index == removed:
            # the item sliding into the slot becomes active
            self.index = removed % new_size if new_size > 0 else None
        elif self.index > removed:
            self.index -= 1

    def on_move(self, from_index: int, to_index: int) -> None:
        if self.index is None:
            return
        if self.index == from_index:
            self.index = to_index
        elif from_index < self.index <= to_index:
            self.index -= 1
        elif to_index <= self.index < from_index:
            self.index += 1
