# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for the active item of an ItemCollection."""

import pytest

from itemcollection import ItemCollection


class TestSetActive:
    def test_set_active(self, abc):
        assert abc.set_active({"id": "b"})
        assert abc.active == {"id": "b"}
        assert abc.active_index == 1

    def test_set_active_unknown(self, abc):
        assert not abc.set_active({"id": "zz"})
        assert abc.active is None

    @pytest.mark.parametrize("index,expected", [(0, "a"), (4, "b"), (-1, "c")])
    def test_set_active_index_wraps(self, abc, index, expected):
        assert abc.set_active_index(index) == {"id": expected}

    @pytest.mark.parametrize("index", [1.5, "1", None, True])
    def test_set_active_index_ignores_non_integers(self, abc, index):
        abc.set_active_index(2)
        log = []
        abc.subscribe(log.append)
        assert abc.set_active_index(index) == {"id": "c"}
        assert abc.active_index == 2
        assert len(log) == 1
        assert abc.snapshot().active == {"id": "c"}

    def test_set_active_index_on_empty(self):
        c = ItemCollection()
        assert c.set_active_index(3) is None
        assert c.active_index is None

    def test_unset_active(self, abc):
        abc.set_active_index(1)
        assert abc.unset_active() is abc
        assert abc.active is None
        assert abc.active_index is None


class TestNavigation:
    def test_next_and_previous(self, abc):
        assert abc.next() == {"id": "a"}
        assert abc.next() == {"id": "b"}
        assert abc.next() == {"id": "c"}
        assert abc.next() == {"id": "c"}
        assert abc.previous() == {"id": "b"}
        assert abc.set_active_next() == {"id": "c"}
        assert abc.set_active_previous() == {"id": "b"}

    def test_previous_from_unset_starts_at_first(self, abc):
        assert abc.previous() == {"id": "a"}
        assert abc.previous() == {"id": "a"}

    def test_cycle(self, make_abc):
        c = make_abc(allow_next_prev_cycle=True)
        c.last()
        assert c.next() == {"id": "a"}
        assert c.previous() == {"id": "c"}

    def test_first_and_last(self, abc):
        assert abc.last() == {"id": "c"}
        assert abc.first() == {"id": "a"}

    def test_navigation_on_empty(self):
        c = ItemCollection()
        assert c.next() is None
        assert c.previous() is None
        assert c.first() is None
        assert c.last() is None
        assert c.active_index is None


class TestFollowingItems:
    def test_active_shifts_on_earlier_removal(self, abc):
        abc.set_active_index(2)
        abc.remove_at(0)
        assert abc.active == {"id": "c"}
        assert abc.active_index == 1

    def test_removing_active_activates_next(self, abc):
        abc.set_active_index(1)
        abc.remove_at(1)
        assert abc.active == {"id": "c"}

    def test_removing_active_last_wraps(self, abc):
        abc.set_active_index(2)
        abc.remove_at(2)
        assert abc.active == {"id": "a"}

    def test_removing_only_item_unsets(self):
        c = ItemCollection([{"id": "a"}])
        c.set_active_index(0)
        c.remove_at(0)
        assert c.active is None
        assert c.active_index is None

    def test_active_follows_move(self, abc):
        abc.set_active_index(0)
        abc.move(0, 2)
        assert abc.active == {"id": "a"}
        assert abc.active_index == 2
        abc.move(1, 0)
        assert abc.active_index == 2
        abc.move(2, 0)
        assert abc.active_index == 0
