# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

import pytest

from itemcollection import ItemCollection


@pytest.fixture
def make_abc():
    """Factory for a collection seeded with items a, b, c."""

    def _make(**options):
        return ItemCollection([{"id": "a"}, {"id": "b"}, {"id": "c"}], **options)

    return _make


@pytest.fixture
def abc(make_abc):
    return make_abc()


@pytest.fixture
def snapshots(abc):
    """Subscribe to ``abc`` and collect every published snapshot."""
    log = []
    abc.subscribe(log.append)
    return log
