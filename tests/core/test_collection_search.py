# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for full-text search through an ItemCollection."""

import pytest

from itemcollection import (
    ConfigurationError,
    ItemCollection,
    Searchable,
    SearchableOptions,
    SearchNotConfiguredError,
)
from itemcollection.protocols import SearchAdapter

BOOKS = [
    {"id": 1, "title": "The Hobbit"},
    {"id": 2, "title": "Hobbies for beginners"},
    {"id": 3, "title": "Dune"},
]


@pytest.fixture
def books():
    return ItemCollection(
        list(BOOKS), searchable={"get_content": lambda item: item["title"]}
    )


class KeywordAdapter:
    """Minimal adapter matching whole lower-cased documents."""

    def __init__(self):
        self.docs = {}
        self.last_query = None

    def add_or_replace(self, content, doc_id):
        self.docs[doc_id] = content.lower()
        return 1

    def remove_doc_id(self, doc_id):
        return self.docs.pop(doc_id, None) is not None

    def search(self, query, strategy=None, *, max_distance=None):
        self.last_query = query
        return [doc_id for doc_id, content in self.docs.items() if query in content]

    def clear(self):
        self.docs.clear()


class LookupAdapter:
    """Adapter with only the required methods, no clear nor last_query."""

    def __init__(self):
        self.docs = {}

    def add_or_replace(self, content, doc_id):
        self.docs[doc_id] = content
        return 1

    def remove_doc_id(self, doc_id):
        return self.docs.pop(doc_id, None) is not None

    def search(self, query, strategy=None, *, max_distance=None):
        return [doc_id for doc_id, content in self.docs.items() if content == query]


class TestConfiguration:
    def test_not_searchable(self, abc):
        with pytest.raises(SearchNotConfiguredError):
            abc.search("a")
        assert abc.searchable is None

    def test_searchable_from_options_model(self):
        c = ItemCollection(searchable=SearchableOptions(default_strategy="exact"))
        assert isinstance(c.searchable, Searchable)

    def test_invalid_searchable(self):
        with pytest.raises(ConfigurationError):
            ItemCollection(searchable="yes")

    def test_invalid_adapter(self):
        with pytest.raises(ConfigurationError):
            ItemCollection(searchable={"adapter": object()})

    def test_custom_adapter(self):
        adapter = KeywordAdapter()
        c = ItemCollection(
            list(BOOKS),
            searchable={"adapter": adapter, "get_content": lambda item: item["title"]},
        )
        assert c.searchable is adapter
        assert c.search("dun") == [{"id": 3, "title": "Dune"}]
        assert c.snapshot().last_query == "dun"

    def test_adapter_without_optional_members(self):
        adapter = LookupAdapter()
        c = ItemCollection(
            list(BOOKS),
            searchable={"adapter": adapter, "get_content": lambda item: item["title"]},
        )
        assert c.searchable is adapter
        assert c.search("Dune") == [BOOKS[2]]
        assert c.snapshot().last_query is None

        c.clear()
        assert adapter.docs == {}
        assert c.search("Dune") == []

    def test_required_methods_satisfy_protocol(self):
        assert isinstance(LookupAdapter(), SearchAdapter)
        assert not isinstance(object(), SearchAdapter)


class TestSearch:
    def test_prefix_by_default(self, books):
        assert [item["id"] for item in books.search("hobb")] == [1, 2]

    def test_strategies(self, books):
        assert books.search("hobbit", "exact") == [BOOKS[0]]
        assert books.search("hobit", "fuzzy", max_distance=1) == [BOOKS[0]]

    def test_identity_indexed_without_content(self):
        c = ItemCollection([{"id": "alpha"}, {"id": "beta"}], searchable={})
        assert c.search("alp") == [{"id": "alpha"}]

    def test_content_none_falls_back_to_identity(self):
        c = ItemCollection(
            [{"id": "alpha"}, {"id": "beta", "text": "gamma"}],
            searchable={"get_content": lambda item: item.get("text")},
        )
        assert c.search("alpha") == [{"id": "alpha"}]
        assert c.search("gamma") == [{"id": "beta", "text": "gamma"}]

    def test_removed_items_not_found(self, books):
        books.remove_by_id(1)
        assert books.search("hobb") == [BOOKS[1]]

    def test_patch_reindexes(self, books):
        books.patch({"id": 3, "title": "Children of Dune"})
        assert books.search("children") == [{"id": 3, "title": "Children of Dune"}]

    def test_clear_empties_index(self, books):
        books.clear()
        assert books.search("dune") == []
        assert len(books.searchable) == 0

    def test_results_are_current_items(self, books):
        books.move(0, 2)
        assert books.search("hobbit") == [books.at(2)]

    def test_surviving_duplicate_stays_searchable(self):
        c = ItemCollection(
            [{"id": 1, "t": "x"}, {"id": 1, "t": "x"}],
            unique=False,
            searchable={"get_content": lambda item: item["t"]},
        )
        c.remove_at(0)
        assert c.search("x") == [{"id": 1, "t": "x"}]

    def test_last_query_in_snapshot(self, books):
        log = []
        books.subscribe(log.append)
        books.search("dune")
        books.add({"id": 4, "title": "Emma"})
        assert log[-1].last_query.raw == "dune"
        assert log[-1].last_query.hits == 1

    def test_restore_reindexes(self, books):
        dump = books.dump()
        c = ItemCollection(searchable={"get_content": lambda item: item["title"]})
        c.restore(dump)
        assert c.search("dune") == [BOOKS[2]]
