# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""In-memory full-text index used by searchable collections.

Documents are tokenized into words and stored in an inverted index keyed by
word. The vocabulary is kept sorted so prefix lookups are a range scan.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Callable, Hashable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sortedcontainers import SortedList

from ..config import settings
from ..protocols.contracts import SearchStrategy

__all__ = (
    "LastQuery",
    "Searchable",
    "SearchableOptions",
    "levenshtein_distance",
    "strip_accents",
)

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w+")
_STRATEGIES = ("exact", "prefix", "fuzzy")


class SearchableOptions(BaseModel):
    """Options of a searchable collection.

    Attributes:
        get_content: Extracts the searchable text of an item. When it is
            missing or returns ``None`` the item's identity value is indexed.
        case_sensitive: Keep letter case of documents and queries.
        accent_sensitive: Keep diacritics of documents and queries.
        stopwords: Words never indexed nor searched (compared after
            normalization, so lower-case them unless ``case_sensitive``).
        normalize_word: Optional per-word hook (e.g. a stemmer). Returning
            an empty value drops the word.
        default_strategy: Strategy used when ``search`` is given none.
        max_distance: Default edit distance of the fuzzy strategy.
        adapter: A ready search engine satisfying
            :class:`~itemcollection.protocols.contracts.SearchAdapter`,
            used instead of a new :class:`Searchable`.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    get_content: Callable[[Any], str | None] | None = None
    case_sensitive: bool = False
    accent_sensitive: bool = False
    stopwords: frozenset[str] = frozenset()
    normalize_word: Callable[[str], str | None] | None = None
    default_strategy: SearchStrategy = Field(
        default_factory=lambda: settings.SEARCH_STRATEGY
    )
    max_distance: int = Field(
        default_factory=lambda: settings.SEARCH_MAX_DISTANCE, ge=0
    )
    adapter: Any = None

    @field_validator("stopwords", mode="before")
    def _validate_stopwords(cls, value: Any) -> frozenset[str]:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            return frozenset(value.split())
        return frozenset(value)


class LastQuery(BaseModel):
    """Metadata of the most recent search."""

    model_config = ConfigDict(frozen=True)

    raw: str
    used: list[str] = Field(default_factory=list)
    strategy: SearchStrategy
    max_distance: int | None = None
    hits: int = 0


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(c for c in decomposed if unicodedata.category(c) != "Mn")


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


class Searchable:
    """Inverted word index over documents keyed by hashable ids.

    Results are returned in document indexing order; re-indexing a document
    moves it to the end.
    """

    def __init__(self, options: SearchableOptions | None = None, **kwargs: Any):
        self.options = options or SearchableOptions(**kwargs)
        self._postings: dict[str, dict[Hashable, None]] = {}
        self._documents: dict[Hashable, frozenset[str]] = {}
        self._vocabulary: SortedList = SortedList()
        self._last_query: LastQuery | None = None

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, doc_id: Hashable) -> bool:
        return doc_id in self._documents

    @property
    def last_query(self) -> LastQuery | None:
        return self._last_query

    @property
    def vocabulary(self) -> list[str]:
        return list(self._vocabulary)

    def normalize(self, text: str) -> str:
        if not self.options.accent_sensitive:
            text = strip_accents(text)
        if not self.options.case_sensitive:
            text = text.lower()
        return text

    def tokenize(self, text: str) -> list[str]:
        """Split text into normalized words, dropping stopwords."""
        words = []
        for word in _WORD_RE.findall(self.normalize(text)):
            if self.options.normalize_word is not None:
                word = self.options.normalize_word(word)
            if not word or word in self.options.stopwords:
                continue
            words.append(word)
        return words

    def add_or_replace(self, content: str, doc_id: Hashable) -> int:
        """Index ``content`` under ``doc_id``, dropping any prior entry.

        Returns:
            int: Number of distinct words indexed for the document.
        """
        self.remove_doc_id(doc_id)
        words = frozenset(self.tokenize(str(content)))
        self._documents[doc_id] = words
        for word in words:
            postings = self._postings.get(word)
            if postings is None:
                postings = self._postings[word] = {}
                self._vocabulary.add(word)
            postings[doc_id] = None
        return len(words)

    def remove_doc_id(self, doc_id: Hashable) -> bool:
        words = self._documents.pop(doc_id, None)
        if words is None:
            return False
        for word in words:
            postings = self._postings[word]
            postings.pop(doc_id, None)
            if not postings:
                del self._postings[word]
                self._vocabulary.remove(word)
        return True

    def clear(self) -> None:
        self._postings.clear()
        self._documents.clear()
        self._vocabulary.clear()

    def _match_word(
        self, word: str, strategy: SearchStrategy, max_distance: int
    ) -> set[Hashable]:
        if strategy == "exact":
            return set(self._postings.get(word, ()))

        if strategy == "prefix":
            terms = []
            for term in self._vocabulary.irange(minimum=word):
                if not term.startswith(word):
                    break
                terms.append(term)
        else:
            terms = [
                term
                for term in self._vocabulary
                if abs(len(term) - len(word)) <= max_distance
                and levenshtein_distance(term, word) <= max_distance
            ]

        matched: set[Hashable] = set()
        for term in terms:
            matched.update(self._postings[term])
        return matched

    def search(
        self,
        query: str,
        strategy: SearchStrategy | None = None,
        *,
        max_distance: int | None = None,
    ) -> list[Hashable]:
        """Return ids of documents matching every word of ``query``.

        Raises:
            ValueError: Unknown strategy.
        """
        strategy = strategy or self.options.default_strategy
        if strategy not in _STRATEGIES:
            raise ValueError(
                f"Unknown search strategy '{strategy}', expected one of {_STRATEGIES}"
            )
        if max_distance is None:
            max_distance = self.options.max_distance

        words = list(dict.fromkeys(self.tokenize(query)))
        matched: set[Hashable] = set()
        for i, word in enumerate(words):
            ids = self._match_word(word, strategy, max_distance)
            matched = ids if i == 0 else matched & ids
            if not matched:
                break

        results = [doc_id for doc_id in self._documents if doc_id in matched]
        self._last_query = LastQuery(
            raw=query,
            used=words,
            strategy=strategy,
            max_distance=max_distance if strategy == "fuzzy" else None,
            hits=len(results),
        )
        logger.debug(f"Search '{query}' ({strategy}) matched {len(results)} documents")
        return results
