# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from .pubsub import PubSub
from .searchable import LastQuery, Searchable, SearchableOptions

__all__ = ("LastQuery", "PubSub", "Searchable", "SearchableOptions")
