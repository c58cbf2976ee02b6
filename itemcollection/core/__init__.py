# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from .active_pointer import ActivePointer
from .collection import CHANGE_TOPIC, ItemCollection
from .models import CollectionConfig, CollectionDump, CollectionSnapshot, TagConfig
from .property_index import PropertyIndex
from .tag_store import TagStore

__all__ = (
    "ActivePointer",
    "CHANGE_TOPIC",
    "CollectionConfig",
    "CollectionDump",
    "CollectionSnapshot",
    "ItemCollection",
    "PropertyIndex",
    "TagConfig",
    "TagStore",
)
