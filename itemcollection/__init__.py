# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

import logging

from ._errors import (
    ConfigurationError,
    ItemCollectionError,
    RestoreError,
    SearchNotConfiguredError,
    UnconfiguredTagError,
)
from .config import CollectionSettings, settings
from .core import (
    CHANGE_TOPIC,
    CollectionConfig,
    CollectionDump,
    CollectionSnapshot,
    ItemCollection,
    TagConfig,
)
from .service import LastQuery, PubSub, Searchable, SearchableOptions
from .version import __version__

logger = logging.getLogger(__name__)
logger.setLevel(settings.LOG_LEVEL.upper())

__all__ = (
    "CHANGE_TOPIC",
    "CollectionConfig",
    "CollectionDump",
    "CollectionSettings",
    "CollectionSnapshot",
    "ConfigurationError",
    "ItemCollection",
    "ItemCollectionError",
    "LastQuery",
    "PubSub",
    "RestoreError",
    "SearchNotConfiguredError",
    "Searchable",
    "SearchableOptions",
    "TagConfig",
    "UnconfiguredTagError",
    "__version__",
    "settings",
)
