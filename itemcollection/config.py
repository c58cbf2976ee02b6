# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from typing import Any, ClassVar, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ("CollectionSettings", "settings")


class CollectionSettings(BaseSettings, frozen=True):
    """Process-wide defaults with environment variable support.

    Every field can be overridden with an ``ITEMCOLLECTION_`` prefixed
    environment variable or from a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ITEMCOLLECTION_",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    LOG_LEVEL: str = Field(
        "INFO", description="Level of the package-level logger"
    )
    ID_PROP_NAME: str = Field(
        "id", description="Default identity attribute of new collections"
    )
    SEARCH_STRATEGY: Literal["exact", "prefix", "fuzzy"] = Field(
        "prefix", description="Default search strategy of searchable collections"
    )
    SEARCH_MAX_DISTANCE: int = Field(
        2, ge=0, description="Default edit distance of fuzzy searches"
    )

    _instance: ClassVar[Any] = None


settings = CollectionSettings()
CollectionSettings._instance = settings
