# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for configuration module."""

import math
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from itemcollection import ItemCollection, SearchableOptions
from itemcollection.config import CollectionSettings, settings
from itemcollection.core.models import CollectionConfig, CollectionDump, TagConfig


class TestCollectionSettings:
    """Tests for CollectionSettings class."""

    def test_default_values(self):
        config = CollectionSettings()
        assert config.LOG_LEVEL == "INFO"
        assert config.ID_PROP_NAME == "id"
        assert config.SEARCH_STRATEGY == "prefix"
        assert config.SEARCH_MAX_DISTANCE == 2

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("ITEMCOLLECTION_ID_PROP_NAME", "uuid")
        monkeypatch.setenv("ITEMCOLLECTION_SEARCH_STRATEGY", "exact")
        config = CollectionSettings()
        assert config.ID_PROP_NAME == "uuid"
        assert config.SEARCH_STRATEGY == "exact"

    def test_invalid_strategy_from_environment(self, monkeypatch):
        monkeypatch.setenv("ITEMCOLLECTION_SEARCH_STRATEGY", "regex")
        with pytest.raises(ValidationError):
            CollectionSettings()

    def test_frozen(self):
        with pytest.raises(ValidationError):
            settings.LOG_LEVEL = "DEBUG"

    def test_singleton_instance(self):
        assert CollectionSettings._instance is settings

    def test_defaults_flow_into_collections(self):
        custom = CollectionSettings(ID_PROP_NAME="key", SEARCH_MAX_DISTANCE=1)
        with patch("itemcollection.core.models.settings", custom), patch(
            "itemcollection.service.searchable.settings", custom
        ):
            assert ItemCollection().id_prop_name == "key"
            assert SearchableOptions().max_distance == 1


class TestTagConfig:
    def test_unbounded_by_default(self):
        assert TagConfig().cardinality == math.inf

    @pytest.mark.parametrize("value,expected", [(None, math.inf), (3, 3), (0, 0)])
    def test_cardinality_coercion(self, value, expected):
        assert TagConfig(cardinality=value).cardinality == expected

    @pytest.mark.parametrize("value", [-1, "3", True, 2.5])
    def test_invalid_cardinality(self, value):
        with pytest.raises(ValidationError):
            TagConfig(cardinality=value)

    def test_json_dump(self):
        assert TagConfig().model_dump(mode="json") == {"cardinality": None}
        assert TagConfig(cardinality=2).model_dump(mode="json") == {"cardinality": 2}


class TestCollectionConfig:
    def test_defaults(self):
        config = CollectionConfig()
        assert config.cardinality == math.inf
        assert config.unique is True
        assert config.id_prop_name == "id"
        assert config.sort_fn is None

    def test_empty_id_prop_name(self):
        with pytest.raises(ValidationError):
            CollectionConfig(id_prop_name="")

    def test_extra_forbidden(self):
        with pytest.raises(ValidationError):
            CollectionConfig(colour="red")

    def test_validate_assignment(self):
        config = CollectionConfig()
        with pytest.raises(ValidationError):
            config.cardinality = -5

    def test_behavior_excluded_from_dump(self):
        config = CollectionConfig(sort_fn=lambda a, b: 0)
        assert "sort_fn" not in config.model_dump()


class TestCollectionDump:
    def test_defaults(self):
        dump = CollectionDump()
        assert dump.items == []
        assert dump.unique is True
        assert dump.cardinality == math.inf

    def test_unknown_keys_ignored(self):
        dump = CollectionDump.model_validate({"items": [], "version": 9})
        assert not hasattr(dump, "version")
