# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from .contracts import ChangePublisher, SearchAdapter, SearchStrategy

__all__ = ("ChangePublisher", "SearchAdapter", "SearchStrategy")
