# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from typing import Any, ClassVar

__all__ = (
    "ItemCollectionError",
    "ConfigurationError",
    "UnconfiguredTagError",
    "SearchNotConfiguredError",
    "RestoreError",
)


class ItemCollectionError(Exception):
    default_message: ClassVar[str] = "ItemCollection error"
    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message or self.default_message)
        if cause:
            self.__cause__ = cause  # preserves traceback
        self.message = message or self.default_message
        self.details = details or {}

    def to_dict(self, *, include_cause: bool = False) -> dict[str, Any]:
        data = {
            "error": self.__class__.__name__,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }
        if include_cause and (cause := self.get_cause()):
            data["cause"] = repr(cause)
        return data

    def get_cause(self) -> Exception | None:
        """Get the cause of this error, if any."""
        return self.__cause__ if hasattr(self, "__cause__") else None


class ConfigurationError(ItemCollectionError):
    """Raised when the host misuses the collection configuration."""

    default_message = "Invalid collection configuration"
    __slots__ = ()


class UnconfiguredTagError(ConfigurationError):
    """Raised when applying a tag that was never configured while
    unconfigured tags are disallowed."""

    default_message = "Unconfigured tag is not allowed"
    __slots__ = ()

    @classmethod
    def from_tag(cls, tag_name: str):
        return cls(
            f'Unconfigured tag "{tag_name}" is not allowed.',
            details={"tag": tag_name},
        )


class SearchNotConfiguredError(ConfigurationError):
    default_message = "This collection is not configured as searchable"
    __slots__ = ()


class RestoreError(ItemCollectionError):
    """Raised internally when a dump cannot be restored."""

    default_message = "Unable to restore collection"
    __slots__ = ()
