"""
Taxonomy Data Model
===================

Plain dataclasses describing a Johnny Decimal structure and the transient
values produced by the engine (suggestions, assignments, validation
reports).

A ``Structure`` owns its ``Area`` objects, each ``Area`` owns its
``Category`` objects and each ``Category`` owns its ``Item`` objects. The
engine never shares nodes between structures.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass
class FileDescriptor:
    """A file as reported by the file enumerator."""

    path: str = ""
    name: str = ""
    extension: str = ""
    size: int = 0
    mime_type: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FileDescriptor:
        """
        Build a descriptor from a loosely-typed mapping.

        Missing or wrongly-typed fields fall back to empty values so that a
        single malformed entry never aborts a batch.
        """

        def get_str(key: str) -> str:
            value = data.get(key)
            return value if isinstance(value, str) else ""

        size = data.get("size")
        if isinstance(size, bool) or not isinstance(size, int):
            size = 0

        return cls(
            path=get_str("path"),
            name=get_str("name"),
            extension=get_str("extension"),
            size=size,
            mime_type=get_str("mime_type"),
        )


def as_descriptor(file_info: FileDescriptor | Mapping[str, Any]) -> FileDescriptor:
    """Accept either a descriptor or a plain mapping."""
    if isinstance(file_info, FileDescriptor):
        return file_info
    if isinstance(file_info, Mapping):
        return FileDescriptor.from_mapping(file_info)
    return FileDescriptor()


@dataclass
class Item:
    number: str
    name: str
    description: str | None = None
    files: list[str] = field(default_factory=list)


@dataclass
class Category:
    number: int
    name: str
    description: str | None = None
    items: list[Item] = field(default_factory=list)


@dataclass
class Area:
    number: int
    name: str
    description: str | None = None
    categories: list[Category] = field(default_factory=list)


@dataclass
class Structure:
    id: str
    name: str
    root_path: str
    areas: list[Area] = field(default_factory=list)
    created_at: dt.datetime = field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc)
    )
    modified_at: dt.datetime = field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc)
    )


@dataclass(frozen=True)
class ClassificationSuggestion:
    category: str
    confidence: float
    reasoning: str
    alternatives: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Assignment:
    area_number: int
    category_number: int
    item_number: str
    confidence: float
    reasoning: str


@dataclass(frozen=True)
class ValidationError:
    kind: str
    message: str
    area_number: int | None = None
    category_number: int | None = None


@dataclass(frozen=True)
class ValidationWarning:
    kind: str
    message: str
    suggestion: str | None = None


@dataclass(frozen=True)
class ValidationReport:
    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)
