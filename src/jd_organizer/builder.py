"""
Structure Builder
=================

Builds a complete Johnny Decimal structure from a batch of file descriptors.

Files are grouped into areas and categories through the extension rule
table, then every category and item is renumbered so the result has no
gaps and no collisions. The builder is a pure function of its input and the
rule table apart from the generated id and timestamps.
"""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Any, Iterable, Mapping

import structlog

from .models import Area, Category, FileDescriptor, Item, Structure, as_descriptor
from .rules import area_description, area_name, resolve_extension

log = structlog.get_logger(__name__)

DEFAULT_STRUCTURE_NAME = "AI Generated Structure"


def item_identifier(category_number: int, sequence: int) -> str:
    """Format an item id such as ``21.03``."""
    return f"{category_number}.{sequence:02}"


def _new_category(area_number: int, label: str, path: str) -> Category:
    # Temporary number; overwritten when the area is renumbered.
    number = area_number + 1
    item = Item(
        number=item_identifier(number, 1),
        name=f"{label} Files",
        description=f"Collection of {label.lower()} files",
        files=[path] if path else [],
    )
    return Category(
        number=number,
        name=label,
        description=f"Files of type: {label}",
        items=[item],
    )


def _renumber(areas: list[Area]) -> None:
    for area in areas:
        # Stable sort: categories sharing a temporary number keep first-seen order.
        area.categories.sort(key=lambda c: c.number)
        for position, category in enumerate(area.categories):
            category.number = area.number + position + 1
            for sequence, item in enumerate(category.items, start=1):
                item.number = item_identifier(category.number, sequence)


def build_structure(
    files: Iterable[FileDescriptor | Mapping[str, Any]],
    root_path: str,
    name: str = DEFAULT_STRUCTURE_NAME,
) -> Structure:
    """
    Group files into a freshly numbered structure rooted at ``root_path``.

    Categories are keyed by their exact label, and repeated labels add
    files to the category's first item; the builder never splits a
    category into several items.
    """
    areas_by_number: dict[int, Area] = {}
    file_count = 0

    for file_info in files:
        descriptor = as_descriptor(file_info)
        file_count += 1
        area_number, label = resolve_extension(descriptor.extension)

        area = areas_by_number.get(area_number)
        if area is None:
            area = Area(
                number=area_number,
                name=area_name(area_number),
                description=area_description(area_number),
            )
            areas_by_number[area_number] = area

        category = next((c for c in area.categories if c.name == label), None)
        if category is None:
            area.categories.append(_new_category(area_number, label, descriptor.path))
        elif descriptor.path and category.items:
            category.items[0].files.append(descriptor.path)

    areas = sorted(areas_by_number.values(), key=lambda a: a.number)
    _renumber(areas)

    now = dt.datetime.now(dt.timezone.utc)
    structure = Structure(
        id=str(uuid.uuid4()),
        name=name,
        root_path=root_path,
        areas=areas,
        created_at=now,
        modified_at=now,
    )
    log.info(
        "Built structure",
        structure_id=structure.id,
        root_path=root_path,
        file_count=file_count,
        area_count=len(areas),
        category_count=sum(len(a.categories) for a in areas),
    )
    return structure
