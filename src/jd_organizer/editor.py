"""
Structure Editor
================

Incremental editing of a Johnny Decimal structure: create an empty
structure, then append areas, categories and items one at a time. Each new
entry takes the next free number after the largest one already present, so
a structure grown only through the editor keeps passing validation.

The editor enforces capacity limits. Adding past a limit raises
`StructureLimitError` and leaves the structure untouched.
"""

from __future__ import annotations

import datetime as dt
import uuid

import structlog

from .builder import item_identifier
from .errors import StructureLimitError
from .models import Area, Category, Item, Structure

log = structlog.get_logger(__name__)

LAST_AREA_NUMBER = 90


def _item_suffix(number: str) -> int | None:
    _, _, suffix = number.partition(".")
    try:
        return int(suffix)
    except ValueError:
        return None


class StructureEditor:
    """Appends taxonomy entries under per-level capacity limits."""

    def __init__(
        self,
        max_areas: int = 9,
        max_categories_per_area: int = 9,
        max_items_per_category: int = 99,
    ):
        self.max_areas = max_areas
        self.max_categories_per_area = max_categories_per_area
        self.max_items_per_category = max_items_per_category

    def create_structure(self, name: str, root_path: str) -> Structure:
        now = dt.datetime.now(dt.timezone.utc)
        structure = Structure(
            id=str(uuid.uuid4()),
            name=name,
            root_path=root_path,
            created_at=now,
            modified_at=now,
        )
        log.info("Created structure", structure_id=structure.id, name=name)
        return structure

    def add_area(
        self, structure: Structure, name: str, description: str | None = None
    ) -> Area:
        """
        Append an area numbered ten above the highest existing one (10 if empty).

        Raises:
            StructureLimitError: if the area limit is reached or the next
                number would pass 90.
        """
        if len(structure.areas) >= self.max_areas:
            raise StructureLimitError(
                f"Maximum number of areas ({self.max_areas}) exceeded"
            )
        number = max((a.number for a in structure.areas), default=0) + 10
        if number > LAST_AREA_NUMBER:
            raise StructureLimitError(f"No area number left after {number - 10}")

        area = Area(number=number, name=name, description=description)
        structure.areas.append(area)
        structure.modified_at = dt.datetime.now(dt.timezone.utc)
        log.debug("Added area", structure_id=structure.id, area_number=number)
        return area

    def add_category(
        self, area: Area, name: str, description: str | None = None
    ) -> Category:
        """
        Append a category numbered one above the highest in ``area``.

        Raises:
            StructureLimitError: if the category limit is reached or the
                next number would leave the area's decade.
        """
        base = (area.number // 10) * 10
        if len(area.categories) >= self.max_categories_per_area:
            raise StructureLimitError(
                f"Maximum number of categories ({self.max_categories_per_area}) "
                f"exceeded for area {base}"
            )
        number = max((c.number for c in area.categories), default=base) + 1
        if number > base + 9:
            raise StructureLimitError(f"No category number left in area {base}")

        category = Category(number=number, name=name, description=description)
        area.categories.append(category)
        log.debug("Added category", area_number=area.number, category_number=number)
        return category

    def add_item(
        self,
        category: Category,
        name: str,
        files: list[str] | None = None,
        description: str | None = None,
    ) -> Item:
        """
        Append an item whose suffix follows the highest existing suffix.

        Item ids that do not parse as ``<category>.<nn>`` are ignored when
        picking the next suffix.
        """
        if len(category.items) >= self.max_items_per_category:
            raise StructureLimitError(
                f"Maximum number of items ({self.max_items_per_category}) "
                f"exceeded for category {category.number}"
            )
        suffixes = [_item_suffix(item.number) for item in category.items]
        sequence = max((s for s in suffixes if s is not None), default=0) + 1

        item = Item(
            number=item_identifier(category.number, sequence),
            name=name,
            description=description,
            files=list(files or []),
        )
        category.items.append(item)
        log.debug(
            "Added item", category_number=category.number, item_number=item.number
        )
        return item
