"""
Category Assigner
=================

Proposes where a single file belongs inside an existing structure. The
structure is only read, never modified.
"""

from __future__ import annotations

from typing import Any, Mapping

import structlog

from .builder import item_identifier
from .models import Assignment, FileDescriptor, Structure, as_descriptor
from .rules import is_mapped, normalize_extension, resolve_extension

log = structlog.get_logger(__name__)

MATCH_CONFIDENCE = 0.85
FALLBACK_CONFIDENCE = 0.5
FALLBACK_AREA = 90
FALLBACK_CATEGORY = 91
FALLBACK_ITEM = "91.01"


def _fallback(extension: str) -> Assignment:
    return Assignment(
        area_number=FALLBACK_AREA,
        category_number=FALLBACK_CATEGORY,
        item_number=FALLBACK_ITEM,
        confidence=FALLBACK_CONFIDENCE,
        reasoning=(
            f"No specific category found for extension '{extension}', "
            "assigned to miscellaneous"
        ),
    )


def assign_file(
    file_info: FileDescriptor | Mapping[str, Any], structure: Structure
) -> Assignment:
    """
    Place a file in ``structure`` by matching its extension rule against the
    structure's area numbers and category names.

    Unmapped extensions, missing areas and unmatched categories all yield
    the fixed miscellaneous assignment.
    """
    extension = normalize_extension(as_descriptor(file_info).extension)
    if not is_mapped(extension):
        return _fallback(extension)

    area_number, label = resolve_extension(extension)
    area = next((a for a in structure.areas if a.number == area_number), None)
    if area is None:
        log.debug("No matching area in structure", extension=extension, area=area_number)
        return _fallback(extension)

    needle = label.lower()
    category = next((c for c in area.categories if needle in c.name.lower()), None)
    if category is None:
        log.debug("No matching category in structure", extension=extension, label=label)
        return _fallback(extension)

    if category.items:
        item_number = category.items[0].number
    else:
        item_number = item_identifier(category.number, 1)

    return Assignment(
        area_number=area_number,
        category_number=category.number,
        item_number=item_number,
        confidence=MATCH_CONFIDENCE,
        reasoning=(
            f"File extension '{extension}' matches category '{label}' "
            f"in area {area_number}"
        ),
    )
