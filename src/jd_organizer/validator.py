"""
Structure Validator
===================

Checks a structure against the Johnny Decimal numbering rules. Violations
are returned as data in a `ValidationReport`; nothing is raised and the
structure is never modified.

Areas, categories and items are visited in their stored order, so the
order of errors and warnings is reproducible.
"""

from __future__ import annotations

import structlog

from .builder import item_identifier
from .models import (
    Area,
    Category,
    Structure,
    ValidationError,
    ValidationReport,
    ValidationWarning,
)

log = structlog.get_logger(__name__)

MAX_ITEMS_PER_CATEGORY = 99


def _is_valid_area_number(number: int) -> bool:
    return number % 10 == 0 and 10 <= number <= 90


def _check_items(category: Category, warnings: list[ValidationWarning]) -> None:
    for position, item in enumerate(category.items, start=1):
        expected = item_identifier(category.number, position)
        if item.number != expected:
            warnings.append(
                ValidationWarning(
                    kind="item_numbering",
                    message=(
                        f"Item number {item.number} should be {expected} "
                        "for sequential numbering"
                    ),
                    suggestion=f"Renumber to {expected}",
                )
            )

    if len(category.items) > MAX_ITEMS_PER_CATEGORY:
        warnings.append(
            ValidationWarning(
                kind="too_many_items",
                message=(
                    f"Category {category.number} has {len(category.items)} items. "
                    "Consider splitting into multiple categories."
                ),
                suggestion="Split large categories for better organization",
            )
        )


def _check_categories(
    area: Area,
    seen_categories: set[int],
    errors: list[ValidationError],
    warnings: list[ValidationWarning],
) -> None:
    for category in area.categories:
        if not area.number <= category.number < area.number + 10:
            errors.append(
                ValidationError(
                    kind="invalid_category_number",
                    message=(
                        f"Category number {category.number} is outside valid range "
                        f"for area {area.number} ({area.number}-{area.number + 9})"
                    ),
                    area_number=area.number,
                    category_number=category.number,
                )
            )

        if category.number in seen_categories:
            errors.append(
                ValidationError(
                    kind="duplicate_category_number",
                    message=f"Category number {category.number} is used multiple times",
                    area_number=area.number,
                    category_number=category.number,
                )
            )
        seen_categories.add(category.number)

        _check_items(category, warnings)


def validate_structure(structure: Structure) -> ValidationReport:
    """Return every numbering violation (errors) and quality issue (warnings)."""
    errors: list[ValidationError] = []
    warnings: list[ValidationWarning] = []
    seen_areas: set[int] = set()
    seen_categories: set[int] = set()

    for area in structure.areas:
        if not _is_valid_area_number(area.number):
            errors.append(
                ValidationError(
                    kind="invalid_area_number",
                    message=(
                        f"Area number {area.number} is invalid. "
                        "Must be 10, 20, 30, ..., 90"
                    ),
                    area_number=area.number,
                )
            )

        if area.number in seen_areas:
            errors.append(
                ValidationError(
                    kind="duplicate_area_number",
                    message=f"Area number {area.number} is used multiple times",
                    area_number=area.number,
                )
            )
        seen_areas.add(area.number)

        _check_categories(area, seen_categories, errors, warnings)

        if not area.categories:
            warnings.append(
                ValidationWarning(
                    kind="empty_area",
                    message=f"Area {area.number} has no categories",
                    suggestion="Consider removing empty areas or adding categories",
                )
            )

    report = ValidationReport(is_valid=not errors, errors=errors, warnings=warnings)
    log.debug(
        "Validated structure",
        structure_id=structure.id,
        is_valid=report.is_valid,
        error_count=len(errors),
        warning_count=len(warnings),
    )
    return report
