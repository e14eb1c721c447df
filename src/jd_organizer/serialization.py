"""
Persistence Format
==================

Converts engine entities to and from plain JSON-compatible dictionaries so
a persistence store can save them and hand them back unchanged. Timestamps
are stored as ISO-8601 strings.

Also provides a Markdown export of a structure, one heading per taxonomy
level with the item's files listed beneath it.
"""

from __future__ import annotations

import datetime as dt
import json
from typing import Any

from .errors import SerializationError
from .models import (
    Area,
    Assignment,
    Category,
    Item,
    Structure,
    ValidationReport,
)


def structure_to_dict(structure: Structure) -> dict[str, Any]:
    return {
        "id": structure.id,
        "name": structure.name,
        "root_path": structure.root_path,
        "areas": [
            {
                "number": area.number,
                "name": area.name,
                "description": area.description,
                "categories": [
                    {
                        "number": category.number,
                        "name": category.name,
                        "description": category.description,
                        "items": [
                            {
                                "number": item.number,
                                "name": item.name,
                                "description": item.description,
                                "files": list(item.files),
                            }
                            for item in category.items
                        ],
                    }
                    for category in area.categories
                ],
            }
            for area in structure.areas
        ],
        "created_at": structure.created_at.isoformat(),
        "modified_at": structure.modified_at.isoformat(),
    }


def _parse_datetime(value: Any) -> dt.datetime:
    if not isinstance(value, str):
        raise SerializationError(f"Expected an ISO-8601 timestamp, got {value!r}")
    try:
        return dt.datetime.fromisoformat(value)
    except ValueError as e:
        raise SerializationError(f"Invalid timestamp {value!r}") from e


def structure_from_dict(data: dict[str, Any]) -> Structure:
    """
    Rebuild a structure from `structure_to_dict` output.

    Raises:
        SerializationError: if a required key is missing or malformed.
    """
    try:
        areas = [
            Area(
                number=int(area["number"]),
                name=area["name"],
                description=area.get("description"),
                categories=[
                    Category(
                        number=int(category["number"]),
                        name=category["name"],
                        description=category.get("description"),
                        items=[
                            Item(
                                number=item["number"],
                                name=item["name"],
                                description=item.get("description"),
                                files=list(item.get("files", [])),
                            )
                            for item in category.get("items", [])
                        ],
                    )
                    for category in area.get("categories", [])
                ],
            )
            for area in data.get("areas", [])
        ]
        return Structure(
            id=data["id"],
            name=data["name"],
            root_path=data["root_path"],
            areas=areas,
            created_at=_parse_datetime(data["created_at"]),
            modified_at=_parse_datetime(data["modified_at"]),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise SerializationError(f"Malformed structure payload: {e}") from e


def dumps_structure(structure: Structure, indent: int | None = 2) -> str:
    return json.dumps(structure_to_dict(structure), indent=indent, ensure_ascii=False)


def loads_structure(text: str) -> Structure:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Structure is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SerializationError("Structure payload is not a JSON object.")
    return structure_from_dict(data)


def assignment_to_dict(assignment: Assignment) -> dict[str, Any]:
    return {
        "area_number": assignment.area_number,
        "category_number": assignment.category_number,
        "item_number": assignment.item_number,
        "confidence": assignment.confidence,
        "reasoning": assignment.reasoning,
    }


def assignment_from_dict(data: dict[str, Any]) -> Assignment:
    try:
        return Assignment(
            area_number=int(data["area_number"]),
            category_number=int(data["category_number"]),
            item_number=str(data["item_number"]),
            confidence=float(data["confidence"]),
            reasoning=str(data["reasoning"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise SerializationError(f"Malformed assignment payload: {e}") from e


def report_to_dict(report: ValidationReport) -> dict[str, Any]:
    return {
        "is_valid": report.is_valid,
        "errors": [
            {
                "kind": error.kind,
                "message": error.message,
                "area_number": error.area_number,
                "category_number": error.category_number,
            }
            for error in report.errors
        ],
        "warnings": [
            {
                "kind": warning.kind,
                "message": warning.message,
                "suggestion": warning.suggestion,
            }
            for warning in report.warnings
        ],
    }


def structure_to_markdown(structure: Structure) -> str:
    lines = [f"# {structure.name}", ""]
    for area in structure.areas:
        lines.append(f"## {area.number} {area.name}")
        for category in area.categories:
            lines.append(f"### {category.number} {category.name}")
            for item in category.items:
                lines.append(f"#### {item.number} {item.name}")
                lines.extend(f"- {path}" for path in item.files)
    return "\n".join(lines) + "\n"
