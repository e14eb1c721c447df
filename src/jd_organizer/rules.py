"""
Classification Rule Table
=========================

The single source of truth that maps a file extension to a Johnny Decimal
area and category label. The rule-based classifier, the structure builder
and the category assigner all resolve extensions through
:func:`resolve_extension`.

The tables in this module are read-only at runtime.
"""

from __future__ import annotations

from types import MappingProxyType

MISC_AREA = 90
MISC_CATEGORY = "Miscellaneous"
DEFAULT_RULE: tuple[int, str] = (MISC_AREA, MISC_CATEGORY)

_RULES_BY_CATEGORY: dict[tuple[int, str], tuple[str, ...]] = {
    # Documents area (20-29)
    (20, "Reports and Documents"): ("pdf",),
    (20, "Text Documents"): ("doc", "docx", "txt", "rtf"),
    (20, "Spreadsheets"): ("xls", "xlsx", "csv"),
    (20, "Presentations"): ("ppt", "pptx"),
    # Media area (30-39)
    (30, "Images"): ("jpg", "jpeg", "png", "gif", "bmp", "svg"),
    (30, "Videos"): ("mp4", "avi", "mkv", "mov", "wmv"),
    (30, "Audio"): ("mp3", "wav", "flac", "aac"),
    # Development area (40-49)
    (40, "Source Code"): ("js", "ts", "py", "rs", "java", "cpp", "c"),
    (40, "Web Files"): ("html", "css"),
    (40, "Configuration"): ("json", "xml", "yaml", "yml"),
    # Archives area (50-59)
    (50, "Compressed Files"): ("zip", "rar", "7z", "tar", "gz"),
    (50, "Installers"): ("exe", "msi", "dmg", "pkg"),
}

EXTENSION_RULES = MappingProxyType(
    {
        extension: rule
        for rule, extensions in _RULES_BY_CATEGORY.items()
        for extension in extensions
    }
)

AREA_NAMES = MappingProxyType(
    {
        10: "10-19 Administration",
        20: "20-29 Documents",
        30: "30-39 Media",
        40: "40-49 Development",
        50: "50-59 Archives",
        60: "60-69 Projects",
        70: "70-79 Reference",
        80: "80-89 Resources",
        90: "90-99 Miscellaneous",
    }
)

AREA_DESCRIPTIONS = MappingProxyType(
    {
        10: "Administrative documents, policies, and organizational files",
        20: "Text documents, reports, presentations, and written content",
        30: "Images, videos, audio files, and multimedia content",
        40: "Source code, development tools, and programming resources",
        50: "Compressed files, archives, and backup collections",
        60: "Active projects and work-in-progress materials",
        70: "Reference materials, manuals, and documentation",
        80: "Tools, utilities, and supporting resources",
        90: "Uncategorized and miscellaneous files",
    }
)


def normalize_extension(extension: str | None) -> str:
    """Lower-case an extension and drop a leading dot (".PDF" -> "pdf")."""
    if not extension:
        return ""
    return extension.strip().lstrip(".").lower()


def resolve_extension(extension: str | None) -> tuple[int, str]:
    """Return ``(area_number, category_label)`` for a file extension."""
    return EXTENSION_RULES.get(normalize_extension(extension), DEFAULT_RULE)


def is_mapped(extension: str | None) -> bool:
    """True if the extension has an explicit rule (not the default)."""
    return normalize_extension(extension) in EXTENSION_RULES


def area_name(number: int) -> str:
    return AREA_NAMES.get(number, f"{number}-{number + 9} Custom Area")


def area_description(number: int) -> str:
    return AREA_DESCRIPTIONS.get(number, "Custom area for specialized content")


def category_path(area_number: int, category_label: str) -> str:
    """Slash-joined label used in classification suggestions."""
    return f"{area_name(area_number)}/{category_label}"


MISC_LABEL = category_path(MISC_AREA, MISC_CATEGORY)
TEXT_DOCUMENTS_LABEL = category_path(20, "Text Documents")
IMAGES_LABEL = category_path(30, "Images")
