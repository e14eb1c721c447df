"""
Johnny Decimal organizer engine.

This package contains:

- the extension rule table shared by every component
- the file classifier (inference backend with rule-based fallback)
- the structure builder, validator and category assigner
- an editor that appends areas, categories and items in sequence
- JSON persistence helpers and Markdown export
- environment-driven settings and structlog configuration
"""

from .assigner import assign_file
from .backend import InferenceBackend, OllamaBackend
from .builder import build_structure
from .classifier import (
    FileClassifier,
    LifecycleState,
    LifecycleStatus,
    ServiceStatus,
    parse_analysis_response,
    rule_based_suggestion,
)
from .config import Settings
from .editor import StructureEditor
from .errors import (
    InferenceError,
    JDError,
    SerializationError,
    StartupError,
    StructureLimitError,
)
from .models import (
    Area,
    Assignment,
    Category,
    ClassificationSuggestion,
    FileDescriptor,
    Item,
    Structure,
    ValidationError,
    ValidationReport,
    ValidationWarning,
)
from .rules import resolve_extension
from .validator import validate_structure

__all__ = [
    "Area",
    "Assignment",
    "Category",
    "ClassificationSuggestion",
    "FileClassifier",
    "FileDescriptor",
    "InferenceBackend",
    "InferenceError",
    "Item",
    "JDError",
    "LifecycleState",
    "LifecycleStatus",
    "OllamaBackend",
    "SerializationError",
    "ServiceStatus",
    "Settings",
    "StartupError",
    "Structure",
    "StructureEditor",
    "StructureLimitError",
    "ValidationError",
    "ValidationReport",
    "ValidationWarning",
    "assign_file",
    "build_structure",
    "parse_analysis_response",
    "resolve_extension",
    "rule_based_suggestion",
    "validate_structure",
]
