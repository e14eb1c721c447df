"""
File Classification Module
==========================

This module proposes a Johnny Decimal category for a single file. When the
inference backend is running it asks a model for a structured JSON
suggestion; in every other case, and whenever the model call fails, it
falls back to the deterministic extension rules so that `classify` always
returns a suggestion.

The classifier owns one piece of mutable state, its `LifecycleState`.
Transitions (`start`, `stop`) are serialized; `classify` works on an
immutable snapshot of the state and may run concurrently.
"""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

import structlog

from .backend import InferenceBackend
from .config import Settings
from .errors import InferenceError, StartupError
from .models import ClassificationSuggestion, FileDescriptor, as_descriptor
from .rules import (
    IMAGES_LABEL,
    MISC_LABEL,
    TEXT_DOCUMENTS_LABEL,
    category_path,
    normalize_extension,
    resolve_extension,
)

log = structlog.get_logger(__name__)

RULE_BASED_CONFIDENCE = 0.75
HEURISTIC_CONFIDENCE = 0.6
DEFAULT_AI_CONFIDENCE = 0.5

ANALYSIS_PROMPT = """
You are a file organization assistant using the Johnny Decimal system.
Analyze the following file and suggest the most appropriate category:

File: {name}
Extension: {extension}
Size: {size} bytes
Type: {mime_type}

Johnny Decimal areas (10-19, 20-29, 30-39, etc.) should be used for broad categories.
Categories (11, 12, 13, etc.) should be specific within each area.

Respond with JSON:
{{
    "category": "Area Name/Category Name",
    "confidence": 0.0-1.0,
    "reasoning": "explanation",
    "alternatives": ["alt1", "alt2"],
    "tags": ["tag1", "tag2"]
}}

Be concise and practical in your categorization.
""".strip()


class LifecycleStatus(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    ERROR = "error"


@dataclass(frozen=True)
class LifecycleState:
    status: LifecycleStatus = LifecycleStatus.STOPPED
    model: str | None = None

    @property
    def can_infer(self) -> bool:
        return self.status is LifecycleStatus.RUNNING and self.model is not None


@dataclass(frozen=True)
class ServiceStatus:
    """Snapshot reported by `FileClassifier.status`."""

    status: str
    available: bool
    model: str | None = None
    models: list[str] = field(default_factory=list)


def build_analysis_prompt(descriptor: FileDescriptor) -> str:
    return ANALYSIS_PROMPT.format(
        name=descriptor.name,
        extension=descriptor.extension,
        size=descriptor.size,
        mime_type=descriptor.mime_type or "unknown",
    )


def _string_list(value: Any) -> list[str]:
    """Keep only the string elements of a JSON array."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _extract_json_object(text: str) -> dict | None:
    """Parse the span between the first '{' and the last '}', if any."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    try:
        data = json.loads(text[start : end + 1])
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, oversized integer literals and runaway nesting
        log.warning("Failed to parse AI JSON response", error=str(e))
        return None
    return data if isinstance(data, dict) else None


def _confidence(value: Any) -> float:
    """Clamp a numeric confidence to [0, 1]; anything else gets the default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_AI_CONFIDENCE
    try:
        value = float(value)
    except OverflowError:
        return DEFAULT_AI_CONFIDENCE
    if value != value:  # NaN
        return DEFAULT_AI_CONFIDENCE
    return min(1.0, max(0.0, value))


def parse_analysis_response(text: str) -> ClassificationSuggestion:
    """
    Turn a raw model reply into a suggestion.

    The model may wrap its JSON in commentary, so only the outermost braces
    are parsed. A reply without usable JSON is mined for keywords instead.
    """
    data = _extract_json_object(text)
    if data is not None:
        category = data.get("category")
        confidence = _confidence(data.get("confidence"))
        reasoning = data.get("reasoning")

        return ClassificationSuggestion(
            category=category if isinstance(category, str) else MISC_LABEL,
            confidence=confidence,
            reasoning=reasoning if isinstance(reasoning, str) else "AI analysis",
            alternatives=_string_list(data.get("alternatives")),
            tags=_string_list(data.get("tags")),
        )

    lowered = text.lower()
    if "documents" in lowered:
        category = TEXT_DOCUMENTS_LABEL
    elif "media" in lowered or "images" in lowered:
        category = IMAGES_LABEL
    else:
        category = MISC_LABEL

    return ClassificationSuggestion(
        category=category,
        confidence=HEURISTIC_CONFIDENCE,
        reasoning="Parsed from AI text response",
        alternatives=[],
        tags=["ai-parsed"],
    )


def rule_based_suggestion(
    file_info: FileDescriptor | Mapping[str, Any],
) -> ClassificationSuggestion:
    """Deterministic suggestion from the extension rule table. Never fails."""
    descriptor = as_descriptor(file_info)
    extension = normalize_extension(descriptor.extension)
    area_number, label = resolve_extension(extension)

    tags = [extension] if extension else []
    tags.append("rule-based")

    return ClassificationSuggestion(
        category=category_path(area_number, label),
        confidence=RULE_BASED_CONFIDENCE,
        reasoning=(
            f"File categorized based on extension '{extension}' "
            "using rule-based fallback"
        ),
        alternatives=[MISC_LABEL],
        tags=tags,
    )


class FileClassifier:
    """
    Inference-backed classifier with a deterministic fallback.
    """

    def __init__(
        self,
        settings: Settings,
        backend: InferenceBackend,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.backend = backend
        self._sleep = sleep
        self._state = LifecycleState()
        self._state_lock = threading.Lock()
        self._transition_lock = threading.Lock()

    @property
    def state(self) -> LifecycleState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: LifecycleState) -> None:
        with self._state_lock:
            previous = self._state
            self._state = state
        log.debug(
            "Classifier state changed",
            previous=previous.status.value,
            current=state.status.value,
            model=state.model,
        )

    def start(self) -> LifecycleState:
        """
        Bring the inference backend up and enter the running state.

        Raises:
            StartupError: if the backend cannot be launched or does not become
                reachable within the grace period. The classifier is left in
                the error state and keeps serving rule-based suggestions.
        """
        with self._transition_lock:
            if self.backend.is_available():
                log.info("Inference backend is already running")
                return self._enter_running()

            self._set_state(LifecycleState(LifecycleStatus.STARTING))
            try:
                self.backend.launch()
            except StartupError:
                self._set_state(LifecycleState(LifecycleStatus.ERROR))
                log.error("Failed to launch inference backend", exc_info=True)
                raise

            self._sleep(self.settings.STARTUP_GRACE_SECONDS)

            if not self.backend.is_available():
                self._set_state(LifecycleState(LifecycleStatus.ERROR))
                log.error(
                    "Inference backend not reachable after launch",
                    grace_seconds=self.settings.STARTUP_GRACE_SECONDS,
                )
                raise StartupError("Failed to start inference backend")

            log.info("Inference backend started")
            return self._enter_running()

    def _enter_running(self) -> LifecycleState:
        state = LifecycleState(LifecycleStatus.RUNNING, self._select_default_model())
        self._set_state(state)
        return state

    def _select_default_model(self) -> str | None:
        """Best-effort selection of the configured default model."""
        model = self.settings.DEFAULT_MODEL
        try:
            models = self.backend.list_models()
        except InferenceError as e:
            log.warning("Failed to ensure default model", model=model, error=str(e))
            return None

        if not any(model in name for name in models):
            # TODO: pull the model through /api/pull instead of only logging.
            log.info("Default model not found on backend", model=model, models=models)
        return model

    def stop(self) -> LifecycleState:
        """Enter the stopped state and forget the selected model. Idempotent."""
        with self._transition_lock:
            state = LifecycleState(LifecycleStatus.STOPPED)
            self._set_state(state)
            return state

    def status(self) -> ServiceStatus:
        state = self.state
        if state.status is not LifecycleStatus.RUNNING:
            return ServiceStatus(status=state.status.value, available=False)

        try:
            models = self.backend.list_models()
        except InferenceError as e:
            log.warning("Failed to query backend models", error=str(e))
            return ServiceStatus(status=LifecycleStatus.ERROR.value, available=False)

        return ServiceStatus(
            status=LifecycleStatus.RUNNING.value,
            available=True,
            model=state.model,
            models=models,
        )

    def classify(
        self, file_info: FileDescriptor | Mapping[str, Any]
    ) -> ClassificationSuggestion:
        """
        Suggest a category for one file. Never raises.
        """
        descriptor = as_descriptor(file_info)
        state = self.state
        if not state.can_infer:
            if state.status is LifecycleStatus.RUNNING:
                log.warning(
                    "No model loaded, falling back to rule-based",
                    path=descriptor.path,
                )
            return rule_based_suggestion(descriptor)

        prompt = build_analysis_prompt(descriptor)
        try:
            raw = self.backend.generate(
                state.model, prompt, timeout=self.settings.REQUEST_TIMEOUT
            )
        except Exception as e:
            # Timeouts, cancellation and transport errors all degrade to the rule table.
            log.warning(
                "AI analysis failed, falling back to rule-based",
                path=descriptor.path,
                model=state.model,
                error=str(e),
                error_type=type(e).__name__,
            )
            return rule_based_suggestion(descriptor)

        if not isinstance(raw, str):
            log.warning(
                "AI analysis returned no text, falling back to rule-based",
                path=descriptor.path,
                model=state.model,
            )
            return rule_based_suggestion(descriptor)

        return parse_analysis_response(raw)
