"""
Exception types raised by the organizer engine.

Only lifecycle and transport problems are raised. Structural problems in a
taxonomy are reported as data by the validator instead.
"""


class JDError(Exception):
    """Base class for all organizer errors."""


class InferenceError(JDError):
    """The inference backend could not produce a reply."""


class StartupError(JDError):
    """The inference backend could not be launched or verified."""


class SerializationError(JDError):
    """A persisted payload could not be turned back into an entity."""


class StructureLimitError(JDError):
    """An edit would exceed a structure's capacity or numbering range."""
