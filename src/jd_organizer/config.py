"""
Configuration module for the Johnny Decimal organizer engine.

This module centralizes the loading and validation of all configuration
parameters from environment variables. It provides a single `Settings`
class that acts as a container for all configurable values, ensuring
that they are defined in one place and can be easily imported and used
throughout the application.
"""

import os
import shlex
from typing import Literal


class Settings:
    """
    A container for all configuration settings, loaded from environment variables.

    Every setting has a default, so an empty environment yields a usable
    configuration pointing at a local Ollama server.
    """

    # --- Inference Backend Configuration ---
    OLLAMA_BASE_URL: str
    OLLAMA_COMMAND: list[str]
    DEFAULT_MODEL: str

    # --- Timeouts ---
    STARTUP_GRACE_SECONDS: float
    PROBE_TIMEOUT: float
    REQUEST_TIMEOUT: float
    MAX_RETRIES: int

    # --- Generation Options ---
    LLM_TEMPERATURE: float
    LLM_TOP_P: float
    LLM_MAX_TOKENS: int

    # --- Logging ---
    LOG_LEVEL: str
    LOG_FORMAT: Literal["console", "json"]

    def __init__(self):
        """
        Loads settings from environment variables and performs validation.
        """
        # --- Inference Backend Configuration ---
        self.OLLAMA_BASE_URL = os.getenv(
            "OLLAMA_BASE_URL", "http://127.0.0.1:11434"
        ).rstrip("/")
        self.OLLAMA_COMMAND = shlex.split(os.getenv("OLLAMA_COMMAND", "ollama serve"))
        if not self.OLLAMA_COMMAND:
            raise ValueError("OLLAMA_COMMAND must not be empty")
        self.DEFAULT_MODEL = os.getenv("DEFAULT_MODEL", "llama3.2:1b")

        # --- Timeouts ---
        self.STARTUP_GRACE_SECONDS = self._get_float("STARTUP_GRACE_SECONDS", 3.0)
        self.PROBE_TIMEOUT = self._get_float("PROBE_TIMEOUT", 5.0)
        self.REQUEST_TIMEOUT = self._get_float("REQUEST_TIMEOUT", 30.0)
        self.MAX_RETRIES = int(os.getenv("MAX_RETRIES", 3))
        if self.MAX_RETRIES < 1:
            raise ValueError("MAX_RETRIES must be >= 1")

        # --- Generation Options ---
        self.LLM_TEMPERATURE = self._get_float("LLM_TEMPERATURE", 0.3)
        self.LLM_TOP_P = self._get_float("LLM_TOP_P", 0.9)
        self.LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", 500))

        # --- Logging ---
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_FORMAT = os.getenv("LOG_FORMAT", "console").lower()
        if self.LOG_FORMAT not in ("console", "json"):
            raise ValueError("LOG_FORMAT must be 'console' or 'json'")

    def _get_float(self, var_name: str, default: float) -> float:
        """
        Gets a non-negative float environment variable.
        """
        value = float(os.getenv(var_name, default))
        if value < 0:
            raise ValueError(f"Environment variable '{var_name}' must be >= 0.")
        return value
