"""
Inference Backend
=================

This module defines the narrow capability interface the classifier needs
from an inference service, plus the production implementation for a local
Ollama server.

The `InferenceBackend` abstract base class keeps the classifier's lifecycle
and fallback logic independent of any particular service, so tests can
substitute a backend that deterministically succeeds, times out or returns
malformed text.
"""

from __future__ import annotations

import subprocess
from abc import ABC, abstractmethod

import openai
import requests
import structlog

from .config import Settings
from .errors import InferenceError, StartupError
from .utils import retry

log = structlog.get_logger(__name__)

RETRYABLE_REQUEST_EXCEPTIONS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)


class InferenceBackend(ABC):
    """Abstract base class for inference backends."""

    @abstractmethod
    def launch(self) -> None:
        """
        Start the backing process. Raises `StartupError` if it cannot be spawned.
        """
        raise NotImplementedError

    @abstractmethod
    def is_available(self) -> bool:
        """Reachability probe. Must not raise."""
        raise NotImplementedError

    @abstractmethod
    def list_models(self) -> list[str]:
        """Return the names of the models the service has loaded."""
        raise NotImplementedError

    @abstractmethod
    def generate(self, model: str, prompt: str, timeout: float) -> str:
        """
        Generate a completion for ``prompt`` and return the raw text.

        Any failure, including a timeout, is raised as `InferenceError`.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release any held resources."""


class OllamaBackend(InferenceBackend):
    """
    An inference backend backed by an Ollama server.

    The native ``/api/tags`` endpoint serves as both the reachability probe
    and the model listing. Generation goes through Ollama's OpenAI-compatible
    ``/v1`` endpoint using the OpenAI SDK.
    """

    def __init__(self, settings: Settings, client: openai.OpenAI | None = None):
        self.settings = settings
        self._session = requests.Session()
        self._process: subprocess.Popen | None = None
        self._client = client or openai.OpenAI(
            base_url=f"{settings.OLLAMA_BASE_URL}/v1/",
            api_key="ollama",
            max_retries=0,
        )

    @property
    def tags_url(self) -> str:
        return f"{self.settings.OLLAMA_BASE_URL}/api/tags"

    def launch(self) -> None:
        command = self.settings.OLLAMA_COMMAND
        try:
            self._process = subprocess.Popen(
                command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise StartupError(f"Failed to spawn Ollama process: {e}") from e
        log.info("Spawned Ollama process", command=command)

    def is_available(self) -> bool:
        try:
            response = self._session.get(
                self.tags_url, timeout=self.settings.PROBE_TIMEOUT
            )
        except requests.exceptions.RequestException as e:
            log.debug("Ollama probe failed", url=self.tags_url, error=str(e))
            return False
        return response.ok

    @retry(retryable_exceptions=RETRYABLE_REQUEST_EXCEPTIONS)
    def _get(self, *args, **kwargs) -> requests.Response:
        """A retriable version of session.get."""
        return self._session.get(*args, **kwargs)

    def list_models(self) -> list[str]:
        try:
            response = self._get(self.tags_url, timeout=self.settings.REQUEST_TIMEOUT)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise InferenceError(f"Failed to fetch models: {e}") from e

        models = data.get("models", []) if isinstance(data, dict) else []
        if not isinstance(models, list):
            return []
        return [
            model["name"]
            for model in models
            if isinstance(model, dict) and isinstance(model.get("name"), str)
        ]

    def generate(self, model: str, prompt: str, timeout: float) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.settings.LLM_TEMPERATURE,
                top_p=self.settings.LLM_TOP_P,
                max_tokens=self.settings.LLM_MAX_TOKENS,
                timeout=timeout,
            )
        except openai.APITimeoutError as e:
            raise InferenceError("Request timeout") from e
        except openai.APIError as e:
            raise InferenceError(f"Generation failed: {e}") from e

        if not response.choices or response.choices[0].message.content is None:
            raise InferenceError("Invalid response format")
        return response.choices[0].message.content

    def close(self) -> None:
        """Close HTTP clients and stop an `ollama serve` spawned by `launch`."""
        self._session.close()
        self._client.close()
        self._terminate_process()

    def _terminate_process(self) -> None:
        process, self._process = self._process, None
        if process is None or process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=self.settings.PROBE_TIMEOUT)
        except subprocess.TimeoutExpired:
            log.warning("Ollama process did not exit; killing", pid=process.pid)
            process.kill()
            process.wait()
        log.info("Stopped Ollama process", pid=process.pid)
