"""Ollama local LLM provider."""

import logging
import os
from typing import Any

import httpx

from vigil.providers.base import SummaryProvider
from vigil.providers.registry import register_provider

logger = logging.getLogger(__name__)

# Failures worth another attempt against a local server that is starting up
_RETRYABLE = (httpx.ConnectError, httpx.ReadTimeout)


class OllamaProvider(SummaryProvider):
  """Summaries from a local Ollama server, configured by OLLAMA_HOST."""

  DEFAULT_MODEL = "codellama"
  DEFAULT_HOST = "http://localhost:11434"
  HEALTH_TIMEOUT = 5.0
  GENERATE_TIMEOUT = 120.0
  MAX_RETRIES = 2

  def __init__(self, model: str | None = None):
    self._model = model or self.DEFAULT_MODEL
    self._host = os.environ.get("OLLAMA_HOST", self.DEFAULT_HOST).rstrip("/")
    self._health_timeout = float(os.environ.get("OLLAMA_HEALTH_TIMEOUT", self.HEALTH_TIMEOUT))

  @property
  def name(self) -> str:
    return "ollama"

  @property
  def model(self) -> str:
    return self._model

  def is_available(self) -> bool:
    try:
      return httpx.get(f"{self._host}/api/tags", timeout=self._health_timeout).status_code == 200
    except httpx.RequestError:
      return False

  def complete(self, system: str, user: str) -> str:
    payload = {
      "model": self._model,
      "prompt": f"{system}\n\n{user}",
      "stream": False,
      "format": "json",
    }
    return self._generate(payload).json().get("response", "")

  def _generate(self, payload: dict[str, Any]) -> httpx.Response:
    """POST to /api/generate, retrying connection failures and read timeouts."""
    attempt = 0
    while True:
      try:
        response = httpx.post(
          f"{self._host}/api/generate", json=payload, timeout=self.GENERATE_TIMEOUT
        )
        response.raise_for_status()
        return response
      except _RETRYABLE as e:
        if attempt >= self.MAX_RETRIES:
          raise
        attempt += 1
        logger.debug("Ollama request failed (%s), retry %d", e, attempt)


register_provider("ollama", lambda model: OllamaProvider(model))
