"""Provider discovery and registration."""

import os
from dataclasses import dataclass
from typing import Callable

from vigil.providers.base import SummaryProvider


class ProviderNotFoundError(Exception):
  """Requested provider not found."""


class ProviderUnavailableError(Exception):
  """Provider found but not available (missing API key, etc)."""


ProviderFactory = Callable[[str | None], SummaryProvider]

_providers: dict[str, ProviderFactory] = {}

DETECTION_ORDER = ("anthropic", "openai", "gemini", "ollama")

API_KEY_ENV_VARS = {
  "anthropic": "ANTHROPIC_API_KEY",
  "openai": "OPENAI_API_KEY",
  "gemini": "GEMINI_API_KEY",
}


@dataclass(frozen=True)
class ProviderStatus:
  """Availability of one registered provider."""

  name: str
  available: bool
  reason: str


def register_provider(name: str, factory: ProviderFactory) -> None:
  """Register a provider factory."""
  _providers[name] = factory


def get_provider(name: str, model: str | None = None) -> SummaryProvider:
  """Get a provider by name.

  Raises:
    ProviderNotFoundError: No provider is registered under ``name``.
    ProviderUnavailableError: The provider is not configured or reachable.
  """
  if name not in _providers:
    available = ", ".join(_providers.keys()) or "none"
    raise ProviderNotFoundError(
      f"Provider '{name}' not found. Available: {available}"
    )

  provider = _providers[name](model)

  if not provider.is_available():
    raise ProviderUnavailableError(_format_unavailable(name))

  return provider


def list_providers() -> list[str]:
  """List registered provider names."""
  return list(_providers.keys())


def provider_status() -> list[ProviderStatus]:
  """Status of every registered provider, in detection order."""
  statuses = []
  for name in DETECTION_ORDER:
    if name not in _providers:
      continue
    env_var = API_KEY_ENV_VARS.get(name)
    if env_var:
      has_key = bool(os.environ.get(env_var))
      statuses.append(ProviderStatus(name, has_key, f"{env_var} {'set' if has_key else 'not set'}"))
    else:
      reachable = _providers[name](None).is_available()
      statuses.append(ProviderStatus(name, reachable, "reachable" if reachable else "not reachable"))
  return statuses


def detect_available_provider() -> str | None:
  """First provider in detection order that is available, or None."""
  for status in provider_status():
    if status.available:
      return status.name
  return None


def _format_unavailable(failed: str) -> str:
  lines = [f"Provider '{failed}' is not available.", "", "Provider status:"]
  for s in provider_status():
    lines.append(f"  {'[ok]' if s.available else '[--]'} {s.name}: {s.reason}")
  if failed in API_KEY_ENV_VARS:
    lines.extend(["", f"Set {API_KEY_ENV_VARS[failed]} to use {failed}."])
  return "\n".join(lines)


class ProviderRegistry:
  """Registry for lazy provider loading."""

  @staticmethod
  def load_all() -> None:
    """Load all provider modules to trigger registration."""
    from vigil.providers import anthropic, gemini, ollama, openai  # noqa: F401
