"""LLM providers for optional summaries of guard findings."""

from vigil.providers.base import SummaryProvider
from vigil.providers.registry import (
  ProviderNotFoundError,
  ProviderRegistry,
  ProviderUnavailableError,
  detect_available_provider,
  get_provider,
  list_providers,
  provider_status,
  register_provider,
)

__all__ = [
  "ProviderNotFoundError",
  "ProviderRegistry",
  "ProviderUnavailableError",
  "SummaryProvider",
  "detect_available_provider",
  "get_provider",
  "list_providers",
  "provider_status",
  "register_provider",
]
