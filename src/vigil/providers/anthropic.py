"""Anthropic Claude provider."""

from typing import Any

from vigil.providers.base import HostedProvider
from vigil.providers.registry import register_provider


class AnthropicProvider(HostedProvider):
  PROVIDER_NAME = "anthropic"
  API_KEY_ENV = "ANTHROPIC_API_KEY"
  DEFAULT_MODEL = "claude-sonnet-4-5"
  SDK_PACKAGE = "anthropic"

  MAX_TOKENS = 1024

  def _create_client(self) -> Any:
    from anthropic import Anthropic
    return Anthropic(api_key=self._api_key)

  def complete(self, system: str, user: str) -> str:
    response = self._get_client().messages.create(
      model=self._model,
      max_tokens=self.MAX_TOKENS,
      system=system,
      messages=[{"role": "user", "content": user}],
    )
    return response.content[0].text if response.content else ""


register_provider("anthropic", lambda model: AnthropicProvider(model))
