"""OpenAI provider."""

from typing import Any

from vigil.providers.base import HostedProvider
from vigil.providers.registry import register_provider


class OpenAIProvider(HostedProvider):
  PROVIDER_NAME = "openai"
  API_KEY_ENV = "OPENAI_API_KEY"
  DEFAULT_MODEL = "gpt-4o-mini"
  SDK_PACKAGE = "openai"

  def _create_client(self) -> Any:
    from openai import OpenAI
    return OpenAI(api_key=self._api_key)

  def complete(self, system: str, user: str) -> str:
    response = self._get_client().chat.completions.create(
      model=self._model,
      messages=[
        {"role": "system", "content": system},
        {"role": "user", "content": user},
      ],
      response_format={"type": "json_object"},
    )
    return response.choices[0].message.content or ""


register_provider("openai", lambda model: OpenAIProvider(model))
