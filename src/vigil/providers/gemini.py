"""Google Gemini provider."""

from typing import Any

from vigil.providers.base import HostedProvider
from vigil.providers.registry import register_provider


class GeminiProvider(HostedProvider):
  PROVIDER_NAME = "gemini"
  API_KEY_ENV = "GEMINI_API_KEY"
  DEFAULT_MODEL = "gemini-1.5-flash"
  SDK_PACKAGE = "google-generativeai"

  def _create_client(self) -> Any:
    import google.generativeai as genai
    genai.configure(api_key=self._api_key)
    return genai.GenerativeModel(self._model)

  def complete(self, system: str, user: str) -> str:
    # Gemini takes one prompt; the system text leads it.
    response = self._get_client().generate_content(
      f"{system}\n\n{user}",
      generation_config={"response_mime_type": "application/json"},
    )
    if not response.text:
      raise ValueError("Gemini returned empty response")
    return response.text


register_provider("gemini", lambda model: GeminiProvider(model))
