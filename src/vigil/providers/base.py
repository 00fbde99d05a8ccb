"""Base summary providers."""

import os
from abc import ABC, abstractmethod
from typing import Any, ClassVar


class SummaryProvider(ABC):
  """Abstract base for LLM providers that summarize guard findings.

  Providers only turn a prompt into text. They never see the rule set
  and never decide which findings are reported.
  """

  @abstractmethod
  def complete(self, system: str, user: str) -> str:
    """Return the model's reply to a system and user prompt."""
    ...

  @property
  @abstractmethod
  def name(self) -> str:
    """Provider name."""
    ...

  @property
  @abstractmethod
  def model(self) -> str:
    """Model being used."""
    ...

  @abstractmethod
  def is_available(self) -> bool:
    """Check if provider is configured and available."""
    ...


class HostedProvider(SummaryProvider):
  """Provider backed by a vendor SDK and an API key from the environment.

  The SDK is an optional extra and is imported on first use, so the
  provider can be listed and probed without it installed.
  """

  PROVIDER_NAME: ClassVar[str]
  API_KEY_ENV: ClassVar[str]
  DEFAULT_MODEL: ClassVar[str]
  SDK_PACKAGE: ClassVar[str]

  def __init__(self, model: str | None = None):
    self._model = model or self.DEFAULT_MODEL
    self._api_key = os.environ.get(self.API_KEY_ENV)
    self._client: Any = None

  @property
  def name(self) -> str:
    return self.PROVIDER_NAME

  @property
  def model(self) -> str:
    return self._model

  def is_available(self) -> bool:
    return self._api_key is not None

  @abstractmethod
  def _create_client(self) -> Any:
    """Import the SDK and build a client; ImportError if it is missing."""
    ...

  def _get_client(self) -> Any:
    if self._client is None:
      try:
        self._client = self._create_client()
      except ImportError as e:
        raise ImportError(
          f"{self.SDK_PACKAGE} not installed. "
          f"Install with: pip install 'vigil[{self.PROVIDER_NAME}]'"
        ) from e
    return self._client
